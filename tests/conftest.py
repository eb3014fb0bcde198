"""Shared pytest fixtures for Storybook tests."""

import base64
import re
from typing import Callable, Generator, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from storybook.api.main import app, get_http_client, get_settings
from storybook.core.config import StorybookConfig
from storybook.core.models import UploadedPhoto

_FILENAME_RE = re.compile(rb'filename="([^"]*)"')
_PROMPT_RE = re.compile(rb'name="prompt"\r\n\r\n(.*?)\r\n--', re.DOTALL)


class FakeUpstream:
    """Stand-in for the images API, used as an ``httpx.MockTransport`` handler.

    Every request succeeds with an image derived from the uploaded file name,
    unless its file name is in ``failing_files`` or its prompt carries a page
    role listed in ``failing_roles``.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.failing_files: set[str] = set()
        self.failing_roles: set[str] = set()
        self.error_status = 400

    @staticmethod
    def image_for(file_name: str) -> str:
        """Base64 payload returned for ``file_name``."""
        return base64.b64encode(f"illustrated:{file_name}".encode()).decode()

    @staticmethod
    def file_name_of(request: httpx.Request) -> str:
        """Return the file name of the ``image`` part of an upstream request."""
        match = _FILENAME_RE.search(request.content)
        return match.group(1).decode() if match else ""

    @staticmethod
    def prompt_of(request: httpx.Request) -> str:
        """Return the ``prompt`` field of an upstream request."""
        match = _PROMPT_RE.search(request.content)
        return match.group(1).decode() if match else ""

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        file_name = self.file_name_of(request)
        prompt = self.prompt_of(request)

        role_failed = any(f"Page role: {role}." in prompt for role in self.failing_roles)
        if file_name in self.failing_files or role_failed:
            return httpx.Response(
                self.error_status,
                json={"error": {"message": f"rejected {file_name}"}},
            )
        return httpx.Response(200, json={"data": [{"b64_json": self.image_for(file_name)}]})

    @property
    def prompts(self) -> list[str]:
        return [self.prompt_of(r) for r in self.requests]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep deployment variables from leaking into test configurations."""
    for name in (
        "OPENAI_API_KEY",
        "OPENAI_IMAGE_MODEL",
        "OPENAI_IMAGE_SIZE",
        "OPENAI_IMAGE_CONCURRENCY",
        "STORYBOOK_OPENAI_API_KEY",
        "STORYBOOK_IMAGE_MODEL",
        "STORYBOOK_IMAGE_SIZE",
        "STORYBOOK_IMAGE_CONCURRENCY",
        "STORYBOOK_UPSTREAM_TIMEOUT_MS",
        "STORYBOOK_MAX_FILES",
        "STORYBOOK_MAX_FILE_SIZE_BYTES",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def test_config() -> StorybookConfig:
    """Create a configuration with a credential and small upload limits.

    Returns:
        StorybookConfig instance for testing
    """
    return StorybookConfig(
        _env_file=None,
        openai_api_key="sk-test",
        image_model="gpt-image-1",
        image_size="1024x1024",
        upstream_url="https://upstream.test/v1/images/edits",
        max_files=12,
        max_file_size_bytes=1024,
    )


@pytest.fixture
def fake_upstream() -> FakeUpstream:
    """Create a fake upstream images API."""
    return FakeUpstream()


@pytest.fixture
def upstream_http(fake_upstream: FakeUpstream) -> httpx.AsyncClient:
    """Create an async HTTP client routed to the fake upstream."""
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_upstream))


@pytest.fixture
def test_client(
    test_config: StorybookConfig, upstream_http: httpx.AsyncClient
) -> Generator[TestClient, None, None]:
    """Create a TestClient whose upstream calls go to the fake upstream.

    Cleanup:
        Dependency overrides are removed after the test completes
    """
    app.dependency_overrides[get_settings] = lambda: test_config
    app.dependency_overrides[get_http_client] = lambda: upstream_http
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_photo() -> Callable[..., UploadedPhoto]:
    """Factory for in-memory uploaded photos."""

    def _make(file_name: str = "photo_1.png", data: Optional[bytes] = None) -> UploadedPhoto:
        return UploadedPhoto(
            field_name="photos",
            file_name=file_name,
            mime_type="image/png",
            data=data if data is not None else f"png-bytes:{file_name}".encode(),
        )

    return _make
