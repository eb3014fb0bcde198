"""Configuration management for Storybook Illustrator.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the STORYBOOK_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (STORYBOOK_* prefix)
2. .env file in the project root
3. Default values defined in StorybookConfig

The upstream-facing settings additionally accept the conventional variable
names used by existing deployments (``OPENAI_API_KEY``, ``OPENAI_IMAGE_MODEL``,
``OPENAI_IMAGE_SIZE``, ``OPENAI_IMAGE_CONCURRENCY``), so a server can be
pointed at the same environment without renaming anything.

Example .env file:
    STORYBOOK_OPENAI_API_KEY=sk-...
    STORYBOOK_IMAGE_MODEL=gpt-image-1
    STORYBOOK_IMAGE_SIZE=1024x1024
    STORYBOOK_UPSTREAM_TIMEOUT_MS=120000
    STORYBOOK_IMAGE_CONCURRENCY=3

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
The API layer reads it through a FastAPI dependency so tests can substitute
their own instance.

Usage Example
-------------
    from storybook.core.config import config

    print(config.image_model)
    print(config.image_size)

Missing Credential
------------------
The API key is optional at load time, so the server starts and serves
``/api/config`` without it.  A generation request made while it is unset
fails with HTTP 500.
"""

import logging
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from storybook.core.image_client import DEFAULT_EDITS_URL

logger = logging.getLogger(__name__)

# Output sizes accepted by the upstream images endpoint.
ALLOWED_IMAGE_SIZES: tuple[str, ...] = ("1024x1024", "1024x1536", "1536x1024", "auto")
DEFAULT_IMAGE_SIZE = "1024x1024"


class StorybookConfig(BaseSettings):
    """Main configuration for Storybook Illustrator.

    Attributes
    ----------
    Upstream Settings:
        openai_api_key : str | None
            Credential for the upstream images API.  Required to generate.
        image_model : str
            Model identifier sent with every edit request.
        image_size : str
            Output size; must be one of ``ALLOWED_IMAGE_SIZES``.  Invalid
            values fall back to ``DEFAULT_IMAGE_SIZE``.
        upstream_url : str
            Endpoint receiving the multipart edit request.
        upstream_timeout_ms : int | None
            Per-call timeout in milliseconds.  ``None`` disables it.

    Request Settings:
        image_concurrency : int | None
            Ceiling on simultaneous upstream calls for one request.
            ``None`` means one worker per page/photo.
        default_language : str
            Caption language used when the form omits one.
        max_files : int
            Maximum number of uploaded photo parts per request.
        max_file_size_bytes : int
            Maximum size of a single uploaded photo.

    Server Settings:
        server_host : str
            Bind address used by ``main()``.
        server_port : int
            Port used by ``main()``.
        log_level : str
            Root logging level configured by ``main()``.

    Examples
    --------
        >>> custom_config = StorybookConfig(
        ...     openai_api_key="sk-test",
        ...     image_concurrency=2,
        ... )
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="STORYBOOK_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Upstream settings
    openai_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("STORYBOOK_OPENAI_API_KEY", "OPENAI_API_KEY"),
        description="Credential for the upstream images API",
    )
    image_model: str = Field(
        default="gpt-image-1",
        validation_alias=AliasChoices("STORYBOOK_IMAGE_MODEL", "OPENAI_IMAGE_MODEL"),
        description="Upstream model identifier",
    )
    image_size: str = Field(
        default=DEFAULT_IMAGE_SIZE,
        validation_alias=AliasChoices("STORYBOOK_IMAGE_SIZE", "OPENAI_IMAGE_SIZE"),
        description="Output image size (falls back to the default when not allowed)",
    )
    upstream_url: str = Field(
        default=DEFAULT_EDITS_URL,
        description="Upstream image edit endpoint",
    )
    upstream_timeout_ms: Optional[int] = Field(
        default=None,
        ge=1,
        description="Per-call upstream timeout in milliseconds (unset = no timeout)",
    )

    # Request settings
    image_concurrency: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("STORYBOOK_IMAGE_CONCURRENCY", "OPENAI_IMAGE_CONCURRENCY"),
        description="Maximum upstream calls in flight per request (unset = one per task)",
    )
    default_language: str = Field(
        default="English",
        description="Caption language used when the request omits one",
    )
    max_files: int = Field(default=12, ge=1, le=100)
    max_file_size_bytes: int = Field(default=12 * 1024 * 1024, ge=1)

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    server_port: int = Field(
        default=8000,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: str = Field(default="INFO")

    @field_validator("openai_api_key")
    @classmethod
    def _blank_key_is_missing(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()

    @field_validator("image_size")
    @classmethod
    def _fallback_image_size(cls, value: str) -> str:
        """Replace an unsupported size with the default instead of failing startup."""
        candidate = value.strip().lower()
        if candidate not in ALLOWED_IMAGE_SIZES:
            logger.warning(
                f"Unsupported image size {value!r}; falling back to {DEFAULT_IMAGE_SIZE}"
            )
            return DEFAULT_IMAGE_SIZE
        return candidate

    def resolve_concurrency(self, task_count: int) -> int:
        """Return the worker count to use for ``task_count`` tasks.

        Without an override every task gets its own worker.  The result is
        never below 1, so an empty task list still yields a valid ceiling.
        """
        if self.image_concurrency is None or self.image_concurrency < 1:
            return max(1, task_count)
        return self.image_concurrency


# Global configuration instance
# Loads values from environment variables (STORYBOOK_* prefix) and .env file.
config = StorybookConfig()
