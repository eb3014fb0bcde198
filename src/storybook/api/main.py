"""Storybook Illustrator — FastAPI Application.

This module is the single entry point for the web service.  It defines the
FastAPI ``app`` instance, its routes and exception handlers, and the
``main()`` CLI function that launches the uvicorn server.

Architecture
------------
The service is stateless:

- **Configuration** comes from :data:`~storybook.core.config.config`,
  injected through the :func:`get_settings` dependency.
- **Upstream calls** share one :class:`httpx.AsyncClient` created by the
  application lifespan and injected through :func:`get_http_client`.
- **Generation** is delegated to :mod:`storybook.core.orchestrator`; this
  module only parses the form, picks the mode, and serialises the outcome.
- **Errors** are rendered as ``{"error": ...}`` JSON by the exception
  handlers below, whatever raised them.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
POST      ``/api/generate``             Illustrate uploaded photos
GET       ``/api/config``               Styles, templates, sizes, limits
GET       ``/api/templates/{id}``       Full template with page captions
GET       ``/health``                   Liveness probe
OPTIONS   any path                      CORS pre-flight (204, no body)
========  ============================  ====================================

Usage
-----
CLI (installed entry point)::

    storybook

Direct invocation::

    python -m storybook.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import Receive, Scope, Send

from storybook import __version__
from storybook.api.models import (
    ErrorResponse,
    render_free_form,
    render_template,
)
from storybook.api.validation import ensure_multipart, parse_generate_form
from storybook.core.config import ALLOWED_IMAGE_SIZES, StorybookConfig, config
from storybook.core.errors import ConfigurationError, StorybookError
from storybook.core.image_client import ImageEditClient
from storybook.core.models import TemplateRequest
from storybook.core.orchestrator import generate_free_form, generate_template_pages
from storybook.core.prompt_builder import STYLE_PRESETS
from storybook.core.templates import STORY_PAGE_COUNT, TEMPLATES, get_template

logger = logging.getLogger(__name__)

_NO_STORE = {"Cache-Control": "no-store"}

# ---------------------------------------------------------------------------
# Application lifecycle: shared upstream HTTP client.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the shared upstream HTTP client and close it on shutdown.

    Only the connect phase has an httpx timeout.  The overall per-call
    deadline is applied by :class:`ImageEditClient` from configuration,
    since image edits routinely take longer than httpx's default.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    app.state.http_client = httpx.AsyncClient(timeout=httpx.Timeout(None, connect=10.0))
    logger.info("Upstream HTTP client initialised.")

    yield  # Application runs here.

    await app.state.http_client.aclose()
    logger.info("Upstream HTTP client closed on shutdown.")


# ---------------------------------------------------------------------------
# Dependencies.
# ---------------------------------------------------------------------------


def get_settings() -> StorybookConfig:
    """Return the active configuration (overridden in tests)."""
    return config


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Return the shared upstream HTTP client (overridden in tests)."""
    return request.app.state.http_client


# ---------------------------------------------------------------------------
# CORS: every origin may call the API; pre-flights get an empty 204.
# ---------------------------------------------------------------------------


class PreflightCORSMiddleware(CORSMiddleware):
    """CORS middleware answering every pre-flight with 204 and no body.

    A pre-flight asking for a method or header outside the allow-lists still
    gets 204; the advertised ``Access-Control-Allow-*`` headers tell the
    browser what is permitted.
    """

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            logger.debug(f"Pre-flight outside the CORS allow-lists: {response.body.decode()}")
        headers = {
            key: value
            for key, value in response.headers.items()
            if key not in ("content-length", "content-type")
        }
        return Response(status_code=204, headers=headers)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["method"] == "OPTIONS":
            headers = Headers(scope=scope)
            if "origin" in headers and "access-control-request-method" in headers:
                response = self.preflight_response(request_headers=headers)
            else:
                response = Response(status_code=204, headers=dict(self.preflight_headers))
            await response(scope, receive, send)
            return
        await super().__call__(scope, receive, send)


# ---------------------------------------------------------------------------
# FastAPI application instance.
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storybook Illustrator",
    description="Turns uploaded photos into illustrated children's storybook pages.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    PreflightCORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "GET", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    max_age=86400,
)


def _json(status_code: int, payload: dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=payload, headers=_NO_STORE)


# ---------------------------------------------------------------------------
# Exception handlers: every failure becomes ``{"error": ...}``.
# ---------------------------------------------------------------------------


@app.exception_handler(StorybookError)
async def storybook_error_handler(request: Request, exc: StorybookError) -> JSONResponse:
    """Render a domain error with its own status and context keys."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return _json(exc.status_code, exc.to_payload())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework errors (405, 404, multipart limits) in the same shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers={**_NO_STORE, **(exc.headers or {})},
    )


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.post(
    "/api/generate",
    response_model=None,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def generate(
    request: Request,
    settings: StorybookConfig = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> JSONResponse:
    """Illustrate uploaded photos in the selected style.

    The endpoint accepts ``multipart/form-data`` and runs in one of two
    modes:

    - **free-form** (no ``templateId`` field): each photo in ``photos``
      becomes one illustration.  Partial failures are reported per image.
    - **template** (``templateId`` present): photos are assigned to the
      template's pages, optionally restricted by ``pageStart`` and
      ``pageCount``.  Any failed page fails the whole response.

    Args:
        request: The raw request; its form is parsed here.
        settings: Active configuration.
        http_client: Shared upstream HTTP client.

    Returns:
        JSON response with status 200 or 502.

    Raises:
        ValidationError: 400 for an unusable request.
        ConfigurationError: 500 when the upstream credential is missing or
            the template is malformed.
    """
    ensure_multipart(request.headers.get("content-type"))
    async with request.form(max_files=settings.max_files) as form:
        parsed = await parse_generate_form(form, settings)

    if not settings.openai_api_key:
        raise ConfigurationError("Server is missing the upstream API key")

    client = ImageEditClient(http_client, settings.openai_api_key, settings.upstream_url)

    if isinstance(parsed, TemplateRequest):
        logger.info(
            f"Template request {parsed.template.template_id!r}: "
            f"{len(parsed.photos)} photo(s), pages {parsed.page_range.start + 1}"
            f"-{parsed.page_range.stop}"
        )
        outcome = await generate_template_pages(parsed, client, settings)
        status_code, body = render_template(outcome, parsed)
    else:
        logger.info(f"Free-form request: {len(parsed.photos)} photo(s), style {parsed.style!r}")
        outcome = await generate_free_form(parsed, client, settings)
        status_code, body = render_free_form(outcome)

    return _json(status_code, body)


@app.get("/api/config")
async def get_config(settings: StorybookConfig = Depends(get_settings)) -> dict:
    """Return what the browser client needs to build its pickers.

    Returns:
        Dictionary with keys ``version``, ``styles``, ``templates``,
        ``imageSizes``, ``pageCount``, ``defaultLanguage`` and ``limits``.
    """
    return {
        "version": __version__,
        "styles": [
            {"id": name, "descriptor": preset.descriptor, "notes": preset.notes}
            for name, preset in STYLE_PRESETS.items()
        ],
        "templates": [template.summary() for template in TEMPLATES.values()],
        "imageSizes": list(ALLOWED_IMAGE_SIZES),
        "pageCount": STORY_PAGE_COUNT,
        "defaultLanguage": settings.default_language,
        "limits": {
            "maxFiles": settings.max_files,
            "maxFileSizeBytes": settings.max_file_size_bytes,
        },
    }


@app.get("/api/templates/{template_id}")
async def get_template_detail(template_id: str) -> dict:
    """Return one template including its page roles and captions.

    Raises:
        HTTPException: 404 if the template does not exist.
    """
    template = get_template(template_id)
    if template is None:
        raise HTTPException(status_code=404, detail=f"Unknown template: {template_id}")
    return template.to_dict()


@app.get("/health")
async def health() -> dict:
    """Liveness probe."""
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Configure logging and launch the uvicorn ASGI server.

    Host, port and log level come from :data:`~storybook.core.config.config`
    (``STORYBOOK_SERVER_HOST``, ``STORYBOOK_SERVER_PORT``,
    ``STORYBOOK_LOG_LEVEL``).

    This function is registered as the ``storybook`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    if not config.openai_api_key:
        logger.warning("No upstream API key configured; generation requests will fail with 500.")

    uvicorn.run(
        "storybook.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
