"""Pydantic response models for the Storybook API.

These models define the JSON schema of every generation response.  FastAPI
uses them for OpenAPI documentation; the route handlers use them to
serialise :class:`~storybook.core.orchestrator.GenerationOutcome` objects.

Models
------
GeneratedImage
    One entry of a free-form response: the base64 image or an error.
FreeFormResponse
    Body of a free-form ``POST /api/generate`` (200 or 502).
StoryPage
    One illustrated template page.
StoryResponse
    Body of a successful template ``POST /api/generate``.
ErrorResponse
    Body of every failed request.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from storybook.core.models import GenerationResult, TemplateRequest
from storybook.core.orchestrator import GenerationOutcome


class GeneratedImage(BaseModel):
    """One free-form result.  Exactly one of ``b64_png`` and ``error`` is set."""

    filename: str = Field(..., description="Name of the uploaded photo.")
    b64_png: str | None = Field(
        default=None,
        description="Base64-encoded illustration.",
    )
    error: str | None = Field(
        default=None,
        description="Why this photo could not be illustrated.",
    )

    @classmethod
    def from_result(cls, result: GenerationResult) -> "GeneratedImage":
        if result.ok:
            return cls(filename=result.file_name, b64_png=result.image)
        return cls(filename=result.file_name, error=result.error_message)


class FreeFormResponse(BaseModel):
    """Body of a free-form generation response.

    Attributes:
        images: One entry per uploaded photo, in upload order.
        error: Set only when every photo failed.
    """

    images: list[GeneratedImage]
    error: str | None = None


class StoryPage(BaseModel):
    """One illustrated template page (1-based ``pageIndex``)."""

    pageIndex: int
    role: str
    caption: str
    b64_png: str


class StoryResponse(BaseModel):
    """Body of a successful template generation response."""

    templateId: str
    title: str
    style: str
    pages: list[StoryPage]


class ErrorResponse(BaseModel):
    """Body of a failed request.

    ``pageIndex`` and ``role`` identify the first failing page of a template
    request.
    """

    error: str
    pageIndex: int | None = None
    role: str | None = None


def render_free_form(outcome: GenerationOutcome) -> tuple[int, dict[str, Any]]:
    """Serialise a free-form outcome to ``(status_code, body)``."""
    body = FreeFormResponse(images=[GeneratedImage.from_result(r) for r in outcome.results])
    if outcome.status_code != 200:
        body.error = "All image generations failed"
    return outcome.status_code, body.model_dump(exclude_none=True)


def render_template(
    outcome: GenerationOutcome, request: TemplateRequest
) -> tuple[int, dict[str, Any]]:
    """Serialise a template outcome to ``(status_code, body)``.

    A failed outcome reports only the first failing page; no page data from
    the successful pages is returned.
    """
    failed = outcome.first_failure
    if failed is not None:
        body = ErrorResponse(
            error=f"Failed to generate page {failed.page_index} ({failed.role}): "
            f"{failed.error_message}",
            pageIndex=failed.page_index,
            role=failed.role,
        )
        return outcome.status_code, body.model_dump(exclude_none=True)

    story = StoryResponse(
        templateId=request.template.template_id,
        title=request.template.title,
        style=request.style,
        pages=[
            StoryPage(
                pageIndex=r.page_index,
                role=r.role,
                caption=r.caption,
                b64_png=r.image or "",
            )
            for r in outcome.results
        ],
    )
    return outcome.status_code, story.model_dump()
