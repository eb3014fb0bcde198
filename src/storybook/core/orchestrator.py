"""Fan-out/fan-in orchestration of upstream image edits.

This module turns a validated request into one :class:`GenerationTask` per
output image, runs the tasks through
:func:`~storybook.core.concurrency.map_with_concurrency`, and wraps the
ordered results in a :class:`GenerationOutcome` that knows which HTTP status
the aggregate deserves.

Task Boundary
-------------
:func:`run_task` is the only place an upstream failure is caught.  Every
exception is converted into a failed :class:`GenerationResult`, so the
mapper always completes and returns exactly one result per task.

Aggregation Policy
------------------
The two request modes aggregate differently:

- **free-form**: partial success is a success (200) and failed photos are
  reported next to the successful ones.  Only when every photo failed is the
  response a 502.
- **template**: a single failed page fails the whole book (502) and no page
  data is returned.  The error names the first failed page.

The two policies are intentionally not unified."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from storybook.core.concurrency import map_with_concurrency
from storybook.core.config import StorybookConfig
from storybook.core.errors import UpstreamError
from storybook.core.image_client import ImageEditClient
from storybook.core.models import (
    FreeFormRequest,
    GenerationResult,
    GenerationTask,
    TemplateRequest,
)
from storybook.core.photo_selector import select_photo_indices
from storybook.core.prompt_builder import build_prompt
from storybook.core.templates import validate_template

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Image generation failed"


@dataclass(frozen=True)
class GenerationOutcome:
    """Ordered results of one request plus its aggregation policy."""

    mode: Literal["free-form", "template"]
    results: tuple[GenerationResult, ...]

    @property
    def failures(self) -> list[GenerationResult]:
        return [r for r in self.results if not r.ok]

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def first_failure(self) -> GenerationResult | None:
        failures = self.failures
        return failures[0] if failures else None

    @property
    def status_code(self) -> int:
        """HTTP status the aggregate maps to under this mode's policy."""
        if not self.results:
            return 200
        if self.success_count == 0:
            return 502
        if self.mode == "template" and self.failures:
            return 502
        return 200


def build_free_form_tasks(request: FreeFormRequest) -> list[GenerationTask]:
    """One task per uploaded photo, all sharing the same prompt."""
    prompt = build_prompt(request.style, request.subject_name, request.language)
    return [
        GenerationTask(page_index=index, source_photo=photo, prompt=prompt)
        for index, photo in enumerate(request.photos, start=1)
    ]


def build_template_tasks(request: TemplateRequest) -> list[GenerationTask]:
    """One task per requested template page.

    Photos are assigned over the whole story, then the requested range is
    sliced out, so a page keeps its photo however the client pages through
    the book.
    """
    template = request.template
    validate_template(template)

    assignment = select_photo_indices(len(request.photos), template.page_count)
    if not assignment:
        return []

    tasks: list[GenerationTask] = []
    for position in request.page_range:
        page_spec = template.pages[position]
        tasks.append(
            GenerationTask(
                page_index=position + 1,
                source_photo=request.photos[assignment[position]],
                prompt=build_prompt(
                    request.style,
                    request.subject_name,
                    request.language,
                    page_spec,
                ),
                page_spec=page_spec,
            )
        )
    return tasks


async def run_task(
    task: GenerationTask,
    client: ImageEditClient,
    settings: StorybookConfig,
) -> GenerationResult:
    """Execute one upstream edit and convert any failure into a result."""
    photo = task.source_photo
    try:
        image = await client.edit(
            photo.data,
            photo.file_name,
            photo.mime_type,
            task.prompt,
            model=settings.image_model,
            size=settings.image_size,
            timeout_ms=settings.upstream_timeout_ms,
        )
    except UpstreamError as e:
        logger.warning(f"Page {task.page_index} ({photo.file_name}) failed: {e.message}")
        return GenerationResult.failure(task, e.message)
    except Exception:
        logger.error(
            f"Unexpected error generating page {task.page_index} ({photo.file_name})",
            exc_info=True,
        )
        return GenerationResult.failure(task, GENERIC_FAILURE_MESSAGE)
    return GenerationResult.success(task, image)


async def run_tasks(
    tasks: list[GenerationTask],
    client: ImageEditClient,
    settings: StorybookConfig,
) -> list[GenerationResult]:
    """Drive ``tasks`` through the bounded worker pool, preserving order."""
    concurrency = settings.resolve_concurrency(len(tasks))
    logger.info(f"Dispatching {len(tasks)} upstream edit(s) with concurrency {concurrency}")

    async def work(task: GenerationTask) -> GenerationResult:
        return await run_task(task, client, settings)

    return await map_with_concurrency(tasks, concurrency, work)


async def generate_free_form(
    request: FreeFormRequest,
    client: ImageEditClient,
    settings: StorybookConfig,
) -> GenerationOutcome:
    """Illustrate every uploaded photo with the selected style."""
    tasks = build_free_form_tasks(request)
    results = await run_tasks(tasks, client, settings)
    outcome = GenerationOutcome(mode="free-form", results=tuple(results))
    if outcome.success_count == 0:
        logger.warning(f"All {len(results)} free-form generation(s) failed")
    return outcome


async def generate_template_pages(
    request: TemplateRequest,
    client: ImageEditClient,
    settings: StorybookConfig,
) -> GenerationOutcome:
    """Illustrate the requested pages of a story template."""
    tasks = build_template_tasks(request)
    results = await run_tasks(tasks, client, settings)
    outcome = GenerationOutcome(
        mode="template",
        results=tuple(sorted(results, key=lambda r: r.page_index)),
    )
    failed = outcome.first_failure
    if failed is not None:
        logger.warning(
            f"Template {request.template.template_id!r}: page {failed.page_index} "
            f"({failed.role}) failed, {len(outcome.failures)} failure(s) in total"
        )
    return outcome
