"""Validation of the multipart generation form.

The checks run in a fixed order and the first failure wins:

1. the request is ``multipart/form-data``
2. required text fields are present (``style`` and ``childName`` in
   free-form mode, ``templateId`` and ``style`` in template mode)
3. at least one photo part is present
4. template mode only: the template exists and is well formed
5. template mode only: ``pageStart`` / ``pageCount`` describe a non-empty
   range inside the story

Per-file size limits are checked while the photos are read, and the file
count limit is enforced by the form parser itself.
"""

from __future__ import annotations

from typing import Union

from starlette.datastructures import FormData, UploadFile

from storybook.core.config import StorybookConfig
from storybook.core.errors import ValidationError
from storybook.core.models import FreeFormRequest, TemplateRequest, UploadedPhoto
from storybook.core.templates import get_template, validate_template

PHOTO_FIELD_NAMES = ("photos", "photos[]")
TEMPLATE_FIELD = "templateId"

GenerateRequest = Union[FreeFormRequest, TemplateRequest]


def ensure_multipart(content_type: str | None) -> None:
    """Reject anything that is not a multipart upload."""
    if "multipart/form-data" not in (content_type or "").lower():
        raise ValidationError("Expected multipart/form-data")


def _text(form: FormData, name: str) -> str:
    value = form.get(name)
    if isinstance(value, str):
        return value.strip()
    return ""


def _require(form: FormData, name: str) -> str:
    value = _text(form, name)
    if not value:
        raise ValidationError(f"Missing field: {name}")
    return value


def _language(form: FormData, settings: StorybookConfig) -> str:
    return _text(form, "lang") or _text(form, "captionLanguage") or settings.default_language


async def read_photos(form: FormData, max_file_size_bytes: int) -> tuple[UploadedPhoto, ...]:
    """Read every photo part into memory, in upload order.

    Raises:
        ValidationError: If no photo was uploaded or one exceeds the size cap.
    """
    photos: list[UploadedPhoto] = []
    for field_name, value in form.multi_items():
        if field_name not in PHOTO_FIELD_NAMES or not isinstance(value, UploadFile):
            continue
        file_name = value.filename or "photo"
        if value.size is not None and value.size > max_file_size_bytes:
            raise ValidationError(f"File too large: {file_name}")
        # Never read more than one byte past the cap.
        data = await value.read(max_file_size_bytes + 1)
        if len(data) > max_file_size_bytes:
            raise ValidationError(f"File too large: {file_name}")
        photos.append(
            UploadedPhoto(
                field_name=field_name,
                file_name=file_name,
                mime_type=value.content_type or "application/octet-stream",
                data=data,
            )
        )

    if not photos:
        raise ValidationError("No photos uploaded. Use field name 'photos'.")
    return tuple(photos)


def _parse_int(raw: str, name: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"Invalid field: {name} must be an integer") from None


def parse_page_range(
    page_start_raw: str, page_count_raw: str, total_pages: int
) -> tuple[int, int]:
    """Resolve the requested 0-based page range.

    Empty values fall back to the defaults: start at the first page, run to
    the last one.

    Returns:
        ``(page_start, page_count)`` with ``0 <= page_start < total_pages``
        and ``1 <= page_count <= total_pages - page_start``.

    Raises:
        ValidationError: If a value is not an integer or out of range.
    """
    page_start = _parse_int(page_start_raw, "pageStart") if page_start_raw else 0
    if not 0 <= page_start < total_pages:
        raise ValidationError(
            f"Invalid field: pageStart must be between 0 and {total_pages - 1}"
        )

    remaining = total_pages - page_start
    page_count = _parse_int(page_count_raw, "pageCount") if page_count_raw else remaining
    if not 1 <= page_count <= remaining:
        raise ValidationError(f"Invalid field: pageCount must be between 1 and {remaining}")

    return page_start, page_count


async def parse_generate_form(form: FormData, settings: StorybookConfig) -> GenerateRequest:
    """Validate a parsed generation form and build the matching request.

    Template mode is selected by the presence of a ``templateId`` field.

    Raises:
        ValidationError: On the first failed check (HTTP 400).
        ConfigurationError: If the resolved template is malformed (HTTP 500).
    """
    if TEMPLATE_FIELD in form:
        template_id = _require(form, TEMPLATE_FIELD)
        style = _require(form, "style")
        photos = await read_photos(form, settings.max_file_size_bytes)

        template = get_template(template_id)
        if template is None:
            raise ValidationError(f"Unknown template: {template_id}")
        validate_template(template)

        page_start, page_count = parse_page_range(
            _text(form, "pageStart"), _text(form, "pageCount"), template.page_count
        )
        return TemplateRequest(
            template=template,
            style=style,
            subject_name=_text(form, "childName"),
            language=_language(form, settings),
            photos=photos,
            page_start=page_start,
            page_count=page_count,
        )

    style = _require(form, "style")
    subject_name = _require(form, "childName")
    photos = await read_photos(form, settings.max_file_size_bytes)
    return FreeFormRequest(
        style=style,
        subject_name=subject_name,
        language=_language(form, settings),
        photos=photos,
    )
