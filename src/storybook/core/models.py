"""Data models shared by the storybook generation pipeline."""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class UploadedPhoto:
    """One photo taken from the multipart upload.

    Lives only for the duration of the request that carried it.
    """

    field_name: str
    file_name: str
    mime_type: str
    data: bytes = field(repr=False)


@dataclass(frozen=True)
class PageSpec:
    """One narrative beat of a story template.

    Position inside ``StoryTemplate.pages`` is the page number.
    """

    role: str
    caption: str
    image_prompt: str


@dataclass(frozen=True)
class StoryTemplate:
    """A named, fixed-length sequence of story pages."""

    template_id: str
    title: str
    pages: tuple[PageSpec, ...]

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def summary(self) -> dict[str, Any]:
        """Return the template metadata without page contents."""
        return {
            "templateId": self.template_id,
            "title": self.title,
            "pageCount": self.page_count,
        }

    def to_dict(self) -> dict[str, Any]:
        """Return the full template, pages included, for the browser client."""
        return {
            "templateId": self.template_id,
            "title": self.title,
            "pages": [
                {
                    "pageIndex": index,
                    "role": page.role,
                    "caption": page.caption,
                    "imagePrompt": page.image_prompt,
                }
                for index, page in enumerate(self.pages, start=1)
            ],
        }


@dataclass(frozen=True)
class GenerationTask:
    """Unit of work for a single upstream call.

    ``page_index`` is 1-based.  Free-form requests have no page spec.
    """

    page_index: int
    source_photo: UploadedPhoto
    prompt: str
    page_spec: Optional[PageSpec] = None


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of one generation task.

    Exactly one of ``image`` (base64) and ``error_message`` is set.  Check
    :attr:`ok` before reading ``image``.
    """

    page_index: int
    file_name: str
    role: str = ""
    caption: str = ""
    image: Optional[str] = field(default=None, repr=False)
    error_message: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.image is None) == (self.error_message is None):
            raise ValueError("GenerationResult needs exactly one of image or error_message")

    @property
    def ok(self) -> bool:
        return self.image is not None

    @classmethod
    def success(cls, task: GenerationTask, image: str) -> "GenerationResult":
        return cls(
            page_index=task.page_index,
            file_name=task.source_photo.file_name,
            role=task.page_spec.role if task.page_spec else "",
            caption=task.page_spec.caption if task.page_spec else "",
            image=image,
        )

    @classmethod
    def failure(cls, task: GenerationTask, message: str) -> "GenerationResult":
        return cls(
            page_index=task.page_index,
            file_name=task.source_photo.file_name,
            role=task.page_spec.role if task.page_spec else "",
            caption=task.page_spec.caption if task.page_spec else "",
            error_message=message,
        )


@dataclass(frozen=True)
class FreeFormRequest:
    """Validated free-form request: every photo becomes one illustration."""

    style: str
    subject_name: str
    language: str
    photos: tuple[UploadedPhoto, ...]


@dataclass(frozen=True)
class TemplateRequest:
    """Validated template request for a sub-range of a story's pages.

    ``page_start`` is 0-based; the pages produced are
    ``page_start + 1 .. page_start + page_count`` in 1-based numbering.
    """

    template: StoryTemplate
    style: str
    subject_name: str
    language: str
    photos: tuple[UploadedPhoto, ...]
    page_start: int = 0
    page_count: Optional[int] = None

    @property
    def page_range(self) -> range:
        count = self.page_count
        if count is None:
            count = self.template.page_count - self.page_start
        return range(self.page_start, self.page_start + count)
