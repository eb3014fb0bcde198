"""Tests for storybook.core.templates and the shared data models."""

from __future__ import annotations

import pytest

from storybook.core.errors import ConfigurationError
from storybook.core.models import GenerationResult, GenerationTask, PageSpec, StoryTemplate
from storybook.core.templates import (
    STORY_PAGE_COUNT,
    TEMPLATES,
    get_template,
    validate_template,
)


def short_template(page_count: int) -> StoryTemplate:
    return StoryTemplate(
        template_id="short",
        title="Short",
        pages=tuple(PageSpec(f"Role {i}", f"Caption {i}", f"scene {i}") for i in range(page_count)),
    )


class TestTemplateRegistry:
    """The bundled templates."""

    def test_known_template(self):
        template = get_template("mom-love-0-3")
        assert template is not None
        assert template.title.startswith("To Mom, With Love")
        assert [p.role for p in template.pages] == [
            "Opening",
            "Joy",
            "Care",
            "Calm",
            "Everyday magic",
            "Closing",
        ]

    def test_unknown_template(self):
        assert get_template("nope") is None

    @pytest.mark.parametrize("template_id", list(TEMPLATES))
    def test_bundled_templates_are_valid(self, template_id):
        validate_template(TEMPLATES[template_id])

    def test_registry_is_read_only(self):
        with pytest.raises(TypeError):
            TEMPLATES["new"] = short_template(6)  # type: ignore[index]


class TestValidateTemplate:
    """Page count enforcement."""

    @pytest.mark.parametrize("count", [0, 5, 7])
    def test_wrong_page_count_is_configuration_error(self, count):
        with pytest.raises(ConfigurationError) as info:
            validate_template(short_template(count))
        assert info.value.status_code == 500
        assert str(STORY_PAGE_COUNT) in info.value.message

    def test_template_dict_uses_one_based_pages(self):
        data = get_template("mom-love-0-3").to_dict()
        assert [p["pageIndex"] for p in data["pages"]] == [1, 2, 3, 4, 5, 6]
        assert data["pages"][0]["caption"] == "To Mom, with love."


class TestGenerationResult:
    """The success/failure variant."""

    def test_success_carries_page_metadata(self, make_photo):
        page = PageSpec("Joy", "Smile.", "joy")
        task = GenerationTask(page_index=2, source_photo=make_photo("a.png"), prompt="p", page_spec=page)
        result = GenerationResult.success(task, "QUJD")
        assert result.ok
        assert (result.page_index, result.role, result.caption) == (2, "Joy", "Smile.")
        assert result.error_message is None

    def test_failure_has_no_image(self, make_photo):
        task = GenerationTask(page_index=1, source_photo=make_photo("a.png"), prompt="p")
        result = GenerationResult.failure(task, "boom")
        assert not result.ok
        assert result.image is None
        assert result.file_name == "a.png"

    def test_exactly_one_variant_required(self):
        with pytest.raises(ValueError):
            GenerationResult(page_index=1, file_name="a.png")
        with pytest.raises(ValueError):
            GenerationResult(page_index=1, file_name="a.png", image="x", error_message="y")
