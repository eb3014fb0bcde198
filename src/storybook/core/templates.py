"""Static story templates.

Templates are plain data: loaded once at import time, never mutated, and
shared by every request.  Each one must describe exactly
:data:`STORY_PAGE_COUNT` pages; :func:`validate_template` enforces that before
any upstream call is made.

Usage
-----
::

    template = get_template("mom-love-0-3")
    if template is not None:
        validate_template(template)
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from storybook.core.errors import ConfigurationError
from storybook.core.models import PageSpec, StoryTemplate

STORY_PAGE_COUNT = 6

_TEMPLATES: dict[str, StoryTemplate] = {
    "mom-love-0-3": StoryTemplate(
        template_id="mom-love-0-3",
        title="To Mom, With Love (Ages 0–3)",
        pages=(
            PageSpec(
                role="Opening",
                caption="To Mom, with love.",
                image_prompt="warm opening portrait, close bond, gentle light",
            ),
            PageSpec(
                role="Joy",
                caption="Your smile makes my world brighter.",
                image_prompt="joyful moment, laughter, bright but soft",
            ),
            PageSpec(
                role="Care",
                caption="You take care of me in a thousand little ways.",
                image_prompt="nurturing moment, tenderness, cozy",
            ),
            PageSpec(
                role="Calm",
                caption="With you, I feel safe.",
                image_prompt="quiet calm scene, soft shadows, peaceful",
            ),
            PageSpec(
                role="Everyday magic",
                caption="Even ordinary days feel special with you.",
                image_prompt="simple day to day moment, wholesome, warm colors",
            ),
            PageSpec(
                role="Closing",
                caption="I love you, today and always.",
                image_prompt="closing moment, affectionate, storybook finish",
            ),
        ),
    ),
}

TEMPLATES: Mapping[str, StoryTemplate] = MappingProxyType(_TEMPLATES)


def get_template(
    template_id: str, templates: Mapping[str, StoryTemplate] = TEMPLATES
) -> StoryTemplate | None:
    """Look up a template by id, returning ``None`` when it does not exist."""
    return templates.get(template_id)


def validate_template(template: StoryTemplate) -> None:
    """Reject a template that does not have exactly ``STORY_PAGE_COUNT`` pages.

    Raises:
        ConfigurationError: If the page count is wrong.
    """
    if template.page_count != STORY_PAGE_COUNT:
        raise ConfigurationError(
            f"Template {template.template_id!r} must have exactly "
            f"{STORY_PAGE_COUNT} pages, found {template.page_count}",
            context={"templateId": template.template_id},
        )
