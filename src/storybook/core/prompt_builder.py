"""Prompt compilation for photo-to-illustration edits.

The upstream API receives one free-text instruction per photo.  The prompt is
composed line by line in a fixed order so that every page of a book is
generated under the same rules:

Prompt Structure::

    Convert this photo into a children's book illustration in a [descriptor] style.
    Style notes: [notes].
    [Fixed: identity preservation]
    [Fixed: person-count preservation]
    [Fixed: tone]
    [Fixed: anti-distortion]
    [Fixed: color fidelity]
    [Fixed: no logos / no added text]
    The child's name is "[name]".            (only with a subject name)
    Any readable text must be in [language]. (only with a language)
    Page role: [role].                       (template pages only)
    Scene guidance: [image prompt].          (template pages only)

Omitted lines leave no blank line behind.

Usage
-----
::

    prompt = build_prompt(
        "Watercolor",
        subject_name="Mia",
        language="English",
        page_spec=template.pages[0],
    )
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from storybook.core.models import PageSpec


@dataclass(frozen=True)
class StylePreset:
    """Human-readable rendering of a selectable illustration style."""

    descriptor: str
    notes: str


_STYLE_PRESETS: dict[str, StylePreset] = {
    "Watercolor": StylePreset(
        descriptor="soft watercolor",
        notes="pastel palette, gentle brushstrokes",
    ),
    "Studio Ghibli Style": StylePreset(
        descriptor="whimsical hand-painted animation",
        notes="warm lighting, detailed backgrounds, cozy mood",
    ),
    "Classic 90s Kids Book": StylePreset(
        descriptor="classic 1990s children's picture book",
        notes="simple shapes, warm colors",
    ),
    "Crayon Doodle": StylePreset(
        descriptor="playful crayon doodle",
        notes="textured paper, childlike linework",
    ),
    "Hand-painted Look": StylePreset(
        descriptor="hand-painted gouache",
        notes="rich texture, warm tones",
    ),
    "Vintage Storybook": StylePreset(
        descriptor="vintage storybook",
        notes="muted colors, slight ink outlines",
    ),
}

STYLE_PRESETS: Mapping[str, StylePreset] = MappingProxyType(_STYLE_PRESETS)

# ---------------------------------------------------------------------------
# Fixed instruction lines, emitted in this order after the style lines.
# ---------------------------------------------------------------------------
_IDENTITY_LINE = "Preserve faces and key features of subjects so each person stays recognizable."
_PERSON_COUNT_LINE = "Keep exactly the same number of people as in the photo."
_TONE_LINE = "Keep the scene warm, wholesome, and family-friendly."
_ANTI_DISTORTION_LINE = "Do not add extra characters or distort identity, anatomy, or proportions."
_COLOR_FIDELITY_LINE = "Keep hair, skin, eye, and clothing colors faithful to the original photo."
_NO_LOGO_LINE = "Do not include trademarks, logos, copyrighted characters, or added text."


def resolve_style(style: str) -> StylePreset:
    """Return the preset for ``style``, or a preset built from the raw string."""
    preset = STYLE_PRESETS.get(style)
    if preset is not None:
        return preset
    return StylePreset(
        descriptor=style,
        notes=f"apply the {style} look consistently across the whole image",
    )


def build_prompt(
    style: str,
    subject_name: str = "",
    language: str | None = None,
    page_spec: PageSpec | None = None,
) -> str:
    """Compile the edit instruction for one photo.

    Args:
        style: Style name selected by the user.  Unknown styles are used
            verbatim as the descriptor.
        subject_name: Name of the child in the photos.  Empty to omit.
        language: Language any readable text must use.  ``None`` or empty
            to omit.
        page_spec: Story page being illustrated.  ``None`` for free-form
            requests, which omits the role and scene lines.

    Returns:
        The prompt, one instruction per line.
    """
    preset = resolve_style(style.strip())
    lines: list[str] = [
        f"Convert this photo into a children's book illustration in a {preset.descriptor} style.",
        f"Style notes: {preset.notes}.",
        _IDENTITY_LINE,
        _PERSON_COUNT_LINE,
        _TONE_LINE,
        _ANTI_DISTORTION_LINE,
        _COLOR_FIDELITY_LINE,
        _NO_LOGO_LINE,
    ]

    name = subject_name.strip()
    if name:
        lines.append(f'The child\'s name is "{name}".')

    lang = (language or "").strip()
    if lang:
        lines.append(f"If you include any readable text, it must be in {lang}.")

    if page_spec is not None:
        if page_spec.role.strip():
            lines.append(f"Page role: {page_spec.role.strip()}.")
        if page_spec.image_prompt.strip():
            lines.append(f"Scene guidance: {page_spec.image_prompt.strip()}.")

    return "\n".join(lines)
