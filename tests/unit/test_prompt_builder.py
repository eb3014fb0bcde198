"""Tests for storybook.core.prompt_builder — prompt compilation.

Tests cover:
- Style preset resolution and the raw-style fallback.
- Fixed line order.
- Optional subject, language, role and scene lines.
"""

from __future__ import annotations

from storybook.core.models import PageSpec
from storybook.core.prompt_builder import STYLE_PRESETS, build_prompt, resolve_style

PAGE = PageSpec(role="Joy", caption="Your smile.", image_prompt="joyful moment, laughter")


class TestResolveStyle:
    """Test style preset lookup."""

    def test_known_style_uses_preset(self):
        preset = resolve_style("Watercolor")
        assert preset is STYLE_PRESETS["Watercolor"]
        assert preset.descriptor == "soft watercolor"

    def test_unknown_style_falls_back_to_raw_string(self):
        preset = resolve_style("Pixel Art")
        assert preset.descriptor == "Pixel Art"
        assert "Pixel Art" in preset.notes


class TestBuildPrompt:
    """Test build_prompt line composition."""

    def test_full_prompt_line_order(self):
        """All twelve lines are present in the fixed order."""
        lines = build_prompt("Watercolor", "Mia", "French", PAGE).split("\n")

        assert len(lines) == 12
        assert lines[0] == (
            "Convert this photo into a children's book illustration in a soft watercolor style."
        )
        assert lines[1] == "Style notes: pastel palette, gentle brushstrokes."
        assert lines[2].startswith("Preserve faces")
        assert "same number of people" in lines[3]
        assert "family-friendly" in lines[4]
        assert "distort" in lines[5]
        assert "colors faithful" in lines[6]
        assert "logos" in lines[7]
        assert lines[8] == 'The child\'s name is "Mia".'
        assert lines[9] == "If you include any readable text, it must be in French."
        assert lines[10] == "Page role: Joy."
        assert lines[11] == "Scene guidance: joyful moment, laughter."

    def test_unknown_style_used_verbatim(self):
        prompt = build_prompt("Pixel Art", "Mia", "English")
        assert "illustration in a Pixel Art style." in prompt

    def test_empty_subject_name_omitted(self):
        """No subject line and no blank line left in its place."""
        prompt = build_prompt("Watercolor", "", "English", PAGE)
        assert "child's name" not in prompt
        assert "\n\n" not in prompt
        assert len(prompt.split("\n")) == 11

    def test_whitespace_subject_name_omitted(self):
        prompt = build_prompt("Watercolor", "   ", "English")
        assert "child's name" not in prompt

    def test_missing_language_omitted(self):
        prompt = build_prompt("Watercolor", "Mia", None, PAGE)
        assert "readable text" not in prompt
        assert len(prompt.split("\n")) == 11

    def test_free_form_has_no_page_lines(self):
        """Without a page spec there is no role or scene line."""
        prompt = build_prompt("Watercolor", "Mia", "English")
        assert "Page role" not in prompt
        assert "Scene guidance" not in prompt
        assert prompt.split("\n")[-1] == "If you include any readable text, it must be in English."

    def test_deterministic(self):
        assert build_prompt("Crayon Doodle", "Sam", "English", PAGE) == build_prompt(
            "Crayon Doodle", "Sam", "English", PAGE
        )
