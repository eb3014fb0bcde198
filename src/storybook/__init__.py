"""Storybook Illustrator - photos in, illustrated storybook pages out."""

__version__ = "0.1.0"

from storybook.core.config import StorybookConfig, config

__all__ = [
    "StorybookConfig",
    "config",
]
