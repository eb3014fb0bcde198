"""Core functionality for storybook illustration.

Architecture Overview
---------------------
1. **Configuration Layer** (config.py):
   - Environment-based configuration using Pydantic Settings
   - All settings prefixed with STORYBOOK_ in .env files

2. **Pure Building Blocks**:
   - photo_selector.py: photo-to-page index assignment
   - prompt_builder.py: style presets and prompt compilation
   - templates.py: static six-page story templates

3. **Execution Layer**:
   - concurrency.py: bounded, order-preserving async worker pool
   - image_client.py: single-attempt client for the upstream edit API
   - orchestrator.py: task construction, dispatch and aggregation policy

4. **Shared Types** (models.py, errors.py)
"""

from storybook.core.config import StorybookConfig, config
from storybook.core.errors import (
    ConfigurationError,
    StorybookError,
    UpstreamError,
    UpstreamTimeoutError,
    ValidationError,
)
from storybook.core.photo_selector import select_photo_indices
from storybook.core.prompt_builder import build_prompt

__all__ = [
    "ConfigurationError",
    "StorybookConfig",
    "StorybookError",
    "UpstreamError",
    "UpstreamTimeoutError",
    "ValidationError",
    "build_prompt",
    "config",
    "select_photo_indices",
]
