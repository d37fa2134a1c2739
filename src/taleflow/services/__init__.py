"""Service layer exports."""

from .story_runtime import (
    DEFAULT_MAX_AUTO_ADVANCE,
    StoryChoice,
    StoryNodeView,
    StoryRuntime,
)

__all__ = [
    "DEFAULT_MAX_AUTO_ADVANCE",
    "StoryChoice",
    "StoryNodeView",
    "StoryRuntime",
]
