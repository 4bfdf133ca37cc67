"""Story Writer - plans an outline, then writes the story from it."""

from agentflow.agents.story_writer.graph import (
    STORY_WRITER_AGENT,
    compile_story_writer,
    create_story_writer,
)
from agentflow.agents.story_writer.nodes import (
    fallback_outline,
    format_outline,
    is_usable_outline,
)
from agentflow.agents.story_writer.state import StoryOutline, StoryWriterState

__all__ = [
    "STORY_WRITER_AGENT",
    "StoryOutline",
    "StoryWriterState",
    "compile_story_writer",
    "create_story_writer",
    "fallback_outline",
    "format_outline",
    "is_usable_outline",
]
