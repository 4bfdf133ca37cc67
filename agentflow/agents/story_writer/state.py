"""State definitions for the story writer graph."""

from typing import Annotated, Any, TypedDict

from langchain_core.messages import AnyMessage
from langgraph.graph.message import add_messages


class StoryOutline(TypedDict):
    title: str
    setting: str
    characters: list[str]
    beats: list[str]


class StoryWriterState(TypedDict):
    """State flowing through plan -> write."""

    messages: Annotated[list[AnyMessage], add_messages]
    outline: dict[str, Any]  # StoryOutline-shaped; may hold extra keys from the model
    outline_fallback: bool
    draft: str
