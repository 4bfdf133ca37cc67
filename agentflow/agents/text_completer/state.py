"""State definitions for the text completer graph."""

from typing import Annotated, Any, TypedDict

from langchain_core.messages import AnyMessage
from langgraph.graph.message import add_messages


class TextCompleterState(TypedDict):
    """State flowing through analyze_style -> complete."""

    messages: Annotated[list[AnyMessage], add_messages]
    style_profile: dict[str, Any]
    completion: str
