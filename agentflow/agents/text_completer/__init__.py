"""Text Completer - analyses the author's style, then continues the text."""

from agentflow.agents.text_completer.graph import (
    TEXT_COMPLETER_AGENT,
    compile_text_completer,
    create_text_completer,
)
from agentflow.agents.text_completer.nodes import DEFAULT_STYLE_PROFILE, describe_style
from agentflow.agents.text_completer.state import TextCompleterState

__all__ = [
    "DEFAULT_STYLE_PROFILE",
    "TEXT_COMPLETER_AGENT",
    "TextCompleterState",
    "compile_text_completer",
    "create_text_completer",
    "describe_style",
]
