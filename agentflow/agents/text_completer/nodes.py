"""Node implementations for the text completer graph."""

from typing import Any

import logfire
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage

from agentflow.agents.parsing import Fallback, latest_user_text, parse_json_or_default
from agentflow.agents.text_completer.prompts import ANALYZE_STYLE_PROMPT, COMPLETE_PROMPT
from agentflow.agents.text_completer.state import TextCompleterState
from agentflow.services.llm import extract_text_content

DEFAULT_STYLE_PROFILE: dict[str, str] = {
    "vocabularyLevel": "intermediate",
    "avgSentenceLength": "medium",
    "tense": "past",
    "person": "third",
    "tone": "neutral",
    "voice": "active",
}


def describe_style(profile: dict[str, Any]) -> str:
    return ", ".join(f"{key}: {value}" for key, value in profile.items())


def make_analyze_style_node(model: BaseChatModel):
    """Create the node that extracts a JSON style profile from the text."""
    chain = ANALYZE_STYLE_PROMPT | model

    async def analyze_style(state: TextCompleterState) -> dict[str, Any]:
        with logfire.span("analyze_style"):
            response = await chain.ainvoke({"text": latest_user_text(state["messages"])})
            result = parse_json_or_default(
                extract_text_content(response.content), DEFAULT_STYLE_PROFILE
            )
            logfire.info("Style analysed", fallback=isinstance(result, Fallback))
            return {"style_profile": result.value}

    return analyze_style


def make_complete_node(model: BaseChatModel):
    """Create the node that continues the text in the analysed style."""
    chain = COMPLETE_PROMPT | model

    async def complete(state: TextCompleterState) -> dict[str, Any]:
        profile = state.get("style_profile") or DEFAULT_STYLE_PROFILE

        with logfire.span("complete_text"):
            response = await chain.ainvoke(
                {
                    "style_description": describe_style(profile),
                    "text": latest_user_text(state["messages"]),
                }
            )
            completion = extract_text_content(response.content)

        return {"completion": completion, "messages": [AIMessage(content=completion)]}

    return complete
