"""Node implementations for the story writer graph."""

import logging
from typing import Any

import logfire
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage

from agentflow.agents.parsing import Fallback, Parsed, latest_user_text, parse_json_or_default
from agentflow.agents.story_writer.prompts import PLAN_PROMPT, WRITE_PROMPT
from agentflow.agents.story_writer.state import StoryOutline, StoryWriterState
from agentflow.services.llm import extract_text_content

logger = logging.getLogger(__name__)


def fallback_outline(prompt: str) -> StoryOutline:
    """Minimal outline used when the plan is unparsable or malformed."""
    return {
        "title": "Untitled Story",
        "setting": "To be determined",
        "characters": [],
        "beats": [prompt],
    }


def is_usable_outline(outline: Any) -> bool:
    """True when beats is a non-empty list of strings and characters is a list."""
    if not isinstance(outline, dict):
        return False
    beats = outline.get("beats")
    if not isinstance(beats, list) or not beats:
        return False
    if not all(isinstance(beat, str) for beat in beats):
        return False
    return isinstance(outline.get("characters", []), list)


def format_outline(outline: dict[str, Any]) -> str:
    """Render an outline as the plain-text block handed to the writer."""
    characters = outline.get("characters") or []
    beats = outline.get("beats") or []
    numbered = "\n".join(f"  {i}. {beat}" for i, beat in enumerate(beats, start=1))
    return "\n".join(
        [
            f"Title: {outline.get('title') or ''}",
            f"Setting: {outline.get('setting') or ''}",
            f"Characters: {', '.join(str(c) for c in characters)}",
            f"Story beats:\n{numbered}",
        ]
    )


def make_plan_node(model: BaseChatModel):
    """Create the node that asks for a JSON story outline."""
    chain = PLAN_PROMPT | model

    async def plan(state: StoryWriterState) -> dict[str, Any]:
        prompt = latest_user_text(state["messages"])

        with logfire.span("plan_story", prompt=prompt[:100]):
            response = await chain.ainvoke({"prompt": prompt})
            raw = extract_text_content(response.content)
            result = parse_json_or_default(raw, fallback_outline(prompt))

            if isinstance(result, Parsed) and not is_usable_outline(result.value):
                result = Fallback(fallback_outline(prompt), raw=raw, reason="unusable outline")

            if isinstance(result, Fallback):
                logfire.info("Using fallback outline", reason=result.reason)

            return {
                "outline": result.value,
                "outline_fallback": isinstance(result, Fallback),
            }

    return plan


def make_write_node(model: BaseChatModel):
    """Create the node that writes the story from the prompt and outline."""
    chain = WRITE_PROMPT | model

    async def write(state: StoryWriterState) -> dict[str, Any]:
        prompt = latest_user_text(state["messages"])
        outline = state.get("outline") or fallback_outline(prompt)

        with logfire.span("write_story", title=str(outline.get("title", ""))[:100]):
            response = await chain.ainvoke({"prompt": prompt, "outline": format_outline(outline)})
            draft = extract_text_content(response.content)

        logger.debug(f"Story draft written: {len(draft)} chars")
        return {"draft": draft, "messages": [AIMessage(content=draft)]}

    return write
