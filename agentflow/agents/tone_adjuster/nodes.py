"""Node implementations for the tone adjuster graph.

Each factory binds a chat model and returns an async node taking
``ToneAdjusterState`` and returning a partial state update.
"""

import logging
from typing import Any

import logfire
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage

from agentflow.agents.parsing import Fallback, latest_user_text, parse_json_or_default
from agentflow.agents.tone_adjuster.prompts import (
    DETECT_TONE_PROMPT,
    RETRY_NOTICE,
    REWRITE_PROMPT,
    VERIFY_PROMPT,
)
from agentflow.agents.tone_adjuster.routing import has_retry_budget
from agentflow.agents.tone_adjuster.state import ToneAdjusterState
from agentflow.services.llm import extract_text_content

logger = logging.getLogger(__name__)

DEFAULT_CURRENT_TONE = "neutral"
DEFAULT_TARGET_TONE = "formal"


def _text_field(parsed: dict[str, Any], key: str, default: str) -> str:
    value = parsed.get(key)
    if isinstance(value, str) and value.strip():
        return value
    return default


def make_detect_tone_node(model: BaseChatModel):
    """Create the node that identifies the source and target tones."""
    chain = DETECT_TONE_PROMPT | model

    async def detect_tone(state: ToneAdjusterState) -> dict[str, Any]:
        with logfire.span("detect_tone"):
            response = await chain.ainvoke({"request": latest_user_text(state["messages"])})
            result = parse_json_or_default(
                extract_text_content(response.content),
                {"currentTone": DEFAULT_CURRENT_TONE, "targetTone": DEFAULT_TARGET_TONE},
            )

            current_tone = _text_field(result.value, "currentTone", DEFAULT_CURRENT_TONE)
            target_tone = _text_field(result.value, "targetTone", DEFAULT_TARGET_TONE)
            logfire.info(
                "Tone detected",
                current_tone=current_tone,
                target_tone=target_tone,
                fallback=isinstance(result, Fallback),
            )
            return {"current_tone": current_tone, "target_tone": target_tone}

    return detect_tone


def make_rewrite_node(model: BaseChatModel):
    """Create the node that rewrites the text in the target tone.

    Re-entry after a failed verification counts as a retry: ``retry_count``
    is incremented before the model is called.
    """
    chain = REWRITE_PROMPT | model

    async def rewrite(state: ToneAdjusterState) -> dict[str, Any]:
        attempts = state.get("rewrite_attempts", 0)
        retry_count = state.get("retry_count", 0) + (1 if attempts > 0 else 0)
        target_tone = state.get("target_tone") or DEFAULT_TARGET_TONE

        with logfire.span("rewrite", attempt=attempts + 1, retry_count=retry_count):
            response = await chain.ainvoke(
                {
                    "retry_notice": RETRY_NOTICE.format(target_tone=target_tone)
                    if retry_count > 0
                    else "",
                    "current_tone": state.get("current_tone") or DEFAULT_CURRENT_TONE,
                    "target_tone": target_tone,
                    "request": latest_user_text(state["messages"]),
                }
            )

        return {
            "rewritten_text": extract_text_content(response.content),
            "retry_count": retry_count,
            "rewrite_attempts": attempts + 1,
        }

    return rewrite


def make_verify_node(model: BaseChatModel):
    """Create the node that checks the rewrite against the target tone.

    A verdict that cannot be parsed counts as passed. When the rewrite is
    final (passed, or no retry left) it is appended to ``messages``.
    """
    chain = VERIFY_PROMPT | model

    async def verify(state: ToneAdjusterState) -> dict[str, Any]:
        rewritten_text = state.get("rewritten_text", "")

        with logfire.span("verify", retry_count=state.get("retry_count", 0)):
            response = await chain.ainvoke(
                {
                    "request": latest_user_text(state["messages"]),
                    "target_tone": state.get("target_tone") or DEFAULT_TARGET_TONE,
                    "rewritten_text": rewritten_text,
                }
            )
            result = parse_json_or_default(
                extract_text_content(response.content), {"passed": True, "reason": ""}
            )

            verdict = result.value.get("passed", True)
            passed = verdict if isinstance(verdict, bool) else True
            reason = result.value.get("reason") or ""
            logfire.info("Rewrite verified", passed=passed, reason=str(reason)[:200])

        update: dict[str, Any] = {
            "verification_passed": passed,
            "verification_reason": str(reason),
        }
        if passed or not has_retry_budget(state):
            if not passed:
                logger.info("Accepting final rewrite after failed verification")
            update["messages"] = [AIMessage(content=rewritten_text)]
        return update

    return verify
