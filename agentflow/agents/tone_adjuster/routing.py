"""Conditional routing for the tone adjuster graph."""

from typing import Literal

from langgraph.graph import END

from agentflow.agents.tone_adjuster.state import ToneAdjusterState

MAX_REWRITE_RETRIES = 1


def has_retry_budget(state: ToneAdjusterState) -> bool:
    return state.get("retry_count", 0) < MAX_REWRITE_RETRIES


def route_after_verify(state: ToneAdjusterState) -> Literal["rewrite", "__end__"]:
    """Send a failed rewrite back once; otherwise finish.

    Args:
        state: State after the verify node.

    Returns:
        "rewrite" for a retry, END when the last rewrite stands.
    """
    if not state.get("verification_passed", False) and has_retry_budget(state):
        return "rewrite"
    return END
