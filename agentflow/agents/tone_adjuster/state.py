"""State definitions for the tone adjuster graph."""

from typing import Annotated, TypedDict

from langchain_core.messages import AnyMessage
from langgraph.graph.message import add_messages


class ToneAdjusterState(TypedDict):
    """State flowing through detect_tone -> rewrite -> verify.

    Only ``messages`` is supplied at the start of a run; nodes read every
    other field with ``.get`` and fall back to the tone defaults.
    """

    # ===== Message History =====
    messages: Annotated[list[AnyMessage], add_messages]

    # ===== Tone Detection =====
    current_tone: str
    target_tone: str

    # ===== Rewrite / Verify Loop =====
    rewritten_text: str
    verification_passed: bool
    verification_reason: str
    retry_count: int  # Retries used; capped by MAX_REWRITE_RETRIES
    rewrite_attempts: int
