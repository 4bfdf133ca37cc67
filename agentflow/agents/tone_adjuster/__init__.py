"""Tone Adjuster - multi-step rewrite agent with one bounded retry."""

from agentflow.agents.tone_adjuster.graph import (
    TONE_ADJUSTER_AGENT,
    compile_tone_adjuster,
    create_tone_adjuster,
)
from agentflow.agents.tone_adjuster.state import ToneAdjusterState

__all__ = [
    "TONE_ADJUSTER_AGENT",
    "ToneAdjusterState",
    "compile_tone_adjuster",
    "create_tone_adjuster",
]
