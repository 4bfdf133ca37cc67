"""Graph definition for the tone adjuster.

    detect_tone -> rewrite -> verify -> (failed and retry left) -> rewrite
                                     -> (otherwise) -> END
"""

import logging

import logfire
from langchain_core.language_models import BaseChatModel
from langgraph.graph import END, StateGraph
from langgraph.graph.state import CompiledStateGraph

from agentflow.agents.definition import AgentDefaults, AgentDefinition, InputHints
from agentflow.agents.tone_adjuster.nodes import (
    make_detect_tone_node,
    make_rewrite_node,
    make_verify_node,
)
from agentflow.agents.tone_adjuster.prompts import TONE_ADJUSTER_SYSTEM_PROMPT
from agentflow.agents.tone_adjuster.routing import route_after_verify
from agentflow.agents.tone_adjuster.state import ToneAdjusterState

logger = logging.getLogger(__name__)


def create_tone_adjuster(model: BaseChatModel) -> StateGraph:
    """Create the tone adjuster workflow.

    Args:
        model: Chat model shared by every node.

    Returns:
        Uncompiled StateGraph instance.
    """
    with logfire.span("create_tone_adjuster"):
        workflow = StateGraph(ToneAdjusterState)

        # ===== Add all nodes =====
        workflow.add_node("detect_tone", make_detect_tone_node(model))
        workflow.add_node("rewrite", make_rewrite_node(model))
        workflow.add_node("verify", make_verify_node(model))

        # ===== Set entry point =====
        workflow.set_entry_point("detect_tone")

        # ===== Define edges =====
        workflow.add_edge("detect_tone", "rewrite")
        workflow.add_edge("rewrite", "verify")

        # Failed verification loops back to rewrite at most once
        workflow.add_conditional_edges(
            "verify",
            route_after_verify,
            {
                "rewrite": "rewrite",
                END: END,
            },
        )

        return workflow


def compile_tone_adjuster(model: BaseChatModel) -> CompiledStateGraph:
    """Compile the tone adjuster graph for one run."""
    with logfire.span("compile_tone_adjuster"):
        app = create_tone_adjuster(model).compile()
        logger.debug("Tone adjuster compiled")
        return app


TONE_ADJUSTER_AGENT = AgentDefinition(
    id="tone-adjuster",
    name="Tone Adjuster",
    description=(
        "Rewrites content to match a specified tone (formal, casual, persuasive, empathetic, "
        "authoritative, and more) while preserving the original meaning and all key facts."
    ),
    category="editing",
    default_config=AgentDefaults(
        system_prompt=TONE_ADJUSTER_SYSTEM_PROMPT,
        temperature=0.6,
        max_history_messages=10,
    ),
    input_hints=InputHints(
        label="Text to rewrite",
        placeholder=(
            'Paste your text and specify the target tone, e.g. "Rewrite this to be more casual" '
            'or "Make this formal and authoritative"...'
        ),
        multiline=True,
    ),
    graph_builder=compile_tone_adjuster,
)
