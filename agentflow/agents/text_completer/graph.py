"""Graph definition for the text completer: analyze_style -> complete -> END."""

import logfire
from langchain_core.language_models import BaseChatModel
from langgraph.graph import END, StateGraph
from langgraph.graph.state import CompiledStateGraph

from agentflow.agents.definition import AgentDefaults, AgentDefinition, InputHints
from agentflow.agents.text_completer.nodes import make_analyze_style_node, make_complete_node
from agentflow.agents.text_completer.prompts import TEXT_COMPLETER_SYSTEM_PROMPT
from agentflow.agents.text_completer.state import TextCompleterState


def create_text_completer(model: BaseChatModel) -> StateGraph:
    with logfire.span("create_text_completer"):
        workflow = StateGraph(TextCompleterState)
        workflow.add_node("analyze_style", make_analyze_style_node(model))
        workflow.add_node("complete", make_complete_node(model))
        workflow.set_entry_point("analyze_style")
        workflow.add_edge("analyze_style", "complete")
        workflow.add_edge("complete", END)
        return workflow


def compile_text_completer(model: BaseChatModel) -> CompiledStateGraph:
    with logfire.span("compile_text_completer"):
        return create_text_completer(model).compile()


TEXT_COMPLETER_AGENT = AgentDefinition(
    id="text-completer",
    name="Text Completer",
    description=(
        "Continues text naturally from where the user stopped, matching their vocabulary, "
        "sentence length, tone, and register without introducing new topics unprompted."
    ),
    category="writing",
    default_config=AgentDefaults(
        system_prompt=TEXT_COMPLETER_SYSTEM_PROMPT,
        temperature=0.4,
        max_history_messages=10,
    ),
    input_hints=InputHints(
        label="Text to continue",
        placeholder="Paste the text you want completed...",
        multiline=True,
    ),
    graph_builder=compile_text_completer,
)
