"""Graph definition for the story writer: plan -> write -> END."""

import logfire
from langchain_core.language_models import BaseChatModel
from langgraph.graph import END, StateGraph
from langgraph.graph.state import CompiledStateGraph

from agentflow.agents.definition import AgentDefaults, AgentDefinition, InputHints
from agentflow.agents.story_writer.nodes import make_plan_node, make_write_node
from agentflow.agents.story_writer.prompts import STORY_WRITER_SYSTEM_PROMPT
from agentflow.agents.story_writer.state import StoryWriterState


def create_story_writer(model: BaseChatModel) -> StateGraph:
    with logfire.span("create_story_writer"):
        workflow = StateGraph(StoryWriterState)
        workflow.add_node("plan", make_plan_node(model))
        workflow.add_node("write", make_write_node(model))
        workflow.set_entry_point("plan")
        workflow.add_edge("plan", "write")
        workflow.add_edge("write", END)
        return workflow


def compile_story_writer(model: BaseChatModel) -> CompiledStateGraph:
    with logfire.span("compile_story_writer"):
        return create_story_writer(model).compile()


STORY_WRITER_AGENT = AgentDefinition(
    id="story-writer",
    name="Story Writer",
    description=(
        "Crafts engaging narrative fiction (short stories, scenes, or multi-chapter drafts) "
        "with strong character voice, vivid imagery, and purposeful pacing."
    ),
    category="writing",
    default_config=AgentDefaults(
        system_prompt=STORY_WRITER_SYSTEM_PROMPT,
        temperature=0.9,
        max_history_messages=20,
    ),
    input_hints=InputHints(
        label="Story prompt",
        placeholder=(
            "Describe your story idea, genre, setting, or characters, "
            "or paste a draft to continue..."
        ),
        multiline=True,
    ),
    graph_builder=compile_story_writer,
)
