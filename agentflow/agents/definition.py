"""Agent definitions.

A definition is a named, pre-configured agent: display metadata plus the
defaults a session or run falls back to. Multi-step agents also carry a
``graph_builder`` that compiles their step graph for a given chat model.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from langchain_core.language_models import BaseChatModel
from langgraph.graph.state import CompiledStateGraph
from pydantic import BaseModel

from agentflow.schemas.agent import AgentSessionConfig, CamelModel

AgentCategory = Literal["writing", "editing", "analysis", "utility"]

DEFAULT_SYSTEM_PROMPT = "You are a helpful AI assistant."
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_HISTORY = 50

GraphBuilder = Callable[[BaseChatModel], CompiledStateGraph]


@dataclass(frozen=True)
class AgentDefaults:
    """Opinionated defaults applied when no override is given."""

    system_prompt: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    max_history_messages: int | None = None
    provider_id: str | None = None
    thinking_message: str | None = None


class InputHints(CamelModel):
    """Rendering hints for a client's input form."""

    label: str
    placeholder: str
    multiline: bool = False


class AgentDefinitionInfo(CamelModel):
    """Serializable view of a definition, without the graph builder."""

    id: str
    name: str
    description: str
    category: AgentCategory
    input_hints: InputHints | None = None
    multi_step: bool = False


@dataclass(frozen=True)
class AgentDefinition:
    id: str
    name: str
    description: str
    category: AgentCategory
    default_config: AgentDefaults = field(default_factory=AgentDefaults)
    input_hints: InputHints | None = None
    graph_builder: GraphBuilder | None = None

    @property
    def is_graph(self) -> bool:
        return self.graph_builder is not None

    def to_info(self) -> AgentDefinitionInfo:
        return AgentDefinitionInfo(
            id=self.id,
            name=self.name,
            description=self.description,
            category=self.category,
            input_hints=self.input_hints,
            multi_step=self.is_graph,
        )


def _first_set(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def build_session_config(
    definition: AgentDefinition,
    provider_id: str,
    overrides: Mapping[str, Any] | BaseModel | None = None,
) -> AgentSessionConfig:
    """Merge a definition's defaults with caller overrides.

    Precedence per field is override, then agent default, then the built-in
    session default. The ``provider_id`` argument always wins.

    Args:
        definition: The agent to build a session for.
        provider_id: Resolved provider; never taken from overrides.
        overrides: Partial session settings (snake_case keys or a model).

    Returns:
        A complete session configuration owned by ``definition``.
    """
    if isinstance(overrides, BaseModel):
        values = overrides.model_dump(exclude_unset=True)
    else:
        values = dict(overrides or {})

    defaults = definition.default_config

    return AgentSessionConfig(
        provider_id=provider_id,
        session_id=values.get("session_id"),
        agent_id=definition.id,
        model_id=values.get("model_id"),
        system_prompt=_first_set(
            values.get("system_prompt"), defaults.system_prompt, DEFAULT_SYSTEM_PROMPT
        ),
        temperature=_first_set(
            values.get("temperature"), defaults.temperature, DEFAULT_TEMPERATURE
        ),
        max_tokens=_first_set(values.get("max_tokens"), defaults.max_tokens),
        max_history_messages=_first_set(
            values.get("max_history_messages"),
            defaults.max_history_messages,
            DEFAULT_MAX_HISTORY,
        ),
        metadata=values.get("metadata") or {},
    )
