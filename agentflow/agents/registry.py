"""Registry of named agent definitions."""

import logging

from agentflow.agents.definition import AgentDefinition, AgentDefinitionInfo
from agentflow.core.exceptions import DuplicateKeyError

logger = logging.getLogger(__name__)


class AgentRegistry:
    """Insertion-ordered map of agent id to definition.

    Registration is append-only; a repeated id is a programming error and
    raises ``DuplicateKeyError``.
    """

    def __init__(self) -> None:
        self._definitions: dict[str, AgentDefinition] = {}

    def register(self, definition: AgentDefinition) -> None:
        if definition.id in self._definitions:
            raise DuplicateKeyError(
                f'Duplicate agent id "{definition.id}". Each agent must have a unique id.'
            )
        self._definitions[definition.id] = definition
        logger.debug(f"Registered agent {definition.id} ({definition.category})")

    def get(self, agent_id: str) -> AgentDefinition | None:
        return self._definitions.get(agent_id)

    def has(self, agent_id: str) -> bool:
        return agent_id in self._definitions

    def list_names(self) -> list[str]:
        return list(self._definitions)

    def list_info(self) -> list[AgentDefinitionInfo]:
        return [definition.to_info() for definition in self._definitions.values()]

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self._definitions

    # Defined last: the method name shadows the builtin inside the class body.
    def list(self) -> list[AgentDefinition]:
        return [*self._definitions.values()]


def register_builtin_agents(registry: AgentRegistry) -> AgentRegistry:
    """Register every built-in agent, in catalog order."""
    from agentflow.agents.catalog import BUILTIN_AGENTS

    for definition in BUILTIN_AGENTS:
        registry.register(definition)
    return registry
