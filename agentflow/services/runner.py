"""Per-agent runner.

Binds an ``AgentDefinition`` to the executor so every agent, single-shot or
graph-backed, exposes the same ``run(input, run_id, signal)`` contract.
"""

import asyncio
from collections.abc import AsyncIterator, Sequence

from agentflow.agents.definition import (
    DEFAULT_MAX_HISTORY,
    DEFAULT_SYSTEM_PROMPT,
    DEFAULT_TEMPERATURE,
    AgentDefinition,
)
from agentflow.core.config import Settings, settings
from agentflow.schemas.agent import AgentEvent, AgentInput, HistoryMessage
from agentflow.services.executor import ExecutorInput, execute_agent_stream
from agentflow.services.llm import ModelClientFactory, ProviderResolver


def _first_set(*values):
    for value in values:
        if value is not None:
            return value
    return None


class AgentRunner:
    """Run a registered agent outside of any session."""

    def __init__(
        self,
        definition: AgentDefinition,
        *,
        resolver: ProviderResolver,
        models: ModelClientFactory,
        config: Settings | None = None,
    ):
        self.definition = definition
        self.resolver = resolver
        self.models = models
        self.config = config or settings

    @property
    def name(self) -> str:
        return self.definition.id

    def build_input(
        self,
        input: AgentInput,
        run_id: str,
        signal: asyncio.Event | None = None,
        *,
        history: Sequence[HistoryMessage] | None = None,
    ) -> ExecutorInput:
        """Merge per-run context with the agent's defaults.

        History passed in ``input.context.messages`` overrides ``history``.
        """
        context = input.context
        defaults = self.definition.default_config

        if context.messages is not None:
            history = context.messages

        return ExecutorInput(
            run_id=run_id,
            prompt=input.prompt,
            provider_id=_first_set(context.provider_id, defaults.provider_id),
            model_id=context.model_id,
            system_prompt=_first_set(
                context.system_prompt, defaults.system_prompt, DEFAULT_SYSTEM_PROMPT
            ),
            temperature=_first_set(context.temperature, defaults.temperature, DEFAULT_TEMPERATURE),
            max_tokens=_first_set(context.max_tokens, defaults.max_tokens),
            history=list(history or []),
            max_history_messages=_first_set(defaults.max_history_messages, DEFAULT_MAX_HISTORY),
            signal=signal,
            graph_builder=self.definition.graph_builder,
            announce=self.config.ANNOUNCE_THINKING,
            thinking_message=defaults.thinking_message,
            recursion_limit=self.config.GRAPH_MAX_STEPS,
        )

    def run(
        self,
        input: AgentInput,
        run_id: str,
        signal: asyncio.Event | None = None,
    ) -> AsyncIterator[AgentEvent]:
        return execute_agent_stream(
            self.build_input(input, run_id, signal),
            resolver=self.resolver,
            models=self.models,
        )
