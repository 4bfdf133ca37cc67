"""Agent service.

Composition root that wires the agent registry, provider resolution, model
clients, the run registry and the session manager together, so the API and
CLI share one object graph.
"""

import logging
from dataclasses import dataclass

from agentflow.agents.registry import AgentRegistry, register_builtin_agents
from agentflow.core.config import Settings, settings
from agentflow.services.llm import (
    ChatModelFactory,
    InMemorySettingsStore,
    ModelClientFactory,
    ModelSettings,
    ProviderResolver,
    SettingsProvider,
)
from agentflow.services.runs import EventSink, RunRegistry
from agentflow.services.sessions import SessionManager

logger = logging.getLogger(__name__)


@dataclass
class AgentService:
    """Everything needed to list, run and cancel agents.

    Usage:
        service = build_agent_service()
        run_id = service.runs.start("summarizer", AgentInput(prompt="..."))
        async for event in service.runs.events(run_id):
            print(event.type, event.data)
    """

    config: Settings
    agents: AgentRegistry
    resolver: ProviderResolver
    models: ModelClientFactory
    runs: RunRegistry
    sessions: SessionManager

    async def shutdown(self) -> None:
        await self.sessions.shutdown()
        await self.runs.shutdown()
        logger.info("Agent service shut down")


def build_agent_service(
    config: Settings | None = None,
    *,
    settings_provider: SettingsProvider | None = None,
    chat_model_factory: ChatModelFactory | None = None,
    sink: EventSink | None = None,
) -> AgentService:
    """Build a fully wired service with the built-in agents registered.

    Args:
        config: Settings to use; the process-wide settings by default.
        settings_provider: Per-provider stored settings. Defaults to an
            in-memory store seeded with ``DEFAULT_MODEL`` for the default provider.
        chat_model_factory: Replaces the OpenAI chat model constructor.
        sink: Receives every run event on the ``agent:event`` channel.
    """
    config = config or settings

    agents = AgentRegistry()
    register_builtin_agents(agents)

    if settings_provider is None:
        settings_provider = InMemorySettingsStore(
            {config.DEFAULT_PROVIDER: ModelSettings(selected_model=config.DEFAULT_MODEL)}
        )

    resolver = ProviderResolver(settings_provider, config=config)
    models = ModelClientFactory(chat_model_factory, config=config)
    runs = RunRegistry(agents, resolver=resolver, models=models, sink=sink, config=config)
    sessions = SessionManager(agents, runs, resolver=resolver, models=models, config=config)

    logger.info(f"Agent service ready with {len(agents)} agent(s): {', '.join(agents.list_names())}")
    return AgentService(
        config=config,
        agents=agents,
        resolver=resolver,
        models=models,
        runs=runs,
        sessions=sessions,
    )
