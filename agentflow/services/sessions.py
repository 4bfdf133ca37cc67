"""Session manager.

A session is a long-lived conversational context (provider, model, sampling
defaults, bounded history) that hosts successive runs, one at a time.
"""

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator, Mapping
from contextlib import aclosing
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel

from agentflow.agents.definition import (
    DEFAULT_MAX_HISTORY,
    DEFAULT_SYSTEM_PROMPT,
    DEFAULT_TEMPERATURE,
    AgentDefinition,
    build_session_config,
)
from agentflow.agents.registry import AgentRegistry
from agentflow.core.config import Settings, settings
from agentflow.core.exceptions import (
    AgentNotFoundError,
    DuplicateKeyError,
    SessionBusyError,
    SessionNotFoundError,
)
from agentflow.schemas.agent import (
    AgentEvent,
    AgentInput,
    AgentSessionConfig,
    HistoryMessage,
    ManagerStatus,
    SessionSnapshot,
)
from agentflow.services.executor import DEFAULT_PROMPT, ExecutorInput, execute_agent_stream
from agentflow.services.llm import ModelClientFactory, ProviderResolver
from agentflow.services.runs import RunRegistry

logger = logging.getLogger(__name__)

SESSION_AGENT_NAME = "session"


def _now() -> datetime:
    return datetime.now(UTC)


async def _forward_abort(source: asyncio.Event, target: asyncio.Event) -> None:
    await source.wait()
    target.set()


class AgentSession:
    """Conversation config plus bounded history and in-flight run tracking."""

    def __init__(self, config: AgentSessionConfig, definition: AgentDefinition | None = None):
        self.session_id = config.session_id or str(uuid.uuid4())
        self.provider_id = config.provider_id
        self.model_id = config.model_id or ""
        self.agent_id = definition.id if definition else config.agent_id
        self.system_prompt = config.system_prompt or DEFAULT_SYSTEM_PROMPT
        self.temperature = (
            config.temperature if config.temperature is not None else DEFAULT_TEMPERATURE
        )
        self.max_tokens = config.max_tokens if config.max_tokens and config.max_tokens > 0 else None
        self.max_history_messages = (
            config.max_history_messages
            if config.max_history_messages is not None
            else DEFAULT_MAX_HISTORY
        )
        self.metadata: dict[str, Any] = dict(config.metadata)
        self.definition = definition

        self.created_at = _now()
        self.last_activity = self.created_at
        self.message_count = 0

        self._history: list[HistoryMessage] = []
        self._runs: dict[str, asyncio.Event] = {}

    @property
    def graph_builder(self):
        return self.definition.graph_builder if self.definition else None

    @property
    def thinking_message(self) -> str | None:
        return self.definition.default_config.thinking_message if self.definition else None

    @property
    def is_active(self) -> bool:
        return bool(self._runs)

    @property
    def history_length(self) -> int:
        return len(self._history)

    @property
    def active_run_ids(self) -> list[str]:
        return list(self._runs)

    def get_history(self) -> list[HistoryMessage]:
        return list(self._history)

    def append_exchange(self, user_message: str, assistant_message: str) -> None:
        self._history.append(HistoryMessage(role="user", content=user_message))
        self._history.append(HistoryMessage(role="assistant", content=assistant_message))

        # Keep only the tail of history
        if self.max_history_messages == 0:
            self._history.clear()
        elif len(self._history) > self.max_history_messages:
            self._history = self._history[-self.max_history_messages :]

    def add_run(self, run_id: str, abort: asyncio.Event) -> None:
        """Reserve the session for a run.

        Raises:
            SessionBusyError: If another run is already in flight.
        """
        if self._runs:
            raise SessionBusyError(
                f'Session "{self.session_id}" is busy with run {next(iter(self._runs))}'
            )
        self._runs[run_id] = abort
        self.last_activity = _now()

    def remove_run(self, run_id: str) -> None:
        self._runs.pop(run_id, None)

    def abort_run(self, run_id: str) -> bool:
        abort = self._runs.get(run_id)
        if abort is None:
            return False
        abort.set()
        return True

    def abort_runs(self) -> list[str]:
        for abort in self._runs.values():
            abort.set()
        return list(self._runs)

    def record_activity(self) -> None:
        self.message_count += 1
        self.last_activity = _now()

    def to_snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self.session_id,
            provider_id=self.provider_id,
            model_id=self.model_id,
            agent_id=self.agent_id,
            system_prompt=self.system_prompt,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            max_history_messages=self.max_history_messages,
            created_at=self.created_at,
            last_activity=self.last_activity,
            is_active=self.is_active,
            message_count=self.message_count,
            history_length=self.history_length,
            active_run_ids=self.active_run_ids,
            metadata=dict(self.metadata),
        )


class SessionManager:
    """Create, run and tear down sessions."""

    def __init__(
        self,
        agents: AgentRegistry,
        runs: RunRegistry,
        *,
        resolver: ProviderResolver,
        models: ModelClientFactory,
        config: Settings | None = None,
    ):
        self.agents = agents
        self.runs = runs
        self.resolver = resolver
        self.models = models
        self.config = config or settings
        self._sessions: dict[str, AgentSession] = {}
        logger.info("Session manager initialized")

    # ===== Session lifecycle =====

    def create_session(self, config: AgentSessionConfig) -> SessionSnapshot:
        """Create a session.

        Raises:
            DuplicateKeyError: If ``config.session_id`` is already in use.
            AgentNotFoundError: If ``config.agent_id`` names an unknown agent.
        """
        definition = None
        if config.agent_id is not None:
            definition = self.agents.get(config.agent_id)
            if definition is None:
                raise AgentNotFoundError(f'Unknown agent "{config.agent_id}"')

        if config.session_id is not None and config.session_id in self._sessions:
            raise DuplicateKeyError(f'Session "{config.session_id}" already exists')

        session = AgentSession(config, definition)
        self._sessions[session.session_id] = session
        logger.info(f"Session created: {session.session_id} (agent={session.agent_id})")
        return session.to_snapshot()

    def create_agent_session(
        self,
        agent_id: str,
        provider_id: str | None = None,
        overrides: Mapping[str, Any] | BaseModel | None = None,
    ) -> SessionSnapshot:
        """Create a session configured from a registered agent's defaults."""
        definition = self.agents.get(agent_id)
        if definition is None:
            raise AgentNotFoundError(f'Unknown agent "{agent_id}"')

        provider = (
            provider_id or definition.default_config.provider_id or self.config.DEFAULT_PROVIDER
        )
        return self.create_session(build_session_config(definition, provider, overrides))

    def destroy_session(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False

        self._cancel_runs(session)
        logger.info(f"Session destroyed: {session_id}")
        return True

    def get_session(self, session_id: str) -> SessionSnapshot | None:
        session = self._sessions.get(session_id)
        return session.to_snapshot() if session else None

    def list_sessions(self) -> list[SessionSnapshot]:
        return [session.to_snapshot() for session in self._sessions.values()]

    def get_history(self, session_id: str) -> list[HistoryMessage]:
        return self._require(session_id).get_history()

    # ===== Execution =====

    async def stream(
        self,
        session_id: str,
        request: AgentInput,
        signal: asyncio.Event | None = None,
        *,
        run_id: str | None = None,
    ) -> AsyncIterator[AgentEvent]:
        """Run a prompt inside a session and yield its events.

        Setting ``signal`` aborts the run cooperatively.

        Raises:
            SessionNotFoundError: On first iteration, for an unknown session.
            SessionBusyError: On first iteration, if a run is in flight.
        """
        session = self._require(session_id)
        run_id = run_id or str(uuid.uuid4())
        abort = asyncio.Event()
        session.add_run(run_id, abort)

        link = asyncio.create_task(_forward_abort(signal, abort)) if signal is not None else None
        try:
            async with aclosing(self._session_events(session, request, run_id, abort)) as events:
                async for event in events:
                    yield event
        finally:
            if link is not None:
                link.cancel()

    def start(self, session_id: str, request: AgentInput, *, run_id: str | None = None) -> str:
        """Start a session run in the background and return its id.

        Events are delivered through ``RunRegistry.events`` and the event sink.

        Raises:
            SessionNotFoundError: For an unknown session.
            SessionBusyError: If a run is already in flight.
        """
        session = self._require(session_id)
        run_id = run_id or str(uuid.uuid4())
        abort = asyncio.Event()
        session.add_run(run_id, abort)

        try:
            self.runs.start_stream(
                run_id,
                session.agent_id or SESSION_AGENT_NAME,
                self._session_events(session, request, run_id, abort),
                session_id=session_id,
                abort=abort,
            )
        except DuplicateKeyError:
            session.remove_run(run_id)
            raise
        return run_id

    # ===== Cancellation =====

    def cancel_run(self, run_id: str) -> bool:
        """Abort a run by id, whether it is driven by the registry or streamed directly."""
        cancelled = self.runs.cancel(run_id)
        for session in self._sessions.values():
            if session.abort_run(run_id):
                return True
        return cancelled

    def cancel_session(self, session_id: str) -> bool:
        session = self._sessions.get(session_id)
        if session is None:
            return False
        return bool(self._cancel_runs(session))

    # ===== Status =====

    def get_status(self) -> ManagerStatus:
        session_runs = {
            run_id for session in self._sessions.values() for run_id in session.active_run_ids
        }
        registry_runs = {run.run_id for run in self.runs.list_active_runs()}
        return ManagerStatus(
            total_sessions=len(self._sessions),
            active_sessions=sum(1 for session in self._sessions.values() if session.is_active),
            active_runs=len(session_runs | registry_runs),
        )

    async def shutdown(self) -> None:
        logger.info(f"Destroying {len(self._sessions)} session(s)")
        for session in self._sessions.values():
            self._cancel_runs(session)
        self._sessions.clear()

    # ===== Internal =====

    def _require(self, session_id: str) -> AgentSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f'Session "{session_id}" not found')
        return session

    def _cancel_runs(self, session: AgentSession) -> list[str]:
        run_ids = session.abort_runs()
        for run_id in run_ids:
            self.runs.cancel(run_id)
        return run_ids

    def _build_input(
        self,
        session: AgentSession,
        request: AgentInput,
        run_id: str,
        abort: asyncio.Event,
    ) -> ExecutorInput:
        context = request.context
        history = context.messages if context.messages is not None else session.get_history()
        return ExecutorInput(
            run_id=run_id,
            prompt=request.prompt,
            provider_id=context.provider_id or session.provider_id,
            model_id=context.model_id or session.model_id or None,
            system_prompt=context.system_prompt or session.system_prompt,
            temperature=context.temperature
            if context.temperature is not None
            else session.temperature,
            max_tokens=context.max_tokens if context.max_tokens is not None else session.max_tokens,
            history=history,
            max_history_messages=session.max_history_messages,
            signal=abort,
            graph_builder=session.graph_builder,
            announce=self.config.ANNOUNCE_THINKING,
            thinking_message=session.thinking_message,
            recursion_limit=self.config.GRAPH_MAX_STEPS,
        )

    async def _session_events(
        self,
        session: AgentSession,
        request: AgentInput,
        run_id: str,
        abort: asyncio.Event,
    ) -> AsyncIterator[AgentEvent]:
        """Execute one run and keep the session's bookkeeping current.

        The session must already hold ``run_id``. History is only extended
        on success and only when no history override was supplied.
        """
        full_content = ""
        started = _now()
        try:
            executor_input = self._build_input(session, request, run_id, abort)
            async with aclosing(
                execute_agent_stream(executor_input, resolver=self.resolver, models=self.models)
            ) as events:
                async for event in events:
                    if event.type == "done":
                        full_content = event.data["content"]
                    yield event
        finally:
            session.remove_run(run_id)
            if full_content and request.context.messages is None:
                prompt = request.prompt if request.prompt.strip() else DEFAULT_PROMPT
                session.append_exchange(prompt, full_content)
            session.record_activity()

            duration = (_now() - started).total_seconds()
            logger.info(
                f"Session {session.session_id} run {run_id} finished in {duration:.2f}s "
                f"(history={session.history_length})"
            )
