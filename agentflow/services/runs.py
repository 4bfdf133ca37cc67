"""Run registry and cancellation coordinator.

Owns every in-flight run: allocates run ids and abort signals, drives each
agent's event stream in a background task, fans events out to subscribers
and the optional event sink, and removes the run exactly once when it ends
or is cancelled.
"""

import asyncio
import logging
import uuid
from collections import OrderedDict
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol

import logfire

from agentflow.agents.registry import AgentRegistry
from agentflow.core.config import Settings, settings
from agentflow.core.context import bind_run_context
from agentflow.core.exceptions import (
    AgentNotFoundError,
    DuplicateKeyError,
    ErrorKind,
    RunNotFoundError,
    classify_error,
    to_user_message,
)
from agentflow.schemas.agent import AgentEvent, AgentInput, RunSnapshot
from agentflow.services.llm import ModelClientFactory, ProviderResolver
from agentflow.services.runner import AgentRunner

logger = logging.getLogger(__name__)

RUN_EVENT_CHANNEL = "agent:event"
RECENT_RUNS_LIMIT = 100


class EventSink(Protocol):
    """Outbound transport for run events."""

    def send(self, channel: str, payload: dict[str, Any]) -> None: ...


class LoggingSink:
    """Event sink that writes every event to the log."""

    def __init__(self, level: int = logging.DEBUG):
        self.level = level

    def send(self, channel: str, payload: dict[str, Any]) -> None:
        logger.log(self.level, f"{channel} {payload['type']}", extra={"payload": payload["data"]})


@dataclass
class ActiveRun:
    run_id: str
    agent_name: str
    abort: asyncio.Event
    session_id: str | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    task: asyncio.Task | None = None
    events: list[AgentEvent] = field(default_factory=list)
    subscribers: list[asyncio.Queue] = field(default_factory=list)
    closed: bool = False

    def snapshot(self) -> RunSnapshot:
        return RunSnapshot(
            run_id=self.run_id,
            agent_name=self.agent_name,
            session_id=self.session_id,
            started_at=self.started_at,
        )


class RunRegistry:
    """Start, track, stream and cancel agent runs.

    All bookkeeping happens in synchronous methods on the event loop thread,
    so a check and the insert or delete that follows it cannot interleave
    with another run's bookkeeping.
    """

    def __init__(
        self,
        agents: AgentRegistry,
        *,
        resolver: ProviderResolver,
        models: ModelClientFactory,
        sink: EventSink | None = None,
        config: Settings | None = None,
    ):
        self.agents = agents
        self.resolver = resolver
        self.models = models
        self.sink = sink
        self.config = config or settings
        self._active: dict[str, ActiveRun] = {}
        self._tasks: dict[str, asyncio.Task] = {}
        self._recent: OrderedDict[str, list[AgentEvent]] = OrderedDict()

    # ===== Starting runs =====

    def runner(self, agent_name: str) -> AgentRunner:
        definition = self.agents.get(agent_name)
        if definition is None:
            available = ", ".join(self.agents.list_names()) or "(none)"
            raise AgentNotFoundError(f'Unknown agent "{agent_name}". Available: {available}')
        return AgentRunner(definition, resolver=self.resolver, models=self.models, config=self.config)

    def start(
        self,
        agent_name: str,
        input: AgentInput,
        run_id: str | None = None,
        session_id: str | None = None,
    ) -> str:
        """Start a run in the background and return its id immediately.

        Raises:
            AgentNotFoundError: If no agent is registered under ``agent_name``.
            DuplicateKeyError: If ``run_id`` is already active.
        """
        runner = self.runner(agent_name)
        run_id = run_id or str(uuid.uuid4())
        abort = asyncio.Event()

        self.start_stream(
            run_id,
            agent_name,
            runner.run(input, run_id, abort),
            session_id=session_id,
            abort=abort,
        )
        return run_id

    def start_stream(
        self,
        run_id: str,
        agent_name: str,
        events: AsyncIterator[AgentEvent],
        *,
        session_id: str | None = None,
        abort: asyncio.Event | None = None,
    ) -> ActiveRun:
        """Register a run and drive an already-built event stream.

        ``abort`` must be the event the stream observes for cancellation.
        """
        if run_id in self._active:
            raise DuplicateKeyError(f'Run "{run_id}" is already active')

        run = ActiveRun(
            run_id=run_id,
            agent_name=agent_name,
            abort=abort or asyncio.Event(),
            session_id=session_id,
        )
        self._active[run_id] = run
        self._recent.pop(run_id, None)

        run.task = asyncio.create_task(self._drive(run, events), name=f"run-{run_id}")
        self._tasks[run_id] = run.task
        run.task.add_done_callback(lambda task, rid=run_id: self._forget_task(rid, task))

        logger.info(
            f'Started run {run_id} with agent "{agent_name}". Active runs: {len(self._active)}'
        )
        return run

    # ===== Cancellation =====

    def cancel(self, run_id: str) -> bool:
        """Abort an in-flight run.

        Returns True if the run was active; False for unknown or finished runs.
        """
        run = self._active.pop(run_id, None)
        if run is None:
            return False

        logger.info(f"Cancelling run {run_id}")
        run.abort.set()
        self._close(run)
        return True

    def cancel_session(self, session_id: str) -> bool:
        """Cancel every active run owned by a session."""
        run_ids = self.runs_for_session(session_id)
        for run_id in run_ids:
            self.cancel(run_id)
        return bool(run_ids)

    # ===== Queries =====

    def is_running(self, run_id: str) -> bool:
        return run_id in self._active

    def get_run(self, run_id: str) -> RunSnapshot | None:
        run = self._active.get(run_id)
        return run.snapshot() if run else None

    def list_active_runs(self) -> list[RunSnapshot]:
        return [run.snapshot() for run in self._active.values()]

    def runs_for_session(self, session_id: str) -> list[str]:
        return [run.run_id for run in self._active.values() if run.session_id == session_id]

    def has_run(self, run_id: str) -> bool:
        """True for active runs and for recently finished ones still replayable."""
        return run_id in self._active or run_id in self._recent

    @property
    def active_count(self) -> int:
        return len(self._active)

    # ===== Subscription =====

    async def events(self, run_id: str) -> AsyncIterator[AgentEvent]:
        """Yield a run's events, replaying those already emitted.

        Ends after a terminal event or when the run is cancelled.

        Raises:
            RunNotFoundError: If the run is neither active nor recently finished.
        """
        run = self._active.get(run_id)
        if run is None:
            transcript = self._recent.get(run_id)
            if transcript is None:
                raise RunNotFoundError(f'Run "{run_id}" not found')
            for event in transcript:
                yield event
            return

        queue: asyncio.Queue[AgentEvent | None] = asyncio.Queue()
        for event in run.events:
            queue.put_nowait(event)
        if run.closed:
            queue.put_nowait(None)
        else:
            run.subscribers.append(queue)

        try:
            while True:
                event = await queue.get()
                if event is None:
                    return
                yield event
                if event.is_terminal:
                    return
        finally:
            if queue in run.subscribers:
                run.subscribers.remove(queue)

    async def wait(self, run_id: str) -> None:
        """Wait until the run's driving task has finished."""
        task = self._tasks.get(run_id)
        if task is not None:
            await asyncio.wait([task])

    # ===== Lifecycle =====

    async def shutdown(self) -> None:
        """Abort every active run and wait for their tasks to end."""
        logger.info(f"Shutting down, aborting {len(self._active)} active run(s)")
        for run_id in list(self._active):
            self.cancel(run_id)

        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ===== Internal =====

    async def _drive(self, run: ActiveRun, events: AsyncIterator[AgentEvent]) -> None:
        """Consume a run's stream and forward its events.

        Never raises except on task cancellation; failures become a single
        ``error`` event.
        """
        bind_run_context(run.run_id, agent_name=run.agent_name, session_id=run.session_id)

        try:
            with logfire.span(
                "agent_run", run_id=run.run_id, agent=run.agent_name, session_id=run.session_id
            ):
                async for event in events:
                    if run.abort.is_set() or run.closed:
                        break
                    self._publish(run, event)
                    if event.is_terminal:
                        break
        except asyncio.CancelledError:
            logger.info(f"Run {run.run_id} task cancelled")
            raise
        except Exception as e:
            kind = classify_error(e)
            if kind is ErrorKind.ABORT or run.abort.is_set():
                logger.info(f"Run {run.run_id} aborted")
            else:
                logger.exception(f"Run {run.run_id} failed")
                self._publish(run, AgentEvent.error(run.run_id, to_user_message(kind), kind))
        finally:
            aclose = getattr(events, "aclose", None)
            if aclose is not None:
                await aclose()
            self._finish(run)

    def _publish(self, run: ActiveRun, event: AgentEvent) -> None:
        if run.closed:
            return
        run.events.append(event)
        for queue in run.subscribers:
            queue.put_nowait(event)

        if self.sink is not None:
            try:
                self.sink.send(RUN_EVENT_CHANNEL, event.to_payload())
            except Exception:
                logger.exception(f"Event sink failed for run {run.run_id}")

    def _close(self, run: ActiveRun) -> None:
        if run.closed:
            return
        run.closed = True
        for queue in run.subscribers:
            queue.put_nowait(None)
        run.subscribers.clear()

        self._recent[run.run_id] = list(run.events)
        while len(self._recent) > RECENT_RUNS_LIMIT:
            self._recent.popitem(last=False)

    def _forget_task(self, run_id: str, task: asyncio.Task) -> None:
        # A reused run id may already map to a newer task
        if self._tasks.get(run_id) is task:
            del self._tasks[run_id]

    def _finish(self, run: ActiveRun) -> None:
        if self._active.get(run.run_id) is run:
            del self._active[run.run_id]
        self._close(run)
        logger.info(
            f"Run {run.run_id} ({run.agent_name}) finished. Active runs: {len(self._active)}"
        )
