"""Tests for sessions: lifecycle, history, busy guard and cancellation."""

import asyncio

import pytest

from agentflow.agents.catalog import SUMMARIZER_SYSTEM_PROMPT
from agentflow.agents.definition import DEFAULT_SYSTEM_PROMPT
from agentflow.core.exceptions import (
    AgentNotFoundError,
    DuplicateKeyError,
    SessionBusyError,
    SessionNotFoundError,
)
from agentflow.schemas.agent import AgentInput, AgentSessionConfig, HistoryMessage, RunContext


@pytest.fixture
def sessions(service):
    return service.sessions


async def run_prompt(sessions, session_id: str, prompt: str, **context) -> list:
    request = AgentInput(prompt=prompt, context=RunContext(**context))
    return [event async for event in sessions.stream(session_id, request)]


class TestSessionLifecycle:
    """Tests for creating, reading and destroying sessions."""

    def test_create_session_defaults(self, sessions):
        snapshot = sessions.create_session(AgentSessionConfig(provider_id="openai"))

        assert snapshot.session_id
        assert snapshot.provider_id == "openai"
        assert snapshot.model_id == ""
        assert snapshot.system_prompt == DEFAULT_SYSTEM_PROMPT
        assert snapshot.temperature == 0.7
        assert snapshot.max_tokens is None
        assert snapshot.max_history_messages == 50
        assert snapshot.is_active is False
        assert snapshot.message_count == 0
        assert snapshot.history_length == 0

    def test_caller_session_id_is_kept(self, sessions):
        snapshot = sessions.create_session(
            AgentSessionConfig(provider_id="openai", session_id="abc")
        )
        assert snapshot.session_id == "abc"
        assert sessions.get_session("abc") == snapshot

    def test_duplicate_session_id(self, sessions):
        sessions.create_session(AgentSessionConfig(provider_id="openai", session_id="abc"))

        with pytest.raises(DuplicateKeyError):
            sessions.create_session(AgentSessionConfig(provider_id="openai", session_id="abc"))

    def test_unknown_agent(self, sessions):
        with pytest.raises(AgentNotFoundError):
            sessions.create_session(AgentSessionConfig(provider_id="openai", agent_id="ghost"))
        with pytest.raises(AgentNotFoundError):
            sessions.create_agent_session("ghost")

    def test_non_positive_max_tokens_is_unset(self, sessions):
        snapshot = sessions.create_session(AgentSessionConfig(provider_id="openai", max_tokens=0))
        assert snapshot.max_tokens is None

    def test_create_agent_session_uses_agent_defaults(self, sessions):
        snapshot = sessions.create_agent_session("summarizer")

        assert snapshot.agent_id == "summarizer"
        assert snapshot.provider_id == "openai"
        assert snapshot.system_prompt == SUMMARIZER_SYSTEM_PROMPT
        assert snapshot.temperature == 0.3
        assert snapshot.max_history_messages == 6

    def test_create_agent_session_overrides(self, sessions):
        snapshot = sessions.create_agent_session(
            "summarizer", overrides={"temperature": 0.9, "metadata": {"origin": "test"}}
        )

        assert snapshot.temperature == 0.9
        assert snapshot.system_prompt == SUMMARIZER_SYSTEM_PROMPT
        assert snapshot.metadata == {"origin": "test"}

    def test_destroy_session(self, sessions):
        session_id = sessions.create_session(AgentSessionConfig(provider_id="openai")).session_id

        assert sessions.destroy_session(session_id) is True
        assert sessions.get_session(session_id) is None
        assert sessions.destroy_session(session_id) is False

    def test_list_sessions(self, sessions):
        sessions.create_session(AgentSessionConfig(provider_id="openai", session_id="a"))
        sessions.create_session(AgentSessionConfig(provider_id="openai", session_id="b"))

        assert [s.session_id for s in sessions.list_sessions()] == ["a", "b"]

    def test_history_of_unknown_session(self, sessions):
        with pytest.raises(SessionNotFoundError):
            sessions.get_history("missing")


class TestSessionHistory:
    """Tests for history bookkeeping around runs."""

    @pytest.mark.anyio
    async def test_successful_run_appends_exchange(self, sessions, scripted_model):
        session_id = sessions.create_session(AgentSessionConfig(provider_id="openai")).session_id
        scripted_model.responses.append(["Hi", " there"])

        events = await run_prompt(sessions, session_id, "hello")

        assert events[-1].type == "done"
        assert sessions.get_history(session_id) == [
            HistoryMessage(role="user", content="hello"),
            HistoryMessage(role="assistant", content="Hi there"),
        ]
        snapshot = sessions.get_session(session_id)
        assert snapshot.message_count == 1
        assert snapshot.is_active is False

    @pytest.mark.anyio
    async def test_history_is_sent_on_next_run(self, sessions, scripted_model):
        session_id = sessions.create_session(AgentSessionConfig(provider_id="openai")).session_id
        scripted_model.responses.extend(["first answer", "second answer"])

        await run_prompt(sessions, session_id, "first")
        await run_prompt(sessions, session_id, "second")

        sent = [m.content for m in scripted_model.calls[1]]
        assert sent == [DEFAULT_SYSTEM_PROMPT, "first", "first answer", "second"]

    @pytest.mark.anyio
    async def test_history_trimmed_to_limit(self, sessions, scripted_model):
        session_id = sessions.create_session(
            AgentSessionConfig(provider_id="openai", max_history_messages=2)
        ).session_id
        scripted_model.responses.extend(["one", "two"])

        await run_prompt(sessions, session_id, "q1")
        await run_prompt(sessions, session_id, "q2")

        assert [m.content for m in sessions.get_history(session_id)] == ["q2", "two"]

    @pytest.mark.anyio
    async def test_zero_history_limit_keeps_nothing(self, sessions, scripted_model):
        session_id = sessions.create_session(
            AgentSessionConfig(provider_id="openai", max_history_messages=0)
        ).session_id
        scripted_model.responses.append("answer")

        await run_prompt(sessions, session_id, "q")

        assert sessions.get_history(session_id) == []

    @pytest.mark.anyio
    async def test_failed_run_leaves_history_untouched(self, sessions, scripted_model):
        session_id = sessions.create_session(AgentSessionConfig(provider_id="openai")).session_id
        scripted_model.responses.append(RuntimeError("boom"))

        events = await run_prompt(sessions, session_id, "hello")

        assert events[-1].type == "error"
        assert sessions.get_history(session_id) == []
        snapshot = sessions.get_session(session_id)
        assert snapshot.message_count == 1
        assert snapshot.is_active is False

    @pytest.mark.anyio
    async def test_history_override_is_used_and_not_stored(self, sessions, scripted_model):
        session_id = sessions.create_session(AgentSessionConfig(provider_id="openai")).session_id
        scripted_model.responses.append("answer")

        await run_prompt(
            sessions,
            session_id,
            "now",
            messages=[HistoryMessage(role="user", content="earlier")],
        )

        assert [m.content for m in scripted_model.calls[0]] == [
            DEFAULT_SYSTEM_PROMPT,
            "earlier",
            "now",
        ]
        assert sessions.get_history(session_id) == []

    @pytest.mark.anyio
    async def test_run_context_overrides_session_settings(
        self, sessions, scripted_model, model_factory
    ):
        session_id = sessions.create_session(
            AgentSessionConfig(provider_id="openai", model_id="gpt-4o", temperature=0.5)
        ).session_id
        scripted_model.responses.append("answer")

        await run_prompt(sessions, session_id, "q", temperature=0.1)

        assert model_factory.requests[-1]["model_name"] == "gpt-4o"
        assert model_factory.requests[-1]["temperature"] == 0.1

    @pytest.mark.anyio
    async def test_agent_session_runs_agent_graph(self, sessions, scripted_model):
        session_id = sessions.create_agent_session("story-writer").session_id
        scripted_model.responses.extend(["not json", "A story."])

        events = await run_prompt(sessions, session_id, "a tale")

        assert events[-1].type == "done"
        assert sessions.get_history(session_id)[-1].content == "A story."


class TestSessionRuns:
    """Tests for the one-run-at-a-time guard and cancellation."""

    @pytest.mark.anyio
    async def test_second_run_while_busy(self, service, sessions, scripted_model):
        scripted_model.chunk_delay = 0.05
        scripted_model.responses.append(["a", "b", "c"])
        session_id = sessions.create_session(AgentSessionConfig(provider_id="openai")).session_id

        run_id = sessions.start(session_id, AgentInput(prompt="first"))

        with pytest.raises(SessionBusyError):
            sessions.start(session_id, AgentInput(prompt="second"))

        assert sessions.get_session(session_id).active_run_ids == [run_id]
        await service.runs.wait(run_id)
        assert sessions.get_session(session_id).is_active is False

    def test_start_unknown_session(self, sessions):
        with pytest.raises(SessionNotFoundError):
            sessions.start("missing", AgentInput(prompt="hi"))

    @pytest.mark.anyio
    async def test_started_run_streams_through_registry(self, service, sessions, scripted_model):
        scripted_model.responses.append(["x", "y"])
        session_id = sessions.create_session(AgentSessionConfig(provider_id="openai")).session_id

        run_id = sessions.start(session_id, AgentInput(prompt="hi"))
        events = [event async for event in service.runs.events(run_id)]
        await service.runs.wait(run_id)

        assert events[-1].data["content"] == "xy"
        assert [m.content for m in sessions.get_history(session_id)] == ["hi", "xy"]
        assert service.runs.get_run(run_id) is None

    @pytest.mark.anyio
    async def test_cancel_session_run(self, service, sessions, scripted_model):
        scripted_model.chunk_delay = 0.05
        scripted_model.responses.append(["a", "b", "c", "d"])
        session_id = sessions.create_session(AgentSessionConfig(provider_id="openai")).session_id

        run_id = sessions.start(session_id, AgentInput(prompt="hi"))

        assert sessions.cancel_run(run_id) is True
        await service.runs.wait(run_id)
        assert sessions.cancel_run(run_id) is False
        assert sessions.get_history(session_id) == []
        assert sessions.get_session(session_id).is_active is False

    @pytest.mark.anyio
    async def test_cancel_directly_streamed_run(self, sessions, scripted_model):
        scripted_model.chunk_delay = 0.05
        scripted_model.responses.append(["a", "b", "c", "d"])
        session_id = sessions.create_session(AgentSessionConfig(provider_id="openai")).session_id

        events = []
        stream = sessions.stream(session_id, AgentInput(prompt="hi"), run_id="direct")
        async for event in stream:
            events.append(event)
            if event.type == "token":
                assert sessions.cancel_run("direct") is True

        assert "done" not in [e.type for e in events]
        assert sessions.get_session(session_id).is_active is False

    @pytest.mark.anyio
    async def test_external_signal_aborts_stream(self, sessions, scripted_model):
        scripted_model.chunk_delay = 0.05
        scripted_model.responses.append(["a", "b", "c", "d"])
        session_id = sessions.create_session(AgentSessionConfig(provider_id="openai")).session_id
        signal = asyncio.Event()

        events = []
        async for event in sessions.stream(session_id, AgentInput(prompt="hi"), signal):
            events.append(event)
            if event.type == "token":
                signal.set()

        tokens = [e for e in events if e.type == "token"]
        assert len(tokens) <= 2
        assert "done" not in [e.type for e in events]

    @pytest.mark.anyio
    async def test_destroy_session_cancels_runs(self, service, sessions, scripted_model):
        scripted_model.chunk_delay = 0.05
        scripted_model.responses.append(["a", "b", "c"])
        session_id = sessions.create_session(AgentSessionConfig(provider_id="openai")).session_id

        run_id = sessions.start(session_id, AgentInput(prompt="hi"))
        assert sessions.destroy_session(session_id) is True

        assert not service.runs.is_running(run_id)
        await service.runs.wait(run_id)

    @pytest.mark.anyio
    async def test_status_counts(self, service, sessions, scripted_model):
        scripted_model.chunk_delay = 0.05
        scripted_model.responses.append(["a", "b", "c"])
        busy = sessions.create_session(AgentSessionConfig(provider_id="openai")).session_id
        sessions.create_session(AgentSessionConfig(provider_id="openai"))

        run_id = sessions.start(busy, AgentInput(prompt="hi"))
        status = sessions.get_status()

        assert status.total_sessions == 2
        assert status.active_sessions == 1
        assert status.active_runs == 1

        assert sessions.cancel_session(busy) is True
        await service.runs.wait(run_id)
        assert sessions.get_status().active_runs == 0

    @pytest.mark.anyio
    async def test_shutdown_clears_sessions(self, service, sessions, scripted_model):
        scripted_model.chunk_delay = 0.05
        scripted_model.responses.append(["a", "b", "c"])
        session_id = sessions.create_session(AgentSessionConfig(provider_id="openai")).session_id
        sessions.start(session_id, AgentInput(prompt="hi"))

        await service.shutdown()

        assert sessions.list_sessions() == []
        assert service.runs.active_count == 0
