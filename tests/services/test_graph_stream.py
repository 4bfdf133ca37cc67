"""Tests for driving LangGraph workflows through the executor."""

import asyncio
import json
from typing import Annotated, TypedDict

import pytest
from langchain_core.messages import AIMessage, AnyMessage
from langgraph.graph import END, StateGraph
from langgraph.graph.message import add_messages

from agentflow.core.config import Settings
from agentflow.schemas.agent import AgentInput, AgentSessionConfig
from agentflow.services.agent import build_agent_service
from agentflow.services.executor import ExecutorInput, execute_agent_stream
from agentflow.services.llm import InMemorySettingsStore, ModelClientFactory, ProviderResolver


class CounterState(TypedDict):
    messages: Annotated[list[AnyMessage], add_messages]
    count: int


def counter_graph(limit: int, visits: list[str] | None = None, *, fail_with=None):
    """Builder for inc -> (loop until limit) -> reply -> END."""

    def build(model):
        def inc(state: CounterState) -> dict:
            if visits is not None:
                visits.append("inc")
            if fail_with is not None:
                raise fail_with
            return {"count": state.get("count", 0) + 1}

        def reply(state: CounterState) -> dict:
            return {"messages": [AIMessage(content=f"counted {state['count']}")]}

        graph = StateGraph(CounterState)
        graph.add_node("inc", inc)
        graph.add_node("reply", reply)
        graph.set_entry_point("inc")
        graph.add_conditional_edges(
            "inc",
            lambda state: "inc" if state["count"] < limit else "reply",
            {"inc": "inc", "reply": "reply"},
        )
        graph.add_edge("reply", END)
        return graph.compile()

    return build


@pytest.fixture
def resolver(test_settings: Settings) -> ProviderResolver:
    return ProviderResolver(InMemorySettingsStore(), config=test_settings)


@pytest.fixture
def models(model_factory, test_settings: Settings) -> ModelClientFactory:
    return ModelClientFactory(model_factory, config=test_settings)


async def run_all(request: ExecutorInput, resolver, models) -> list:
    stream = execute_agent_stream(request, resolver=resolver, models=models)
    return [event async for event in stream]


class TestGraphUpdates:
    """Tests for translating graph updates into events."""

    @pytest.mark.anyio
    async def test_one_thinking_per_node_then_reply(self, resolver, models, scripted_model):
        events = await run_all(
            ExecutorInput(run_id="g1", prompt="count", graph_builder=counter_graph(3)),
            resolver,
            models,
        )

        assert [e.type for e in events] == ["thinking"] * 5 + ["token", "done"]
        assert [e.data["text"] for e in events[1:5]] == [
            "Finished inc.",
            "Finished inc.",
            "Finished inc.",
            "Finished reply.",
        ]
        assert events[-1].data == {"runId": "g1", "content": "counted 3", "tokenCount": 1}
        assert scripted_model.calls == []

    @pytest.mark.anyio
    async def test_node_without_update(self, resolver, models):
        def build(model):
            graph = StateGraph(CounterState)
            graph.add_node("noop", lambda state: None)
            graph.add_node("reply", lambda state: {"messages": [AIMessage(content="ok")]})
            graph.set_entry_point("noop")
            graph.add_edge("noop", "reply")
            graph.add_edge("reply", END)
            return graph.compile()

        events = await run_all(
            ExecutorInput(run_id="g1", prompt="x", graph_builder=build, announce=False),
            resolver,
            models,
        )

        assert [e.type for e in events] == ["token", "done"]
        assert events[-1].data["content"] == "ok"

    @pytest.mark.anyio
    async def test_node_failure_ends_with_one_error(self, resolver, models):
        builder = counter_graph(3, fail_with=RuntimeError("Connection reset by peer"))

        events = await run_all(
            ExecutorInput(run_id="g1", prompt="x", graph_builder=builder), resolver, models
        )

        assert [e.type for e in events] == ["thinking", "error"]
        assert events[-1].data["kind"] == "network"


class TestRecursionLimit:
    """Tests for the per-run step limit."""

    @pytest.mark.anyio
    async def test_runaway_loop_is_stopped(self, resolver, models):
        visits: list[str] = []

        events = await run_all(
            ExecutorInput(
                run_id="g1",
                prompt="x",
                graph_builder=counter_graph(100, visits),
                recursion_limit=5,
            ),
            resolver,
            models,
        )

        assert events[-1].type == "error"
        assert events[-1].data["kind"] == "unknown"
        assert "done" not in [e.type for e in events]
        assert len(visits) <= 5

    @pytest.mark.anyio
    async def test_service_settings_set_the_limit(self, model_factory, scripted_model):
        config = Settings(
            _env_file=None, OPENAI_API_KEY="sk-test", ENVIRONMENT="local", GRAPH_MAX_STEPS=2
        )
        service = build_agent_service(config, chat_model_factory=model_factory)
        scripted_model.responses.extend(
            [
                json.dumps({"currentTone": "casual", "targetTone": "formal"}),
                "rewritten",
                json.dumps({"passed": True}),
            ]
        )

        run_id = service.runs.start("tone-adjuster", AgentInput(prompt="formalise: hey"))
        events = [event async for event in service.runs.events(run_id)]

        assert events[-1].type == "error"
        assert "done" not in [e.type for e in events]

    @pytest.mark.anyio
    async def test_session_runs_use_the_same_limit(self, model_factory, scripted_model):
        config = Settings(
            _env_file=None, OPENAI_API_KEY="sk-test", ENVIRONMENT="local", GRAPH_MAX_STEPS=2
        )
        service = build_agent_service(config, chat_model_factory=model_factory)
        scripted_model.responses.extend(
            [
                json.dumps({"currentTone": "casual", "targetTone": "formal"}),
                "rewritten",
                json.dumps({"passed": True}),
            ]
        )
        session = service.sessions.create_session(
            AgentSessionConfig(provider_id="openai", agent_id="tone-adjuster")
        )

        events = [
            event
            async for event in service.sessions.stream(
                session.session_id, AgentInput(prompt="formalise: hey")
            )
        ]

        assert events[-1].type == "error"
        assert service.sessions.get_history(session.session_id) == []

    @pytest.mark.anyio
    async def test_default_limit_allows_the_full_retry_loop(self, service, scripted_model):
        scripted_model.responses.extend(
            [
                json.dumps({"currentTone": "casual", "targetTone": "formal"}),
                "first",
                json.dumps({"passed": False}),
                "second",
                json.dumps({"passed": False}),
            ]
        )

        run_id = service.runs.start("tone-adjuster", AgentInput(prompt="formalise: hey"))
        events = [event async for event in service.runs.events(run_id)]

        assert events[-1].type == "done"
        assert events[-1].data["content"] == "second"


class TestGraphAbort:
    """Tests for cooperative abort between graph nodes."""

    @pytest.mark.anyio
    async def test_abort_after_first_node(self, resolver, models):
        visits: list[str] = []
        signal = asyncio.Event()
        request = ExecutorInput(
            run_id="g1", prompt="x", graph_builder=counter_graph(10, visits), signal=signal
        )

        events = []
        async for event in execute_agent_stream(request, resolver=resolver, models=models):
            events.append(event)
            if event.type == "thinking" and event.data["text"] == "Finished inc.":
                signal.set()

        assert visits == ["inc"]
        assert [e.type for e in events] == ["thinking", "thinking"]

    @pytest.mark.anyio
    async def test_abort_before_start_runs_nothing(self, resolver, models):
        visits: list[str] = []
        signal = asyncio.Event()
        signal.set()
        request = ExecutorInput(
            run_id="g1",
            prompt="x",
            graph_builder=counter_graph(3, visits),
            signal=signal,
            announce=False,
        )

        events = await run_all(request, resolver, models)

        assert events == []
        assert visits == []
