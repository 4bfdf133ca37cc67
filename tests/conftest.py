"""Shared test fixtures."""

import asyncio
from collections.abc import AsyncIterator
from typing import Any

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, AIMessageChunk, BaseMessage
from langchain_core.outputs import ChatGeneration, ChatGenerationChunk, ChatResult
from pydantic import Field

from agentflow.core.config import Settings
from agentflow.services.agent import AgentService, build_agent_service


class ScriptedChatModel(BaseChatModel):
    """Chat model that replays scripted responses, one per call.

    Each response is a string (one chunk), a list of strings (streamed as
    separate chunks) or an exception to raise.
    """

    responses: list[Any] = Field(default_factory=list)
    calls: list[list[BaseMessage]] = Field(default_factory=list)
    chunk_delay: float = 0.0

    @property
    def _llm_type(self) -> str:
        return "scripted"

    def _next(self, messages: list[BaseMessage]) -> list[str]:
        self.calls.append(list(messages))
        if not self.responses:
            return [""]
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item if isinstance(item, list) else [item]

    def _generate(self, messages, stop=None, run_manager=None, **kwargs) -> ChatResult:
        text = "".join(self._next(messages))
        return ChatResult(generations=[ChatGeneration(message=AIMessage(content=text))])

    async def _agenerate(self, messages, stop=None, run_manager=None, **kwargs) -> ChatResult:
        return self._generate(messages, stop=stop, **kwargs)

    async def _astream(
        self, messages, stop=None, run_manager=None, **kwargs
    ) -> AsyncIterator[ChatGenerationChunk]:
        for chunk in self._next(messages):
            if self.chunk_delay:
                await asyncio.sleep(self.chunk_delay)
            yield ChatGenerationChunk(message=AIMessageChunk(content=chunk))


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        OPENAI_API_KEY="sk-test",
        DEFAULT_MODEL="gpt-4o-mini",
        ANNOUNCE_THINKING=True,
        ENVIRONMENT="local",
    )


@pytest.fixture
def scripted_model() -> ScriptedChatModel:
    return ScriptedChatModel()


@pytest.fixture
def model_factory(scripted_model: ScriptedChatModel):
    """Chat model factory that records what it was asked to build."""
    requests: list[dict[str, Any]] = []

    def factory(resolved, temperature, max_tokens):
        requests.append(
            {
                "provider_id": resolved.provider_id,
                "model_name": resolved.model_name,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        return scripted_model

    factory.requests = requests
    return factory


@pytest.fixture
def service(test_settings: Settings, model_factory) -> AgentService:
    return build_agent_service(test_settings, chat_model_factory=model_factory)


@pytest.fixture
def app(test_settings: Settings, model_factory) -> FastAPI:
    from agentflow.api.main import create_app

    return create_app(test_settings, chat_model_factory=model_factory)


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """HTTP client bound to an app whose lifespan has run."""
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
