"""LLM client service.

Resolves provider credentials and model names, and wraps a LangChain chat
model in a small client that yields plain-text deltas.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import aclosing
from dataclasses import dataclass
from typing import Any, Protocol

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage
from langchain_openai import ChatOpenAI

from agentflow.core.config import Settings, settings
from agentflow.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

REASONING_MODEL_PREFIXES = ("o1", "o3")


# ===== Settings =====


@dataclass(frozen=True)
class ModelSettings:
    """Per-provider stored settings."""

    selected_model: str | None = None
    api_token: str | None = None


class SettingsProvider(Protocol):
    def get_model_settings(self, provider_id: str) -> ModelSettings | None: ...


class InMemorySettingsStore:
    """Process-local settings store keyed by provider id."""

    def __init__(self, initial: dict[str, ModelSettings] | None = None):
        self._settings: dict[str, ModelSettings] = dict(initial or {})

    def get_model_settings(self, provider_id: str) -> ModelSettings | None:
        return self._settings.get(provider_id)

    def set_model_settings(self, provider_id: str, model_settings: ModelSettings) -> None:
        self._settings[provider_id] = model_settings


# ===== Provider resolution =====


@dataclass(frozen=True)
class ResolvedProvider:
    provider_id: str
    api_key: str
    model_name: str

    def __repr__(self) -> str:
        return f"ResolvedProvider(provider_id={self.provider_id!r}, model_name={self.model_name!r})"


class ProviderResolver:
    """Resolve provider id, API key and model name from layered sources.

    Resolution order:
        - provider: argument -> DEFAULT_PROVIDER
        - API key: stored api_token -> OPENAI_API_KEY
        - model: argument -> stored selected_model -> DEFAULT_MODEL
    """

    def __init__(self, settings_provider: SettingsProvider, config: Settings | None = None):
        self.settings_provider = settings_provider
        self.config = config or settings

    def resolve(self, provider_id: str | None = None, model_id: str | None = None) -> ResolvedProvider:
        """Resolve the provider configuration.

        Raises:
            ConfigurationError: If no usable API key is configured.
        """
        provider = provider_id or self.config.DEFAULT_PROVIDER
        stored = self.settings_provider.get_model_settings(provider)

        api_key = (stored.api_token if stored else None) or self.config.OPENAI_API_KEY
        if not api_key or api_key == self.config.PLACEHOLDER_API_KEY:
            raise ConfigurationError(
                f'No API key configured for provider "{provider}". '
                "Configure an API key for the provider or set the OPENAI_API_KEY environment variable."
            )

        model_name = (
            model_id or (stored.selected_model if stored else None) or self.config.DEFAULT_MODEL
        )
        return ResolvedProvider(provider_id=provider, api_key=api_key, model_name=model_name)


# ===== Model helpers =====


def is_reasoning_model(model_name: str) -> bool:
    """Return True for o1/o3 family models, which reject a temperature."""
    name = model_name.lower()
    if name.startswith("o3"):
        return True
    return any(name == prefix or name.startswith(f"{prefix}-") for prefix in REASONING_MODEL_PREFIXES)


def extract_text_content(content: Any) -> str:
    """Flatten message content to text.

    Content is either a string or a list of parts; only text parts count.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        texts: list[str] = []
        for part in content:
            if isinstance(part, str):
                texts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                texts.append(part["text"])
        return "".join(texts)
    return ""


def create_chat_model(
    resolved: ResolvedProvider,
    temperature: float | None = None,
    max_tokens: int | None = None,
    config: Settings | None = None,
) -> ChatOpenAI:
    """Create a streaming OpenAI chat model.

    Reasoning models never receive a temperature; all others always do.
    ``max_tokens`` is only forwarded when positive.
    """
    config = config or settings
    kwargs: dict[str, Any] = {
        "model": resolved.model_name,
        "api_key": resolved.api_key,
        "streaming": True,
        "timeout": config.LLM_REQUEST_TIMEOUT,
    }
    if config.OPENAI_BASE_URL:
        kwargs["base_url"] = config.OPENAI_BASE_URL
    if not is_reasoning_model(resolved.model_name):
        kwargs["temperature"] = temperature if temperature is not None else 0.7
    if max_tokens is not None and max_tokens > 0:
        kwargs["max_tokens"] = max_tokens
    return ChatOpenAI(**kwargs)


ChatModelFactory = Callable[[ResolvedProvider, float | None, int | None], BaseChatModel]


# ===== Client =====


class ModelClient:
    """Thin streaming wrapper over a LangChain chat model."""

    def __init__(self, model: BaseChatModel):
        self.model = model

    async def stream(
        self,
        messages: Sequence[BaseMessage],
        signal: asyncio.Event | None = None,
    ) -> AsyncIterator[str]:
        """Yield non-empty text deltas until exhausted or ``signal`` is set."""
        async with aclosing(self.model.astream(list(messages))) as chunks:
            async for chunk in chunks:
                if signal is not None and signal.is_set():
                    return
                text = extract_text_content(chunk.content)
                if text:
                    yield text

    async def invoke(self, messages: Sequence[BaseMessage]) -> str:
        response = await self.model.ainvoke(list(messages))
        return extract_text_content(response.content)


class ModelClientFactory:
    """Build model clients from resolved provider settings.

    The chat model constructor is injectable so tests can substitute a
    scripted model without network access.
    """

    def __init__(self, chat_model_factory: ChatModelFactory | None = None, config: Settings | None = None):
        self.config = config or settings
        self._chat_model_factory = chat_model_factory

    def chat_model(
        self,
        resolved: ResolvedProvider,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> BaseChatModel:
        if self._chat_model_factory is not None:
            return self._chat_model_factory(resolved, temperature, max_tokens)
        return create_chat_model(resolved, temperature, max_tokens, config=self.config)

    def client(
        self,
        resolved: ResolvedProvider,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> ModelClient:
        logger.debug(
            f"Creating model client provider={resolved.provider_id} model={resolved.model_name} "
            f"temperature={temperature} max_tokens={max_tokens or 'unlimited'}"
        )
        return ModelClient(self.chat_model(resolved, temperature, max_tokens))
