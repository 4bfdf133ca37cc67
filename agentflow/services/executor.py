"""Token stream executor.

Turns one agent invocation into an ordered stream of ``AgentEvent`` items.
Two paths share credential resolution, message assembly and failure
handling:

1. Plain chat completion: one ``token`` per non-empty text delta.
2. Graph execution: the agent's compiled graph is driven node by node and
   every non-empty ``AIMessage`` a node appends becomes one ``token``.

A stream ends with exactly one ``done`` or one ``error``, except when the
abort signal is observed: then it simply stops.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Any

import logfire
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from agentflow.agents.definition import DEFAULT_SYSTEM_PROMPT, DEFAULT_TEMPERATURE, GraphBuilder
from agentflow.core.exceptions import (
    AbortError,
    ConfigurationError,
    ErrorKind,
    classify_error,
    to_user_message,
)
from agentflow.schemas.agent import AgentEvent, HistoryMessage
from agentflow.services.llm import (
    ModelClientFactory,
    ProviderResolver,
    ResolvedProvider,
    extract_text_content,
)

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = "Hello"

PROVIDER_DISPLAY_NAMES = {"openai": "OpenAI"}

DEFAULT_RECURSION_LIMIT = 25


@dataclass
class ExecutorInput:
    """Everything one run needs, already merged from session and request."""

    run_id: str
    prompt: str
    provider_id: str | None = None
    model_id: str | None = None
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    temperature: float | None = DEFAULT_TEMPERATURE
    max_tokens: int | None = None
    history: Sequence[HistoryMessage] = field(default_factory=list)
    max_history_messages: int | None = None
    signal: asyncio.Event | None = None
    graph_builder: GraphBuilder | None = None
    announce: bool = True
    thinking_message: str | None = None
    recursion_limit: int = DEFAULT_RECURSION_LIMIT

    @property
    def aborted(self) -> bool:
        return self.signal is not None and self.signal.is_set()


def provider_display_name(provider_id: str) -> str:
    return PROVIDER_DISPLAY_NAMES.get(provider_id, provider_id)


def build_messages(
    system_prompt: str,
    history: Sequence[HistoryMessage],
    prompt: str,
    max_history_messages: int | None = None,
) -> list[BaseMessage]:
    """Assemble the provider message list.

    The system prompt comes first, then the most recent
    ``max_history_messages`` history turns (all when None, none when 0),
    then the prompt. A blank prompt is replaced by ``DEFAULT_PROMPT``.
    """
    if max_history_messages is not None:
        history = history[-max_history_messages:] if max_history_messages > 0 else []

    messages: list[BaseMessage] = [SystemMessage(content=system_prompt)]
    for turn in history:
        if turn.role == "user":
            messages.append(HumanMessage(content=turn.content))
        else:
            messages.append(AIMessage(content=turn.content))

    messages.append(HumanMessage(content=prompt if prompt.strip() else DEFAULT_PROMPT))
    return messages


def _added_ai_texts(update: dict[str, Any]) -> list[str]:
    added = update.get("messages")
    if added is None:
        return []
    if not isinstance(added, list | tuple):
        added = [added]
    return [
        text
        for message in added
        if isinstance(message, AIMessage) and (text := extract_text_content(message.content))
    ]


def _failure_event(run_id: str, error: Exception, *, graph: bool = False) -> AgentEvent | None:
    """Classify an exception into an ``error`` event; ``None`` for aborts."""
    kind = classify_error(error)
    if kind is ErrorKind.ABORT:
        logger.info(f"Run {run_id} stopped by abort")
        return None

    where = "graph run" if graph else "run"
    logger.error(f"{where.capitalize()} {run_id} failed ({kind}): {error}", exc_info=error)
    logfire.error("Agent run failed", run_id=run_id, kind=str(kind), graph=graph)
    return AgentEvent.error(run_id, to_user_message(kind), kind)


async def execute_agent_stream(
    request: ExecutorInput,
    *,
    resolver: ProviderResolver,
    models: ModelClientFactory,
) -> AsyncIterator[AgentEvent]:
    """Run one agent invocation and yield its events."""
    run_id = request.run_id

    try:
        resolved = resolver.resolve(request.provider_id, request.model_id)
    except ConfigurationError as e:
        logger.warning(f"Run {run_id} - provider resolution failed: {e}")
        yield AgentEvent.error(run_id, str(e), ErrorKind.CONFIGURATION)
        return

    logger.info(
        f"Run {run_id} provider={resolved.provider_id} model={resolved.model_name} "
        f"temperature={request.temperature} max_tokens={request.max_tokens or 'unlimited'} "
        f"graph={'yes' if request.graph_builder else 'no'}"
    )

    if request.announce:
        yield AgentEvent.thinking(
            run_id,
            request.thinking_message
            or f"Connecting to {provider_display_name(resolved.provider_id)}...",
        )

    messages = build_messages(
        request.system_prompt,
        request.history,
        request.prompt,
        request.max_history_messages,
    )

    if request.graph_builder is not None:
        async with aclosing(
            execute_graph_stream(request, resolved, messages, models=models)
        ) as events:
            async for event in events:
                yield event
        return

    full_content = ""
    token_count = 0

    try:
        client = models.client(resolved, request.temperature, request.max_tokens)
        async with aclosing(client.stream(messages, request.signal)) as tokens:
            async for token in tokens:
                if request.aborted:
                    break
                full_content += token
                token_count += 1
                yield AgentEvent.token(run_id, token)
    except AbortError:
        logger.info(f"Run {run_id} aborted")
        return
    except Exception as e:
        event = _failure_event(run_id, e)
        if event is not None:
            yield event
        return

    if request.aborted:
        logger.info(f"Run {run_id} aborted after {token_count} tokens")
        return

    logger.info(f"Run {run_id} completed: {token_count} tokens, {len(full_content)} chars")
    yield AgentEvent.done(run_id, full_content, token_count)


async def execute_graph_stream(
    request: ExecutorInput,
    resolved: ResolvedProvider,
    messages: list[BaseMessage],
    *,
    models: ModelClientFactory,
) -> AsyncIterator[AgentEvent]:
    """Drive a compiled agent graph and translate its updates into events.

    The graph is streamed in ``updates`` mode, one chunk per finished node.
    The abort signal is checked before the next node is allowed to start.
    """
    run_id = request.run_id
    full_content = ""
    token_count = 0

    try:
        model = models.chat_model(resolved, request.temperature, request.max_tokens)
        graph = request.graph_builder(model)
        if request.aborted:
            logger.info(f"Graph run {run_id} aborted before the first node")
            return

        updates = graph.astream(
            {"messages": messages},
            config={"recursion_limit": request.recursion_limit},
            stream_mode="updates",
        )
        async with aclosing(updates) as chunks:
            async for chunk in chunks:
                for node, update in chunk.items():
                    if request.aborted:
                        break
                    if request.announce:
                        yield AgentEvent.thinking(run_id, f"Finished {node}.")

                    for text in _added_ai_texts(update or {}):
                        if request.aborted:
                            break
                        full_content += text
                        token_count += 1
                        yield AgentEvent.token(run_id, text)

                if request.aborted:
                    break
    except AbortError:
        logger.info(f"Graph run {run_id} aborted")
        return
    except Exception as e:
        event = _failure_event(run_id, e, graph=True)
        if event is not None:
            yield event
        return

    if request.aborted:
        logger.info(f"Graph run {run_id} aborted after {token_count} tokens")
        return

    logger.info(f"Graph run {run_id} completed: {token_count} tokens, {len(full_content)} chars")
    yield AgentEvent.done(run_id, full_content, token_count)
