"""Pydantic schemas and event types."""

from agentflow.schemas.agent import (
    AgentEvent,
    AgentInput,
    AgentSessionConfig,
    HistoryMessage,
    ManagerStatus,
    RunContext,
    RunSnapshot,
    SessionSnapshot,
)

__all__ = [
    "AgentEvent",
    "AgentInput",
    "AgentSessionConfig",
    "HistoryMessage",
    "ManagerStatus",
    "RunContext",
    "RunSnapshot",
    "SessionSnapshot",
]
