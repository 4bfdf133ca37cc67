"""Agent run schemas.

Pydantic models for run inputs, session configuration and serializable
snapshots, plus the ``AgentEvent`` type that is the only data a running
agent hands to the outside world.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

EventType = Literal["token", "thinking", "done", "error"]
TERMINAL_EVENT_TYPES: frozenset[str] = frozenset({"done", "error"})


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys for transport payloads."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HistoryMessage(CamelModel):
    """One turn of conversation history."""

    role: Literal["user", "assistant"]
    content: str


class RunContext(CamelModel):
    """Per-run overrides carried alongside the prompt."""

    provider_id: str | None = None
    model_id: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    system_prompt: str | None = None
    messages: list[HistoryMessage] | None = Field(
        default=None, description="History override; bypasses session history"
    )


class AgentInput(CamelModel):
    """Input for a single agent run."""

    prompt: str = ""
    context: RunContext = Field(default_factory=RunContext)


class AgentSessionConfig(CamelModel):
    """Configuration for a long-lived session.

    ``provider_id`` is mandatory; everything else falls back to the owning
    agent's defaults and then to the built-in session defaults.
    """

    provider_id: str
    session_id: str | None = None
    agent_id: str | None = None
    model_id: str | None = None
    system_prompt: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    max_history_messages: int | None = Field(default=None, ge=0)
    metadata: dict[str, Any] = Field(default_factory=dict)


class SessionSnapshot(CamelModel):
    """Read-only view of a session."""

    session_id: str
    provider_id: str
    model_id: str
    agent_id: str | None = None
    system_prompt: str
    temperature: float
    max_tokens: int | None = None
    max_history_messages: int
    created_at: datetime
    last_activity: datetime
    is_active: bool
    message_count: int
    history_length: int
    active_run_ids: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class RunSnapshot(CamelModel):
    """Read-only view of an active run."""

    run_id: str
    agent_name: str
    session_id: str | None = None
    started_at: datetime


class ManagerStatus(CamelModel):
    """Aggregate session and run counts."""

    total_sessions: int
    active_sessions: int
    active_runs: int


@dataclass
class AgentEvent:
    """Event emitted by a running agent.

    Attributes:
        type: One of token, thinking, done, error.
        data: Event payload; always carries ``runId``.
    """

    type: EventType
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def token(cls, run_id: str, token: str) -> "AgentEvent":
        return cls(type="token", data={"runId": run_id, "token": token})

    @classmethod
    def thinking(cls, run_id: str, text: str) -> "AgentEvent":
        return cls(type="thinking", data={"runId": run_id, "text": text})

    @classmethod
    def done(cls, run_id: str, content: str, token_count: int) -> "AgentEvent":
        return cls(
            type="done",
            data={"runId": run_id, "content": content, "tokenCount": token_count},
        )

    @classmethod
    def error(cls, run_id: str, message: str, kind: str) -> "AgentEvent":
        return cls(type="error", data={"runId": run_id, "message": message, "kind": str(kind)})

    @property
    def run_id(self) -> str:
        return self.data["runId"]

    @property
    def is_terminal(self) -> bool:
        return self.type in TERMINAL_EVENT_TYPES

    def to_payload(self) -> dict[str, Any]:
        """Return the transport payload ``{type, data}``."""
        return {"type": self.type, "data": dict(self.data)}
