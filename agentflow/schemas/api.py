"""HTTP and WebSocket request/response schemas."""

from typing import Any, Literal

from pydantic import Field

from agentflow.schemas.agent import AgentInput, CamelModel


class RunStarted(CamelModel):
    run_id: str
    agent_name: str
    session_id: str | None = None


class CancelResult(CamelModel):
    cancelled: bool


class SessionOverrides(CamelModel):
    """Partial session settings layered over an agent's defaults."""

    session_id: str | None = None
    model_id: str | None = None
    system_prompt: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    max_history_messages: int | None = Field(default=None, ge=0)
    metadata: dict[str, Any] = Field(default_factory=dict)


class AgentSessionCreate(CamelModel):
    """Create a session from an agent's defaults."""

    provider_id: str | None = None
    overrides: SessionOverrides = Field(default_factory=SessionOverrides)


class HealthStatus(CamelModel):
    status: Literal["ok"] = "ok"
    version: str
    agents: int
    total_sessions: int
    active_sessions: int
    active_runs: int


class ErrorResponse(CamelModel):
    error: str
    message: str


# ===== WebSocket =====


class WsRunRequest(AgentInput):
    """``run`` message: start an agent or session run."""

    agent_name: str | None = None
    session_id: str | None = None


class WsCancelRequest(CamelModel):
    """``cancel`` message: abort a run or every run in a session."""

    run_id: str | None = None
    session_id: str | None = None
