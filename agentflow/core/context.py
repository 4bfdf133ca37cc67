"""Run-scoped logging context.

Context variables are copied into each asyncio task when it is created, so
values bound at the start of a run stay attached to every log record that
run produces without leaking into other runs.
"""

from contextvars import ContextVar

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
run_id_ctx: ContextVar[str | None] = ContextVar("run_id", default=None)
session_id_ctx: ContextVar[str | None] = ContextVar("session_id", default=None)
agent_name_ctx: ContextVar[str | None] = ContextVar("agent_name", default=None)


def get_logging_context() -> dict[str, str | None]:
    """Get the current logging context.

    Returns a dict with request_id, run_id, session_id and agent_name from
    context variables.
    """
    return {
        "request_id": request_id_ctx.get(),
        "run_id": run_id_ctx.get(),
        "session_id": session_id_ctx.get(),
        "agent_name": agent_name_ctx.get(),
    }


def bind_run_context(
    run_id: str,
    *,
    agent_name: str | None = None,
    session_id: str | None = None,
) -> None:
    """Bind run identifiers for the current task."""
    run_id_ctx.set(run_id)
    agent_name_ctx.set(agent_name)
    session_id_ctx.set(session_id)
