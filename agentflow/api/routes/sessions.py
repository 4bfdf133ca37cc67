"""Session endpoints."""

from fastapi import APIRouter, Response, status

from agentflow.api.deps import SessionManagerDep
from agentflow.core.exceptions import SessionNotFoundError
from agentflow.schemas.agent import AgentInput, AgentSessionConfig, HistoryMessage, SessionSnapshot
from agentflow.schemas.api import CancelResult, RunStarted
from agentflow.services.sessions import SESSION_AGENT_NAME

router = APIRouter()


@router.post("", response_model=SessionSnapshot, status_code=status.HTTP_201_CREATED)
async def create_session(body: AgentSessionConfig, sessions: SessionManagerDep) -> SessionSnapshot:
    return sessions.create_session(body)


@router.get("", response_model=list[SessionSnapshot])
async def list_sessions(sessions: SessionManagerDep) -> list[SessionSnapshot]:
    return sessions.list_sessions()


@router.get("/{session_id}", response_model=SessionSnapshot)
async def get_session(session_id: str, sessions: SessionManagerDep) -> SessionSnapshot:
    snapshot = sessions.get_session(session_id)
    if snapshot is None:
        raise SessionNotFoundError(f'Session "{session_id}" not found')
    return snapshot


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def destroy_session(session_id: str, sessions: SessionManagerDep) -> Response:
    """Destroy a session, aborting any run it hosts."""
    if not sessions.destroy_session(session_id):
        raise SessionNotFoundError(f'Session "{session_id}" not found')
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{session_id}/history", response_model=list[HistoryMessage])
async def get_session_history(session_id: str, sessions: SessionManagerDep) -> list[HistoryMessage]:
    return sessions.get_history(session_id)


@router.post(
    "/{session_id}/runs",
    response_model=RunStarted,
    status_code=status.HTTP_202_ACCEPTED,
)
async def start_session_run(
    session_id: str,
    body: AgentInput,
    sessions: SessionManagerDep,
) -> RunStarted:
    """Start a run inside the session.

    Returns 409 while another run is in flight in the same session.
    """
    run_id = sessions.start(session_id, body)
    snapshot = sessions.get_session(session_id)
    return RunStarted(
        run_id=run_id,
        agent_name=snapshot.agent_id or SESSION_AGENT_NAME,
        session_id=session_id,
    )


@router.delete("/{session_id}/runs", response_model=CancelResult)
async def cancel_session_runs(session_id: str, sessions: SessionManagerDep) -> CancelResult:
    if sessions.get_session(session_id) is None:
        raise SessionNotFoundError(f'Session "{session_id}" not found')
    return CancelResult(cancelled=sessions.cancel_session(session_id))
