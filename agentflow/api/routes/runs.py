"""Run inspection, streaming and cancellation endpoints."""

import json
from collections.abc import AsyncIterator

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from agentflow.api.deps import RunRegistryDep, SessionManagerDep
from agentflow.core.exceptions import RunNotFoundError
from agentflow.schemas.agent import RunSnapshot
from agentflow.schemas.api import CancelResult

router = APIRouter()

NDJSON_MEDIA_TYPE = "application/x-ndjson"


@router.get("", response_model=list[RunSnapshot])
async def list_runs(runs: RunRegistryDep) -> list[RunSnapshot]:
    return runs.list_active_runs()


@router.get("/{run_id}", response_model=RunSnapshot)
async def get_run(run_id: str, runs: RunRegistryDep) -> RunSnapshot:
    run = runs.get_run(run_id)
    if run is None:
        raise RunNotFoundError(f'Run "{run_id}" is not active')
    return run


@router.get("/{run_id}/events")
async def stream_run_events(run_id: str, runs: RunRegistryDep) -> StreamingResponse:
    """Stream a run's events as newline-delimited JSON.

    Events emitted before the request arrived are replayed first. The
    response ends after ``done`` or ``error``, or when the run is cancelled.
    """
    if not runs.has_run(run_id):
        raise RunNotFoundError(f'Run "{run_id}" not found')

    async def lines() -> AsyncIterator[str]:
        async for event in runs.events(run_id):
            yield json.dumps(event.to_payload()) + "\n"

    return StreamingResponse(lines(), media_type=NDJSON_MEDIA_TYPE)


@router.delete("/{run_id}", response_model=CancelResult)
async def cancel_run(run_id: str, sessions: SessionManagerDep) -> CancelResult:
    """Cancel a run. Unknown or finished runs report ``cancelled: false``."""
    return CancelResult(cancelled=sessions.cancel_run(run_id))
