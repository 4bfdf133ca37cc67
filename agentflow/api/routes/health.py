"""Health check endpoints."""

from fastapi import APIRouter

from agentflow import __version__
from agentflow.api.deps import AgentServiceDep
from agentflow.schemas.agent import ManagerStatus
from agentflow.schemas.api import HealthStatus

router = APIRouter()


@router.get("/health", response_model=HealthStatus)
async def health(service: AgentServiceDep) -> HealthStatus:
    """Liveness check with aggregate run and session counts."""
    status = service.sessions.get_status()
    return HealthStatus(
        version=__version__,
        agents=len(service.agents),
        total_sessions=status.total_sessions,
        active_sessions=status.active_sessions,
        active_runs=status.active_runs,
    )


@router.get("/status", response_model=ManagerStatus)
async def manager_status(service: AgentServiceDep) -> ManagerStatus:
    return service.sessions.get_status()
