"""API dependencies.

Dependency injection factories for the services created in the app lifespan.
"""

from typing import Annotated

from fastapi import Depends, Request

from agentflow.agents.registry import AgentRegistry
from agentflow.services.agent import AgentService
from agentflow.services.runs import RunRegistry
from agentflow.services.sessions import SessionManager

# ===== Services =====


def get_agent_service(request: Request) -> AgentService:
    """Return the service built during application startup."""
    return request.app.state.agent_service


AgentServiceDep = Annotated[AgentService, Depends(get_agent_service)]


def get_agent_registry(service: AgentServiceDep) -> AgentRegistry:
    return service.agents


def get_run_registry(service: AgentServiceDep) -> RunRegistry:
    return service.runs


def get_session_manager(service: AgentServiceDep) -> SessionManager:
    return service.sessions


AgentRegistryDep = Annotated[AgentRegistry, Depends(get_agent_registry)]
RunRegistryDep = Annotated[RunRegistry, Depends(get_run_registry)]
SessionManagerDep = Annotated[SessionManager, Depends(get_session_manager)]
