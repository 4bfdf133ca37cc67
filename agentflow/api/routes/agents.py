"""Agent catalog and agent run endpoints."""

import logging

from fastapi import APIRouter, status

from agentflow.agents.definition import AgentDefinitionInfo
from agentflow.api.deps import AgentRegistryDep, RunRegistryDep, SessionManagerDep
from agentflow.core.exceptions import AgentNotFoundError
from agentflow.schemas.agent import AgentInput, SessionSnapshot
from agentflow.schemas.api import AgentSessionCreate, RunStarted

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[AgentDefinitionInfo])
async def list_agents(agents: AgentRegistryDep) -> list[AgentDefinitionInfo]:
    """List registered agents in registration order."""
    return agents.list_info()


@router.get("/{agent_id}", response_model=AgentDefinitionInfo)
async def get_agent(agent_id: str, agents: AgentRegistryDep) -> AgentDefinitionInfo:
    definition = agents.get(agent_id)
    if definition is None:
        raise AgentNotFoundError(f'Unknown agent "{agent_id}"')
    return definition.to_info()


@router.post(
    "/{agent_id}/runs",
    response_model=RunStarted,
    status_code=status.HTTP_202_ACCEPTED,
)
async def start_agent_run(agent_id: str, body: AgentInput, runs: RunRegistryDep) -> RunStarted:
    """Start a one-off run; events are read from ``/runs/{run_id}/events``."""
    run_id = runs.start(agent_id, body)
    return RunStarted(run_id=run_id, agent_name=agent_id)


@router.post(
    "/{agent_id}/sessions",
    response_model=SessionSnapshot,
    status_code=status.HTTP_201_CREATED,
)
async def create_agent_session(
    agent_id: str,
    body: AgentSessionCreate,
    sessions: SessionManagerDep,
) -> SessionSnapshot:
    """Create a session pre-configured with the agent's defaults."""
    return sessions.create_agent_session(agent_id, body.provider_id, body.overrides)
