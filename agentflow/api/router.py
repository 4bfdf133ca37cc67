"""API router aggregation."""

from fastapi import APIRouter

from agentflow.api.routes import agents, health, runs, sessions, ws

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(agents.router, prefix="/agents", tags=["agents"])
api_router.include_router(runs.router, prefix="/runs", tags=["runs"])
api_router.include_router(sessions.router, prefix="/sessions", tags=["sessions"])
api_router.include_router(ws.router, tags=["ws"])
