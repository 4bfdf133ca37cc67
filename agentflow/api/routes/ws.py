"""Agent WebSocket route.

Clients send ``{"type": "run" | "cancel" | "ping", "data": {...}}``. Every
run event is broadcast to all connected clients on the ``agent:event``
channel as ``{"type": "agent:event", "data": {"type": ..., "data": {...}}}``.
"""

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from agentflow.core.exceptions import AgentflowError
from agentflow.schemas.agent import AgentInput
from agentflow.schemas.api import WsCancelRequest, WsRunRequest
from agentflow.services.agent import AgentService
from agentflow.services.sessions import SESSION_AGENT_NAME

logger = logging.getLogger(__name__)

router = APIRouter()


class AgentConnectionManager:
    """WebSocket connection manager for agent events.

    Each connection gets an outbound queue drained by a single writer task,
    so events reach every client in the order they were produced.
    """

    def __init__(self) -> None:
        # Keyed by id(): starlette connections are mappings and not hashable
        self.active_connections: dict[int, asyncio.Queue] = {}

    async def connect(self, websocket: WebSocket) -> None:
        """Accept and store a new WebSocket connection."""
        await websocket.accept()
        self.active_connections[id(websocket)] = asyncio.Queue()
        logger.info(f"Agent WebSocket connected. Total connections: {len(self.active_connections)}")

    def disconnect(self, websocket: WebSocket) -> None:
        """Remove a WebSocket connection."""
        self.active_connections.pop(id(websocket), None)
        logger.info(
            f"Agent WebSocket disconnected. Total connections: {len(self.active_connections)}"
        )

    async def send_event(self, websocket: WebSocket, event_type: str, data: Any) -> bool:
        """Send a JSON event to a specific WebSocket client.

        Returns True if sent successfully, False if connection is closed.
        """
        try:
            await websocket.send_json({"type": event_type, "data": data})
            return True
        except (WebSocketDisconnect, RuntimeError):
            # Connection already closed
            return False

    def enqueue(self, websocket: WebSocket, event_type: str, data: Any) -> None:
        queue = self.active_connections.get(id(websocket))
        if queue is not None:
            queue.put_nowait((event_type, data))

    def broadcast(self, event_type: str, data: Any) -> None:
        for queue in self.active_connections.values():
            queue.put_nowait((event_type, data))

    async def pump(self, websocket: WebSocket) -> None:
        """Drain a connection's queue until it closes."""
        queue = self.active_connections.get(id(websocket))
        if queue is None:
            return
        while True:
            event_type, data = await queue.get()
            if not await self.send_event(websocket, event_type, data):
                return


class BroadcastSink:
    """Event sink that forwards run events to every WebSocket client."""

    def __init__(self, connections: AgentConnectionManager):
        self.connections = connections

    def send(self, channel: str, payload: dict[str, Any]) -> None:
        self.connections.broadcast(channel, payload)


def _start_run(service: AgentService, request: WsRunRequest) -> dict[str, Any]:
    agent_input = AgentInput(prompt=request.prompt, context=request.context)
    if request.session_id:
        run_id = service.sessions.start(request.session_id, agent_input)
        snapshot = service.sessions.get_session(request.session_id)
        agent_name = (snapshot.agent_id if snapshot else None) or SESSION_AGENT_NAME
        return {"runId": run_id, "agentName": agent_name, "sessionId": request.session_id}

    if not request.agent_name:
        raise ValueError("Either agentName or sessionId is required")
    run_id = service.runs.start(request.agent_name, agent_input)
    return {"runId": run_id, "agentName": request.agent_name, "sessionId": None}


def _cancel(service: AgentService, request: WsCancelRequest) -> dict[str, Any]:
    if request.run_id:
        return {"runId": request.run_id, "cancelled": service.sessions.cancel_run(request.run_id)}
    if request.session_id:
        return {
            "sessionId": request.session_id,
            "cancelled": service.sessions.cancel_session(request.session_id),
        }
    raise ValueError("Either runId or sessionId is required")


@router.websocket("/ws/agent")
async def agent_websocket(websocket: WebSocket) -> None:
    """WebSocket endpoint for starting, observing and cancelling runs.

    Expected input message format:
    {
        "type": "run",
        "data": {"agentName": "summarizer", "prompt": "...", "context": {...}}
    }
    {
        "type": "run",
        "data": {"sessionId": "...", "prompt": "..."}
    }
    {
        "type": "cancel",
        "data": {"runId": "..."}
    }

    Replies are ``run_started``, ``cancel_result``, ``pong`` or ``error``.
    """
    service: AgentService = websocket.app.state.agent_service
    manager: AgentConnectionManager = websocket.app.state.connections

    await manager.connect(websocket)
    writer = asyncio.create_task(manager.pump(websocket))

    try:
        while True:
            message = await websocket.receive_json()
            message_type = message.get("type")
            data = message.get("data") or {}

            try:
                if message_type == "run":
                    started = _start_run(service, WsRunRequest.model_validate(data))
                    manager.enqueue(websocket, "run_started", started)
                elif message_type == "cancel":
                    result = _cancel(service, WsCancelRequest.model_validate(data))
                    manager.enqueue(websocket, "cancel_result", result)
                elif message_type == "ping":
                    manager.enqueue(websocket, "pong", {})
                else:
                    manager.enqueue(
                        websocket, "error", {"message": f"Unknown message type: {message_type}"}
                    )
            except (AgentflowError, ValidationError, ValueError) as e:
                logger.info(f"Rejected WebSocket {message_type} request: {e}")
                manager.enqueue(websocket, "error", {"message": str(e), "error": type(e).__name__})

    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(websocket)
        writer.cancel()
