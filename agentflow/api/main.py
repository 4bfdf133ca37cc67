"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from agentflow import __version__
from agentflow.api.exception_handlers import register_exception_handlers
from agentflow.api.middleware import LoggingContextMiddleware
from agentflow.api.router import api_router
from agentflow.api.routes.ws import AgentConnectionManager, BroadcastSink
from agentflow.core.config import Settings, settings
from agentflow.core.logfire_setup import instrument_app, instrument_openai, setup_logfire
from agentflow.core.logging_config import setup_logging
from agentflow.services.agent import build_agent_service
from agentflow.services.llm import ChatModelFactory, SettingsProvider

# Environments where API docs should be visible
SHOW_DOCS_ENVIRONMENTS = ("local", "staging", "development")


def create_app(
    config: Settings | None = None,
    *,
    chat_model_factory: ChatModelFactory | None = None,
    settings_provider: SettingsProvider | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``chat_model_factory`` and ``settings_provider`` are passed through to
    ``build_agent_service``; tests use them to avoid network access.
    """
    config = config or settings
    connections = AgentConnectionManager()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan - startup and shutdown events.

        The agent service lives on ``app.state.agent_service``.
        """
        # === Startup ===
        setup_logging(config)
        setup_logfire()
        instrument_openai()

        app.state.agent_service = build_agent_service(
            config,
            settings_provider=settings_provider,
            chat_model_factory=chat_model_factory,
            sink=BroadcastSink(connections),
        )

        yield

        # === Shutdown ===
        await app.state.agent_service.shutdown()

    # Only show docs in allowed environments (hide in production)
    show_docs = config.ENVIRONMENT in SHOW_DOCS_ENVIRONMENTS

    openapi_tags = [
        {"name": "health", "description": "Liveness and aggregate status"},
        {"name": "agents", "description": "Agent catalog and one-off runs"},
        {"name": "runs", "description": "Active runs: inspect, stream, cancel"},
        {"name": "sessions", "description": "Long-lived conversational sessions"},
        {"name": "ws", "description": "WebSocket event channel"},
    ]

    app = FastAPI(
        title=config.PROJECT_NAME,
        summary="Agent run orchestration with streaming events",
        version=__version__,
        openapi_url="/openapi.json" if show_docs else None,
        docs_url="/docs" if show_docs else None,
        redoc_url="/redoc" if show_docs else None,
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.connections = connections

    # Logfire instrumentation
    instrument_app(app)

    # Logging context middleware (adds request_id and timing)
    app.add_middleware(LoggingContextMiddleware)

    # Exception handlers
    register_exception_handlers(app)

    # Include API router
    app.include_router(api_router)

    return app


app = create_app()
