"""Logfire tracing setup."""

import logfire

from agentflow.core.config import settings


def setup_logfire() -> None:
    """Configure logfire.

    Spans are only exported when LOGFIRE_TOKEN is set; console output is
    left to the standard logging handlers.
    """
    logfire.configure(
        token=settings.LOGFIRE_TOKEN,
        service_name=settings.LOGFIRE_SERVICE_NAME,
        environment=settings.LOGFIRE_ENVIRONMENT,
        send_to_logfire="if-token-present",
        console=False,
    )


def instrument_app(app) -> None:
    """Instrument a FastAPI application with logfire."""
    logfire.instrument_fastapi(app)


def instrument_openai() -> None:
    """Instrument the OpenAI SDK used under langchain-openai."""
    logfire.instrument_openai()
