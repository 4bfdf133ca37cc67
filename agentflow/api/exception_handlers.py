"""Exception handlers mapping domain errors to HTTP responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from agentflow.core.exceptions import (
    AgentflowError,
    AgentNotFoundError,
    ConfigurationError,
    DuplicateKeyError,
    RunNotFoundError,
    SessionBusyError,
    SessionNotFoundError,
)
from agentflow.schemas.api import ErrorResponse

logger = logging.getLogger(__name__)

STATUS_CODES: dict[type[AgentflowError], int] = {
    AgentNotFoundError: status.HTTP_404_NOT_FOUND,
    SessionNotFoundError: status.HTTP_404_NOT_FOUND,
    RunNotFoundError: status.HTTP_404_NOT_FOUND,
    DuplicateKeyError: status.HTTP_409_CONFLICT,
    SessionBusyError: status.HTTP_409_CONFLICT,
    ConfigurationError: status.HTTP_400_BAD_REQUEST,
}


def status_code_for(error: AgentflowError) -> int:
    for error_type, code in STATUS_CODES.items():
        if isinstance(error, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def agentflow_error_handler(request: Request, exc: AgentflowError) -> JSONResponse:
    code = status_code_for(exc)
    if code >= 500:
        logger.error(f"Unhandled agentflow error on {request.url.path}: {exc}", exc_info=exc)
    else:
        logger.info(f"{type(exc).__name__} on {request.url.path}: {exc}")

    body = ErrorResponse(error=type(exc).__name__, message=str(exc))
    return JSONResponse(status_code=code, content=body.model_dump(by_alias=True))


def register_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AgentflowError, agentflow_error_handler)
