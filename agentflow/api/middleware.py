"""Application middleware."""

import logging
import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from agentflow.core.context import request_id_ctx

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class LoggingContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id for log correlation and log request timing.

    The request id is taken from the X-Request-ID header if present,
    otherwise a new UUID is generated. It is echoed back on the response
    and exposed as ``request.state.request_id``.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER, str(uuid4()))
        request_id_ctx.set(request_id)
        request.state.request_id = request_id

        start_time = time.perf_counter()
        logger.info(
            "Request started",
            extra={"method": request.method, "path": request.url.path},
        )

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Request completed",
            extra={"status_code": response.status_code, "duration_ms": round(duration_ms, 2)},
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
