"""
Request correlation middleware.

Every request gets an id (the caller's X-Request-ID when present) that is
stored on request.state for error responses, bound to the logging context for
the duration of the request and echoed back in the response headers.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware

from transit_assist.core.logging import request_id_var

logger = logging.getLogger(__name__)

# Polled by monitors; logged at DEBUG only
QUIET_PATHS = {"/api/v1/health"}


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        level = logging.DEBUG if request.url.path in QUIET_PATHS else logging.INFO
        logger.log(
            level,
            f"{request.method} {request.url.path} {response.status_code} {duration_ms}ms",
            extra={"request_id": request_id, "duration_ms": duration_ms, "status_code": response.status_code},
        )
        response.headers["X-Request-ID"] = request_id
        return response
