"""
Error handlers for the FastAPI application.

Every failure leaves the API as a StandardErrorResponse carrying the request
id assigned by RequestContextMiddleware. Client errors (4xx) log at WARNING,
server errors at ERROR.
"""

import logging
from collections import Counter
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from transit_assist.core.exceptions import ErrorCode, TransitAssistException
from transit_assist.models.api_models import StandardErrorResponse

logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {
    400: ErrorCode.BAD_REQUEST,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.METHOD_NOT_ALLOWED,
    503: ErrorCode.SERVICE_UNAVAILABLE,
}

# Repeated errors are re-announced every this many occurrences
ERROR_REPORT_EVERY = 10


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


class ErrorHandler:
    """Turns exceptions into JSON error responses and counts them per error code."""

    def __init__(self):
        self.error_counts: Counter = Counter()

    async def handle_domain_exception(self, request: Request, exc: TransitAssistException) -> JSONResponse:
        """
        Handle TransitAssistException subclasses.

        Args:
            request: Incoming request
            exc: Raised domain exception

        Returns:
            JSONResponse with the exception's own status code
        """
        request_id = _request_id(request)
        level = logging.WARNING if exc.status_code < 500 else logging.ERROR
        logger.log(
            level,
            f"{exc.error_code.value} on {request.method} {request.url.path}: {exc.message}",
            extra={"request_id": request_id, "error_code": exc.error_code.value, "details": exc.details},
        )
        self._track_error(exc.error_code)

        return self._create_error_response(
            exc.error_code, exc.message, request_id, exc.status_code, details=exc.details
        )

    async def handle_validation_error(self, request: Request, exc: RequestValidationError) -> JSONResponse:
        request_id = _request_id(request)

        validation_errors = [
            {
                "field": ".".join(str(part) for part in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exc.errors()
        ]
        logger.warning(
            f"Rejected {request.method} {request.url.path}: {len(validation_errors)} invalid fields",
            extra={"request_id": request_id},
        )
        self._track_error(ErrorCode.VALIDATION_ERROR)

        return self._create_error_response(
            ErrorCode.VALIDATION_ERROR,
            "Request validation failed",
            request_id,
            422,
            details={"validation_errors": validation_errors},
        )

    async def handle_http_exception(self, request: Request, exc: StarletteHTTPException) -> JSONResponse:
        request_id = _request_id(request)
        fallback = ErrorCode.BAD_REQUEST if exc.status_code < 500 else ErrorCode.INTERNAL_SERVER_ERROR
        error_code = HTTP_ERROR_CODES.get(exc.status_code, fallback)

        logger.warning(
            f"HTTP {exc.status_code} on {request.method} {request.url.path}: {exc.detail}",
            extra={"request_id": request_id},
        )

        return self._create_error_response(error_code, str(exc.detail), request_id, exc.status_code)

    async def handle_unexpected_exception(self, request: Request, exc: Exception) -> JSONResponse:
        request_id = _request_id(request)
        logger.error(
            f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}: {exc}",
            exc_info=True,
            extra={"request_id": request_id},
        )
        self._track_error(ErrorCode.INTERNAL_SERVER_ERROR)

        return self._create_error_response(
            ErrorCode.INTERNAL_SERVER_ERROR, "An internal server error occurred", request_id, 500
        )

    def _create_error_response(
        self,
        error_code: ErrorCode,
        message: str,
        request_id: str,
        status_code: int,
        details: Optional[Dict[str, Any]] = None,
    ) -> JSONResponse:
        body = StandardErrorResponse(
            error_code=error_code.value,
            message=message,
            details=details,
            request_id=request_id,
            timestamp=datetime.utcnow(),
        )
        return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))

    def _track_error(self, error_code: ErrorCode) -> None:
        self.error_counts[error_code.value] += 1
        count = self.error_counts[error_code.value]
        if count % ERROR_REPORT_EVERY == 0:
            logger.warning(f"{error_code.value} has occurred {count} times")


def setup_error_handlers(app: FastAPI) -> ErrorHandler:
    """
    Register exception handlers on app.

    The handler instance is also stored on app.state.error_handler so its
    counters are scoped to the application.

    Returns:
        The registered ErrorHandler
    """
    handler = ErrorHandler()
    app.state.error_handler = handler

    app.add_exception_handler(TransitAssistException, handler.handle_domain_exception)
    app.add_exception_handler(RequestValidationError, handler.handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handler.handle_http_exception)
    app.add_exception_handler(Exception, handler.handle_unexpected_exception)
    return handler
