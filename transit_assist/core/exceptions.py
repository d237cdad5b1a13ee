"""
Custom exceptions for the transit assist backend.

Remote cache failures are raised only inside the remote tier boundary and are
converted to results there. Failures with no cached fallback (transit data
fetches, recommendation computation) propagate to callers.
"""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Standardized error codes for the application."""

    # Cache errors
    REMOTE_CACHE_UNAVAILABLE = "REMOTE_CACHE_UNAVAILABLE"
    REMOTE_CACHE_OPERATION_FAILED = "REMOTE_CACHE_OPERATION_FAILED"

    # Transit / recommendation errors
    TRANSIT_DATA_UNAVAILABLE = "TRANSIT_DATA_UNAVAILABLE"
    NO_ACTIVE_WAITING_SPOT = "NO_ACTIVE_WAITING_SPOT"
    TICKET_PURCHASE_FAILED = "TICKET_PURCHASE_FAILED"

    # System errors
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"

    # Generic errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class TransitAssistException(Exception):
    """Base exception for the transit assist backend."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code


class RemoteCacheError(TransitAssistException):
    """Raised by remote cache operations; never escapes the cache store."""

    def __init__(self, message: str, action: Optional[str] = None, key: Optional[str] = None):
        details: Dict[str, Any] = {}
        if action:
            details["action"] = action
        if key:
            details["key"] = key
        super().__init__(
            message=message,
            error_code=ErrorCode.REMOTE_CACHE_OPERATION_FAILED,
            details=details,
            status_code=503
        )


class TransitDataUnavailableError(TransitAssistException):
    """Raised when the transit-data collaborator cannot provide arrivals."""

    def __init__(self, message: str = "Transit data is unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.TRANSIT_DATA_UNAVAILABLE,
            details=details,
            status_code=503
        )


class NoActiveWaitingSpotError(TransitAssistException):
    """Raised when an operation requires the user to be inside a waiting spot."""

    def __init__(self):
        super().__init__(
            message="User is not inside an active waiting spot",
            error_code=ErrorCode.NO_ACTIVE_WAITING_SPOT,
            status_code=409
        )


class ServiceUnavailableError(TransitAssistException):
    """Raised when service is temporarily unavailable."""

    def __init__(self, service_name: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"Service '{service_name}' is temporarily unavailable",
            error_code=ErrorCode.SERVICE_UNAVAILABLE,
            details=details or {"service_name": service_name},
            status_code=503
        )


class TicketPurchaseError(TransitAssistException):
    """Raised when the ticketing collaborator declines a purchase."""

    def __init__(self, message: str, purchaser_code: Optional[str] = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.TICKET_PURCHASE_FAILED,
            details={"purchaser_code": purchaser_code} if purchaser_code else None,
            status_code=402
        )
