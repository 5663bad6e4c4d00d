"""
Guidebook — Custom Exception Hierarchy
=======================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Custom exceptions enable targeted error handling with appropriate HTTP
       status codes and user-friendly messages.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
       Terminating middleware build the same body through `to_payload()`.

Exception Hierarchy:
    GuidebookError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── AuthenticationError      → 401 Unauthorized
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── ServiceUnavailableError  → 503 Service Unavailable (maintenance)
    ├── DatabaseError            → 500 Internal Server Error
    └── InternalError            → 500 (unhandled exceptions, see RequestIDMiddleware)
"""

from typing import Any, Dict, Optional


class GuidebookError(Exception):
    """
    Base exception for all Guidebook application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
        status_code: HTTP status the global handler responds with
        error_code: Machine-readable `error` field of the response body
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    def to_payload(self, request_id: str = "", include_details: bool = True) -> Dict[str, Any]:
        """Render the standard error body."""
        payload: Dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if include_details and self.context:
            payload["details"] = self.context
        payload["request_id"] = request_id
        return payload


class ValidationError(GuidebookError):
    """
    Raised when client input fails a business rule.

    Schema-level problems (wrong types, out-of-range integers, bad path
    patterns) are caught by FastAPI first and answered with 422. This one
    covers rules the schema can't express: unknown sort keys, reserved slugs,
    unknown levels.
    """

    status_code = 400
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(GuidebookError):
    """Raised when a protected request carries no valid API key."""

    status_code = 401
    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "A valid X-API-Key header is required for this request",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(GuidebookError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing records; the service layer converts
    that into this exception so routes stay free of status-code logic.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(GuidebookError):
    """Raised when a create would collide with an existing unique value."""

    status_code = 409
    error_code = "conflict"

    def __init__(
        self,
        message: str = "The resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(GuidebookError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    Response includes:
        - retry_after: Seconds until the oldest request leaves the window
        - Retry-After header for HTTP-compliant clients
    """

    status_code = 429
    error_code = "rate_limit_exceeded"

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class ServiceUnavailableError(GuidebookError):
    """Raised while the service is in maintenance mode."""

    status_code = 503
    error_code = "service_unavailable"

    def __init__(
        self,
        retry_after: int = 300,
        message: str = "The service is down for maintenance. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class DatabaseError(GuidebookError):
    """
    Raised when database operations fail unexpectedly.

    Security Note:
        The message returned to the client is always generic. Details
        (SQL, constraint names) are logged server-side only.
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InternalError(GuidebookError):
    """
    Stands in for any exception no handler claimed.

    Built by RequestIDMiddleware, which still knows the request id when the
    exception surfaces; the original exception is logged, never returned.
    """

    status_code = 500
    error_code = "internal_server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred. Please try again or contact support.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
