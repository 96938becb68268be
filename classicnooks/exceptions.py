"""
Classic Nooks Error Taxonomy

Every failure the API reports to a client is raised as a LibraryError
subclass carrying an ErrorKind. Services and the data-access layer raise
them; main.py registers one exception handler that turns the kind into an
HTTP status, so the kind → status mapping lives in exactly one place.

Exception Hierarchy:
    LibraryError (base)
    ├── InvalidArgumentError      → 400 Bad Request
    ├── UnauthenticatedError      → 401 Unauthorized
    ├── ForbiddenError            → 403 Forbidden
    ├── NotFoundError             → 404 Not Found
    ├── ConflictError             → 409 Conflict
    ├── UnprocessableError        → 422 Unprocessable Entity
    ├── RateLimitedError          → 429 Too Many Requests
    ├── UpstreamUnavailableError  → 502 Bad Gateway
    └── InternalError             → 500 Internal Server Error

The message of an InternalError is always generic; the underlying
exception is logged server-side and chained with ``raise ... from``.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Client-visible error categories."""

    INVALID_ARGUMENT = "invalid_argument"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNPROCESSABLE = "unprocessable"
    RATE_LIMITED = "rate_limited"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    INTERNAL = "internal"


HTTP_STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.INVALID_ARGUMENT: 400,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.UNPROCESSABLE: 422,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.UPSTREAM_UNAVAILABLE: 502,
    ErrorKind.INTERNAL: 500,
}


class LibraryError(Exception):
    """
    Base exception for all Classic Nooks application errors.

    Attributes:
        message: Client-safe description (returned in the response body)
        context: Debug information (logged, never returned to the client)
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str = "An internal error occurred.",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        """HTTP status for this error's kind."""
        return HTTP_STATUS_BY_KIND[self.kind]


class InvalidArgumentError(LibraryError):
    """Malformed or out-of-range input; no side effect was attempted."""

    kind = ErrorKind.INVALID_ARGUMENT

    def __init__(
        self,
        message: str = "Invalid request.",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class UnauthenticatedError(LibraryError):
    """Missing, expired or invalid session, or bad credentials."""

    kind = ErrorKind.UNAUTHENTICATED

    def __init__(self, message: str = "User not authenticated", context=None):
        super().__init__(message=message, context=context)


class ForbiddenError(LibraryError):
    """CSRF token mismatch or a disallowed upstream host."""

    kind = ErrorKind.FORBIDDEN

    def __init__(self, message: str = "User not authorized", context=None):
        super().__init__(message=message, context=context)


class NotFoundError(LibraryError):
    """A requested resource does not exist."""

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource.capitalize()}#{resource_id} could not be found."
        ctx = context or {}
        ctx["resource"] = resource
        super().__init__(message=message, context=ctx)


class ConflictError(LibraryError):
    """Uniqueness violation, e.g. a username that is already taken."""

    kind = ErrorKind.CONFLICT

    def __init__(self, message: str = "Resource already exists", context=None):
        super().__init__(message=message, context=context)


class UnprocessableError(LibraryError):
    """Stored data cannot serve the request (e.g. no text URL for a book)."""

    kind = ErrorKind.UNPROCESSABLE

    def __init__(self, message: str = "Request cannot be processed", context=None):
        super().__init__(message=message, context=context)


class RateLimitedError(LibraryError):
    """
    Client exceeded a rate limit window.

    slowapi raises its own RateLimitExceeded; the 429 handler in
    services/rate_limiter.py renders it through this class.
    """

    kind = ErrorKind.RATE_LIMITED

    def __init__(self, message: str = "Too many requests", context=None):
        super().__init__(message=message, context=context)


class UpstreamUnavailableError(LibraryError):
    """An upstream fetch failed, timed out, or returned an error status."""

    kind = ErrorKind.UPSTREAM_UNAVAILABLE

    def __init__(self, message: str = "Upstream fetch error.", context=None):
        super().__init__(message=message, context=context)


class InternalError(LibraryError):
    """Store, cache or unexpected failure. The message stays generic."""

    kind = ErrorKind.INTERNAL
