"""
Rate Limiting Service

Implements rate limiting using slowapi to protect the API from abuse.

Key Features:
=============
1. Client key from the first X-Forwarded-For entry (loopback when absent)
2. Sliding-window counters ("moving-window" strategy)
3. Redis storage shared by every API instance
4. Limits per route class, each with a burst and a daily window
5. Fails closed: storage errors are not swallowed, so a broken limiter
   produces a 500 instead of letting traffic through unchecked

Route Classes:
==============
- books: every /books endpoint shares one bucket per client
- auth: login, register and logout, one bucket per endpoint
- auth_me: the session lookup endpoint
- users_me: every /users/me endpoint shares one bucket per client
"""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from starlette.responses import JSONResponse

from classicnooks.config import get_settings
from classicnooks.exceptions import RateLimitedError

logger = logging.getLogger(__name__)
settings = get_settings()

LOOPBACK = "127.0.0.1"


def get_client_ip(request: Request) -> str:
    """
    Get client IP address for rate limiting.

    The deployment sits behind a proxy that sets X-Forwarded-For; the first
    entry is the client. Requests without the header share the loopback key.

    Args:
        request: FastAPI request object

    Returns:
        Client IP address string
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        client = forwarded_for.split(",")[0].strip()
        if client:
            return client
    return LOOPBACK


def create_limiter() -> Limiter:
    """
    Create and configure the rate limiter.

    Uses Redis as storage backend when rate limiting is enabled so
    counters are shared across API instances.

    Returns:
        Configured Limiter instance
    """
    storage_uri = settings.redis_url if settings.rate_limit_enabled else None

    limiter = Limiter(
        key_func=get_client_ip,
        storage_uri=storage_uri,
        strategy="moving-window",
        enabled=settings.rate_limit_enabled,
        swallow_errors=False,
    )

    logger.info(
        f"Rate limiter initialized - enabled: {settings.rate_limit_enabled}, "
        f"books: {settings.rate_limit_books}, auth: {settings.rate_limit_auth}"
    )

    return limiter


limiter = create_limiter()

# Shared buckets: every route decorated with the same scope counts together
books_rate_limit = limiter.shared_limit(settings.rate_limit_books, scope="books")
users_me_rate_limit = limiter.shared_limit(settings.rate_limit_users_me, scope="users_me")


def retry_after_seconds(exc: RateLimitExceeded) -> int:
    """
    Length of the window that was exhausted.

    Under the moving-window strategy the oldest counted hit expires within
    one window, so this is an upper bound on the wait.
    """
    return exc.limit.limit.get_expiry()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Custom handler for rate limit exceeded errors.

    Returns:
        429 JSONResponse with Retry-After set to the exhausted window
    """
    limit_detail = str(exc.detail)
    error = RateLimitedError(context={"limit": limit_detail})

    response = JSONResponse(
        status_code=error.status_code,
        content={"error": error.kind.value, "detail": error.message},
    )
    response.headers["Retry-After"] = str(retry_after_seconds(exc))
    response.headers["X-RateLimit-Limit"] = limit_detail

    logger.warning(
        f"Rate limit exceeded for {get_client_ip(request)} on "
        f"{request.url.path}: {limit_detail}"
    )

    return response
