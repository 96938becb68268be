"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application.

Key Concepts:
=============

1. Application Factory Pattern
   - create_app() function returns configured app
   - Easier to test (can create multiple instances)

2. Lifespan Events
   - startup: connect the Redis cache
   - shutdown: close Redis, dispose the database engine pool

3. Middleware Stack
   - CORS: the web client runs on another origin and sends cookies

4. Exception Handlers
   - LibraryError: ErrorKind → HTTP status, in one place
   - Request validation errors: 400 invalid_argument
   - Rate limit exceeded: 429
   - Database and unexpected errors: generic 500, details only in logs

Error Body:
    {"error": "<kind>", "detail": "<client-safe message>"}
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from classicnooks.config import get_settings
from classicnooks.database import dispose_engine
from classicnooks.exceptions import HTTP_STATUS_BY_KIND, ErrorKind, LibraryError
from classicnooks.routers import auth_router, books_router, users_router
from classicnooks.services.cache import close_redis_connection, get_cache_stats, get_redis_client
from classicnooks.services.rate_limiter import limiter, rate_limit_exceeded_handler

# =============================================================================
# Logging Configuration
# =============================================================================
# Configure logging before creating the app
settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

KIND_BY_HTTP_STATUS = {status: kind for kind, status in HTTP_STATUS_BY_KIND.items()}


def error_response(kind: ErrorKind | str, detail: str, status_code: int) -> JSONResponse:
    """Build the JSON error body shared by every handler."""
    kind_value = kind.value if isinstance(kind, ErrorKind) else kind
    return JSONResponse(
        status_code=status_code,
        content={"error": kind_value, "detail": detail},
    )


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    first = errors[0]
    message = str(first.get("msg", "Invalid request."))
    # pydantic prefixes messages raised from field validators
    message = message.removeprefix("Value error, ")
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"{field}: {message}" if field else message


# =============================================================================
# Lifespan Events
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Code before yield: Runs on startup
    Code after yield: Runs on shutdown

    The database engine is created lazily on the first request; only
    its disposal happens here.
    """
    # ----- STARTUP -----
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"API version: {settings.api_version}")

    redis_client = get_redis_client()
    if redis_client:
        logger.info("Redis caching enabled")
    else:
        logger.warning("Redis unavailable - caching disabled")

    yield  # Application runs here

    # ----- SHUTDOWN -----
    logger.info(f"Shutting down {settings.app_name}...")

    close_redis_connection()
    dispose_engine()


# =============================================================================
# Application Factory
# =============================================================================
def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="""
## Classic Nooks API

Browse, search and read public-domain books.

### Features
- **Books**: keyset-paginated listing, search by title/author, genre filter
- **Reader**: plain text of a book, fetched from an allow-listed mirror
- **Library**: favorites and reading history for logged-in readers

### Authentication
Cookie sessions. `POST /api/v1/auth/login` sets an HTTP-only `session`
cookie and returns a `csrfToken`; send it as `X-CSRF-Token` on every
state-changing request.

### Rate Limiting
Per client IP and route class. Exceeding a limit returns 429.
        """,
        version=settings.api_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # -------------------------------------------------------------------------
    # Rate Limiting
    # -------------------------------------------------------------------------
    # Attach the limiter to the app state so it can be accessed by decorators.
    # Every limited route is decorated, so no SlowAPIMiddleware is needed.
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # -------------------------------------------------------------------------
    # CORS Middleware
    # -------------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        # Session cookie must be sent cross-origin
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Content-Type", settings.csrf_header_name],
    )

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------
    @app.exception_handler(LibraryError)
    async def library_error_handler(
        request: Request,
        exc: LibraryError,
    ) -> JSONResponse:
        """
        Translate an application error into its HTTP response.

        Context is logged for debugging and never returned.
        """
        if exc.kind == ErrorKind.INTERNAL:
            logger.error(f"Internal error on {request.url.path}: {exc.context}")
        else:
            logger.debug(
                f"{exc.kind.value} on {request.url.path}: {exc.message} {exc.context}"
            )
        return error_response(exc.kind, exc.message, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Malformed bodies, paths and queries are a 400, not FastAPI's 422."""
        return error_response(
            ErrorKind.INVALID_ARGUMENT,
            _validation_message(exc),
            HTTP_STATUS_BY_KIND[ErrorKind.INVALID_ARGUMENT],
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        """Unknown routes and methods keep the same error body shape."""
        kind = KIND_BY_HTTP_STATUS.get(exc.status_code, "error")
        return error_response(kind, str(exc.detail), exc.status_code)

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request,
        exc: SQLAlchemyError,
    ) -> JSONResponse:
        """
        Handle SQLAlchemy database errors that escaped the service layer.

        Logs the actual error while hiding details from users.
        """
        logger.error(f"Database error: {exc}", exc_info=True)
        return error_response(
            ErrorKind.INTERNAL,
            "A database error occurred. Please try again later.",
            500,
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """
        Catch-all exception handler.

        Also reached when the rate limiter's storage fails, so a broken
        limiter rejects requests instead of letting them through.
        In debug mode, show more details.
        """
        logger.error(f"Unhandled error: {exc}", exc_info=True)

        detail = str(exc) if settings.debug else "An internal error occurred."
        return error_response(ErrorKind.INTERNAL, detail, 500)

    # -------------------------------------------------------------------------
    # Register Routers
    # -------------------------------------------------------------------------
    # prefix="/api/v1" creates versioned URLs: /api/v1/books, /api/v1/auth/login
    api_prefix = f"/api/{settings.api_version}"

    app.include_router(books_router, prefix=api_prefix)
    app.include_router(auth_router, prefix=api_prefix)
    app.include_router(users_router, prefix=api_prefix)

    # -------------------------------------------------------------------------
    # Health Check Endpoint
    # -------------------------------------------------------------------------
    @app.get(
        "/health",
        tags=["Health"],
        summary="Health check",
        description="Check if the API is running and healthy.",
    )
    def health_check() -> dict:
        """
        Health check endpoint.

        Returns API status including cache connectivity and rate limiting.
        """
        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": settings.api_version,
            "cache": get_cache_stats(),
            "rate_limiting": {
                "enabled": settings.rate_limit_enabled,
                "books": settings.rate_limit_books,
                "auth": settings.rate_limit_auth,
                "auth_me": settings.rate_limit_auth_me,
                "users_me": settings.rate_limit_users_me,
            },
            "captcha": {"enabled": settings.captcha_enabled},
        }

    @app.get(
        "/",
        tags=["Root"],
        summary="API root",
    )
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.api_version,
            "docs": "/docs",
            "health": "/health",
        }

    return app


# =============================================================================
# Application Instance
# =============================================================================
# This is what uvicorn imports: uvicorn classicnooks.main:app

app = create_app()


# =============================================================================
# Development Server
# =============================================================================
# python -m classicnooks.main

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "classicnooks.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
