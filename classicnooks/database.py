"""
Database Configuration Module

This module sets up SQLAlchemy 2.0 with PostgreSQL for the Classic Nooks API.

We use SYNCHRONOUS SQLAlchemy with psycopg2. Async endpoints (the ones that
await outbound HTTP) hand their store work to the thread pool instead.

Engine Lifecycle
================
The engine (and its connection pool) is a process-wide singleton:
1. Created lazily on first use by get_engine()
2. Shared by every request through the get_db dependency
3. Disposed by dispose_engine() from the application lifespan on shutdown

Session Management Pattern
==========================
We use the "session per request" pattern:
1. Request arrives → create a new session
2. Use session for all database operations in that request
3. Services commit on success, roll back on failure
4. Close session when request ends
"""

import logging
from collections.abc import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from classicnooks.config import get_settings

logger = logging.getLogger(__name__)

_engine: Engine | None = None


# =============================================================================
# Database Engine
# =============================================================================
def get_engine() -> Engine:
    """
    Get or create the SQLAlchemy engine.

    Key parameters:
    - pool_size: Number of connections to keep open permanently
    - max_overflow: Extra connections allowed during high load
    - pool_pre_ping: Test connection health before using
    - echo: Log all SQL statements in debug mode

    Returns:
        The process-wide Engine instance
    """
    global _engine

    if _engine is not None:
        return _engine

    settings = get_settings()
    _engine = create_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
        echo=settings.debug,
    )
    logger.info("Database engine created")
    return _engine


def dispose_engine() -> None:
    """Close pooled connections on shutdown."""
    global _engine
    if _engine is not None:
        _engine.dispose()
        _engine = None
        logger.info("Database engine disposed")


# =============================================================================
# Session Factory
# =============================================================================
# Sessions are bound to the engine when created so the engine itself can be
# initialised lazily.
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
)


# =============================================================================
# Base Model Class
# =============================================================================
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Alembic uses Base.metadata to discover tables for migrations.
    """
    pass


# =============================================================================
# Dependency Injection
# =============================================================================
def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI.

    Creates a session bound to the shared engine, yields it to the route
    handler, and closes it when the request ends.

    Usage in Routes:
        @router.get("/books")
        def list_books(db: DbSession):
            ...

    Yields:
        SQLAlchemy Session instance
    """
    db = SessionLocal(bind=get_engine())
    try:
        yield db
    finally:
        db.close()


# =============================================================================
# Utility Functions
# =============================================================================
def create_tables() -> None:
    """
    Create all database tables.

    Development and testing helper; production uses Alembic migrations.
    """
    Base.metadata.create_all(bind=get_engine())
