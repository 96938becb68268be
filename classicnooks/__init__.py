"""
Classic Nooks API Package

Backend for the Classic Nooks reading application: browse, search and
favorite public-domain books, keep a reading history, and read a book's
plain text fetched from an allow-listed upstream host.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy engine, session factory and declarative base
- exceptions.py: Error taxonomy translated to HTTP statuses in main.py
- main.py: FastAPI application factory and configuration
- dependencies.py: Dependency injection functions (db, session, CSRF)
- models/: SQLAlchemy ORM models
- schemas/: Pydantic request/response schemas
- routers/: API route handlers
- services/: Business logic (catalog, sessions, library, caching, rate limiting)
- utils/: Input sanitizing and identifier validation helpers
"""

__version__ = "0.1.0"
