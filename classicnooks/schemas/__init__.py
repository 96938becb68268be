"""
Pydantic Schemas Package

Pydantic models for request validation and response serialization, kept
separate from the SQLAlchemy models so the API controls exactly what is
exposed (password hashes and session ids never appear in a body).

Schema Naming Convention:
- XxxRequest / XxxCreate: Validated request bodies
- XxxResponse: Fields returned in API responses
"""

from classicnooks.schemas.book import (
    AuthorResponse,
    BookListResponse,
    BookPage,
    BookResponse,
)
from classicnooks.schemas.library import (
    FavoriteBookResponse,
    FavoriteListResponse,
    FavoriteStatusResponse,
    HistoryBookResponse,
    HistoryCreate,
    HistoryListResponse,
    SuccessResponse,
)
from classicnooks.schemas.user import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    MessageResponse,
    RegisterRequest,
    SessionUserResponse,
)

__all__ = [
    # Book schemas
    "AuthorResponse",
    "BookResponse",
    "BookPage",
    "BookListResponse",
    # Library schemas
    "FavoriteBookResponse",
    "FavoriteListResponse",
    "FavoriteStatusResponse",
    "HistoryBookResponse",
    "HistoryCreate",
    "HistoryListResponse",
    "SuccessResponse",
    # User / session schemas
    "LoginRequest",
    "LoginResponse",
    "MeResponse",
    "MessageResponse",
    "RegisterRequest",
    "SessionUserResponse",
]
