"""
Personal Library Pydantic Schemas

Favorites and reading-history payloads. Listings are unbounded and always
report ``next: null``.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from classicnooks.schemas.book import BookResponse
from classicnooks.utils.sanitize import INT32_MAX


class HistoryCreate(BaseModel):
    """Body of POST /users/me/history."""

    id: int = Field(..., ge=1, le=INT32_MAX, description="Book ID")

    model_config = ConfigDict(extra="forbid")


class FavoriteBookResponse(BookResponse):
    """A favorited book with the time it was favorited."""

    favorited_at: datetime


class HistoryBookResponse(BookResponse):
    """A book from the reading history with the last read time."""

    read_at: datetime


class FavoriteListResponse(BaseModel):
    """GET /users/me/favorites."""

    results: list[FavoriteBookResponse]
    next: None = None


class HistoryListResponse(BaseModel):
    """GET /users/me/history."""

    results: list[HistoryBookResponse]
    next: None = None


class FavoriteStatusResponse(BaseModel):
    """Whether the current user has favorited a book."""

    is_favorited: bool = Field(..., alias="isFavorited")

    model_config = ConfigDict(populate_by_name=True)


class SuccessResponse(BaseModel):
    """Acknowledgement for idempotent library writes."""

    success: bool = True
