"""
Users Router

The logged-in user's personal library:
- GET  /users/me/favorites  favorited books, newest first
- GET  /users/me/history    reading history, most recently read first
- POST /users/me/history    record that a book was opened (CSRF)

Listings are not paginated; ``next`` is always null.
All endpoints share the "users_me" rate limit bucket.
"""

from fastapi import APIRouter, Request

from classicnooks.dependencies import CsrfProtectedUser, CurrentSessionUser, DbSession
from classicnooks.schemas import (
    FavoriteListResponse,
    HistoryCreate,
    HistoryListResponse,
    SuccessResponse,
)
from classicnooks.services import library
from classicnooks.services.rate_limiter import users_me_rate_limit

router = APIRouter(
    prefix="/users/me",
    tags=["Users"],
    responses={
        401: {"description": "Not logged in"},
        429: {"description": "Rate limit exceeded"},
    },
)


@router.get(
    "/favorites",
    response_model=FavoriteListResponse,
    summary="List my favorites",
)
@users_me_rate_limit
def get_my_favorites(
    request: Request,
    user: CurrentSessionUser,
    db: DbSession,
) -> FavoriteListResponse:
    """Every book the user has favorited, with ``favorited_at``."""
    return FavoriteListResponse(results=library.list_favorites(db, user.id))


@router.get(
    "/history",
    response_model=HistoryListResponse,
    summary="List my reading history",
)
@users_me_rate_limit
def get_my_history(
    request: Request,
    user: CurrentSessionUser,
    db: DbSession,
) -> HistoryListResponse:
    """Every book the user has opened, with ``read_at``."""
    return HistoryListResponse(results=library.list_history(db, user.id))


@router.post(
    "/history",
    response_model=SuccessResponse,
    summary="Record a read",
    responses={
        403: {"description": "Missing or invalid CSRF token"},
        404: {"description": "Book not found"},
    },
)
@users_me_rate_limit
def add_to_history(
    request: Request,
    entry: HistoryCreate,
    user: CsrfProtectedUser,
    db: DbSession,
) -> SuccessResponse:
    """
    Add a book to the history, or move it to the top if already there.

    Request body: ``{"id": 1342}``
    """
    library.record_history(db, user.id, entry.id)
    return SuccessResponse()
