"""
FastAPI Dependencies Module

Dependencies are reusable components injected into route handlers.
FastAPI's Depends() function manages their lifecycle.

Provided here:
- DbSession: per-request SQLAlchemy session
- BookId: validated book id from the path
- BookQuery: listing parameters (search, genre, lastId, limit)
- OptionalSessionUser / CurrentSessionUser: the user behind the session cookie
- CsrfProtectedUser: CurrentSessionUser plus a matching X-CSRF-Token header

Dependencies are resolved in the order they appear in a route signature,
so routes list BookId before the session dependencies: a malformed id is
a 400 regardless of who is asking.
"""

from typing import Annotated

from fastapi import Cookie, Depends, Header, Path, Query
from sqlalchemy.orm import Session

from classicnooks.config import get_settings
from classicnooks.database import get_db
from classicnooks.exceptions import ForbiddenError, UnauthenticatedError
from classicnooks.services.security import csrf_tokens_match
from classicnooks.services.sessions import SessionUser, get_session_user
from classicnooks.utils.sanitize import parse_book_id

settings = get_settings()

# =============================================================================
# Type Aliases with Annotated
# =============================================================================
# Instead of writing:
#   def get_books(db: Session = Depends(get_db)):
#
# You can write:
#   def get_books(db: DbSession):

DbSession = Annotated[Session, Depends(get_db)]


# =============================================================================
# Path and Query Parameters
# =============================================================================
# Parameters arrive as raw strings and are validated by the helpers in
# utils/sanitize.py, so every malformed value produces the same
# InvalidArgument body as the service layer.

def get_book_id(
    book_id: str = Path(..., description="Book ID (positive 32-bit integer)"),
) -> int:
    """Validate the {book_id} path segment."""
    return parse_book_id(book_id)


BookId = Annotated[int, Depends(get_book_id)]


class BookQueryParams:
    """
    Query parameters of GET /books.

    Usage:
        GET /api/v1/books?search=austen&genre=romance&lastId=1342&limit=20

    The values are passed to the catalog service unvalidated; it owns
    sanitizing and range checks.
    """

    def __init__(
        self,
        search: str | None = Query(
            default=None,
            description="Matches titles and author names (case-insensitive)",
            examples=["austen"],
        ),
        genre: str | None = Query(
            default=None,
            description="Matches genre names (case-insensitive)",
            examples=["romance"],
        ),
        last_id: str | None = Query(
            default=None,
            alias="lastId",
            description="Last book id received; omit for the first page",
            examples=["1342"],
        ),
        limit: str | None = Query(
            default=None,
            description="Page size, 1-100 (default 100)",
            examples=["20"],
        ),
    ) -> None:
        self.search = search
        self.genre = genre
        self.last_id = last_id
        self.limit = limit


BookQuery = Annotated[BookQueryParams, Depends()]


# =============================================================================
# Session Authentication
# =============================================================================

def get_optional_session_user(
    db: DbSession,
    session_id: str | None = Cookie(default=None, alias=settings.session_cookie_name),
) -> SessionUser | None:
    """
    Resolve the session cookie, if any.

    Returns:
        SessionUser for an active session, None otherwise (no error raised)
    """
    return get_session_user(db, session_id)


def get_current_session_user(
    user: Annotated[SessionUser | None, Depends(get_optional_session_user)],
) -> SessionUser:
    """
    Require an active session.

    Raises:
        UnauthenticatedError: 401 if the cookie is missing, unknown or expired
    """
    if user is None:
        raise UnauthenticatedError()
    return user


def require_csrf(
    user: Annotated[SessionUser, Depends(get_current_session_user)],
    csrf_token: str | None = Header(default=None, alias=settings.csrf_header_name),
) -> SessionUser:
    """
    Require an active session and a matching CSRF header.

    Used by every state-changing endpoint. The session check runs first,
    so a missing session is 401 and a bad token on a valid session is 403.

    Raises:
        UnauthenticatedError: 401 without an active session
        ForbiddenError: 403 if the header is missing or does not match
    """
    if not csrf_tokens_match(csrf_token, user.csrf_token):
        raise ForbiddenError()
    return user


OptionalSessionUser = Annotated[SessionUser | None, Depends(get_optional_session_user)]
CurrentSessionUser = Annotated[SessionUser, Depends(get_current_session_user)]
CsrfProtectedUser = Annotated[SessionUser, Depends(require_csrf)]
