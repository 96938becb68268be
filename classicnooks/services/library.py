"""
Personal Library Service

Favorites and reading history for a logged-in user.

Both tables hold one row per (user, book). Writes use the database's
native upsert, so repeating a request never creates a duplicate and
never needs a read-modify-write:

- favorite on:  INSERT ... ON CONFLICT DO NOTHING
- favorite off: DELETE (no-op when absent)
- history:      INSERT ... ON CONFLICT DO UPDATE SET created_at = now

PostgreSQL and SQLite share the same ``on_conflict_*`` API in SQLAlchemy;
the insert construct is picked from the session's dialect.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from classicnooks.exceptions import InternalError, NotFoundError
from classicnooks.models import Book, Favorite, HistoryEntry
from classicnooks.schemas.book import BookResponse
from classicnooks.schemas.library import FavoriteBookResponse, HistoryBookResponse

logger = logging.getLogger(__name__)

CONFLICT_COLUMNS = ["user_id", "book_id"]


def _dialect_insert(db: Session, table):
    """Return the dialect-specific insert() that supports ON CONFLICT."""
    if db.get_bind().dialect.name == "postgresql":
        return postgresql.insert(table)
    return sqlite.insert(table)


def _ensure_book_exists(db: Session, book_id: int) -> None:
    if db.execute(select(Book.id).where(Book.id == book_id)).first() is None:
        raise NotFoundError("book", book_id)


def _run_write(db: Session, stmt, book_id: int, action: str) -> None:
    try:
        db.execute(stmt)
        db.commit()
    except IntegrityError as e:
        # FK violation: the book was removed between the check and the write
        db.rollback()
        raise NotFoundError("book", book_id) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to {action} for book {book_id}: {e}", exc_info=True)
        raise InternalError(context={"book_id": book_id}) from e


# =============================================================================
# Favorites
# =============================================================================

def set_favorite(db: Session, user_id: int, book_id: int, want: bool) -> None:
    """
    Favorite or unfavorite a book. Idempotent in both directions.

    Raises:
        NotFoundError: Favoriting a book that does not exist
        InternalError: The store failed
    """
    if not want:
        stmt = delete(Favorite).where(
            Favorite.user_id == user_id,
            Favorite.book_id == book_id,
        )
        _run_write(db, stmt, book_id, "remove favorite")
        return

    try:
        _ensure_book_exists(db, book_id)
    except SQLAlchemyError as e:
        logger.error(f"Book lookup failed for {book_id}: {e}", exc_info=True)
        raise InternalError(context={"book_id": book_id}) from e

    stmt = (
        _dialect_insert(db, Favorite)
        .values(user_id=user_id, book_id=book_id, created_at=datetime.now(UTC))
        .on_conflict_do_nothing(index_elements=CONFLICT_COLUMNS)
    )
    _run_write(db, stmt, book_id, "add favorite")


def is_favorited(db: Session, user_id: int, book_id: int) -> bool:
    """Check whether the user has favorited the book."""
    try:
        row = db.execute(
            select(Favorite.id).where(
                Favorite.user_id == user_id,
                Favorite.book_id == book_id,
            )
        ).first()
    except SQLAlchemyError as e:
        logger.error(f"Favorite lookup failed: {e}", exc_info=True)
        raise InternalError(context={"book_id": book_id}) from e

    return row is not None


def list_favorites(db: Session, user_id: int) -> list[FavoriteBookResponse]:
    """
    All favorited books, most recently favorited first.

    Unbounded: a user's favorites are expected to stay small.
    """
    stmt = (
        select(Book, Favorite.created_at)
        .join(Favorite, Favorite.book_id == Book.id)
        .options(selectinload(Book.authors), selectinload(Book.genres))
        .where(Favorite.user_id == user_id)
        .order_by(Favorite.created_at.desc(), Favorite.id.desc())
    )

    try:
        rows = db.execute(stmt).all()
    except SQLAlchemyError as e:
        logger.error(f"Favorites listing failed for user {user_id}: {e}", exc_info=True)
        raise InternalError() from e

    return [
        FavoriteBookResponse(
            **BookResponse.model_validate(book).model_dump(),
            favorited_at=favorited_at,
        )
        for book, favorited_at in rows
    ]


# =============================================================================
# Reading History
# =============================================================================

def record_history(db: Session, user_id: int, book_id: int) -> None:
    """
    Record that the user opened a book, refreshing the timestamp if the
    book is already in their history.

    Raises:
        NotFoundError: The book does not exist
        InternalError: The store failed
    """
    try:
        _ensure_book_exists(db, book_id)
    except SQLAlchemyError as e:
        logger.error(f"Book lookup failed for {book_id}: {e}", exc_info=True)
        raise InternalError(context={"book_id": book_id}) from e

    now = datetime.now(UTC)
    stmt = (
        _dialect_insert(db, HistoryEntry)
        .values(user_id=user_id, book_id=book_id, created_at=now)
        .on_conflict_do_update(
            index_elements=CONFLICT_COLUMNS,
            set_={"created_at": now},
        )
    )
    _run_write(db, stmt, book_id, "record history")


def list_history(db: Session, user_id: int) -> list[HistoryBookResponse]:
    """All books in the user's history, most recently read first."""
    stmt = (
        select(Book, HistoryEntry.created_at)
        .join(HistoryEntry, HistoryEntry.book_id == Book.id)
        .options(selectinload(Book.authors), selectinload(Book.genres))
        .where(HistoryEntry.user_id == user_id)
        .order_by(HistoryEntry.created_at.desc(), HistoryEntry.id.desc())
    )

    try:
        rows = db.execute(stmt).all()
    except SQLAlchemyError as e:
        logger.error(f"History listing failed for user {user_id}: {e}", exc_info=True)
        raise InternalError() from e

    return [
        HistoryBookResponse(
            **BookResponse.model_validate(book).model_dump(),
            read_at=read_at,
        )
        for book, read_at in rows
    ]
