"""
Catalog Service

Read-only queries over the book catalog:

- list_books: filtered, keyset-paginated listing
- get_book: a single book with authors and genres
- get_source_text_url: the plain-text edition URL used by the reader

Keyset Pagination:
==================
A page is every matching book with ``id > cursor``, ordered by id and
limited to ``limit``. The client passes the last id it received as the
next cursor, so deep pages cost the same as the first one and new rows
never shift a page the client is already on.

``next_cursor`` is set only when the page is full. A short page is the
end of the results; there is no separate "has more" query.

``page`` and ``total_pages`` are display aids derived from counts over
the same predicate. They may be stale if the catalog changes between the
two queries.
"""

import logging
import math

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from classicnooks.config import get_settings
from classicnooks.exceptions import InternalError, NotFoundError, UnprocessableError
from classicnooks.models import Author, Book, Genre
from classicnooks.schemas.book import BookPage, BookResponse
from classicnooks.services.cache import cache_get, cache_set, make_cache_key
from classicnooks.utils.sanitize import (
    LIKE_ESCAPE,
    like_pattern,
    parse_book_id,
    parse_cursor,
    parse_limit,
    sanitize_input,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 100


# =============================================================================
# Filters
# =============================================================================

def build_book_filters(search: str, genre: str) -> list:
    """
    Build WHERE clauses for already-sanitized search and genre values.

    - search: title OR any author name contains the text
    - genre: any genre name contains the text

    Both are case-insensitive substring matches and are ANDed together.
    An empty string adds no clause.

    Args:
        search: Output of sanitize_input()
        genre: Output of sanitize_input()

    Returns:
        List of SQLAlchemy boolean clauses
    """
    clauses = []

    if search:
        pattern = like_pattern(search)
        author_book_ids = (
            select(Book.id)
            .join(Book.authors)
            .where(func.lower(Author.name).like(pattern, escape=LIKE_ESCAPE))
        )
        clauses.append(
            or_(
                func.lower(Book.title).like(pattern, escape=LIKE_ESCAPE),
                Book.id.in_(author_book_ids),
            )
        )

    if genre:
        pattern = like_pattern(genre)
        genre_book_ids = (
            select(Book.id)
            .join(Book.genres)
            .where(func.lower(Genre.name).like(pattern, escape=LIKE_ESCAPE))
        )
        clauses.append(Book.id.in_(genre_book_ids))

    return clauses


# =============================================================================
# Listing
# =============================================================================

def list_books(
    db: Session,
    cursor=None,
    limit=None,
    search: str | None = None,
    genre: str | None = None,
) -> BookPage:
    """
    Return one keyset page of books matching the filters.

    Args:
        db: Database session
        cursor: Last book id the client received (None/"" = from the start)
        limit: Page size, 1..100 (None/"" = 100)
        search: Free text matched against titles and author names
        genre: Free text matched against genre names

    Returns:
        BookPage with results, next_cursor, page, total_pages, total_count

    Raises:
        InvalidArgumentError: Bad cursor or limit (no query is run)
        InternalError: The store failed
    """
    cursor = parse_cursor(cursor)
    limit = parse_limit(limit, default=DEFAULT_PAGE_SIZE, maximum=MAX_PAGE_SIZE)
    search = sanitize_input(search)
    genre = sanitize_input(genre)

    cache_key = make_cache_key(
        "books", cursor=cursor, limit=limit, search=search, genre=genre
    )
    cached = cache_get(cache_key)
    if cached is not None:
        return BookPage.model_validate(cached)

    filters = build_book_filters(search, genre)

    try:
        total_count = db.execute(
            select(func.count(Book.id)).where(*filters)
        ).scalar() or 0

        seen_count = 0
        if cursor > 0:
            seen_count = db.execute(
                select(func.count(Book.id)).where(Book.id <= cursor, *filters)
            ).scalar() or 0

        stmt = (
            select(Book)
            .options(selectinload(Book.authors), selectinload(Book.genres))
            .where(Book.id > cursor, *filters)
            .order_by(Book.id)
            .limit(limit)
        )
        books = db.execute(stmt).scalars().all()
    except SQLAlchemyError as e:
        logger.error(f"Book listing query failed: {e}", exc_info=True)
        raise InternalError(context={"cursor": cursor, "limit": limit}) from e

    results = [BookResponse.model_validate(book) for book in books]
    next_cursor = results[-1].id if len(results) == limit else None

    book_page = BookPage(
        results=results,
        next_cursor=next_cursor,
        page=seen_count // limit + 1,
        total_pages=math.ceil(total_count / limit),
        total_count=total_count,
    )

    cache_set(cache_key, book_page.model_dump(mode="json"), ttl=get_settings().cache_ttl_book_list)

    return book_page


# =============================================================================
# Single Book
# =============================================================================

def _load_book(db: Session, book_id: int) -> Book | None:
    # One joined query; unique() collapses the row fan-out from two collections
    stmt = (
        select(Book)
        .options(joinedload(Book.authors), joinedload(Book.genres))
        .where(Book.id == book_id)
    )
    try:
        return db.execute(stmt).unique().scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.error(f"Failed to load book {book_id}: {e}", exc_info=True)
        raise InternalError(context={"book_id": book_id}) from e


def get_book(db: Session, book_id) -> BookResponse:
    """
    Fetch a single book by id, through the cache.

    Raises:
        InvalidArgumentError: Not a positive int32
        NotFoundError: No such book
        InternalError: The store failed
    """
    book_id = parse_book_id(book_id)

    cache_key = make_cache_key("book", book_id)
    cached = cache_get(cache_key)
    if cached is not None:
        return BookResponse.model_validate(cached)

    book = _load_book(db, book_id)
    if book is None:
        raise NotFoundError("book", book_id)

    response = BookResponse.model_validate(book)
    cache_set(cache_key, response.model_dump(mode="json"), ttl=get_settings().cache_ttl_book)

    return response


def get_source_text_url(db: Session, book_id) -> str:
    """
    Return the stored plain-text URL of a book.

    Raises:
        InvalidArgumentError: Not a positive int32
        NotFoundError: No such book
        UnprocessableError: The book has no text URL
    """
    book_id = parse_book_id(book_id)

    try:
        row = db.execute(
            select(Book.id, Book.source_text_url).where(Book.id == book_id)
        ).first()
    except SQLAlchemyError as e:
        logger.error(f"Failed to load text URL for book {book_id}: {e}", exc_info=True)
        raise InternalError(context={"book_id": book_id}) from e

    if row is None:
        raise NotFoundError("book", book_id)
    if not row.source_text_url:
        raise UnprocessableError("No text URL is available for this book.")

    return row.source_text_url
