"""
Books Router

Catalog endpoints plus the per-book favorite status.

Endpoints:
- GET    /books                       keyset-paginated listing and search
- GET    /books/{id}                  a single book
- GET    /books/{id}/text             the book's plain text, proxied
- GET    /books/{id}/favorite-status  is this book in my favorites?
- POST   /books/{id}/favorite-status  add to favorites (CSRF)
- DELETE /books/{id}/favorite-status  remove from favorites (CSRF)

Every endpoint here shares the "books" rate limit bucket.
"""

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse

from classicnooks.dependencies import (
    BookId,
    BookQuery,
    CsrfProtectedUser,
    CurrentSessionUser,
    DbSession,
)
from classicnooks.schemas import (
    BookListResponse,
    BookResponse,
    FavoriteStatusResponse,
    SuccessResponse,
)
from classicnooks.services import catalog, library, reader
from classicnooks.services.rate_limiter import books_rate_limit

# =============================================================================
# Router Configuration
# =============================================================================

router = APIRouter(
    prefix="/books",
    tags=["Books"],
    responses={
        400: {"description": "Invalid book id or query parameter"},
        404: {"description": "Book not found"},
        429: {"description": "Rate limit exceeded"},
    },
)


# =============================================================================
# Catalog Endpoints
# =============================================================================

@router.get(
    "",
    response_model=BookListResponse,
    summary="List and search books",
    description="Keyset-paginated listing, optionally filtered by title/author and genre.",
)
@books_rate_limit
def list_books(
    request: Request,
    db: DbSession,
    query: BookQuery,
) -> BookListResponse:
    """
    List books in ascending id order.

    Follow ``next`` until it is null to walk every matching book exactly
    once:

        GET /api/v1/books?search=austen&limit=20
        GET /api/v1/books?search=austen&limit=20&lastId=1342
    """
    book_page = catalog.list_books(
        db,
        cursor=query.last_id,
        limit=query.limit,
        search=query.search,
        genre=query.genre,
    )

    next_url = None
    if book_page.next_cursor is not None:
        # Keeps search/genre from the current URL; a full page means
        # len(results) is the validated limit
        next_url = str(
            request.url.include_query_params(
                lastId=book_page.next_cursor,
                limit=len(book_page.results),
            )
        )

    return BookListResponse(
        page=book_page.page,
        total_pages=book_page.total_pages,
        total_count=book_page.total_count,
        books=book_page.total_count,
        next=next_url,
        results=book_page.results,
    )


@router.get(
    "/{book_id}",
    response_model=BookResponse,
    summary="Get a book by ID",
)
@books_rate_limit
def get_book(
    request: Request,
    book_id: BookId,
    db: DbSession,
) -> BookResponse:
    """Get a single book with its authors and genres (cached)."""
    return catalog.get_book(db, book_id)


@router.get(
    "/{book_id}/text",
    response_class=PlainTextResponse,
    summary="Read a book",
    description="Fetch the book's plain-text edition from an allow-listed mirror.",
    responses={
        403: {"description": "Upstream host not allowed"},
        422: {"description": "No usable text URL stored for this book"},
        502: {"description": "Upstream fetch failed"},
    },
)
@books_rate_limit
async def get_book_text(
    request: Request,
    book_id: BookId,
    db: DbSession,
) -> PlainTextResponse:
    """
    Proxy the book's text.

    The URL lookup is a blocking query and runs in the thread pool; only
    the upstream fetch is awaited on the event loop.
    """
    url = await run_in_threadpool(catalog.get_source_text_url, db, book_id)
    text = await reader.fetch_book_text(url)
    return PlainTextResponse(text)


# =============================================================================
# Favorite Status
# =============================================================================

@router.get(
    "/{book_id}/favorite-status",
    response_model=FavoriteStatusResponse,
    summary="Check favorite status",
)
@books_rate_limit
def get_favorite_status(
    request: Request,
    book_id: BookId,
    user: CurrentSessionUser,
    db: DbSession,
) -> FavoriteStatusResponse:
    """Whether the logged-in user has favorited this book."""
    return FavoriteStatusResponse(
        is_favorited=library.is_favorited(db, user.id, book_id)
    )


@router.post(
    "/{book_id}/favorite-status",
    response_model=SuccessResponse,
    summary="Add to favorites",
)
@books_rate_limit
def add_favorite(
    request: Request,
    book_id: BookId,
    user: CsrfProtectedUser,
    db: DbSession,
) -> SuccessResponse:
    """Favorite a book. Favoriting twice is a no-op."""
    library.set_favorite(db, user.id, book_id, want=True)
    return SuccessResponse()


@router.delete(
    "/{book_id}/favorite-status",
    response_model=SuccessResponse,
    summary="Remove from favorites",
)
@books_rate_limit
def remove_favorite(
    request: Request,
    book_id: BookId,
    user: CsrfProtectedUser,
    db: DbSession,
) -> SuccessResponse:
    """Unfavorite a book. Removing a book that is not a favorite is a no-op."""
    library.set_favorite(db, user.id, book_id, want=False)
    return SuccessResponse()
