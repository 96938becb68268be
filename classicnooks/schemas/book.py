"""
Book Pydantic Schemas

Response shapes for catalog endpoints:
- AuthorResponse: nested author data
- BookResponse: a single book with authors and genre names
- BookPage: the service-level result of a keyset-paginated listing
- BookListResponse: the HTTP shape of a listing

authors and genres are always lists: ORM relationships, cached JSON and
NULL aggregates are all normalized to arrays before a book leaves the API.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AuthorResponse(BaseModel):
    """Author as embedded in a book."""

    name: str = Field(..., description="Author name", examples=["Austen, Jane"])
    birth_year: int | None = Field(
        default=None,
        description="Year of birth, if known",
        examples=[1775],
    )

    model_config = ConfigDict(from_attributes=True)


class BookResponse(BaseModel):
    """
    Schema for book responses.

    Genres are returned as plain names; authors as name/birth_year pairs.
    """

    id: int = Field(..., description="Unique identifier")
    title: str = Field(..., description="Book title")
    cover_url: str | None = Field(default=None, description="Cover image URL")
    description: str | None = Field(default=None, description="Book summary")
    source_text_url: str | None = Field(
        default=None,
        description="URL of the plain-text edition",
    )

    authors: list[AuthorResponse] = Field(
        default_factory=list,
        description="List of authors",
    )

    genres: list[str] = Field(
        default_factory=list,
        description="List of genre names",
    )

    @field_validator("authors", mode="before")
    @classmethod
    def authors_never_null(cls, v: Any) -> Any:
        """Treat a missing author aggregate as an empty list."""
        return [] if v is None else v

    @field_validator("genres", mode="before")
    @classmethod
    def genres_as_names(cls, v: Any) -> list[str]:
        """
        Accept Genre ORM objects or plain strings.

        Returns:
            Genre names in their stored order, None dropped
        """
        if v is None:
            return []
        names = []
        for genre in v:
            name = genre if isinstance(genre, str) else getattr(genre, "name", None)
            if name is not None:
                names.append(name)
        return names

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1342,
                "title": "Pride and Prejudice",
                "cover_url": "https://www.gutenberg.org/cache/epub/1342/pg1342.cover.medium.jpg",
                "description": "A novel of manners...",
                "source_text_url": "https://www.gutenberg.org/ebooks/1342.txt.utf-8",
                "authors": [{"name": "Austen, Jane", "birth_year": 1775}],
                "genres": ["Romance", "Satire"],
            }
        },
    )


class BookPage(BaseModel):
    """
    One page of a keyset-paginated listing.

    next_cursor is the id of the last returned book when the page is full,
    otherwise None. This is the form stored in the response cache; the
    router turns next_cursor into a URL.
    """

    results: list[BookResponse]
    next_cursor: int | None = None
    page: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)
    total_count: int = Field(..., ge=0)


class BookListResponse(BaseModel):
    """
    Schema for paginated book list responses.

    Traversal is cursor-only: follow ``next`` until it is null. ``page`` and
    ``totalPages`` are display aids. ``books`` repeats ``totalCount`` for
    older clients.
    """

    page: int = Field(..., ge=1, description="Display page number")
    total_pages: int = Field(
        ...,
        ge=0,
        alias="totalPages",
        description="Total number of pages for this filter",
    )
    total_count: int = Field(
        ...,
        ge=0,
        alias="totalCount",
        description="Number of books matching the filter",
    )
    books: int = Field(..., ge=0, description="Same as totalCount")
    next: str | None = Field(
        default=None,
        description="URL of the next page, null at the end of results",
    )
    results: list[BookResponse] = Field(..., description="Books on this page")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "page": 1,
                "totalPages": 3,
                "totalCount": 250,
                "books": 250,
                "next": "/api/v1/books?lastId=100&limit=100",
                "results": [],
            }
        },
    )
