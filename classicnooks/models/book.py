"""
Book Model

The central model of the catalog, representing public-domain books.

This file also contains the association tables for many-to-many relationships:
- book_authors: Links books to authors
- book_genres: Links books to genres

The catalog is read-only from the API's perspective: rows are created by
an external ingestion process (or scripts/seed_data.py in development).
"""

from typing import TYPE_CHECKING

from sqlalchemy import (
    Column,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from classicnooks.database import Base

if TYPE_CHECKING:
    from classicnooks.models.author import Author
    from classicnooks.models.genre import Genre


# =============================================================================
# Association Tables
# =============================================================================
book_authors = Table(
    "book_authors",
    Base.metadata,
    Column(
        "book_id",
        Integer,
        ForeignKey("books.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "author_id",
        Integer,
        ForeignKey("authors.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    comment="Association table linking books to their authors",
)

book_genres = Table(
    "book_genres",
    Base.metadata,
    Column(
        "book_id",
        Integer,
        ForeignKey("books.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "genre_id",
        Integer,
        ForeignKey("genres.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    comment="Association table linking books to their genres",
)


class Book(Base):
    """
    Book model representing a catalog entry.

    Table: books

    Fields:
    - id: int32 primary key, also the keyset pagination cursor
    - title: Book title (required)
    - cover_url: Cover image URL
    - description: Summary shown on the detail page
    - source_text_url: Plain-text edition fetched by the reader endpoint

    Relationships:
    - authors: Many-to-Many
    - genres: Many-to-Many

    Example:
        book = Book(
            title="Pride and Prejudice",
            cover_url="https://www.gutenberg.org/cache/epub/1342/pg1342.cover.medium.jpg",
            source_text_url="https://www.gutenberg.org/ebooks/1342.txt.utf-8",
        )
    """

    __tablename__ = "books"

    # Listings page over this key in ascending order
    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    title: Mapped[str] = mapped_column(
        String(500),
        index=True,
        nullable=False,
        comment="Book title"
    )

    cover_url: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Cover image URL"
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Book description or summary"
    )

    source_text_url: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="URL of the plain-text edition"
    )

    authors: Mapped[list["Author"]] = relationship(
        "Author",
        secondary=book_authors,
        back_populates="books",
    )

    genres: Mapped[list["Genre"]] = relationship(
        "Genre",
        secondary=book_genres,
        back_populates="books",
    )

    def __repr__(self) -> str:
        return f"Book(id={self.id}, title='{self.title}')"
