"""
Author Model

Represents an author of catalog books.

SQLAlchemy 2.0 Features Used:
- mapped_column(): Columns with full type support
- Mapped[]: Type hint wrapper for SQLAlchemy columns
- relationship(): Define relationships between models
- back_populates: Two-way relationship binding
"""

from typing import TYPE_CHECKING

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from classicnooks.database import Base

# TYPE_CHECKING is True only during type checking (mypy, IDE)
# This prevents circular imports at runtime while enabling type hints
if TYPE_CHECKING:
    from classicnooks.models.book import Book


class Author(Base):
    """
    Author model representing writers of public-domain books.

    Table: authors

    Relationships:
    - books: Many-to-Many relationship through book_authors table

    Example:
        author = Author(name="Austen, Jane", birth_year=1775)
    """

    __tablename__ = "authors"

    id: Mapped[int] = mapped_column(primary_key=True)

    # Names are stored as ingested ("Last, First" for most catalog records)
    name: Mapped[str] = mapped_column(
        String(255),
        index=True,
        nullable=False,
        comment="Author's full name"
    )

    # Unknown for many historical authors
    birth_year: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Year of birth, negative for BCE"
    )

    books: Mapped[list["Book"]] = relationship(
        "Book",
        secondary="book_authors",
        back_populates="authors",
    )

    def __repr__(self) -> str:
        return f"Author(id={self.id}, name='{self.name}')"
