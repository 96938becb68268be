"""
Personal Library Models

Join tables between users and catalog books:
- Favorite: books a user has favorited
- HistoryEntry: books a user has opened, one row per book; created_at is
  refreshed on every visit so it orders "most recently read"

Business Rules:
- One row per (user, book) in each table (unique constraint)
- Writes go through native upserts, see services/library.py
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from classicnooks.database import Base


class Favorite(Base):
    """A favorited book."""

    __tablename__ = "user_favorites"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    book_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "book_id", name="uq_favorite_user_book"),
    )

    def __repr__(self) -> str:
        return f"<Favorite(user_id={self.user_id}, book_id={self.book_id})>"


class HistoryEntry(Base):
    """A book in the user's reading history."""

    __tablename__ = "user_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    book_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Last time the user opened the book
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "book_id", name="uq_history_user_book"),
    )

    def __repr__(self) -> str:
        return f"<HistoryEntry(user_id={self.user_id}, book_id={self.book_id})>"
