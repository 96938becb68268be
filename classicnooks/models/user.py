"""
User Model

Represents a registered reader. Usernames are stored lowercase and carry
a unique constraint; the constraint is what ultimately decides concurrent
registrations of the same name.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from classicnooks.database import Base

if TYPE_CHECKING:
    from classicnooks.models.session import UserSession


class User(Base):
    """
    User model.

    Table: users

    Relationships:
    - sessions: One-to-Many, deleted with the user

    Example:
        user = User(
            username="austenfan",
            password_hash=hash_password("pemberley1813"),
        )
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)

    username: Mapped[str] = mapped_column(
        String(30),
        unique=True,
        index=True,
        nullable=False,
        comment="Lowercase alphanumeric username"
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Argon2 password hash"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    sessions: Mapped[list["UserSession"]] = relationship(
        "UserSession",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"User(id={self.id}, username='{self.username}')"
