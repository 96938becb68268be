"""
Session Model

Server-side login sessions referenced by the opaque ``session`` cookie.

Lifecycle:
    Absent → Active → Expired | Revoked

- Active: row exists and expires_at > now
- Expired: row exists but expires_at has passed; read paths treat it as
  absent (queries filter on expires_at), and the owner's expired rows are
  purged on their next login
- Revoked: logout deletes the row
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from classicnooks.database import Base

if TYPE_CHECKING:
    from classicnooks.models.user import User


class UserSession(Base):
    """
    A login session.

    Table: sessions

    The CSRF token is generated with the session and returned to the
    client in JSON bodies only, never in a cookie.
    """

    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="Opaque random session identifier"
    )

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    csrf_token: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Token echoed in the X-CSRF-Token header"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    user: Mapped["User"] = relationship("User", back_populates="sessions")

    def __repr__(self) -> str:
        return f"<UserSession(user_id={self.user_id}, expires_at={self.expires_at})>"
