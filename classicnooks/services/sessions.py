"""
Session Authentication Service

Username/password accounts with server-side sessions.

Flow:
=====
1. register(): validate, hash the password (Argon2), insert the user
2. login(): verify credentials, purge the user's expired sessions, open
   a new session with a random id and CSRF token
3. The router puts the session id in an HTTP-only cookie and returns the
   CSRF token in the body
4. get_session_user(): resolve the cookie to a user while the session
   has not expired
5. logout(): delete the session row

CAPTCHA verification happens in the router before these functions run,
since it is the only awaitable step.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from classicnooks.config import get_settings
from classicnooks.exceptions import ConflictError, InternalError, UnauthenticatedError
from classicnooks.models import User, UserSession
from classicnooks.services.security import (
    generate_csrf_token,
    generate_session_id,
    hash_password,
    pwd_context,
    verify_password,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"


@dataclass(frozen=True)
class NewSession:
    """Credentials handed to the client after a successful login."""

    session_id: str
    csrf_token: str
    expires_at: datetime


@dataclass(frozen=True)
class SessionUser:
    """The user behind an active session."""

    id: int
    username: str
    created_at: datetime | None
    session_id: str
    csrf_token: str


def normalize_username(username: str) -> str:
    """Usernames are case-insensitive and stored lowercase."""
    return username.strip().lower()


# =============================================================================
# Registration
# =============================================================================

def register(db: Session, username: str, password: str) -> User:
    """
    Create a new account.

    Length and charset rules are enforced by RegisterRequest; this function
    owns uniqueness. Two concurrent registrations can both pass the lookup,
    so the unique constraint violation from the insert is reported the
    same way as the lookup hit.

    Raises:
        ConflictError: Username already taken
        InternalError: The store failed
    """
    username = normalize_username(username)

    try:
        existing = db.execute(
            select(User.id).where(User.username == username)
        ).scalar_one_or_none()
        if existing is not None:
            raise ConflictError("Username already taken")

        user = User(username=username, password_hash=hash_password(password))
        db.add(user)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.info(f"Registration race lost for username {username}")
        raise ConflictError("Username already taken") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Registration failed: {e}", exc_info=True)
        raise InternalError() from e

    db.refresh(user)
    logger.info(f"Registered user {user.id}")
    return user


# =============================================================================
# Login / Logout
# =============================================================================

def login(db: Session, username: str, password: str) -> NewSession:
    """
    Verify credentials and open a session.

    Unknown usernames and wrong passwords fail with the same message, and
    an unknown username still pays for one hash verification.

    Returns:
        NewSession with the cookie value and the CSRF token

    Raises:
        UnauthenticatedError: Bad credentials
        InternalError: The store failed
    """
    username = normalize_username(username)
    settings = get_settings()

    try:
        user = db.execute(
            select(User).where(User.username == username)
        ).scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.error(f"User lookup failed: {e}", exc_info=True)
        raise InternalError() from e

    if user is None:
        pwd_context.dummy_verify()
        logger.warning("Login rejected: unknown username")
        raise UnauthenticatedError(INVALID_CREDENTIALS)

    if not verify_password(password, user.password_hash):
        logger.warning(f"Login rejected: wrong password for user {user.id}")
        raise UnauthenticatedError(INVALID_CREDENTIALS)

    now = datetime.now(UTC)
    session = UserSession(
        id=generate_session_id(),
        user_id=user.id,
        csrf_token=generate_csrf_token(),
        created_at=now,
        expires_at=now + timedelta(hours=settings.session_ttl_hours),
    )
    new_session = NewSession(
        session_id=session.id,
        csrf_token=session.csrf_token,
        expires_at=session.expires_at,
    )

    try:
        db.execute(
            delete(UserSession).where(
                UserSession.user_id == user.id,
                UserSession.expires_at < now,
            )
        )
        db.add(session)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Session creation failed: {e}", exc_info=True)
        raise InternalError() from e

    logger.info(f"User {user.id} logged in")
    return new_session


def logout(db: Session, session_id: str) -> None:
    """Delete a session. Deleting an absent session is a no-op."""
    try:
        db.execute(delete(UserSession).where(UserSession.id == session_id))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Session deletion failed: {e}", exc_info=True)
        raise InternalError() from e


# =============================================================================
# Session Lookup
# =============================================================================

def get_session_user(db: Session, session_id: str | None) -> SessionUser | None:
    """
    Resolve a session cookie to its user.

    Returns:
        SessionUser, or None if the cookie is missing, unknown or expired

    Raises:
        InternalError: The store failed
    """
    if not session_id:
        return None

    stmt = (
        select(
            User.id,
            User.username,
            User.created_at,
            UserSession.id.label("session_id"),
            UserSession.csrf_token,
        )
        .join(UserSession, UserSession.user_id == User.id)
        .where(
            UserSession.id == session_id,
            UserSession.expires_at > datetime.now(UTC),
        )
    )

    try:
        row = db.execute(stmt).first()
    except SQLAlchemyError as e:
        logger.error(f"Session lookup failed: {e}", exc_info=True)
        raise InternalError() from e

    if row is None:
        return None

    return SessionUser(
        id=row.id,
        username=row.username,
        created_at=row.created_at,
        session_id=row.session_id,
        csrf_token=row.csrf_token,
    )
