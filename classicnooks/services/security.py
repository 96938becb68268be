"""
Security Service

Password hashing and session token primitives.

Security Features:
==================
1. Password hashing with Argon2 (memory-hard) through passlib
2. Constant-time password verification
3. Opaque session identifiers and CSRF tokens from the secrets module
4. Constant-time CSRF token comparison

Usage:
    from classicnooks.services.security import hash_password, verify_password

    hashed = hash_password("pemberley1813")
    is_valid = verify_password("pemberley1813", hashed)
"""

import logging
import secrets

from passlib.context import CryptContext
from passlib.exc import UnknownHashError

logger = logging.getLogger(__name__)

# -------------------------------------------------------------------------
# Password Hashing Configuration
# -------------------------------------------------------------------------
# argon2 needs the argon2-cffi backend; deprecated="auto" rehashes old
# schemes if more are ever added to the list.
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

SESSION_TOKEN_BYTES = 32
CSRF_TOKEN_BYTES = 32


def hash_password(password: str) -> str:
    """
    Hash a plain text password using Argon2.

    Example:
        >>> hash_password("pemberley1813").startswith("$argon2")
        True
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a stored hash.

    A malformed stored hash counts as a mismatch.

    Args:
        plain_password: The password to verify
        hashed_password: The stored Argon2 hash

    Returns:
        True if password matches, False otherwise
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (UnknownHashError, ValueError):
        logger.warning("Stored password hash could not be parsed")
        return False


def generate_session_id() -> str:
    """Random URL-safe session identifier for the session cookie."""
    return secrets.token_urlsafe(SESSION_TOKEN_BYTES)


def generate_csrf_token() -> str:
    """Random URL-safe CSRF token."""
    return secrets.token_urlsafe(CSRF_TOKEN_BYTES)


def csrf_tokens_match(supplied: str | None, expected: str | None) -> bool:
    """Constant-time comparison; a missing token never matches."""
    if not supplied or not expected:
        return False
    return secrets.compare_digest(supplied.encode(), expected.encode())
