"""
Input Sanitizing Helpers

Search and genre filters are matched with SQL LIKE, where ``%`` and ``_``
are wildcards. sanitize_input() escapes them (and the escape character
itself) so user text always matches literally:

    >>> sanitize_input("  50% OFF_deal ")
    '50\\\\% off\\\\_deal'

Queries must pair the escaped value with ``escape=LIKE_ESCAPE``.
"""

import re
from typing import Any

from classicnooks.exceptions import InvalidArgumentError

MAX_INPUT_LENGTH = 100
LIKE_ESCAPE = "\\"
INT32_MAX = 2_147_483_647

_LIKE_SPECIAL = re.compile(r"([\\%_])")


def sanitize_input(value: str | None) -> str:
    """
    Normalize a free-text filter for a literal LIKE match.

    Steps, in order: truncate to 100 characters, lowercase, trim, then
    backslash-escape ``\\``, ``%`` and ``_``.

    Args:
        value: Raw query parameter (None is treated as empty)

    Returns:
        The escaped, normalized string ("" means no filter)
    """
    if not value:
        return ""
    cleaned = value[:MAX_INPUT_LENGTH].lower().strip()
    return _LIKE_SPECIAL.sub(r"\\\1", cleaned)


def like_pattern(sanitized: str) -> str:
    """Wrap an already-escaped value for a substring match."""
    return f"%{sanitized}%"


def _to_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if re.fullmatch(r"[+-]?\d+", text):
            return int(text)
    return None


def parse_book_id(value: Any) -> int:
    """
    Validate a book identifier as a positive int32.

    Raises:
        InvalidArgumentError: If the value is not an integer or is out of range
    """
    number = _to_int(value)
    if number is None:
        raise InvalidArgumentError("Invalid book ID, it must be a number.", field="id")
    if number <= 0 or number > INT32_MAX:
        raise InvalidArgumentError("Invalid Book ID. Number is out of range.", field="id")
    return number


def parse_cursor(value: Any) -> int:
    """
    Validate a keyset cursor (the last id the client received).

    None and "" mean "from the start" and map to 0.

    Raises:
        InvalidArgumentError: If not an integer, negative, or above int32 max
    """
    if value is None or value == "":
        return 0
    number = _to_int(value)
    if number is None:
        raise InvalidArgumentError("Invalid lastId, it must be a number.", field="lastId")
    if number < 0 or number > INT32_MAX:
        raise InvalidArgumentError("Invalid lastId. Number is out of range.", field="lastId")
    return number


def parse_limit(value: Any, default: int, maximum: int) -> int:
    """
    Validate a page size.

    None and "" fall back to ``default``.

    Raises:
        InvalidArgumentError: If not an integer, not positive, or above ``maximum``
    """
    if value is None or value == "":
        return default
    number = _to_int(value)
    if number is None:
        raise InvalidArgumentError("Invalid limit, it must be a number.", field="limit")
    if number <= 0 or number > maximum:
        raise InvalidArgumentError(
            f"Invalid limit. It must be between 1 and {maximum}.", field="limit"
        )
    return number
