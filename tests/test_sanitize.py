"""
Tests for input sanitizing and id/cursor/limit parsing.
"""

import pytest

from classicnooks.exceptions import InvalidArgumentError
from classicnooks.utils.sanitize import (
    INT32_MAX,
    like_pattern,
    parse_book_id,
    parse_cursor,
    parse_limit,
    sanitize_input,
)


class TestSanitizeInput:

    @pytest.mark.parametrize(
        "raw,expected",
        [
            (None, ""),
            ("", ""),
            ("   ", ""),
            ("  Austen ", "austen"),
            ("100%", "100\\%"),
            ("snake_case", "snake\\_case"),
            ("back\\slash", "back\\\\slash"),
        ],
    )
    def test_sanitize(self, raw, expected):
        assert sanitize_input(raw) == expected

    def test_truncates_before_trimming(self):
        raw = "a" * 99 + "  b"

        assert sanitize_input(raw) == "a" * 99

    def test_long_input_capped(self):
        assert len(sanitize_input("x" * 500)) == 100

    def test_like_pattern(self):
        assert like_pattern("frank") == "%frank%"


class TestParseBookId:

    @pytest.mark.parametrize("value,expected", [("1", 1), (" 42 ", 42), (1342, 1342), (str(INT32_MAX), INT32_MAX)])
    def test_valid(self, value, expected):
        assert parse_book_id(value) == expected

    @pytest.mark.parametrize("value", ["abc", "1.5", "", None, True, "0", "-1", str(INT32_MAX + 1)])
    def test_invalid(self, value):
        with pytest.raises(InvalidArgumentError) as exc_info:
            parse_book_id(value)

        assert exc_info.value.field == "id"


class TestParseCursor:

    @pytest.mark.parametrize("value,expected", [(None, 0), ("", 0), ("0", 0), ("161", 161)])
    def test_valid(self, value, expected):
        assert parse_cursor(value) == expected

    @pytest.mark.parametrize("value", ["-1", "x", "2147483648"])
    def test_invalid(self, value):
        with pytest.raises(InvalidArgumentError):
            parse_cursor(value)


class TestParseLimit:

    @pytest.mark.parametrize("value,expected", [(None, 100), ("", 100), ("1", 1), ("100", 100)])
    def test_valid(self, value, expected):
        assert parse_limit(value, default=100, maximum=100) == expected

    @pytest.mark.parametrize("value", ["0", "101", "-3", "many"])
    def test_invalid(self, value):
        with pytest.raises(InvalidArgumentError) as exc_info:
            parse_limit(value, default=100, maximum=100)

        assert exc_info.value.field == "limit"
