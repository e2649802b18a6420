"""Tests for user message validation."""

import pytest

from lib.validation import validate_user_message


def test_validate_user_message_strips_whitespace() -> None:
    assert validate_user_message("  hello team \n") == "hello team"


def test_validate_user_message_rejects_blank_input() -> None:
    with pytest.raises(ValueError, match="cannot be empty"):
        validate_user_message("   ")


def test_validate_user_message_enforces_max_length() -> None:
    with pytest.raises(ValueError, match="exceeds 5 characters"):
        validate_user_message("too long", max_length=5)
