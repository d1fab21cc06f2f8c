"""Input Validation — verifies nickname, password, body and id rules.

Tests:
    - Nicknames: 3-24 chars of [A-Za-z0-9_-], stripped, "system" reserved
    - Passwords: 6-72 chars, never stripped, bcrypt byte limit respected
    - Bodies: stripped, 1-500 chars, links rejected with their own code
    - Message ids: positive integers or their decimal strings only
"""

import pytest

from livechat.core.errors import ValidationError
from livechat.core.validation import (
    contains_url,
    is_valid_nickname,
    validate_message_body,
    validate_message_id,
    validate_nickname,
    validate_password,
)


@pytest.mark.parametrize("nickname", ["abc", "alice_01", "Bob-the-builder", "x" * 24])
def test_valid_nicknames_accepted(nickname):
    assert validate_nickname(nickname) == nickname


@pytest.mark.parametrize(
    "nickname", ["", "ab", "x" * 25, "has space", "émile", "a.b.c", None],
)
def test_invalid_nicknames_rejected(nickname):
    with pytest.raises(ValidationError) as exc_info:
        validate_nickname(nickname)
    assert exc_info.value.code == "INVALID_USERNAME"
    assert exc_info.value.field == "nickname"


def test_nickname_is_stripped():
    assert validate_nickname("  alice  ") == "alice"


def test_system_nickname_is_reserved():
    assert not is_valid_nickname("system")
    with pytest.raises(ValidationError):
        validate_nickname("system")


def test_nicknames_are_case_sensitive():
    assert validate_nickname("Alice") != validate_nickname("alice")


def test_password_bounds():
    assert validate_password("x" * 6) == "x" * 6
    assert validate_password("x" * 72) == "x" * 72
    for bad in ("x" * 5, "x" * 73, "", None):
        with pytest.raises(ValidationError) as exc_info:
            validate_password(bad)
        assert exc_info.value.code == "INVALID_PASSWORD"


def test_password_is_not_stripped():
    assert validate_password("  pass  ") == "  pass  "


def test_password_over_bcrypt_byte_limit_rejected():
    """40 two-byte characters fit the char limit but not the 72-byte limit."""
    with pytest.raises(ValidationError):
        validate_password("é" * 40)


def test_body_is_stripped():
    assert validate_message_body("  hi  ") == "hi"


@pytest.mark.parametrize("body", ["", "   ", "\n\t", "x" * 501, None])
def test_invalid_bodies_rejected(body):
    with pytest.raises(ValidationError) as exc_info:
        validate_message_body(body)
    assert exc_info.value.code == "INVALID_MESSAGE"


def test_body_at_max_length_accepted():
    assert validate_message_body("x" * 500) == "x" * 500


@pytest.mark.parametrize(
    "body",
    ["see https://example.com", "http://x.io", "go to www.example", "visit example.com now"],
)
def test_links_rejected(body):
    assert contains_url(body)
    with pytest.raises(ValidationError) as exc_info:
        validate_message_body(body)
    assert exc_info.value.code == "LINKS_NOT_ALLOWED"


def test_plain_sentences_are_not_links():
    assert not contains_url("hello there. how are you?")
    assert not contains_url("3.14 is pi")


@pytest.mark.parametrize("value, expected", [(1, 1), (42, 42), ("7", 7), (" 12 ", 12)])
def test_valid_message_ids(value, expected):
    assert validate_message_id(value) == expected


@pytest.mark.parametrize("value", [0, -1, "0", "-3", "abc", "1.5", 1.5, True, None, "", "١٢"])
def test_invalid_message_ids(value):
    with pytest.raises(ValidationError) as exc_info:
        validate_message_id(value)
    assert exc_info.value.code == "INVALID_MESSAGE_ID"
