"""Input Validation — pure format checks for nicknames, passwords, bodies and ids.

Invariants:
    - Every check runs before any store access
    - Each validator returns the normalized value or raises ValidationError
    - Message bodies are stripped before length checks; passwords are never stripped

Design Decisions:
    - Validators raise rather than return bool so call sites stay linear
    - A link is a scheme, a www. prefix or a bare domain; any of them rejects the body
"""

import re

from livechat.core.domain_types import (
    MESSAGE_MAX_LENGTH,
    MESSAGE_MIN_LENGTH,
    NICKNAME_PATTERN,
    PASSWORD_MAX_LENGTH,
    PASSWORD_MIN_LENGTH,
    SYSTEM_AUTHOR,
    MessageId,
    Nickname,
)
from livechat.core.errors import ErrorContext, ValidationError

_NICKNAME_RE = re.compile(NICKNAME_PATTERN)
_URL_RE = re.compile(r"(https?://|www\.)\S+", re.IGNORECASE)
_DOMAIN_RE = re.compile(r"\b([a-z0-9-]+\.)+[a-z]{2,}(/\S*)?", re.IGNORECASE)


def is_valid_nickname(value: str) -> bool:
    return bool(_NICKNAME_RE.fullmatch(value)) and value != SYSTEM_AUTHOR


def validate_nickname(value: str | None) -> Nickname:
    """Strip and check a nickname: 3-24 chars of [A-Za-z0-9_-], not reserved."""
    nickname = (value or "").strip()
    if not is_valid_nickname(nickname):
        raise ValidationError(
            "Invalid username", "INVALID_USERNAME", "nickname",
        )
    return Nickname(nickname)


def is_valid_password(value: str) -> bool:
    return (
        PASSWORD_MIN_LENGTH <= len(value) <= PASSWORD_MAX_LENGTH
        and len(value.encode("utf-8")) <= PASSWORD_MAX_LENGTH
    )


def validate_password(value: str | None) -> str:
    password = value or ""
    if not is_valid_password(password):
        raise ValidationError(
            "Invalid password", "INVALID_PASSWORD", "password",
        )
    return password


def contains_url(value: str) -> bool:
    return bool(_URL_RE.search(value) or _DOMAIN_RE.search(value))


def validate_message_body(value: str | None) -> str:
    """Strip and check a message body: 1-500 chars, no links."""
    body = (value or "").strip()
    if not MESSAGE_MIN_LENGTH <= len(body) <= MESSAGE_MAX_LENGTH:
        raise ValidationError("Invalid message", "INVALID_MESSAGE", "body")
    if contains_url(body):
        raise ValidationError(
            "Links are not allowed", "LINKS_NOT_ALLOWED", "body",
        )
    return body


def validate_message_id(value: object) -> MessageId:
    """Accept positive integers (or their decimal string form) only."""
    if isinstance(value, bool):
        raise _invalid_message_id(value)
    if isinstance(value, str):
        value = value.strip()
        if not (value.isascii() and value.isdigit()):
            raise _invalid_message_id(value)
        value = int(value)
    if not isinstance(value, int) or value <= 0:
        raise _invalid_message_id(value)
    return MessageId(value)


def _invalid_message_id(value: object) -> ValidationError:
    return ValidationError(
        "Invalid message id", "INVALID_MESSAGE_ID", "id",
        ErrorContext(debug_info={"value": repr(value)}),
    )
