"""Domain Types — rich types and constants shared across the chat core.

Invariants:
    - Nickname and MessageId wrap primitives — never mix ids and counts in domain logic
    - HISTORY_LIMIT bounds both the persisted ledger and every history read
    - SYSTEM_AUTHOR is reserved: it matches the nickname pattern but is rejected by validation
    - All event kinds encoded as an Enum — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON and SSE event names without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

Nickname = NewType("Nickname", str)
MessageId = NewType("MessageId", int)


# ─── Constants ───────────────────────────────────────────────────

HISTORY_LIMIT = 100
REDACTION_MARKER = "message deleted"
SYSTEM_AUTHOR = Nickname("system")

NICKNAME_PATTERN = r"^[A-Za-z0-9_-]{3,24}$"
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 72  # bcrypt input limit, also enforced in bytes
MESSAGE_MIN_LENGTH = 1
MESSAGE_MAX_LENGTH = 500


# ─── Enums ───────────────────────────────────────────────────────

class EventKind(str, Enum):
    """Server-push event kinds, used verbatim as SSE event names."""
    READY = "ready"
    MESSAGE = "message"
    CLEAR = "clear"
    DELETE = "delete"
    WARN = "warn"
    BAN = "ban"
    PURGE = "purge"
    HEARTBEAT = "heartbeat"

