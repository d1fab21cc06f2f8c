"""Error Hierarchy — typed, categorized exceptions for all chat failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Client errors (400-level) are user-correctable; StorageError (503) is fatal to the call
    - to_response() produces the REST envelope used by every error handler
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with LiveChatError base: FastAPI global handler catches all (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - Error classes carry a code so one class covers several user-facing reasons
      (INVALID_USERNAME vs INVALID_PASSWORD are both ValidationError)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    CONFLICT = "conflict"
    RATE_LIMIT = "rate_limit"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    nickname: str | None = None
    message_id: int | None = None
    field: str | None = None
    cooldown_seconds: int | None = None
    retry_at: datetime | None = None
    debug_info: dict[str, Any] | None = None


class LiveChatError(Exception):
    """Base exception for all chat errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "nickname": self.context.nickname,
                    "message_id": self.context.message_id,
                    "field": self.context.field,
                },
            }
        }


# ─── Client Errors (400-level) ──────────────────────────────────

class ValidationError(LiveChatError):
    """Malformed nickname, password, message body or message id."""
    def __init__(
        self, message: str, code: str, field: str,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.field = field
        super().__init__(
            message, code, ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, ctx, 400,
        )
        self.field = field


class AuthError(LiveChatError):
    """Missing, invalid or expired token, or wrong credentials."""
    def __init__(
        self, message: str, code: str = "INVALID_TOKEN",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class AuthorizationError(LiveChatError):
    """Authenticated caller is not allowed: banned account or bad admin token."""
    def __init__(
        self, message: str, code: str, http_status: int = 403,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, http_status,
        )


class BannedError(AuthorizationError):
    """Account exists but has been banned by a moderator."""
    def __init__(self, nickname: str | None = None):
        super().__init__(
            "this account has been banned", "BANNED", 403,
            ErrorContext(nickname=nickname),
        )


class ConflictError(LiveChatError):
    """Nickname already registered."""
    def __init__(self, nickname: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.nickname = nickname
        super().__init__(
            "Username already exists", "USERNAME_TAKEN",
            ErrorCategory.CONFLICT, ErrorSeverity.WARNING, ctx, 409,
        )


class RateLimitError(LiveChatError):
    """Sender exceeded the post rate and is cooling down."""
    def __init__(
        self, cooldown_seconds: int, retry_at: datetime,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.cooldown_seconds = cooldown_seconds
        ctx.retry_at = retry_at
        super().__init__(
            "slow down, don't spam!", "RATE_LIMITED",
            ErrorCategory.RATE_LIMIT, ErrorSeverity.WARNING, ctx, 429,
        )
        self.cooldown_seconds = cooldown_seconds
        self.retry_at = retry_at

    def to_response(self) -> dict:
        response = super().to_response()
        response["error"]["cooldownSeconds"] = self.cooldown_seconds
        response["error"]["retryAt"] = self.retry_at.isoformat()
        return response


class NotFoundError(LiveChatError):
    """Targeted message or account does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str | int,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} not found",
            f"{resource_type.upper()}_NOT_FOUND",
            ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StorageError(LiveChatError):
    """Durable store operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "STORAGE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
