"""Error Hierarchy — typed, categorized exceptions for all user service failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Client errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages
    - REQUEST_CANCELLED (499) is a client-side outcome, never a server fault

Design Decisions:
    - Single hierarchy with UserServiceError base: FastAPI global handler catches all (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - Store-level outcomes (RecordNotFoundError, RecordConflictError) live next to the
      repository protocol, not here: only the service translates them into this taxonomy
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone

# Not a registered status code: borrowed from nginx for "client closed request".
HTTP_STATUS_REQUEST_CANCELLED = 499


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    CANCELLED = "cancelled"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    operation: str | None = None
    debug_info: dict[str, Any] | None = None


class UserServiceError(Exception):
    """Base exception for all user service errors."""

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
                    "user_id": self.context.user_id,
                    "operation": self.context.operation,
                },
            }
        }


# ─── Client Errors (400-level) ──────────────────────────────────

class InvalidParamsError(UserServiceError):
    """Caller-supplied user data failed validation."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            f"invalid params: {message}", "INVALID_PARAMS", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class ResourceNotFoundError(UserServiceError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_id = resource_id


class ConcurrencyError(UserServiceError):
    """Concurrent modification detected (stale updated_at presented)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONCURRENCY_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


class RequestCancelledError(UserServiceError):
    """Caller went away or its deadline expired before the operation finished."""
    def __init__(self, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"{operation} cancelled before completion",
            "REQUEST_CANCELLED", ErrorCategory.CANCELLED,
            ErrorSeverity.WARNING, context, HTTP_STATUS_REQUEST_CANCELLED,
        )
        self.operation = operation


# ─── Infrastructure Errors (500-level) ──────────────────────────

class InternalServiceError(UserServiceError):
    """Invariant broken on our side (e.g. id generator produced a duplicate)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"internal error: {message}", "INTERNAL_ERROR", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )


class DatabaseError(UserServiceError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.operation = operation


class NotificationError(UserServiceError):
    """Change notification could not be delivered. Never reaches the HTTP layer."""
    def __init__(self, message: str, topic: str, context: ErrorContext | None = None):
        super().__init__(
            f"Notification on {topic} failed: {message}",
            "NOTIFICATION_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, context, 502,
        )
        self.topic = topic
