"""Error Hierarchy — typed, categorized exceptions for all room failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are client-fixable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope shared by every error kind
    - NotFoundError message never reveals whether a room exists (wrong secret looks identical)

Design Decisions:
    - Single hierarchy with GiftRoomError base: FastAPI global handler catches all (uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - DrawImpossibleError is 503 with retry_after_ms: the whole draw call is safe to repeat
"""

from dataclasses import dataclass, field
from enum import Enum
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
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    PERMISSION = "permission"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    room_id: int | None = None
    user_id: int | None = None
    retry_after_ms: int | None = None


class GiftRoomError(Exception):
    """Base exception for all room service errors."""

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
                    "room_id": self.context.room_id,
                    "user_id": self.context.user_id,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ValidationError(GiftRoomError):
    """Missing or malformed input."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class NotFoundError(GiftRoomError):
    """Requested resource does not exist (or the caller may not know it does)."""
    def __init__(
        self, resource_type: str, resource_id: object, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type


class ForbiddenError(GiftRoomError):
    """Caller lacks the role the operation requires."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "FORBIDDEN", ErrorCategory.PERMISSION,
            ErrorSeverity.WARNING, context, 403,
        )


class ConflictError(GiftRoomError):
    """State changed underneath the operation, or the target is already taken."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


class PreconditionFailedError(GiftRoomError):
    """Room state does not yet permit the operation."""
    def __init__(
        self,
        message: str,
        offenders: list[str] | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "PRECONDITION_FAILED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 412,
        )
        self.offenders = offenders or []

    def to_response(self) -> dict:
        response = super().to_response()
        response["error"]["offenders"] = self.offenders
        return response


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DrawImpossibleError(GiftRoomError):
    """Derangement search exhausted its retry ceiling."""
    def __init__(self, attempts: int, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = ctx.retry_after_ms or 1000
        super().__init__(
            f"Could not produce a valid draw after {attempts} attempts. Try again.",
            "DRAW_IMPOSSIBLE", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
        self.attempts = attempts


class StorageError(GiftRoomError):
    """Database operation failed and was rolled back."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
