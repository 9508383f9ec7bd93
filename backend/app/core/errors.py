"""Error Hierarchy — typed, categorized exceptions for all MemeVault failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are business-rule rejections; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with MemeVaultError base: FastAPI global handler catches all (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - Partial sweep failures are NOT exceptions: they are recorded in the sweep summary
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
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DUPLICATE = "duplicate"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    DATABASE = "database"
    STORAGE = "storage"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    game_id: str | None = None
    meme_id: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None


class MemeVaultError(Exception):
    """Base exception for all MemeVault errors."""

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
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "game_id": self.context.game_id,
                    "meme_id": self.context.meme_id,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class InputValidationError(MemeVaultError):
    """Malformed or missing input that passed schema validation."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class ResourceNotFoundError(MemeVaultError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class InvalidStateError(MemeVaultError):
    """Operation attempted in the wrong phase or on a terminal game."""
    def __init__(
        self,
        message: str,
        current_status: str | None = None,
        required_status: str | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "INVALID_STATE", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
        )
        self.current_status = current_status
        self.required_status = required_status

    def to_response(self) -> dict:
        response = super().to_response()
        response["error"]["context"]["current_status"] = self.current_status
        response["error"]["context"]["required_status"] = self.required_status
        return response


class DuplicateVoteError(MemeVaultError):
    """A vote from this origin already exists for the target meme."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "You have already voted for this meme",
            "DUPLICATE_VOTE", ErrorCategory.DUPLICATE,
            ErrorSeverity.WARNING, context, 400,
        )


class AuthenticationError(MemeVaultError):
    """Missing, invalid or expired credentials."""
    def __init__(self, message: str = "Authentication required", context: ErrorContext | None = None):
        super().__init__(
            message, "AUTHENTICATION_REQUIRED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class PermissionDeniedError(MemeVaultError):
    """Authenticated caller lacks the required role."""
    def __init__(self, message: str = "Access denied", context: ErrorContext | None = None):
        super().__init__(
            message, "PERMISSION_DENIED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(MemeVaultError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class BlobStorageError(MemeVaultError):
    """Image blob store operation failed."""
    def __init__(self, message: str, key: str | None = None, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.user_message = ctx.user_message or "Image storage is unavailable"
        super().__init__(
            f"Blob storage error: {message}",
            "BLOB_STORAGE_ERROR", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, ctx, 500,
        )
        self.key = key


class ConcurrencyError(MemeVaultError):
    """Concurrent operation detected (e.g. overlapping sweeps)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONCURRENCY_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )
