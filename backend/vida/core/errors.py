"""Error Hierarchy — typed, categorized exceptions for all VIDA failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope used by every error handler
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with VidaError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


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
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    resource_id: str | None = None
    details: dict[str, Any] | None = None


class VidaError(Exception):
    """Base exception for all VIDA errors."""

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
                    "resource_id": self.context.resource_id,
                    "details": self.context.details,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ValidationFailedError(VidaError):
    """Input passed schema validation but violates a domain rule."""
    def __init__(
        self, message: str, code: str = "VALIDATION_ERROR",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class InvalidLocationError(VidaError):
    """Coordinates missing or outside the valid lat/lon ranges."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "The provided coordinates are not valid",
            "INVALID_LOCATION", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class AuthenticationError(VidaError):
    """Credentials or token rejected."""
    def __init__(
        self, code: str, message: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class PremiumRequiredError(VidaError):
    """Feature requires a plan the user does not hold."""
    def __init__(self, feature: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.details = {"feature": feature, "upgrade_url": "/subscription/plans"}
        super().__init__(
            "This feature requires a Premium subscription",
            "PREMIUM_REQUIRED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, ctx, 403,
        )
        self.feature = feature


class LimitExceededError(VidaError):
    """Plan limit for a countable resource reached."""
    def __init__(
        self, limit_key: str, limit: int, current: int,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.details = {"limit_key": limit_key, "limit": limit, "current": current}
        super().__init__(
            f"Plan limit reached for {limit_key} ({current}/{limit})",
            "LIMIT_EXCEEDED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, ctx, 403,
        )


class ResourceNotFoundError(VidaError):
    """Requested resource does not exist (or is not owned by the caller)."""
    def __init__(
        self, resource_type: str, resource_id: str,
        code: str = "NOT_FOUND", context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.resource_id = resource_id
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            code, ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )


class ConflictError(VidaError):
    """Unique resource already exists."""
    def __init__(
        self, code: str, message: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


class InvalidTransitionError(VidaError):
    """Lifecycle transition not allowed from the current state."""
    def __init__(
        self, entity: str, current: str, target: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{entity} cannot move from {current} to {target}",
            "INVALID_TRANSITION", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409,
        )
        self.current = current
        self.target = target


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(VidaError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class ExternalServiceError(VidaError):
    """Third-party provider (Stripe, PSC) call failed."""
    def __init__(
        self, service: str, message: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{service} error: {message}",
            "EXTERNAL_SERVICE_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 502,
        )
        self.service = service
