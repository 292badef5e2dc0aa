"""Error Hierarchy — typed, categorized exceptions for all MovR failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Client-fixable errors (400-level) are distinct from store-unavailable errors (503)
    - RetryableConflictError never reaches callers: run_transaction either retries it
      or escalates it to TransactionFailedError
    - to_response() produces REST envelope
    - No driver internals leaked in user-facing messages

Design Decisions:
    - Single hierarchy with MovRError base: one global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - Named DatabaseConnectionError / TransactionCancelledError so builtins
      ConnectionError and asyncio.CancelledError stay unshadowed
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
    DATABASE = "database"
    CONFLICT = "conflict"
    CANCELLED = "cancelled"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    city: str | None = None
    operation: str | None = None
    attempt: int | None = None
    sqlstate: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class MovRError(Exception):
    """Base exception for all MovR errors."""

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

    @property
    def client_fixable(self) -> bool:
        """True when the caller can fix the request; False when the store is at fault."""
        return self.http_status < 500

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
                    "city": self.context.city,
                    "operation": self.context.operation,
                    "attempt": self.context.attempt,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class NotFoundError(MovRError):
    """Requested row does not exist in the given partition."""
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


class InvalidInputError(MovRError):
    """Operation argument outside its value domain (e.g. unknown vehicle type)."""
    def __init__(
        self, field: str, value: Any, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Invalid {field}: {value!r}",
            "INVALID_INPUT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class RideAlreadyEndedError(NotFoundError):
    """Ride exists but is no longer active."""
    def __init__(self, ride_id: str, context: ErrorContext | None = None):
        MovRError.__init__(
            self, f"Ride '{ride_id}' has already ended",
            "RIDE_ALREADY_ENDED", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = "Ride"
        self.resource_id = ride_id


class ConstraintViolationError(MovRError):
    """Write rejected by a schema or business constraint."""
    def __init__(
        self,
        message: str,
        constraint: str | None = None,
        context: ErrorContext | None = None,
        code: str = "CONSTRAINT_VIOLATION",
        category: ErrorCategory = ErrorCategory.CONFLICT,
        http_status: int = 409,
    ):
        super().__init__(
            message, code, category, ErrorSeverity.ERROR, context, http_status,
        )
        self.constraint = constraint


class DuplicateError(ConstraintViolationError):
    """Unique key already taken (e.g. promo code already redeemed)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "unique", context, code="DUPLICATE",
        )


class VehicleUnavailableError(ConstraintViolationError):
    """Vehicle is not in a state that allows the requested operation."""
    def __init__(
        self, vehicle_id: str, status: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Vehicle '{vehicle_id}' is {status}",
            "vehicle_status", context, code="VEHICLE_UNAVAILABLE",
            category=ErrorCategory.BUSINESS_RULE,
        )
        self.vehicle_id = vehicle_id
        self.status = status


class PromoCodeExpiredError(ConstraintViolationError):
    """Promo code expiration_time has passed."""
    def __init__(self, code: str, context: ErrorContext | None = None):
        super().__init__(
            f"Promo code '{code}' has expired",
            "promo_expiration", context, code="PROMO_CODE_EXPIRED",
            category=ErrorCategory.BUSINESS_RULE, http_status=400,
        )


class TransactionCancelledError(MovRError):
    """Caller's cancellation signal fired while the transaction was retrying."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Transaction cancelled by caller",
            "TRANSACTION_CANCELLED", ErrorCategory.CANCELLED,
            ErrorSeverity.WARNING, context, 499,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class RetryableConflictError(MovRError):
    """Serialization conflict signalled by the store (SQLSTATE 40001).

    Recovered locally by run_transaction; may also be raised by a unit of
    work to request a retry explicitly.
    """
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "RETRYABLE_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )


class TransactionFailedError(MovRError):
    """Retry ceiling exceeded under sustained contention."""
    def __init__(self, attempts: int, context: ErrorContext | None = None):
        super().__init__(
            f"Transaction aborted after {attempts} attempts",
            "TRANSACTION_FAILED", ErrorCategory.CONFLICT,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.attempts = attempts


class DatabaseConnectionError(MovRError):
    """Store unreachable, bad credentials, or malformed connection string."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database connection failed: {message}",
            "DATABASE_UNAVAILABLE", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )


class DatabaseError(MovRError):
    """Database operation failed for a reason that is neither conflict nor constraint."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
