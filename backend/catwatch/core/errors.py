"""Error Hierarchy — typed, categorized exceptions for all Catwatch failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Every error maps to exactly one PropagationStatus via .status
    - Domain errors (400-level) are side-effect free; PartialFailureError is the
      only error that describes already-mutated state
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with CatwatchError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone

from catwatch.core.domain_types import PropagationStatus


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
    PERMISSION = "permission"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    actor_id: str | None = None
    target_user_id: str | None = None
    operation: str | None = None
    debug_info: dict[str, Any] | None = None


class CatwatchError(Exception):
    """Base exception for all Catwatch errors."""

    status = PropagationStatus.STORE_UNAVAILABLE

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
                    "actor_id": self.context.actor_id,
                    "target_user_id": self.context.target_user_id,
                    "operation": self.context.operation,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ResourceNotFoundError(CatwatchError):
    """Requested resource does not exist."""

    status = PropagationStatus.NOT_FOUND

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


class NoIdentifiersError(CatwatchError):
    """Target carries no network identifiers, so there is nothing to propagate."""

    status = PropagationStatus.NO_IDENTIFIERS

    def __init__(self, user_id: str, context: ErrorContext | None = None):
        super().__init__(
            f"User '{user_id}' has no network identifiers to propagate from",
            "NO_IDENTIFIERS", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 422,
        )
        self.user_id = user_id


class PolicyBlockedError(CatwatchError):
    """Role hierarchy vetoed the operation; nothing was mutated."""

    status = PropagationStatus.POLICY_BLOCKED

    def __init__(
        self,
        blocking_users: list,
        mode: str,
        context: ErrorContext | None = None,
    ):
        names = ", ".join(u.display_name for u in blocking_users)
        super().__init__(
            f"Ban blocked by role protection ({mode} mode): would affect users "
            f"with equal or higher roles ({names})",
            "POLICY_BLOCKED", ErrorCategory.PERMISSION,
            ErrorSeverity.WARNING, context, 403,
        )
        self.blocking_users = blocking_users
        self.mode = mode


class PermissionDeniedError(CatwatchError):
    """Actor's role cannot perform a single-target management action."""

    status = PropagationStatus.POLICY_BLOCKED

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "PERMISSION_DENIED", ErrorCategory.PERMISSION,
            ErrorSeverity.WARNING, context, 403,
        )


class InvalidOperationError(CatwatchError):
    """Request is well-formed but not allowed in the current state."""

    status = PropagationStatus.POLICY_BLOCKED

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_OPERATION", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(CatwatchError):
    """IdentityStore operation failed (store unavailable)."""

    status = PropagationStatus.STORE_UNAVAILABLE

    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "STORE_UNAVAILABLE", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class PartialFailureError(CatwatchError):
    """User ban state was written but the identifier ledger write failed."""

    status = PropagationStatus.PARTIAL_FAILURE

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "PARTIAL_FAILURE", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 500,
        )
