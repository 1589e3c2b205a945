"""Error Hierarchy: typed, categorized exceptions for every boardsync failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Background (fire-and-forget) operations never raise past their own boundary;
      these errors are logged there and absorbed
    - Only directly awaited user actions (sign-in, sign-up, save-config) hand an
      error back to the caller, wrapped in an ActionResult
    - RowNotFoundError is an expected outcome (absent board_data row), not a failure

Design Decisions:
    - Single hierarchy with BoardSyncError base: callers catch one type
    - ErrorContext as dataclass: observability fields without coupling to logging
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and UI handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories."""
    VALIDATION = "validation"
    NOT_CONFIGURED = "not_configured"
    AUTHENTICATION = "authentication"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    project_id: str | None = None
    collection: str | None = None
    operation: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None


class BoardSyncError(Exception):
    """Base exception for all boardsync errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()

    def to_dict(self) -> dict:
        """Convert to a plain dict the UI can render."""
        return {
            "error": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "project_id": self.context.project_id,
                    "collection": self.context.collection,
                    "operation": self.context.operation,
                },
            }
        }


# ─── Configuration / Auth Errors ────────────────────────────────

class ConfigurationError(BoardSyncError):
    """Connection descriptor is missing, a placeholder, or malformed."""
    def __init__(self, message: str, field: str | None = None, context: ErrorContext | None = None):
        super().__init__(
            message, "CONFIGURATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context,
        )
        self.field = field


class NotConfiguredError(BoardSyncError):
    """Remote backend is not configured; the caller asked for a remote-only action."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Supabase not configured",
            "NOT_CONFIGURED", ErrorCategory.NOT_CONFIGURED,
            ErrorSeverity.WARNING, context,
        )


class AuthenticationError(BoardSyncError):
    """Sign-in, sign-up, sign-out or token refresh was rejected or failed."""
    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        remote_code: str | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "AUTHENTICATION_ERROR", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.ERROR, context,
        )
        self.status_code = status_code
        self.remote_code = remote_code


# ─── Remote Store Errors ────────────────────────────────────────

class RemoteStoreError(BoardSyncError):
    """A remote collection read or write failed (HTTP error or transport failure)."""
    def __init__(
        self,
        message: str,
        operation: str,
        collection: str,
        status_code: int | None = None,
        remote_code: str | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.operation = ctx.operation or operation
        ctx.collection = ctx.collection or collection
        super().__init__(
            f"Remote {operation} on {collection} failed: {message}",
            "REMOTE_STORE_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, ctx,
        )
        self.operation = operation
        self.collection = collection
        self.status_code = status_code
        self.remote_code = remote_code


class RowNotFoundError(BoardSyncError):
    """A single-row select matched no row."""
    def __init__(self, collection: str, key: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.collection = ctx.collection or collection
        super().__init__(
            f"{collection} row '{key}' not found",
            "ROW_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.INFO, ctx,
        )
        self.collection = collection
        self.key = key


# ─── Local Store Errors ─────────────────────────────────────────

class DatabaseError(BoardSyncError):
    """Local key-value store operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Local store {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context,
        )
        self.operation = operation


# ─── Results of directly awaited user actions ───────────────────

@dataclass
class ActionResult:
    """Outcome of sign-in, sign-up or save-config: a session and/or an error."""
    session: Any = None
    error: BoardSyncError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
