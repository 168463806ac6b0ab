"""Error Hierarchy — typed, categorized exceptions for every resolver failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Authorization / not-found / input errors are 400-level and never retried
    - Engine errors (storage, workflow transport) are 500-level and carry no transport detail
    - to_response() produces the REST envelope

Design Decisions:
    - Single hierarchy with WorkflowModelError base: one FastAPI handler catches all
    - WorkflowEngineError is the workflow capability's own error type; operations
      re-raise it as a coarse EngineError at their boundary
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
    AUTHORIZATION = "authorization"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFIGURATION = "configuration"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    entity_type: str | None = None
    instance_id: str | None = None
    action: str | None = None
    debug_info: dict[str, Any] | None = None


class WorkflowModelError(Exception):
    """Base exception for all workflow-model errors."""

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
                    "entity_type": self.context.entity_type,
                    "instance_id": self.context.instance_id,
                    "action": self.context.action,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class NotFoundError(WorkflowModelError):
    """Referenced instance or task does not exist."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


class AuthorizationError(WorkflowModelError):
    """Policy denial at an action gate, or a field-level write violation."""
    def __init__(
        self,
        message: str,
        restricted_fields: list[str] | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "NOT_AUTHORIZED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )
        self.restricted_fields = restricted_fields or []


class UserInputError(WorkflowModelError):
    """Malformed caller input, e.g. missing required ids."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "USER_INPUT_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


# ─── Configuration / Infrastructure Errors (500-level) ──────────

class ConfigurationError(WorkflowModelError):
    """Entity is not configured for the attempted operation."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONFIGURATION_ERROR", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, context, 500,
        )


class EngineError(WorkflowModelError):
    """Coarse failure surfaced when storage or the workflow engine fails."""
    def __init__(
        self,
        message: str,
        code: str = "ENGINE_ERROR",
        category: ErrorCategory = ErrorCategory.EXTERNAL_API,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, category, ErrorSeverity.CRITICAL, context, 503,
        )


class DatabaseError(EngineError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE, context,
        )
        self.operation = operation


class WorkflowEngineError(EngineError):
    """Workflow engine transport failure (raised by the engine client)."""
    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Workflow engine request failed: {message}",
            "WORKFLOW_ENGINE_ERROR", ErrorCategory.EXTERNAL_API, context,
        )
        self.status_code = status_code
