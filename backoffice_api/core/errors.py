"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    min_value: int
    max_value: int
    actual_value: Any
    http_status: int
    retry_after: int
    field: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class InvalidArgumentError(ValidationAppError):
    """Raised when an operation receives an out-of-range argument."""


class AuthenticationAppError(AppError):
    """Raised when the caller cannot be authenticated."""


class AuthorizationAppError(AppError):
    """Raised when an authenticated caller may not access a resource."""


class ConfigurationAppError(AppError):
    """Raised when required service configuration is missing."""


class StoreAppError(AppError):
    """Raised when the managed backend cannot be reached or errors out."""


class UnclassifiableMovementError(AppError):
    """Raised for a movement row that cannot be placed on the calendar.

    Never surfaced to clients: the projection skips such rows.
    """


class RateLimitExceededError(AppError):
    """Raised when a caller exceeds its request budget."""

    def __init__(self, code: str, message: str, retry_after_seconds: int = 60) -> None:
        super().__init__(code=code, message=message, details={"retry_after": retry_after_seconds})
        self.retry_after_seconds = retry_after_seconds
