"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional; each error fills in what applies to it.
    """

    hint: str
    method: str
    todo_id: str
    list_id: str
    errors: list[dict[str, Any]]


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
    """Raised when method arguments or config fail validation."""


class AuthenticationAppError(AppError):
    """Raised when API key authentication fails."""


class AccessDeniedAppError(AppError):
    """Raised when the caller may not touch a private list that is not theirs."""


class NotFoundAppError(AppError):
    """Raised when a referenced method or document does not exist."""
