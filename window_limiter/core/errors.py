"""Limiter exception types.

This module defines the errors raised by the limiter core and its store
adapters, so callers can tell configuration mistakes apart from runtime
contention (lock timeouts, cancelled waits).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability.

    Fields are optional; each error fills in what it knows.
    """

    code: str
    message: str
    hint: str
    min_value: int
    actual_value: float
    limit_value: float
    lock_name: str
    owner: str
    acquire_timeout: float
    waited_seconds: float
    max_wait: float
    backend: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for limiter failures.

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


class InvalidConfigurationError(AppError):
    """Raised when a limiter or backend is constructed with invalid settings."""


class LockTimeoutError(AppError):
    """Raised when the per-subject lock cannot be acquired in time."""


class ThresholdWaitTimeoutError(AppError):
    """Raised when waiting for a subject to drop below its threshold takes too long."""


class WaitCancelledError(AppError):
    """Raised when a blocking wait is cancelled by its waiter."""
