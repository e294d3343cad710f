"""Distributed, approximate sliding-window rate limiting."""

from window_limiter.core.errors import (
    AppError,
    InvalidConfigurationError,
    LockTimeoutError,
    ThresholdWaitTimeoutError,
    WaitCancelledError,
)
from window_limiter.limiter import (
    EventWaiter,
    ExecutionDefaults,
    ExecutionObserver,
    LoggingObserver,
    RateLimit,
    ThresholdCheck,
)

__all__ = [
    "AppError",
    "EventWaiter",
    "ExecutionDefaults",
    "ExecutionObserver",
    "InvalidConfigurationError",
    "LockTimeoutError",
    "LoggingObserver",
    "RateLimit",
    "ThresholdCheck",
    "ThresholdWaitTimeoutError",
    "WaitCancelledError",
]
