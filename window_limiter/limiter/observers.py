"""Lifecycle hooks for the blocking executors.

The executors report progress through an ``ExecutionObserver`` instead of
logging inline. The base class ignores every event; ``LoggingObserver``
turns them into structured log records.
"""

from __future__ import annotations

import logging

from window_limiter.core.logging import hash_subject
from window_limiter.limiter.guard import ThresholdCheck


class ExecutionObserver:
    """No-op observer; override the hooks you need."""

    def lock_wait_started(self, subject: str, *, owner: str, lock_name: str) -> None:
        pass

    def lock_acquired(self, subject: str, *, owner: str, lock_name: str) -> None:
        pass

    def count_checked(self, subject: str, *, owner: str | None, check: ThresholdCheck) -> None:
        pass

    def threshold_cleared(self, subject: str, *, owner: str | None, check: ThresholdCheck) -> None:
        pass

    def lock_released(self, subject: str, *, owner: str, lock_name: str) -> None:
        pass


class LoggingObserver(ExecutionObserver):
    """Emit one log record per lifecycle event, with the subject hashed."""

    def __init__(self, logger: logging.Logger | None = None, *, level: int = logging.INFO) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._level = level

    def _log(self, event: str, subject: str, **fields: object) -> None:
        self._logger.log(
            self._level,
            event,
            extra={"subject_hash": hash_subject(subject), **fields},
        )

    def lock_wait_started(self, subject: str, *, owner: str, lock_name: str) -> None:
        self._log("ratelimit.lock_wait_started", subject, owner=owner)

    def lock_acquired(self, subject: str, *, owner: str, lock_name: str) -> None:
        self._log("ratelimit.lock_acquired", subject, owner=owner)

    def count_checked(self, subject: str, *, owner: str | None, check: ThresholdCheck) -> None:
        self._log(
            "ratelimit.count_checked",
            subject,
            owner=owner,
            count=check.count,
            threshold=check.threshold,
            exceeded=check.exceeded,
        )

    def threshold_cleared(self, subject: str, *, owner: str | None, check: ThresholdCheck) -> None:
        self._log(
            "ratelimit.threshold_cleared",
            subject,
            owner=owner,
            count=check.count,
            threshold=check.threshold,
        )

    def lock_released(self, subject: str, *, owner: str, lock_name: str) -> None:
        self._log("ratelimit.lock_released", subject, owner=owner)
