"""Blocking execution strategies gated on a subject's window count.

Two strategies are offered:

- ``exec_within_threshold`` polls until the subject is below the threshold
  and then runs the work. The work is expected to call ``add`` itself. There
  is no atomicity between the check and the work, so under concurrent callers
  this is advisory only.
- ``exec_and_increment_within_threshold`` takes the subject's distributed
  lock, polls under the lock, adds to the count, releases the lock and only
  then runs the work. Check-and-increment is atomic relative to other callers
  of this strategy on the same subject.

The second strategy keeps the lock while it waits. Competing callers for the
same subject queue on the lock the whole time; only one passes the threshold
gate per bucket interval.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from window_limiter.adapters.store.base import AbstractLockProvider
from window_limiter.core.errors import InvalidConfigurationError, ThresholdWaitTimeoutError
from window_limiter.limiter.counter import WindowCounter
from window_limiter.limiter.guard import ThresholdCheck, ThresholdGuard
from window_limiter.limiter.observers import ExecutionObserver
from window_limiter.limiter.waiting import EventWaiter, Waiter

T = TypeVar("T")

LOCK_SUFFIX = "-ratelimit-lock"

# Distinguishes "max_wait not passed" from an explicit None (unbounded)
_NOT_GIVEN: Any = object()


def lock_name_for(subject: str) -> str:
    return f"{subject}{LOCK_SUFFIX}"


@dataclass(frozen=True)
class ExecutionDefaults:
    """Per-call option defaults for the blocking strategies.

    Attributes:
        threshold: Maximum allowed count within ``interval``.
        interval: Window length in seconds.
        increment: Amount added on success by the lock-coordinated strategy.
        acquire: Lock acquisition timeout in seconds.
        max_wait: Upper bound on polling time in seconds (None = unbounded).
    """

    threshold: int = 30
    interval: float = 30
    increment: int = 1
    acquire: float = 10.0
    max_wait: float | None = None


class BlockingExecutor:
    """Runs caller work once a subject is within its threshold."""

    def __init__(
        self,
        counter: WindowCounter,
        guard: ThresholdGuard,
        *,
        locks: AbstractLockProvider | None = None,
        waiter: Waiter | None = None,
        observer: ExecutionObserver | None = None,
        defaults: ExecutionDefaults | None = None,
    ) -> None:
        self._counter = counter
        self._guard = guard
        self._locks = locks
        self._waiter = waiter or EventWaiter()
        self._observer = observer or ExecutionObserver()
        self._defaults = defaults or ExecutionDefaults()

    @property
    def waiter(self) -> Waiter:
        return self._waiter

    def _wait_until_within(
        self,
        subject: str,
        *,
        interval: float,
        threshold: int,
        max_wait: float | None,
        owner: str | None,
        waiter: Waiter,
        before_wait: Callable[[], None] | None = None,
    ) -> ThresholdCheck:
        pause = self._counter.layout.bucket_interval
        waited = 0.0

        check = self._guard.check(subject, interval=interval, threshold=threshold)
        self._observer.count_checked(subject, owner=owner, check=check)
        while check.exceeded:
            if max_wait is not None and waited + pause > max_wait:
                raise ThresholdWaitTimeoutError(
                    code="threshold_wait_timeout",
                    message=f"Subject still at or above threshold after waiting {waited}s",
                    details={
                        "waited_seconds": waited,
                        "max_wait": max_wait,
                        "actual_value": check.count,
                        "limit_value": threshold,
                    },
                )
            if before_wait is not None:
                before_wait()
            waiter.wait(pause)
            waited += pause
            check = self._guard.check(subject, interval=interval, threshold=threshold)
            self._observer.count_checked(subject, owner=owner, check=check)

        self._observer.threshold_cleared(subject, owner=owner, check=check)
        return check

    def _resolve_max_wait(self, max_wait: float | None) -> float | None:
        return self._defaults.max_wait if max_wait is _NOT_GIVEN else max_wait

    def exec_within_threshold(
        self,
        subject: str,
        work: Callable[[], T],
        *,
        threshold: int | None = None,
        interval: float | None = None,
        max_wait: float | None = _NOT_GIVEN,
        waiter: Waiter | None = None,
    ) -> T:
        """Block until ``subject`` is below ``threshold``, then run ``work``.

        ``work`` must call ``add`` itself if it should count toward later
        checks. ``max_wait=None`` waits without bound even when a default
        is configured. ``waiter`` replaces the executor's waiter for this
        call only, so one caller can be cancelled without affecting others.

        Raises:
            ThresholdWaitTimeoutError: If ``max_wait`` elapses first.
            WaitCancelledError: If the waiter is cancelled.
        """
        self._wait_until_within(
            subject,
            interval=self._defaults.interval if interval is None else interval,
            threshold=self._defaults.threshold if threshold is None else threshold,
            max_wait=self._resolve_max_wait(max_wait),
            owner=None,
            waiter=waiter or self._waiter,
        )
        return work()

    def exec_and_increment_within_threshold(
        self,
        subject: str,
        work: Callable[[], T],
        *,
        threshold: int | None = None,
        interval: float | None = None,
        increment: int | None = None,
        acquire: float | None = None,
        owner: str | None = None,
        max_wait: float | None = _NOT_GIVEN,
        waiter: Waiter | None = None,
    ) -> T:
        """Lock, wait until below ``threshold``, add ``increment``, unlock, run ``work``.

        The lock's lease is renewed before every wait. The increment is not
        rolled back if ``work`` raises.

        Raises:
            LockTimeoutError: If the subject lock is not acquired within ``acquire``.
            ThresholdWaitTimeoutError: If ``max_wait`` elapses first (the lock is
                released before this propagates).
            WaitCancelledError: If the waiter is cancelled.
        """
        if self._locks is None:
            raise InvalidConfigurationError(
                code="lock_provider_missing",
                message="exec_and_increment_within_threshold requires a lock provider",
            )

        defaults = self._defaults
        owner = owner or uuid.uuid4().hex
        lock_name = lock_name_for(subject)

        self._observer.lock_wait_started(subject, owner=owner, lock_name=lock_name)
        with self._locks.hold(
            lock_name,
            owner,
            defaults.acquire if acquire is None else acquire,
        ) as held:
            try:
                self._observer.lock_acquired(subject, owner=owner, lock_name=lock_name)
                self._wait_until_within(
                    subject,
                    interval=defaults.interval if interval is None else interval,
                    threshold=defaults.threshold if threshold is None else threshold,
                    max_wait=self._resolve_max_wait(max_wait),
                    owner=owner,
                    waiter=waiter or self._waiter,
                    before_wait=held.renew,
                )
                self._counter.add(subject, defaults.increment if increment is None else increment)
            finally:
                self._observer.lock_released(subject, owner=owner, lock_name=lock_name)

        return work()
