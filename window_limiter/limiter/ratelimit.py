"""Public rate limit object.

``RateLimit`` composes the bucket layout, the window counter, the threshold
guard and the blocking executor behind one object per limit family.

Example:
    Send an email as long as we haven't sent 5 in the last 10 minutes::

        emails = RateLimit("emails")
        emails.exec_and_increment_within_threshold(
            address, send_another_email, threshold=5, interval=600
        )
"""

from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from window_limiter.adapters.store.base import AbstractCounterStore, AbstractLockProvider
from window_limiter.adapters.store.factory import create_counter_backend
from window_limiter.core.config import Settings, settings as default_settings
from window_limiter.core.errors import InvalidConfigurationError
from window_limiter.limiter.buckets import BucketLayout
from window_limiter.limiter.counter import WindowCounter
from window_limiter.limiter.executor import BlockingExecutor, ExecutionDefaults
from window_limiter.limiter.guard import ThresholdCheck, ThresholdGuard
from window_limiter.limiter.observers import ExecutionObserver
from window_limiter.limiter.waiting import Waiter

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RateLimit:
    """Approximate sliding-window rate limit backed by a shared counter store.

    Args:
        key: Name uniquely identifying this limit family (e.g. ``"emails"``).
        bucket_span: Time span to track in seconds.
        bucket_interval: Seconds each bucket represents.
        bucket_expiry: Seconds an untouched subject record is kept. Defaults
            to ``bucket_span`` and cannot be larger.
        store: Counter store. Built from settings when omitted.
        locks: Lock provider used by ``exec_and_increment_within_threshold``.
            Built together with the store when both are omitted.
        clock: Time source returning UNIX time in seconds.
        waiter: Wait strategy for the polling loops.
        observer: Receives lifecycle events from the polling loops.
        defaults: Per-call option defaults for the blocking strategies.

    Raises:
        InvalidConfigurationError: If the bucket configuration is invalid.
    """

    def __init__(
        self,
        key: str,
        *,
        bucket_span: int = 600,
        bucket_interval: int = 5,
        bucket_expiry: int | None = None,
        store: AbstractCounterStore | None = None,
        locks: AbstractLockProvider | None = None,
        clock: Callable[[], float] = time.time,
        waiter: Waiter | None = None,
        observer: ExecutionObserver | None = None,
        defaults: ExecutionDefaults | None = None,
    ) -> None:
        if not key:
            raise InvalidConfigurationError(
                code="missing_key",
                message="key must be a non-empty string",
            )

        self._key = key
        self._layout = BucketLayout.build(
            bucket_span=bucket_span,
            bucket_interval=bucket_interval,
            bucket_expiry=bucket_expiry,
        )

        if store is None:
            store, backend_locks = create_counter_backend()
            locks = locks or backend_locks

        self._counter = WindowCounter(key, self._layout, store, clock=clock)
        self._guard = ThresholdGuard(self._counter)
        self._executor = BlockingExecutor(
            self._counter,
            self._guard,
            locks=locks,
            waiter=waiter,
            observer=observer,
            defaults=defaults,
        )

        logger.debug(
            "ratelimit.created",
            extra={
                "limit_key": key,
                "bucket_span": self._layout.bucket_span,
                "bucket_interval": self._layout.bucket_interval,
                "bucket_count": self._layout.bucket_count,
                "bucket_expiry": self._layout.bucket_expiry,
            },
        )

    @classmethod
    def from_settings(
        cls,
        key: str,
        config: Settings | None = None,
        **overrides,
    ) -> "RateLimit":
        """Build a limiter from ``RATELIMIT_*`` / ``REDIS_*`` settings.

        Keyword ``overrides`` are passed to the constructor and win over
        settings.
        """
        cfg = config or default_settings
        limiter_cfg = cfg.limiter

        options: dict = {
            "bucket_span": limiter_cfg.bucket_span,
            "bucket_interval": limiter_cfg.bucket_interval,
            "bucket_expiry": limiter_cfg.bucket_expiry,
            "defaults": ExecutionDefaults(
                threshold=limiter_cfg.default_threshold,
                interval=limiter_cfg.default_interval,
                acquire=limiter_cfg.acquire_timeout_seconds,
                max_wait=limiter_cfg.max_wait_seconds,
            ),
        }
        if "store" not in overrides:
            options["store"], options["locks"] = create_counter_backend(cfg)
        options.update(overrides)
        return cls(key, **options)

    @property
    def key(self) -> str:
        return self._key

    @property
    def layout(self) -> BucketLayout:
        return self._layout

    @property
    def waiter(self) -> Waiter:
        return self._executor.waiter

    def add(self, subject: str, count: int = 1) -> int:
        """Add ``count`` events for ``subject``; returns the current bucket's value."""
        return self._counter.add(subject, count)

    def count(self, subject: str, interval: float) -> int:
        """Events for ``subject`` in the trailing ``interval`` seconds (clamped)."""
        return self._counter.count(subject, interval)

    def check(self, subject: str, *, interval: float, threshold: int) -> ThresholdCheck:
        return self._guard.check(subject, interval=interval, threshold=threshold)

    def exceeded(self, subject: str, *, interval: float, threshold: int) -> bool:
        return self._guard.exceeded(subject, interval=interval, threshold=threshold)

    def within_bounds(self, subject: str, *, interval: float, threshold: int) -> bool:
        return self._guard.within_bounds(subject, interval=interval, threshold=threshold)

    def exec_within_threshold(self, subject: str, work: Callable[[], T], **options) -> T:
        """Block the current thread until within bounds, then run ``work``.

        See ``BlockingExecutor.exec_within_threshold`` for the options.
        """
        return self._executor.exec_within_threshold(subject, work, **options)

    def exec_and_increment_within_threshold(
        self, subject: str, work: Callable[[], T], **options
    ) -> T:
        """Thread- and process-safe variant that increments before running ``work``.

        See ``BlockingExecutor.exec_and_increment_within_threshold`` for the options.
        """
        return self._executor.exec_and_increment_within_threshold(subject, work, **options)
