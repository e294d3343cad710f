"""Windowed counting on top of a counter store."""

from __future__ import annotations

import time
from typing import Callable

from window_limiter.adapters.store.base import AbstractCounterStore
from window_limiter.limiter.buckets import BucketLayout


class WindowCounter:
    """Adds events to the current bucket and sums trailing windows.

    Subject records are stored under ``{key}:{subject}``; any outer namespace
    is the store's business.
    """

    def __init__(
        self,
        key: str,
        layout: BucketLayout,
        store: AbstractCounterStore,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._key = key
        self._layout = layout
        self._store = store
        self._clock = clock

    @property
    def layout(self) -> BucketLayout:
        return self._layout

    def record_key(self, subject: str) -> str:
        return f"{self._key}:{subject}"

    def current_bucket(self) -> int:
        return self._layout.bucket_for(self._clock())

    def add(self, subject: str, count: int = 1) -> int:
        """Add ``count`` events for ``subject`` to the current bucket.

        Clears the two buckets ahead of the current one and refreshes the
        record expiry in the same atomic store operation.

        Returns:
            The current bucket's value after the increment (not the window total).
        """
        bucket = self.current_bucket()
        return self._store.increment_bucket(
            self.record_key(subject),
            bucket,
            count,
            clear_fields=self._layout.stale_buckets(bucket),
            ttl_seconds=self._layout.bucket_expiry,
        )

    def count(self, subject: str, interval: float) -> int:
        """Number of events for ``subject`` in the trailing ``interval`` seconds.

        Intervals outside ``[bucket_interval, bucket_span]`` are clamped.
        """
        buckets = self._layout.window_buckets(self.current_bucket(), interval)
        values = self._store.get_buckets(self.record_key(subject), buckets)
        return sum(value or 0 for value in values)
