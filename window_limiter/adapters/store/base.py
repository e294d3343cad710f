"""Counter store and lock interfaces.

The limiter depends on these abstractions (not the concrete implementations)
so the storage backend can be swapped without touching the window algorithm.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Sequence


class AbstractCounterStore(ABC):
    """Per-subject hash counters keyed by bucket index."""

    @abstractmethod
    def increment_bucket(
        self,
        key: str,
        field: int,
        delta: int,
        *,
        clear_fields: Sequence[int],
        ttl_seconds: int,
    ) -> int:
        """Atomically increment one bucket, clear others and refresh expiry.

        All three steps must apply as one unit: concurrent calls for the same
        key never interleave them.

        Args:
            key: Subject record key (``{limiter_key}:{subject}``).
            field: Bucket index to increment.
            delta: Amount to add (field created at 0 if absent).
            clear_fields: Bucket indices to delete (no-op when absent).
            ttl_seconds: Expiry applied to the whole record.

        Returns:
            The value of ``field`` after the increment.
        """
        raise NotImplementedError

    @abstractmethod
    def get_buckets(self, key: str, fields: Sequence[int]) -> list[int | None]:
        """Read several buckets in one batched call.

        Returns:
            One entry per requested field, ``None`` where the field is absent.
        """
        raise NotImplementedError


class HeldLock:
    """Handle on an acquired lock, yielded by ``AbstractLockProvider.hold``."""

    def renew(self) -> None:
        """Restart the lock's lease. Locks without a lease ignore this."""


class AbstractLockProvider(ABC):
    """Named distributed mutual exclusion."""

    @abstractmethod
    def hold(self, name: str, owner: str, acquire_timeout: float) -> AbstractContextManager[HeldLock]:
        """Return a context manager holding the lock ``name`` for ``owner``.

        Entering blocks up to ``acquire_timeout`` seconds and raises
        ``LockTimeoutError`` if the lock is still taken. The lock is released
        on exit, including when the body raises. Holders that keep the lock
        for long periods call ``renew()`` on the yielded handle.
        """
        raise NotImplementedError
