"""In-memory counter store and lock provider.

Notes:
- Per-process only: running multiple workers gives each its own counters.
- Thread-safe: uses a lock around shared state.
- Record expiry is evaluated against the injected clock: on access, and by a
  periodic sweep on writes so abandoned subjects do not accumulate.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator, Sequence

from window_limiter.adapters.store.base import AbstractCounterStore, AbstractLockProvider, HeldLock
from window_limiter.core.errors import LockTimeoutError

logger = logging.getLogger(__name__)


@dataclass
class _Record:
    buckets: dict[int, int] = field(default_factory=dict)
    expires_at: float | None = None


class InMemoryCounterStore(AbstractCounterStore):
    """Hash counters kept in a process-local dict.

    Important:
        This store is per-process only. If the application runs with multiple
        workers, each worker enforces its own independent limits.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        sweep_interval: float = 60.0,
    ) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._records: dict[str, _Record] = {}
        self._sweep_interval = sweep_interval
        self._last_sweep = clock()

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"InMemoryCounterStore(records={len(self._records)})"

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _is_expired(self, record: _Record, now: float) -> bool:
        return record.expires_at is not None and now >= record.expires_at

    def _live_record_locked(self, key: str) -> _Record | None:
        record = self._records.get(key)
        if record is None:
            return None
        if self._is_expired(record, self._clock()):
            del self._records[key]
            return None
        return record

    def _sweep_expired_locked(self, now: float) -> None:
        if now - self._last_sweep < self._sweep_interval:
            return
        self._last_sweep = now
        expired = [k for k, record in self._records.items() if self._is_expired(record, now)]
        for key in expired:
            del self._records[key]
        if expired:
            logger.debug(
                "store.expired_swept",
                extra={"swept": len(expired), "record_count": len(self._records)},
            )

    def increment_bucket(
        self,
        key: str,
        field: int,
        delta: int,
        *,
        clear_fields: Sequence[int],
        ttl_seconds: int,
    ) -> int:
        with self._lock:
            self._sweep_expired_locked(self._clock())
            record = self._live_record_locked(key)
            if record is None:
                record = _Record()
                self._records[key] = record

            record.buckets[field] = record.buckets.get(field, 0) + delta
            for stale in clear_fields:
                record.buckets.pop(stale, None)
            record.expires_at = self._clock() + ttl_seconds
            return record.buckets[field]

    def get_buckets(self, key: str, fields: Sequence[int]) -> list[int | None]:
        with self._lock:
            record = self._live_record_locked(key)
            if record is None:
                return [None] * len(fields)
            return [record.buckets.get(f) for f in fields]

    def ttl(self, key: str) -> float | None:
        """Seconds until ``key`` expires, or None when it does not exist."""

        with self._lock:
            record = self._live_record_locked(key)
            if record is None or record.expires_at is None:
                return None
            return record.expires_at - self._clock()


@dataclass
class _LockEntry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    # holders plus callers waiting to acquire
    users: int = 0
    owner: str | None = None


class InMemoryLockProvider(AbstractLockProvider):
    """Named locks shared by the threads of one process.

    Locks are not re-entrant: an owner acquiring a name it already holds
    waits like any other caller. An entry exists only while some caller
    holds or waits for the name.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[str, _LockEntry] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

    def _checkout(self, name: str) -> _LockEntry:
        with self._guard:
            entry = self._entries.get(name)
            if entry is None:
                entry = _LockEntry()
                self._entries[name] = entry
            entry.users += 1
            return entry

    def _checkin(self, name: str, entry: _LockEntry) -> None:
        with self._guard:
            entry.users -= 1
            if entry.users == 0:
                del self._entries[name]

    def owner_of(self, name: str) -> str | None:
        """Owner token currently holding ``name``, if any."""

        with self._guard:
            entry = self._entries.get(name)
            return entry.owner if entry else None

    def is_locked(self, name: str) -> bool:
        with self._guard:
            entry = self._entries.get(name)
            return entry is not None and entry.lock.locked()

    @contextmanager
    def hold(self, name: str, owner: str, acquire_timeout: float) -> Iterator[HeldLock]:
        entry = self._checkout(name)
        if not entry.lock.acquire(timeout=acquire_timeout):
            self._checkin(name, entry)
            raise LockTimeoutError(
                code="lock_timeout",
                message=f"Could not acquire lock '{name}' within {acquire_timeout}s",
                details={"lock_name": name, "owner": owner, "acquire_timeout": acquire_timeout},
            )
        with self._guard:
            entry.owner = owner
        try:
            yield HeldLock()
        finally:
            with self._guard:
                entry.owner = None
            entry.lock.release()
            self._checkin(name, entry)
