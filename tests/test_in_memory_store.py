"""Unit tests for the in-memory counter store and lock provider."""

import threading

import pytest

from window_limiter.adapters.store.in_memory import InMemoryCounterStore, InMemoryLockProvider
from window_limiter.core.errors import LockTimeoutError


def test_increment_creates_field_at_zero(store: InMemoryCounterStore) -> None:
    assert store.increment_bucket("k", 0, 3, clear_fields=(), ttl_seconds=60) == 3
    assert store.increment_bucket("k", 0, 2, clear_fields=(), ttl_seconds=60) == 5


def test_increment_clears_fields_and_ignores_missing(store: InMemoryCounterStore) -> None:
    store.increment_bucket("k", 1, 1, clear_fields=(), ttl_seconds=60)
    store.increment_bucket("k", 2, 1, clear_fields=(), ttl_seconds=60)

    store.increment_bucket("k", 0, 1, clear_fields=(1, 7), ttl_seconds=60)

    assert store.get_buckets("k", [0, 1, 2, 7]) == [1, None, 1, None]


def test_get_buckets_of_missing_key(store: InMemoryCounterStore) -> None:
    assert store.get_buckets("missing", [0, 1]) == [None, None]
    assert store.ttl("missing") is None


def test_record_expires_with_clock(store: InMemoryCounterStore, clock) -> None:
    store.increment_bucket("k", 0, 1, clear_fields=(), ttl_seconds=10)

    clock.advance(9)
    assert store.get_buckets("k", [0]) == [1]

    clock.advance(1)
    assert store.get_buckets("k", [0]) == [None]


def test_increment_after_expiry_starts_fresh(store: InMemoryCounterStore, clock) -> None:
    store.increment_bucket("k", 0, 4, clear_fields=(), ttl_seconds=10)
    clock.advance(10)

    assert store.increment_bucket("k", 0, 1, clear_fields=(), ttl_seconds=10) == 1


def test_thread_safety_under_concurrent_increments() -> None:
    store = InMemoryCounterStore()

    def _writer() -> None:
        for _ in range(100):
            store.increment_bucket("k", 0, 1, clear_fields=(1, 2), ttl_seconds=60)

    threads = [threading.Thread(target=_writer) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.get_buckets("k", [0]) == [800]


def test_lock_records_owner_and_releases() -> None:
    locks = InMemoryLockProvider()

    with locks.hold("bob-ratelimit-lock", "owner-1", 1):
        assert locks.is_locked("bob-ratelimit-lock")
        assert locks.owner_of("bob-ratelimit-lock") == "owner-1"

    assert not locks.is_locked("bob-ratelimit-lock")
    assert locks.owner_of("bob-ratelimit-lock") is None


def test_lock_released_when_body_raises() -> None:
    locks = InMemoryLockProvider()

    with pytest.raises(ValueError):
        with locks.hold("n", "o", 1):
            raise ValueError("boom")

    assert not locks.is_locked("n")


def test_lock_is_not_reentrant() -> None:
    locks = InMemoryLockProvider()

    with locks.hold("n", "o", 1):
        with pytest.raises(LockTimeoutError):
            with locks.hold("n", "o", 0.01):
                pass


def test_lock_waits_for_release_from_other_thread() -> None:
    locks = InMemoryLockProvider()
    acquired = threading.Event()
    release = threading.Event()

    def _holder() -> None:
        with locks.hold("n", "first", 1):
            acquired.set()
            release.wait(timeout=5)

    holder = threading.Thread(target=_holder)
    holder.start()
    acquired.wait(timeout=5)

    threading.Timer(0.05, release.set).start()
    with locks.hold("n", "second", 5):
        assert locks.owner_of("n") == "second"

    holder.join(timeout=5)


def test_expired_records_are_swept_on_a_later_write(store: InMemoryCounterStore, clock) -> None:
    for n in range(1000):
        store.increment_bucket(f"emails:user-{n}", 0, 1, clear_fields=(), ttl_seconds=10)
    assert len(store) == 1000

    clock.advance(3600)
    store.increment_bucket("emails:bob", 0, 1, clear_fields=(), ttl_seconds=10)

    assert len(store) == 1


def test_sweep_keeps_live_records(clock) -> None:
    store = InMemoryCounterStore(clock=clock, sweep_interval=5)
    store.increment_bucket("short", 0, 1, clear_fields=(), ttl_seconds=10)
    store.increment_bucket("long", 0, 1, clear_fields=(), ttl_seconds=600)

    clock.advance(60)
    store.increment_bucket("other", 0, 1, clear_fields=(), ttl_seconds=600)

    assert len(store) == 2
    assert store.get_buckets("long", [0]) == [1]


def test_lock_entries_are_dropped_after_release() -> None:
    locks = InMemoryLockProvider()

    for n in range(1000):
        with locks.hold(f"user-{n}-ratelimit-lock", "o", 1):
            pass

    assert len(locks) == 0


def test_lock_entry_survives_a_timed_out_waiter() -> None:
    locks = InMemoryLockProvider()

    with locks.hold("n", "first", 1):
        with pytest.raises(LockTimeoutError):
            with locks.hold("n", "second", 0.01):
                pass
        assert locks.owner_of("n") == "first"
        assert len(locks) == 1

    assert len(locks) == 0


def test_is_locked_does_not_create_entries() -> None:
    locks = InMemoryLockProvider()

    assert locks.is_locked("nobody-ratelimit-lock") is False
    assert locks.owner_of("nobody-ratelimit-lock") is None
    assert len(locks) == 0
