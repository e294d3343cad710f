"""Redis-backed counter store and lock provider.

Every process pointing at the same Redis (and namespace) shares one view of
each subject's buckets. Bucket updates run in a MULTI/EXEC pipeline, locks use
redis-py's token-based ``Lock`` with a lease.

Connection errors from redis-py propagate unchanged; retries are a caller
concern.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Sequence

import redis
import redis.lock

from window_limiter.adapters.store.base import AbstractCounterStore, AbstractLockProvider, HeldLock
from window_limiter.core.config import RedisSettings
from window_limiter.core.errors import LockTimeoutError

logger = logging.getLogger(__name__)


def create_redis_client(redis_settings: RedisSettings) -> redis.Redis:
    """Build a redis-py client from settings."""

    return redis.Redis.from_url(
        redis_settings.url,
        socket_timeout=redis_settings.socket_timeout_seconds,
    )


class _Namespaced:
    def __init__(self, client: redis.Redis, namespace: str | None) -> None:
        self._client = client
        self._namespace = namespace

    def _key(self, key: str) -> str:
        if not self._namespace:
            return key
        return f"{self._namespace}:{key}"


class RedisCounterStore(_Namespaced, AbstractCounterStore):
    """Hash counters stored in Redis, one hash per subject."""

    def __init__(self, client: redis.Redis, *, namespace: str | None = "ratelimit") -> None:
        super().__init__(client, namespace)

    def increment_bucket(
        self,
        key: str,
        field: int,
        delta: int,
        *,
        clear_fields: Sequence[int],
        ttl_seconds: int,
    ) -> int:
        name = self._key(key)
        with self._client.pipeline(transaction=True) as pipe:
            pipe.hincrby(name, str(field), delta)
            for stale in clear_fields:
                pipe.hdel(name, str(stale))
            pipe.expire(name, ttl_seconds)
            results = pipe.execute()
        return int(results[0])

    def get_buckets(self, key: str, fields: Sequence[int]) -> list[int | None]:
        if not fields:
            return []
        values = self._client.hmget(self._key(key), [str(f) for f in fields])
        return [None if value is None else int(value) for value in values]


class _RedisHeldLock(HeldLock):
    def __init__(self, lock: redis.lock.Lock) -> None:
        self._lock = lock

    def renew(self) -> None:
        # Raises LockNotOwnedError if the lease already ran out
        self._lock.reacquire()


class RedisLockProvider(_Namespaced, AbstractLockProvider):
    """Distributed locks backed by redis-py's ``Lock``.

    The caller's owner token is stored as the lock value, so only the owner
    that acquired a lock can release it. The lease bounds how long a crashed
    holder can keep a subject locked; live holders restart it with
    ``renew()``, so the lease must be longer than one bucket interval.
    """

    def __init__(
        self,
        client: redis.Redis,
        *,
        namespace: str | None = "ratelimit",
        lease_seconds: float = 60.0,
    ) -> None:
        super().__init__(client, namespace)
        self._lease_seconds = lease_seconds

    @contextmanager
    def hold(self, name: str, owner: str, acquire_timeout: float) -> Iterator[HeldLock]:
        lock = self._client.lock(
            self._key(name),
            timeout=self._lease_seconds,
            blocking=True,
            blocking_timeout=acquire_timeout,
        )
        if not lock.acquire(token=owner):
            raise LockTimeoutError(
                code="lock_timeout",
                message=f"Could not acquire lock '{name}' within {acquire_timeout}s",
                details={"lock_name": name, "owner": owner, "acquire_timeout": acquire_timeout},
            )
        try:
            yield _RedisHeldLock(lock)
        finally:
            lock.release()
