"""Factory for building the counter store and lock provider from settings."""

from __future__ import annotations

from window_limiter.adapters.store.base import AbstractCounterStore, AbstractLockProvider
from window_limiter.adapters.store.in_memory import InMemoryCounterStore, InMemoryLockProvider
from window_limiter.adapters.store.redis_store import (
    RedisCounterStore,
    RedisLockProvider,
    create_redis_client,
)
from window_limiter.core.config import Settings, settings as default_settings
from window_limiter.core.errors import InvalidConfigurationError


def create_counter_backend(
    config: Settings | None = None,
) -> tuple[AbstractCounterStore, AbstractLockProvider]:
    """Instantiate the configured counter store and its lock provider.

    Reads ``RATELIMIT_BACKEND`` (via settings) and routes to the matching
    adapters. Both adapters share one Redis client when the backend is Redis.

    Returns:
        Tuple of (counter store, lock provider).

    Raises:
        InvalidConfigurationError: If the backend name is unknown.
    """
    cfg = config or default_settings
    backend = cfg.limiter.backend.lower()

    if backend == "redis":
        client = create_redis_client(cfg.redis)
        return (
            RedisCounterStore(client, namespace=cfg.redis.namespace),
            RedisLockProvider(
                client,
                namespace=cfg.redis.namespace,
                lease_seconds=cfg.redis.lock_lease_seconds,
            ),
        )

    if backend == "memory":
        return InMemoryCounterStore(), InMemoryLockProvider()

    raise InvalidConfigurationError(
        code="unknown_backend",
        message=f"Unknown counter backend: '{backend}'. Supported backends: redis, memory",
        details={"backend": backend},
    )
