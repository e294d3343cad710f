"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any import that loads settings, so the
tests never pick up a developer's .env file or talk to a real Redis.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["LIMITER_ENV"] = "testing"
os.environ.setdefault("RATELIMIT_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from typing import Callable

import pytest

from window_limiter.adapters.store.in_memory import InMemoryCounterStore, InMemoryLockProvider
from window_limiter.limiter.ratelimit import RateLimit
from window_limiter.limiter.waiting import Waiter


class FakeClock:
    """Deterministic clock used to simulate the passage of time."""

    def __init__(self, start: float = 1_200.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


class AdvancingWaiter(Waiter):
    """Waiter that moves a FakeClock forward instead of sleeping."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.calls: list[float] = []

    def wait(self, seconds: float) -> None:
        self.calls.append(seconds)
        self.clock.advance(seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def waiter(clock: FakeClock) -> AdvancingWaiter:
    return AdvancingWaiter(clock)


@pytest.fixture
def store(clock: FakeClock) -> InMemoryCounterStore:
    return InMemoryCounterStore(clock=clock)


@pytest.fixture
def locks() -> InMemoryLockProvider:
    return InMemoryLockProvider()


@pytest.fixture
def make_limiter(
    clock: FakeClock,
    store: InMemoryCounterStore,
    locks: InMemoryLockProvider,
    waiter: AdvancingWaiter,
) -> Callable[..., RateLimit]:
    """Build a RateLimit on the in-memory store with simulated time."""

    def _make(key: str = "emails", **kwargs) -> RateLimit:
        options = {
            "store": store,
            "locks": locks,
            "clock": clock,
            "waiter": waiter,
        }
        options.update(kwargs)
        return RateLimit(key, **options)

    return _make
