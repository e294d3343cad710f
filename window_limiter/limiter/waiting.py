"""Wait strategies used by the blocking executors.

Polling loops never call ``time.sleep`` directly; they go through a
``Waiter`` so callers can cancel a stuck wait or substitute a simulated one.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod

from window_limiter.core.errors import WaitCancelledError


class Waiter(ABC):
    """Suspends the calling thread between threshold checks."""

    @abstractmethod
    def wait(self, seconds: float) -> None:
        """Block for ``seconds``.

        Raises:
            WaitCancelledError: If the wait was cancelled.
        """
        raise NotImplementedError


class EventWaiter(Waiter):
    """Blocks on a ``threading.Event`` so another thread can cut the wait short.

    Once ``cancel()`` is called every current and future ``wait`` raises
    ``WaitCancelledError`` until ``reset()``.
    """

    def __init__(self) -> None:
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def reset(self) -> None:
        self._cancelled.clear()

    def wait(self, seconds: float) -> None:
        if self._cancelled.wait(timeout=seconds):
            raise WaitCancelledError(
                code="wait_cancelled",
                message="Rate limit wait was cancelled",
            )
