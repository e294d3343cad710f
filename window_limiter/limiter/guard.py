"""Threshold checks over a window count."""

from __future__ import annotations

from dataclasses import dataclass

from window_limiter.limiter.counter import WindowCounter


@dataclass(frozen=True)
class ThresholdCheck:
    """Result of comparing a subject's window count with a threshold.

    Attributes:
        count: Events seen in the (clamped) interval.
        threshold: Count at which the subject is considered over the limit.
        interval: Requested window length in seconds.
        exceeded: ``count >= threshold``.
        remaining: Events left before the threshold is reached (0 when exceeded).
    """

    count: int
    threshold: int
    interval: float
    exceeded: bool
    remaining: int


class ThresholdGuard:
    """Answers whether a subject has reached a threshold within an interval.

    Results are snapshots and may be stale by the time the caller acts.
    """

    def __init__(self, counter: WindowCounter) -> None:
        self._counter = counter

    def check(self, subject: str, *, interval: float, threshold: int) -> ThresholdCheck:
        count = self._counter.count(subject, interval)
        return ThresholdCheck(
            count=count,
            threshold=threshold,
            interval=interval,
            exceeded=count >= threshold,
            remaining=max(0, threshold - count),
        )

    def exceeded(self, subject: str, *, interval: float, threshold: int) -> bool:
        return self.check(subject, interval=interval, threshold=threshold).exceeded

    def within_bounds(self, subject: str, *, interval: float, threshold: int) -> bool:
        return not self.exceeded(subject, interval=interval, threshold=threshold)
