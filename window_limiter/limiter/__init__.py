from window_limiter.limiter.buckets import BucketLayout
from window_limiter.limiter.counter import WindowCounter
from window_limiter.limiter.executor import BlockingExecutor, ExecutionDefaults
from window_limiter.limiter.guard import ThresholdCheck, ThresholdGuard
from window_limiter.limiter.observers import ExecutionObserver, LoggingObserver
from window_limiter.limiter.ratelimit import RateLimit
from window_limiter.limiter.waiting import EventWaiter, Waiter

__all__ = [
    "BlockingExecutor",
    "BucketLayout",
    "EventWaiter",
    "ExecutionDefaults",
    "ExecutionObserver",
    "LoggingObserver",
    "RateLimit",
    "ThresholdCheck",
    "ThresholdGuard",
    "Waiter",
    "WindowCounter",
]
