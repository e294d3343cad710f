"""Circular time-bucket model.

Wall-clock time is folded onto a ring of ``bucket_count`` buckets, each
covering ``bucket_interval`` seconds; the ring wraps every ``bucket_span``
seconds. A bucket index is therefore reused by events exactly one span
apart, which is what keeps storage bounded and what makes the window
approximate.
"""

from __future__ import annotations

from dataclasses import dataclass

from window_limiter.core.errors import InvalidConfigurationError

MIN_BUCKETS = 3


@dataclass(frozen=True)
class BucketLayout:
    """Validated bucket configuration for one limiter.

    Attributes:
        bucket_span: Total tracked duration in seconds.
        bucket_interval: Seconds represented by one bucket.
        bucket_expiry: Seconds before an untouched subject record expires.
        bucket_count: Number of buckets in the ring.
    """

    bucket_span: int
    bucket_interval: int
    bucket_expiry: int
    bucket_count: int

    @classmethod
    def build(
        cls,
        *,
        bucket_span: int = 600,
        bucket_interval: int = 5,
        bucket_expiry: int | None = None,
    ) -> "BucketLayout":
        """Validate the configuration and derive the bucket count.

        Raises:
            InvalidConfigurationError: If the span or interval is not positive,
                the expiry exceeds the span, or fewer than 3 buckets result.
        """
        if bucket_span <= 0 or bucket_interval <= 0:
            raise InvalidConfigurationError(
                code="invalid_bucket_size",
                message="bucket_span and bucket_interval must be positive",
            )

        expiry = bucket_span if bucket_expiry is None else bucket_expiry
        if expiry > bucket_span:
            raise InvalidConfigurationError(
                code="bucket_expiry_too_large",
                message="Bucket expiry cannot be larger than the bucket span",
                details={"actual_value": expiry, "limit_value": bucket_span},
            )

        bucket_count = round(bucket_span / bucket_interval)
        if bucket_count < MIN_BUCKETS:
            raise InvalidConfigurationError(
                code="too_few_buckets",
                message=f"Cannot have less than {MIN_BUCKETS} buckets",
                details={"min_value": MIN_BUCKETS, "actual_value": bucket_count},
            )

        return cls(
            bucket_span=bucket_span,
            bucket_interval=bucket_interval,
            bucket_expiry=expiry,
            bucket_count=bucket_count,
        )

    def bucket_for(self, timestamp: float) -> int:
        """Map a UNIX timestamp to its bucket index in ``[0, bucket_count)``."""
        seconds = int(timestamp)
        # The modulo keeps the index on the ring when the span is not an
        # exact multiple of the interval.
        return ((seconds % self.bucket_span) // self.bucket_interval) % self.bucket_count

    def clamp_interval(self, interval: float) -> float:
        return min(max(interval, self.bucket_interval), self.bucket_span)

    def window_buckets(self, current: int, interval: float) -> list[int]:
        """Buckets covering a trailing ``interval``, newest first.

        ``interval`` is clamped to ``[bucket_interval, bucket_span]``.
        """
        clamped = self.clamp_interval(interval)
        steps = int(clamped // self.bucket_interval)
        return [(current - i) % self.bucket_count for i in range(steps)]

    def stale_buckets(self, current: int) -> tuple[int, int]:
        """The two buckets ahead of ``current``: the oldest data on the ring."""
        return (current + 1) % self.bucket_count, (current + 2) % self.bucket_count
