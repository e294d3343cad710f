"""Unit tests for the circular bucket layout."""

import pytest

from window_limiter.core.errors import InvalidConfigurationError
from window_limiter.limiter.buckets import BucketLayout


def test_defaults_give_120_buckets() -> None:
    layout = BucketLayout.build()

    assert layout.bucket_span == 600
    assert layout.bucket_interval == 5
    assert layout.bucket_expiry == 600
    assert layout.bucket_count == 120


@pytest.mark.parametrize(
    "timestamp, expected",
    [
        (1200, 0),
        (1209.9, 0),
        (1210, 1),
        (1229, 2),
        (1230, 0),
    ],
)
def test_bucket_for_wraps_every_span(timestamp: float, expected: int) -> None:
    layout = BucketLayout.build(bucket_span=30, bucket_interval=10)

    assert layout.bucket_for(timestamp) == expected


def test_bucket_for_stays_on_ring_when_span_is_not_a_multiple() -> None:
    layout = BucketLayout.build(bucket_span=10, bucket_interval=3)

    assert layout.bucket_count == 3
    assert all(0 <= layout.bucket_for(t) < 3 for t in range(0, 40))


def test_window_buckets_walk_backwards_and_wrap() -> None:
    layout = BucketLayout.build(bucket_span=60, bucket_interval=10)

    assert layout.window_buckets(1, 30) == [1, 0, 5]


@pytest.mark.parametrize(
    "interval, expected_len",
    [
        (1, 1),
        (5, 1),
        (14, 2),
        (600, 120),
        (10_000, 120),
    ],
)
def test_window_buckets_clamp_interval(interval: float, expected_len: int) -> None:
    layout = BucketLayout.build()

    assert len(layout.window_buckets(10, interval)) == expected_len


def test_stale_buckets_are_the_two_ahead() -> None:
    layout = BucketLayout.build(bucket_span=30, bucket_interval=10)

    assert layout.stale_buckets(0) == (1, 2)
    assert layout.stale_buckets(1) == (2, 0)
    assert layout.stale_buckets(2) == (0, 1)


@pytest.mark.parametrize(
    "kwargs, code",
    [
        ({"bucket_span": 20, "bucket_interval": 10}, "too_few_buckets"),
        ({"bucket_span": 10, "bucket_interval": 10}, "too_few_buckets"),
        ({"bucket_span": 600, "bucket_expiry": 601}, "bucket_expiry_too_large"),
        ({"bucket_span": 0}, "invalid_bucket_size"),
        ({"bucket_interval": -5}, "invalid_bucket_size"),
    ],
)
def test_invalid_configuration(kwargs: dict, code: str) -> None:
    with pytest.raises(InvalidConfigurationError) as exc_info:
        BucketLayout.build(**kwargs)

    assert exc_info.value.code == code


def test_three_buckets_is_the_minimum() -> None:
    layout = BucketLayout.build(bucket_span=30, bucket_interval=10, bucket_expiry=15)

    assert layout.bucket_count == 3
    assert layout.bucket_expiry == 15
