"""Tests for the FastAPI rate limit dependency."""

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from window_limiter.core.config import LimiterSettings
from window_limiter.core.rate_limit import build_rate_limit_dependency, subject_from_request


@pytest.fixture
def limiter(make_limiter):
    return make_limiter("http", bucket_span=60, bucket_interval=10)


def _client(
    limiter,
    *,
    limiter_settings: LimiterSettings | None = None,
    subject_resolver=subject_from_request,
) -> TestClient:
    app = FastAPI()
    dependency = build_rate_limit_dependency(
        limiter,
        threshold=2,
        interval=60,
        subject_resolver=subject_resolver,
        limiter_settings=limiter_settings or LimiterSettings(http_enabled=True, http_include_headers=True),
    )

    @app.get("/ping", dependencies=[Depends(dependency)])
    async def ping() -> dict:
        return {"ok": True}

    return TestClient(app)


def test_allows_up_to_threshold_then_429(limiter) -> None:
    client = _client(limiter)

    assert client.get("/ping").status_code == 200
    assert client.get("/ping").status_code == 200

    blocked = client.get("/ping")
    assert blocked.status_code == 429
    assert blocked.json()["detail"] == "Rate limit exceeded. Try again later."
    assert blocked.headers["Retry-After"] == "10"
    assert blocked.headers["X-RateLimit-Limit"] == "2"
    assert blocked.headers["X-RateLimit-Remaining"] == "0"


def test_blocked_requests_are_not_counted(limiter) -> None:
    client = _client(limiter)

    for _ in range(4):
        client.get("/ping")

    assert limiter.count("ip:testclient", 60) == 2


def test_api_key_and_ip_are_separate_subjects(limiter) -> None:
    client = _client(limiter)

    client.get("/ping")
    client.get("/ping")

    assert client.get("/ping").status_code == 429
    assert client.get("/ping", headers={"X-API-Key": "k1"}).status_code == 200
    assert limiter.count("api_key:k1", 60) == 1


def test_window_slides(limiter, clock) -> None:
    client = _client(limiter)

    client.get("/ping")
    client.get("/ping")
    assert client.get("/ping").status_code == 429

    clock.advance(60)
    assert client.get("/ping").status_code == 200


def test_headers_can_be_disabled(limiter) -> None:
    client = _client(limiter, limiter_settings=LimiterSettings(http_include_headers=False))

    client.get("/ping")
    client.get("/ping")
    blocked = client.get("/ping")

    assert blocked.status_code == 429
    assert "Retry-After" not in blocked.headers


def test_disabled_dependency_lets_everything_through(limiter) -> None:
    client = _client(limiter, limiter_settings=LimiterSettings(http_enabled=False))

    assert all(client.get("/ping").status_code == 200 for _ in range(5))
    assert limiter.count("ip:testclient", 60) == 0


def test_custom_subject_resolver(limiter) -> None:
    client = _client(limiter, subject_resolver=lambda request: "tenant:acme")

    client.get("/ping")

    assert limiter.count("tenant:acme", 60) == 1
