"""Rate limiting dependency for FastAPI routes.

This module wires a sliding-window ``RateLimit`` into the HTTP layer.

Design goals:
- Minimal coupling: routes depend on a dependency function only.
- Shared state: counters live in the limiter's store, so every worker
  enforces the same limit.
- Safe defaults: can be switched off via settings.

Strategy:
- Reject with 429 when the subject's count within the interval is at or
  above the threshold; otherwise count the request and let it through.
- Subject is the API key when present, otherwise the client IP.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from fastapi import HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool

from window_limiter.core.config import LimiterSettings, settings
from window_limiter.core.logging import hash_subject
from window_limiter.limiter.ratelimit import RateLimit

logger = logging.getLogger(__name__)

SubjectResolver = Callable[[Request], str]


def subject_from_request(request: Request) -> str:
    """Build the limiter subject for the current request.

    Args:
        request: FastAPI request.

    Returns:
        str: Namespaced subject (``api_key:...`` or ``ip:...``).
    """

    api_key = request.headers.get("X-API-Key")
    if api_key:
        return f"api_key:{api_key}"

    client_host = request.client.host if request.client else "unknown"
    return f"ip:{client_host}"


def build_rate_limit_dependency(
    limiter: RateLimit,
    *,
    threshold: int | None = None,
    interval: int | None = None,
    subject_resolver: SubjectResolver = subject_from_request,
    limiter_settings: LimiterSettings | None = None,
) -> Callable[[Request], Awaitable[None]]:
    """Create a FastAPI dependency enforcing ``limiter`` on each request.

    Args:
        limiter: Limiter holding the request counters.
        threshold: Max requests per interval; defaults to ``RATELIMIT_HTTP_THRESHOLD``.
        interval: Window in seconds; defaults to ``RATELIMIT_HTTP_INTERVAL``.
        subject_resolver: Maps a request to the subject being limited.
        limiter_settings: Settings to read defaults and flags from.

    Returns:
        Async dependency raising HTTP 429 when the subject is over the limit.
    """

    cfg = limiter_settings or settings.limiter
    limit = threshold if threshold is not None else cfg.http_threshold
    window = interval if interval is not None else cfg.http_interval

    def _check_and_count(subject: str) -> tuple[bool, int]:
        check = limiter.check(subject, interval=window, threshold=limit)
        if check.exceeded:
            return False, check.count
        limiter.add(subject)
        return True, check.count + 1

    async def enforce_rate_limit(request: Request) -> None:
        """FastAPI dependency enforcing the sliding-window limit.

        Raises:
            HTTPException: 429 Too Many Requests when the limit is reached.
        """

        if not cfg.http_enabled:
            return

        subject = subject_resolver(request)
        # Store calls are blocking network I/O
        allowed, used = await run_in_threadpool(_check_and_count, subject)
        remaining = max(0, limit - used)

        if allowed:
            logger.info(
                "rate_limit.allowed",
                extra={
                    "limit_key": limiter.key,
                    "subject_hash": hash_subject(subject),
                    "limit": limit,
                    "remaining": remaining,
                    "window_s": window,
                },
            )
            return

        retry_after = limiter.layout.bucket_interval
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "limit_key": limiter.key,
                "subject_hash": hash_subject(subject),
                "limit": limit,
                "count": used,
                "window_s": window,
                "retry_after_s": retry_after,
            },
        )

        headers: dict[str, str] = {}
        if cfg.http_include_headers:
            headers["Retry-After"] = str(retry_after)
            headers["X-RateLimit-Limit"] = str(limit)
            headers["X-RateLimit-Remaining"] = str(remaining)

        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded. Try again later.",
            headers=headers or None,
        )

    return enforce_rate_limit
