from __future__ import annotations

import time

import structlog
from fastapi import Request
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from sciencehub.core.config import settings
from sciencehub.redis_client import get_redis

logger = structlog.get_logger(__name__)

_WINDOWS = {
    "s": 1,
    "sec": 1,
    "second": 1,
    "seconds": 1,
    "m": 60,
    "min": 60,
    "minute": 60,
    "minutes": 60,
    "h": 3600,
    "hour": 3600,
    "hours": 3600,
    "d": 86400,
    "day": 86400,
    "days": 86400,
}


def parse_rate(rate: str) -> tuple[int, int]:
    """Parse ``"60/minute"`` style limits into ``(limit, window_seconds)``."""
    count, sep, window = rate.strip().lower().partition("/")
    if not sep or window.strip() not in _WINDOWS:
        raise ValueError(f"invalid rate: {rate!r}")
    return int(count), _WINDOWS[window.strip()]


def _client_id(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        return forwarded.split(",", 1)[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed window counter per client and route, kept in Redis."""

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if (
            not settings.rate_limit_enabled
            or request.method == "OPTIONS"
            or path in settings.rate_limit_exempt_paths
        ):
            return await call_next(request)

        try:
            limit, window = parse_rate(settings.rate_limit_default)
        except ValueError:
            logger.warning("rate_limit_misconfigured", rate=settings.rate_limit_default)
            return await call_next(request)

        now = int(time.time())
        bucket = now // window
        reset = (bucket + 1) * window
        key = f"sh:rl:{_client_id(request)}:{request.method}:{path}:{window}:{bucket}"

        try:
            redis = get_redis()
            count = int(redis.incr(key))
            if count == 1:
                redis.expire(key, window)
        except RedisError:
            # Redis down: serve the request unlimited
            logger.warning("rate_limit_store_unavailable")
            return await call_next(request)

        headers = {
            "X-RateLimit-Limit": str(limit),
            "X-RateLimit-Remaining": str(max(0, limit - count)),
            "X-RateLimit-Reset": str(reset),
        }
        if count > limit:
            headers["Retry-After"] = str(max(0, reset - now))
            return JSONResponse(
                status_code=429,
                content={"detail": {"code": "RATE_LIMITED", "message": "rate limit exceeded"}},
                headers=headers,
            )

        response = await call_next(request)
        for name, value in headers.items():
            response.headers.setdefault(name, value)
        return response
