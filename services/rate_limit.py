# services/rate_limit.py
"""
Fixed-window rate limiting for the public API, kept in process memory.
Each API process enforces its own window.
"""
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass

from api.app.config import get_settings

logger = logging.getLogger(__name__)


@dataclass
class RateLimitResult:
    success: bool
    limit: int
    remaining: int
    reset: int  # unix seconds when the window ends

    def headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset),
        }


class RateLimiter:
    def __init__(self, limits: dict[str, int], window_seconds: int = 60) -> None:
        self.limits = limits
        self.window_seconds = window_seconds
        self._windows: dict[tuple[str, str], tuple[float, int]] = {}

    def limit_for(self, tier: str) -> int:
        return self.limits.get(tier, self.limits["default"])

    def check(self, identifier: str, tier: str = "default", now: float | None = None) -> RateLimitResult:
        now = time.time() if now is None else now
        limit = self.limit_for(tier)
        key = (identifier, tier)

        started, count = self._windows.get(key, (now, 0))
        if now - started >= self.window_seconds:
            started, count = now, 0

        reset = math.ceil(started + self.window_seconds)
        if count >= limit:
            logger.warning("Rate limit hit for %s on %s (%d/%d)", identifier, tier, count, limit)
            return RateLimitResult(False, limit, 0, reset)

        count += 1
        self._windows[key] = (started, count)
        return RateLimitResult(True, limit, limit - count, reset)

    def reset(self) -> None:
        self._windows.clear()


_limiter: RateLimiter | None = None


def get_rate_limiter() -> RateLimiter:
    global _limiter
    if _limiter is None:
        settings = get_settings()
        _limiter = RateLimiter(
            {"scores": settings.rate_limit_scores, "default": settings.rate_limit_default},
            window_seconds=settings.rate_limit_window_seconds,
        )
    return _limiter
