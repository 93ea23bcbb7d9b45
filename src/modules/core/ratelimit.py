"""Pluggable fixed-window rate limiting.

``RateLimiter`` is the collaborator contract; ``CacheRateLimiter`` keeps
its counters in Django's cache so every worker process shares them (Redis
in production, where ``incr`` is atomic).  Each window is its own cache
key with an explicit TTL equal to the window length, so counters expire
on their own and ``reset`` only has to drop the current window.

``RateLimitedThrottle`` adapts a limiter to DRF's throttle API.  DRF
instantiates throttles without arguments, so the default limiter comes
from ``settings.RATE_LIMITER``; tests and callers may pass one explicitly.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Tuple

import structlog
from django.conf import settings
from django.core.cache import caches
from django.utils.module_loading import import_string
from rest_framework.settings import api_settings
from rest_framework.throttling import BaseThrottle

logger = structlog.get_logger(__name__)

_PERIODS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    count: int
    limit: int
    retry_after: int


class RateLimiter(Protocol):
    def hit(self, key: str, limit: int, window: int) -> RateLimitResult: ...

    def reset(self, key: str, window: int) -> None: ...


class CacheRateLimiter:
    """Fixed-window counter stored in a Django cache backend."""

    def __init__(
        self,
        cache_alias: str = "default",
        prefix: str = "ratelimit",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._cache = caches[cache_alias]
        self._prefix = prefix
        self._clock = clock

    def _window_key(self, key: str, window: int, now: int) -> str:
        return f"{self._prefix}:{key}:{window}:{now // window}"

    def hit(self, key: str, limit: int, window: int) -> RateLimitResult:
        now = int(self._clock())
        bucket = self._window_key(key, window, now)
        self._cache.add(bucket, 0, timeout=window)
        try:
            count = self._cache.incr(bucket)
        except ValueError:
            # Window expired between add and incr
            self._cache.add(bucket, 1, timeout=window)
            count = 1
        retry_after = window - (now % window)
        return RateLimitResult(
            allowed=count <= limit,
            count=count,
            limit=limit,
            retry_after=retry_after,
        )

    def reset(self, key: str, window: int) -> None:
        now = int(self._clock())
        self._cache.delete(self._window_key(key, window, now))


def parse_rate(rate: str) -> Tuple[int, int]:
    """Parse ``"5/minute"`` into ``(5, 60)``."""
    num, period = rate.split("/")
    return int(num), _PERIODS[period.strip()[0]]


def get_rate_limiter() -> RateLimiter:
    return import_string(settings.RATE_LIMITER)()


class RateLimitedThrottle(BaseThrottle):
    """Throttle keyed by ``view.throttle_scope`` and the requesting user."""

    def __init__(self, limiter: Optional[RateLimiter] = None) -> None:
        self._limiter = limiter or get_rate_limiter()
        self._wait: Optional[int] = None

    def allow_request(self, request, view) -> bool:
        scope = getattr(view, "throttle_scope", None)
        if not scope:
            return True
        rate = api_settings.DEFAULT_THROTTLE_RATES.get(scope)
        if rate is None:
            return True

        limit, window = parse_rate(rate)
        if request.user and request.user.is_authenticated:
            ident = f"user:{request.user.pk}"
        else:
            ident = f"ip:{self.get_ident(request)}"

        result = self._limiter.hit(f"{scope}:{ident}", limit, window)
        if not result.allowed:
            self._wait = result.retry_after
            logger.warning(
                "ratelimit.exceeded",
                scope=scope,
                ident=ident,
                count=result.count,
                limit=limit,
            )
        return result.allowed

    def wait(self) -> Optional[int]:
        return self._wait
