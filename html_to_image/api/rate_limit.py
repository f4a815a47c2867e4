"""
Rate Limiting
=============

Sliding window rate limiter with pluggable counter storage.

Each client key keeps the hit count of the current window, the hit count of
the previous window and the expiry of the current window. The effective rate
weights the previous window by the share of it still overlapping the sliding
window:

    rate = floor(prev_hits * seconds_until_reset / window) + curr_hits
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, Optional, Sequence, Tuple
import asyncio
import json
import time

import redis.asyncio as redis  # type: ignore[import-untyped]
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from html_to_image.api.auth import is_rate_limit_bypassed
from html_to_image.config.logging import get_logger
from html_to_image.config.settings import Settings

logger = get_logger(__name__)


@dataclass
class WindowEntry:
    """Counters of one client key."""

    curr_hits: int = 0
    prev_hits: int = 0
    expires_at: int = 0


@dataclass
class RateLimitResult:
    """Outcome of counting one request."""

    allowed: bool
    limit: int
    remaining: int
    reset_after: int


class RateLimitStorage(ABC):
    """Storage backend for window counters."""

    @abstractmethod
    async def get(self, key: str) -> Optional[WindowEntry]:
        """Load the counters of ``key``, if any."""

    @abstractmethod
    async def set(self, key: str, entry: WindowEntry, ttl: int) -> None:
        """Store the counters of ``key`` for ``ttl`` seconds."""

    async def close(self) -> None:
        """Release backend resources."""


class MemoryStorage(RateLimitStorage):
    """Process-local storage. Counters are not shared between workers.

    Expired entries are swept at most once per ``gc_interval`` seconds when
    counters are stored, so clients that never return do not accumulate.
    """

    def __init__(self, clock: Callable[[], float] = time.time, gc_interval: float = 10.0):
        self._entries: Dict[str, Tuple[WindowEntry, float]] = {}
        self._clock = clock
        self._gc_interval = gc_interval
        self._next_gc = clock() + gc_interval

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> Optional[WindowEntry]:
        item = self._entries.get(key)
        if item is None:
            return None

        entry, expires = item
        if self._clock() >= expires:
            del self._entries[key]
            return None
        return WindowEntry(**asdict(entry))

    async def set(self, key: str, entry: WindowEntry, ttl: int) -> None:
        now = self._clock()
        if now >= self._next_gc:
            self._purge_expired(now)
            self._next_gc = now + self._gc_interval
        self._entries[key] = (WindowEntry(**asdict(entry)), now + ttl)

    def _purge_expired(self, now: float) -> None:
        expired = [key for key, (_, expires) in self._entries.items() if now >= expires]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Purged expired rate limit entries", count=len(expired))


class RedisStorage(RateLimitStorage):
    """Redis storage so that every worker counts against the same windows."""

    def __init__(self, client: Any, prefix: str = "html_to_image:rate_limit:"):
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str) -> "RedisStorage":
        return cls(redis.from_url(url, decode_responses=True))  # type: ignore[attr-defined]

    async def get(self, key: str) -> Optional[WindowEntry]:
        raw = await self._client.get(self._prefix + key)
        if raw is None:
            return None
        return WindowEntry(**json.loads(raw))

    async def set(self, key: str, entry: WindowEntry, ttl: int) -> None:
        await self._client.set(self._prefix + key, json.dumps(asdict(entry)), ex=ttl)

    async def close(self) -> None:
        await self._client.aclose()


def create_storage(settings: Settings) -> RateLimitStorage:
    """Pick the counter storage configured in ``settings``."""
    if settings.rate_limit_storage_url:
        logger.info("Using Redis rate limit storage")
        return RedisStorage.from_url(settings.rate_limit_storage_url)
    return MemoryStorage()


class SlidingWindowRateLimiter:
    """Sliding window limiter allowing ``max_requests`` per ``window`` seconds."""

    def __init__(
        self,
        max_requests: int,
        window: int,
        storage: Optional[RateLimitStorage] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.max_requests = max_requests
        self.window = window
        self.storage = storage if storage is not None else MemoryStorage(clock)
        self._clock = clock
        self._lock = asyncio.Lock()

    async def hit(self, key: str) -> RateLimitResult:
        """Count one request for ``key`` and report whether it is allowed."""
        async with self._lock:
            now = int(self._clock())
            entry = await self.storage.get(key) or WindowEntry()

            if entry.expires_at == 0:
                entry.expires_at = now + self.window
            elif now >= entry.expires_at:
                elapsed = now - entry.expires_at
                if elapsed >= self.window:
                    # The previous window no longer overlaps
                    entry.prev_hits = 0
                    entry.expires_at = now + self.window
                else:
                    entry.prev_hits = entry.curr_hits
                    entry.expires_at = now + self.window - elapsed
                entry.curr_hits = 0

            entry.curr_hits += 1

            reset_after = entry.expires_at - now
            weight = reset_after / self.window
            rate = int(entry.prev_hits * weight) + entry.curr_hits
            remaining = self.max_requests - rate

            # Keep the counters through the next window, where they become prev_hits
            await self.storage.set(key, entry, reset_after + self.window)

        return RateLimitResult(
            allowed=remaining >= 0,
            limit=self.max_requests,
            remaining=max(remaining, 0),
            reset_after=reset_after,
        )

    async def close(self) -> None:
        await self.storage.close()


def client_key(request: Request) -> str:
    """Rate limit key of the calling client."""
    if request.client is None:
        return "unknown"
    return request.client.host


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject clients exceeding the sliding window limit with 429."""

    def __init__(
        self,
        app: ASGIApp,
        limiter: SlidingWindowRateLimiter,
        settings: Settings,
        exempt_paths: Sequence[str] = ("/health",),
    ):
        super().__init__(app)
        self.limiter = limiter
        self.settings = settings
        self.exempt_paths = set(exempt_paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in self.exempt_paths or is_rate_limit_bypassed(
            request, self.settings
        ):
            return await call_next(request)

        key = client_key(request)
        result = await self.limiter.hit(key)
        headers = {
            "X-RateLimit-Limit": str(result.limit),
            "X-RateLimit-Remaining": str(result.remaining),
            "X-RateLimit-Reset": str(result.reset_after),
        }

        if not result.allowed:
            logger.warning("Rate limit exceeded", client=key, limit=result.limit)
            headers["Retry-After"] = str(result.reset_after)
            return PlainTextResponse("Too Many Requests", status_code=429, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response
