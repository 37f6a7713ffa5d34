"""Fixed-window rate limiting keyed by client address."""

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of counting one request against a key."""

    allowed: bool
    limit: int
    remaining: int
    reset_at: float  # wall clock, seconds since the epoch
    retry_after: int  # whole seconds until the window resets; 0 when allowed

    def headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(math.ceil(self.reset_at)),
        }


class WindowStore(Protocol):
    async def increment(self, key: str, window_seconds: float) -> tuple[int, float]:
        """Count one hit; return the count so far and seconds until the window resets."""
        ...

    async def reset(self) -> None: ...


class MemoryWindowStore:
    """In-process counters.

    Only touched from the event loop, so no locking. Expired windows are
    pruned lazily every ``cleanup_interval`` seconds.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, cleanup_interval: float = 300.0):
        self.clock = clock
        self.cleanup_interval = cleanup_interval
        self._windows: dict[str, tuple[int, float]] = {}
        self._next_cleanup = clock() + cleanup_interval

    def __len__(self) -> int:
        return len(self._windows)

    async def increment(self, key: str, window_seconds: float) -> tuple[int, float]:
        now = self.clock()
        if now >= self._next_cleanup:
            self._cleanup(now)

        count, reset_time = self._windows.get(key, (0, 0.0))
        if count == 0 or reset_time <= now:
            # First request, or first request after the previous window expired
            count, reset_time = 0, now + window_seconds
        count += 1
        self._windows[key] = (count, reset_time)
        return count, reset_time - now

    async def reset(self) -> None:
        self._windows.clear()

    def _cleanup(self, now: float) -> None:
        expired = [key for key, (_, reset_time) in self._windows.items() if reset_time <= now]
        for key in expired:
            del self._windows[key]
        self._next_cleanup = now + self.cleanup_interval
        if expired:
            logger.debug(f"Pruned {len(expired)} expired rate limit windows")


class RedisWindowStore:
    """Counters shared by every worker through Redis.

    INCR creates the key at 1; PEXPIRE NX starts the window on that first hit
    only, so later hits never extend it.
    """

    def __init__(self, client: aioredis.Redis, prefix: str = "ratelimit"):
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "ratelimit") -> "RedisWindowStore":
        return cls(aioredis.from_url(url), prefix=prefix)

    async def increment(self, key: str, window_seconds: float) -> tuple[int, float]:
        redis_key = f"{self.prefix}:{key}"
        window_ms = max(1, int(window_seconds * 1000))
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.incr(redis_key)
            pipe.pexpire(redis_key, window_ms, nx=True)
            pipe.pttl(redis_key)
            count, _, ttl_ms = await pipe.execute()
        if ttl_ms is None or ttl_ms < 0:
            ttl_ms = window_ms
        return int(count), ttl_ms / 1000

    async def reset(self) -> None:
        async for redis_key in self.client.scan_iter(match=f"{self.prefix}:*"):
            await self.client.delete(redis_key)

    async def close(self) -> None:
        await self.client.aclose()


class FixedWindowRateLimiter:
    """Allows ``max_requests`` per ``window_seconds`` for each key."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        store: WindowStore | None = None,
        name: str = "general",
    ):
        if max_requests <= 0 or window_seconds <= 0:
            raise ValueError("max_requests and window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.store = store if store is not None else MemoryWindowStore()
        self.name = name

    async def hit(self, key: str) -> RateLimitDecision:
        """Count a request for ``key`` and decide whether it may proceed."""
        count, reset_in = await self.store.increment(f"{self.name}:{key}", self.window_seconds)
        reset_in = min(max(reset_in, 0.0), float(self.window_seconds))
        allowed = count <= self.max_requests
        decision = RateLimitDecision(
            allowed=allowed,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - count),
            reset_at=time.time() + reset_in,
            retry_after=0 if allowed else max(1, math.ceil(reset_in)),
        )
        if not allowed:
            logger.warning(f"Rate limit exceeded for {key} ({self.name}). Count: {count}")
        return decision

    async def reset(self) -> None:
        await self.store.reset()
