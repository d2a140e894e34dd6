"""
In-Memory Counter Backend
=========================
Dict-backed counters for development and testing.
"""

from typing import Dict

from .base import CounterBackend
from .models import RateLimitInfo


class InMemoryCounterBackend(CounterBackend):
    """
    Simple in-memory fixed-window counters.

    For development and testing only.
    Use RedisCounterBackend in production.
    """

    def __init__(self):
        self._buckets: Dict[str, dict] = {}
        self._cooldowns: Dict[str, int] = {}  # key -> unix time the cooldown ends

    def _prune(self, now: int) -> None:
        """Drop windows and cooldowns that have run out."""
        stale = [key for key, bucket in self._buckets.items() if now >= bucket["reset_at"]]
        for key in stale:
            del self._buckets[key]
        stale = [key for key, ends_at in self._cooldowns.items() if now >= ends_at]
        for key in stale:
            del self._cooldowns[key]

    def _bucket(self, key: str, window: int, now: int) -> dict:
        self._prune(now)
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = {"reset_at": now + window, "count": 0}
            self._buckets[key] = bucket
        return bucket

    async def hit(self, key: str, limit: int, window: int, now: int) -> RateLimitInfo:
        bucket = self._bucket(key, window, now)
        reset_at = bucket["reset_at"]

        if bucket["count"] >= limit:
            return RateLimitInfo(
                allowed=False,
                remaining=0,
                limit=limit,
                reset_at=reset_at,
                retry_after=max(1, reset_at - now),
                count=bucket["count"],
            )

        bucket["count"] += 1
        return RateLimitInfo(
            allowed=True,
            remaining=limit - bucket["count"],
            limit=limit,
            reset_at=reset_at,
            count=bucket["count"],
        )

    async def peek(self, key: str, limit: int, window: int, now: int) -> RateLimitInfo:
        bucket = self._buckets.get(key)
        if bucket is None or now >= bucket["reset_at"]:
            return RateLimitInfo(allowed=True, remaining=limit, limit=limit, reset_at=now + window)

        reset_at = bucket["reset_at"]
        allowed = bucket["count"] < limit
        return RateLimitInfo(
            allowed=allowed,
            remaining=max(0, limit - bucket["count"]),
            limit=limit,
            reset_at=reset_at,
            retry_after=None if allowed else max(1, reset_at - now),
            count=bucket["count"],
        )

    async def acquire_cooldown(self, key: str, seconds: int, now: int) -> int:
        self._prune(now)
        ends_at = self._cooldowns.get(key)
        if ends_at is not None:
            return ends_at - now
        self._cooldowns[key] = now + seconds
        return 0

    async def reset(self, key: str) -> None:
        self._buckets.pop(key, None)
        self._cooldowns.pop(key, None)
