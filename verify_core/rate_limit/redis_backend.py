"""
Redis Counter Backend
=====================
Redis-backed fixed-window counters using Lua scripts for atomic operations.
"""

from typing import Any, Dict, Sequence

import structlog
from redis.exceptions import NoScriptError

from .base import CounterBackend
from .models import RateLimitInfo

logger = structlog.get_logger(__name__)

# Lua script for an atomic fixed window anchored at the first hit
FIXED_WINDOW_SCRIPT = """
local key = KEYS[1]
local limit = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local now = tonumber(ARGV[3])
local increment = tonumber(ARGV[4])

local bucket = redis.call('HMGET', key, 'start', 'count')
local start = tonumber(bucket[1])
local count = tonumber(bucket[2]) or 0

if start == nil or now >= start + window then
    start = now
    count = 0
end

local reset_at = start + window

if count >= limit then
    return {0, 0, limit, reset_at, reset_at - now, count}
end

if increment == 1 then
    count = count + 1
    redis.call('HSET', key, 'start', start, 'count', count)
    redis.call('EXPIRE', key, window)
end

return {1, limit - count, limit, reset_at, 0, count}
"""

# Returns 0 when the cooldown was acquired, otherwise seconds left
COOLDOWN_SCRIPT = """
local key = KEYS[1]
local seconds = tonumber(ARGV[1])
local now = tonumber(ARGV[2])

local last = tonumber(redis.call('GET', key))
if last ~= nil and now < last + seconds then
    return last + seconds - now
end

redis.call('SET', key, now, 'EX', math.max(seconds, 1))
return 0
"""


class RedisCounterBackend(CounterBackend):
    """
    Redis-backed counters.

    Uses Lua scripts for atomic increment-and-compare. Redis errors
    propagate: the verification limiter fails closed.
    """

    def __init__(self, redis_client):
        """
        Args:
            redis_client: Async Redis client
        """
        self.redis = redis_client
        self._script_shas: Dict[str, str] = {}

    async def _ensure_script(self, script: str) -> str:
        """Load Lua script into Redis if needed."""
        sha = self._script_shas.get(script)
        if sha is None:
            sha = await self.redis.script_load(script)
            if isinstance(sha, bytes):
                sha = sha.decode()
            self._script_shas[script] = sha
        return sha

    async def _eval(self, script: str, keys: Sequence[str], args: Sequence[Any]) -> Any:
        sha = await self._ensure_script(script)
        try:
            return await self.redis.evalsha(sha, len(keys), *keys, *args)
        except NoScriptError:
            self._script_shas.pop(script, None)
            sha = await self._ensure_script(script)
            return await self.redis.evalsha(sha, len(keys), *keys, *args)

    async def _window(self, key: str, limit: int, window: int, now: int, increment: bool) -> RateLimitInfo:
        result = await self._eval(
            FIXED_WINDOW_SCRIPT,
            [key],
            [limit, window, now, 1 if increment else 0],
        )
        allowed, remaining, limit_, reset_at, retry_after, count = (int(v) for v in result)
        return RateLimitInfo(
            allowed=bool(allowed),
            remaining=remaining,
            limit=limit_,
            reset_at=reset_at,
            retry_after=max(1, retry_after) if not allowed else None,
            count=count,
        )

    async def hit(self, key: str, limit: int, window: int, now: int) -> RateLimitInfo:
        info = await self._window(key, limit, window, now, increment=True)
        if not info.allowed:
            logger.debug("Counter at limit", key=key, limit=limit)
        return info

    async def peek(self, key: str, limit: int, window: int, now: int) -> RateLimitInfo:
        return await self._window(key, limit, window, now, increment=False)

    async def acquire_cooldown(self, key: str, seconds: int, now: int) -> int:
        result = await self._eval(COOLDOWN_SCRIPT, [key], [seconds, now])
        return int(result)

    async def reset(self, key: str) -> None:
        await self.redis.delete(key)
