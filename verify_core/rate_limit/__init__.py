"""
Rate Limiting
=============
Fixed-window counters and cooldowns, in memory or in Redis.
"""

from .models import RateLimitInfo, LimitScope
from .base import CounterBackend
from .in_memory import InMemoryCounterBackend
from .redis_backend import RedisCounterBackend, FIXED_WINDOW_SCRIPT, COOLDOWN_SCRIPT
from .limiter import VerificationRateLimiter

__all__ = [
    # Models
    "RateLimitInfo",
    "LimitScope",
    # Backends
    "CounterBackend",
    "InMemoryCounterBackend",
    "RedisCounterBackend",
    # Limiter
    "VerificationRateLimiter",
    # Scripts
    "FIXED_WINDOW_SCRIPT",
    "COOLDOWN_SCRIPT",
]
