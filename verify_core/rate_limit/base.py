"""
Counter Backend Interface
=========================
Atomic primitives the verification rate limiter is built on.
"""

from abc import ABC, abstractmethod

from .models import RateLimitInfo


class CounterBackend(ABC):
    """
    Shared-store primitives.

    Every method is a single atomic operation: there is no read-then-write
    window between checking a counter and updating it.
    """

    @abstractmethod
    async def hit(self, key: str, limit: int, window: int, now: int) -> RateLimitInfo:
        """
        Increment-and-compare on a fixed window anchored at the first hit.

        The counter is only incremented when the request is allowed.
        """

    @abstractmethod
    async def peek(self, key: str, limit: int, window: int, now: int) -> RateLimitInfo:
        """Read a counter without incrementing it."""

    @abstractmethod
    async def acquire_cooldown(self, key: str, seconds: int, now: int) -> int:
        """
        Start a cooldown unless one is running.

        Returns:
            0 if acquired, otherwise seconds left on the running cooldown
        """

    @abstractmethod
    async def reset(self, key: str) -> None:
        """Drop a counter or cooldown."""
