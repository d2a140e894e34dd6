"""
Rate Limit Models
=================
Data models for rate limiting results.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class LimitScope(str, Enum):
    """The four independent counters."""
    IDENTIFIER = "identifier"
    USER = "user"
    COOLDOWN = "cooldown"
    ATTEMPTS = "attempts"


@dataclass
class RateLimitInfo:
    """Rate limit check result with quota information."""
    allowed: bool
    remaining: int
    limit: int
    reset_at: int  # Unix timestamp
    retry_after: Optional[int] = None  # Seconds until retry allowed
    count: int = 0
