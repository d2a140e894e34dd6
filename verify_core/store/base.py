"""
Code Store Interface
====================
Persistence contract for verification requests and the attempt log.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from verify_core.clock import Clock, utc_now
from verify_core.otp.models import AttemptRecord, Purpose, VerificationRequest


class CodeStore(ABC):
    """
    Abstract base class for code stores.

    Identifiers passed in are already normalized. Each (identifier, purpose)
    pair owns one slot pointing at its most recent request; writing a new
    request into the slot supersedes the previous one.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or utc_now

    @abstractmethod
    async def put(self, request: VerificationRequest) -> str:
        """
        Insert a request, atomically superseding the slot's prior request.

        Returns:
            The request id
        """

    @abstractmethod
    async def get_latest(self, identifier: str, purpose: Purpose) -> Optional[VerificationRequest]:
        """Return the slot's current request in whatever state it is."""

    @abstractmethod
    async def get_by_id(self, request_id: str) -> Optional[VerificationRequest]:
        """Look a request up by id."""

    @abstractmethod
    async def mark_used(self, request_id: str, used_at: datetime) -> bool:
        """
        Set used_at once.

        Returns:
            True only for the call that performed the transition
        """

    @abstractmethod
    async def increment_attempts(self, request_id: str) -> int:
        """Bump the request's attempt_count and return the new value."""

    @abstractmethod
    async def invalidate(self, identifier: str, purpose: Purpose) -> bool:
        """Clear the slot. Returns True if a request was pointed at."""

    @abstractmethod
    async def append_attempt(self, record: AttemptRecord) -> None:
        """Append an attempt to the log."""

    @abstractmethod
    async def attempts_since(self, identifier: str, since: datetime) -> List[AttemptRecord]:
        """Attempts for an identifier at or after `since`, oldest first."""

    async def get(self, identifier: str, purpose: Purpose) -> Optional[VerificationRequest]:
        """Return the active (unused, unexpired) request, if any."""
        request = await self.get_latest(identifier, purpose)
        if request is None or not request.is_active(self.clock()):
            return None
        return request

    async def close(self) -> None:
        """Release backend resources."""
