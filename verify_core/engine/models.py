"""
Engine Models
=============
Results returned by the verification engine.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from verify_core.errors import ErrorCode, Mismatch
from verify_core.otp.models import Channel, Purpose


class VerificationState(str, Enum):
    """Lifecycle of an (identifier, purpose) pair."""
    NONE = "none"
    ISSUED = "issued"
    VERIFIED = "verified"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"

    @property
    def is_terminal(self) -> bool:
        return self in (
            VerificationState.VERIFIED,
            VerificationState.EXPIRED,
            VerificationState.EXHAUSTED,
        )


@dataclass(frozen=True)
class IssueResult:
    request_id: str
    expires_at: datetime
    retry_after: int  # seconds until a resend is accepted
    channel: Channel
    purpose: Purpose
    message_id: Optional[str] = None


@dataclass(frozen=True)
class VerificationResult:
    """
    Outcome of one verification attempt.

    A wrong code is a normal result rather than an exception so callers can
    show the remaining attempts; ``raise_for_status`` converts it.
    """
    verified: bool
    attempts_remaining: int
    request_id: Optional[str] = None
    reason: Optional[ErrorCode] = None
    identifier: Optional[str] = None

    def raise_for_status(self) -> "VerificationResult":
        if not self.verified:
            raise Mismatch(self.attempts_remaining, identifier=self.identifier)
        return self


@dataclass(frozen=True)
class AttemptStats:
    """Attempt statistics for an identifier over a trailing window."""
    total: int
    succeeded: int
    failed: int
    success_rate: float  # percent, rounded to 2 places
    last_attempt_at: Optional[datetime] = None
