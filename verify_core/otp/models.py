"""
OTP Models
==========
Data models and enums for verification requests and attempts.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from verify_core.identifiers.models import IdentifierKind


class Channel(str, Enum):
    """Code delivery channels."""
    SMS = "sms"
    EMAIL = "email"
    VOICE = "voice"

    @property
    def identifier_kind(self) -> IdentifierKind:
        if self is Channel.EMAIL:
            return IdentifierKind.EMAIL
        return IdentifierKind.PHONE


class Purpose(str, Enum):
    """Business reason a code was issued; scopes its uniqueness key."""
    REGISTRATION = "registration"
    LOGIN = "login"
    PASSWORD_RESET = "password_reset"
    CONTACT_CHANGE = "contact_change"
    TWO_FACTOR = "two_factor"


@dataclass(frozen=True)
class VerificationRequest:
    """
    An issued code. Only the salted hash of the code is kept.

    Mutated exactly once (used_at) on successful verification.
    """
    id: str
    identifier: str
    purpose: Purpose
    channel: Channel
    code_hash: str
    salt: str
    created_at: datetime
    expires_at: datetime
    used_at: Optional[datetime] = None
    attempt_count: int = 0
    user_id: Optional[str] = None
    locale: Optional[str] = None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    @property
    def is_used(self) -> bool:
        return self.used_at is not None

    def is_active(self, now: datetime) -> bool:
        return not self.is_used and not self.is_expired(now)

    def with_changes(self, **changes) -> "VerificationRequest":
        return replace(self, **changes)


@dataclass(frozen=True)
class AttemptRecord:
    """One verification attempt. Append-only."""
    identifier: str
    purpose: Purpose
    channel: Optional[Channel]
    success: bool
    attempted_at: datetime
