"""
Verification Errors
===================
Error taxonomy for issuance and verification.

Every error carries a machine-readable code. Rate, cooldown and attempt
errors carry the number of seconds to wait. Identifiers are masked before
they are stored on an error, so payloads never leak them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from verify_core.masking import mask_identifier


class ErrorCode(str, Enum):
    INVALID_FORMAT = "invalid_format"
    UNSUPPORTED_CHANNEL = "unsupported_channel"
    RATE_LIMITED = "rate_limited"
    COOLDOWN_ACTIVE = "cooldown_active"
    TOO_MANY_ATTEMPTS = "too_many_attempts"
    EXPIRED = "expired"
    ALREADY_USED = "already_used"
    MISMATCH = "mismatch"
    DELIVERY_FAILED = "delivery_failed"
    NOT_FOUND = "not_found"


class VerificationError(Exception):
    """Base class for all verification errors."""

    code: ErrorCode = ErrorCode.INVALID_FORMAT
    retryable: bool = False
    default_message: str = "Verification failed"

    def __init__(
        self,
        message: Optional[str] = None,
        identifier: Optional[str] = None,
        retry_after: Optional[int] = None,
    ):
        self.message = message or self.default_message
        self.identifier = mask_identifier(identifier) if identifier else None
        self.retry_after = retry_after
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "error": self.code.value,
            "message": self.message,
            "retryable": self.retryable,
        }
        if self.identifier:
            payload["identifier"] = self.identifier
        if self.retry_after is not None:
            payload["retry_after"] = self.retry_after
        return payload

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code.value!r}, retry_after={self.retry_after!r})"


class InvalidFormat(VerificationError):
    """Identifier or code is malformed."""
    code = ErrorCode.INVALID_FORMAT
    default_message = "Invalid identifier format"


class UnsupportedChannel(VerificationError):
    """No sender is configured for the requested channel."""
    code = ErrorCode.UNSUPPORTED_CHANNEL
    default_message = "Unsupported delivery channel"

    def __init__(self, channel: Any, message: Optional[str] = None):
        self.channel = getattr(channel, "value", channel)
        super().__init__(message or f"Unsupported delivery channel: {self.channel}")


class RateLimited(VerificationError):
    """Hourly issuance cap reached for an identifier or user."""
    code = ErrorCode.RATE_LIMITED
    retryable = True
    default_message = "Too many verification requests. Please try again later."

    def __init__(
        self,
        retry_after: int,
        scope: str = "identifier",
        identifier: Optional[str] = None,
        message: Optional[str] = None,
    ):
        self.scope = scope
        super().__init__(message, identifier=identifier, retry_after=retry_after)

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["scope"] = self.scope
        return payload


class CooldownActive(VerificationError):
    """A new code was requested before the resend cooldown elapsed."""
    code = ErrorCode.COOLDOWN_ACTIVE
    retryable = True

    def __init__(self, retry_after: int, identifier: Optional[str] = None):
        super().__init__(
            f"Please wait {retry_after} seconds before requesting a new code",
            identifier=identifier,
            retry_after=retry_after,
        )


class TooManyAttempts(VerificationError):
    """Verification attempt cap reached; further attempts are rejected."""
    code = ErrorCode.TOO_MANY_ATTEMPTS
    retryable = True
    default_message = "Maximum verification attempts exceeded. Please request a new code."

    def __init__(self, retry_after: int, identifier: Optional[str] = None):
        super().__init__(identifier=identifier, retry_after=retry_after)


class Expired(VerificationError):
    """The code's lifetime has elapsed."""
    code = ErrorCode.EXPIRED
    default_message = "Verification code has expired. Please request a new code."


class AlreadyUsed(VerificationError):
    """The code was already verified once."""
    code = ErrorCode.ALREADY_USED
    default_message = "Verification code has already been used"


class Mismatch(VerificationError):
    """The presented code does not match."""
    code = ErrorCode.MISMATCH
    default_message = "Invalid verification code"

    def __init__(self, attempts_remaining: int, identifier: Optional[str] = None):
        self.attempts_remaining = attempts_remaining
        super().__init__(identifier=identifier)

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["attempts_remaining"] = self.attempts_remaining
        return payload


class VerificationNotFound(VerificationError):
    """No verification request exists for the given id."""
    code = ErrorCode.NOT_FOUND
    default_message = "Verification not found"


class DeliveryFailed(VerificationError):
    """
    The channel sender could not deliver the code.

    The stored code stays valid; recovery is an explicit resend.
    """
    code = ErrorCode.DELIVERY_FAILED
    default_message = "Failed to deliver verification code"

    def __init__(
        self,
        request_id: str,
        expires_at: datetime,
        identifier: Optional[str] = None,
        reason: Optional[str] = None,
    ):
        self.request_id = request_id
        self.expires_at = expires_at
        self.reason = reason
        super().__init__(identifier=identifier)

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["verification_id"] = self.request_id
        payload["expires_at"] = self.expires_at.isoformat()
        return payload
