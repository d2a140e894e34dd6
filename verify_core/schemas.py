"""
HTTP Schemas
============
Pydantic request and response bodies for the verification HTTP contract.

Fields serialize in camelCase (``verificationId``, ``expiresAt``) and accept
either camelCase or snake_case on input.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from verify_core.engine.models import IssueResult, VerificationResult
from verify_core.errors import VerificationError
from verify_core.otp.models import Channel, Purpose


class _Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IssueRequest(_Schema):
    identifier: str = Field(min_length=1, max_length=254)
    purpose: Purpose
    channel: Channel = Channel.SMS
    locale: Optional[str] = Field(default=None, max_length=16)


class IssueResponse(_Schema):
    verification_id: str
    expires_at: datetime
    retry_after: int
    channel: Channel

    @classmethod
    def from_result(cls, result: IssueResult) -> "IssueResponse":
        return cls(
            verification_id=result.request_id,
            expires_at=result.expires_at,
            retry_after=result.retry_after,
            channel=result.channel,
        )


class VerifyRequest(_Schema):
    """Either ``verificationId`` or ``identifier`` plus ``purpose``."""
    verification_id: Optional[str] = None
    identifier: Optional[str] = Field(default=None, max_length=254)
    purpose: Optional[Purpose] = None
    code: str = Field(min_length=1, max_length=32)

    @model_validator(mode="after")
    def check_target(self) -> "VerifyRequest":
        if self.verification_id:
            return self
        if not self.identifier or self.purpose is None:
            raise ValueError("verificationId or identifier and purpose are required")
        return self


class VerifyResponse(_Schema):
    verified: bool
    attempts_remaining: Optional[int] = None

    @classmethod
    def from_result(cls, result: VerificationResult) -> "VerifyResponse":
        if result.verified:
            return cls(verified=True)
        return cls(verified=False, attempts_remaining=result.attempts_remaining)


class ResendRequest(_Schema):
    verification_id: Optional[str] = None
    identifier: Optional[str] = Field(default=None, max_length=254)
    purpose: Optional[Purpose] = None
    channel: Optional[Channel] = None
    locale: Optional[str] = Field(default=None, max_length=16)

    @model_validator(mode="after")
    def check_target(self) -> "ResendRequest":
        if self.verification_id:
            return self
        if not self.identifier or self.purpose is None:
            raise ValueError("verificationId or identifier and purpose are required")
        return self


class ErrorResponse(_Schema):
    error: str
    message: str
    retryable: bool = False
    retry_after: Optional[int] = None
    identifier: Optional[str] = None
    attempts_remaining: Optional[int] = None
    verification_id: Optional[str] = None

    @classmethod
    def from_error(cls, error: VerificationError) -> "ErrorResponse":
        return cls(
            error=error.code.value,
            message=error.message,
            retryable=error.retryable,
            retry_after=error.retry_after,
            identifier=error.identifier,
            attempts_remaining=getattr(error, "attempts_remaining", None),
            verification_id=getattr(error, "request_id", None),
        )
