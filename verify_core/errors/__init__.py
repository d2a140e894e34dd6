"""
Verification Errors
===================
Error taxonomy and HTTP mapping.
"""

from .exceptions import (
    ErrorCode,
    VerificationError,
    InvalidFormat,
    UnsupportedChannel,
    RateLimited,
    CooldownActive,
    TooManyAttempts,
    Expired,
    AlreadyUsed,
    Mismatch,
    VerificationNotFound,
    DeliveryFailed,
)
from .http import STATUS_BY_CODE, status_for, to_http_exception, to_error_response

__all__ = [
    "ErrorCode",
    "VerificationError",
    "InvalidFormat",
    "UnsupportedChannel",
    "RateLimited",
    "CooldownActive",
    "TooManyAttempts",
    "Expired",
    "AlreadyUsed",
    "Mismatch",
    "VerificationNotFound",
    "DeliveryFailed",
    # HTTP
    "STATUS_BY_CODE",
    "status_for",
    "to_http_exception",
    "to_error_response",
]
