"""
OTP Generation and Hashing
==========================
Secure code generation, salted hashing and request models.
"""

from .models import Channel, Purpose, VerificationRequest, AttemptRecord
from .hashing import (
    DIGITS,
    ALPHANUMERIC,
    generate_otp,
    generate_salt,
    hash_otp,
    verify_otp_hash,
    hash_identifier,
)

__all__ = [
    # Models
    "Channel",
    "Purpose",
    "VerificationRequest",
    "AttemptRecord",
    # Hashing
    "DIGITS",
    "ALPHANUMERIC",
    "generate_otp",
    "generate_salt",
    "hash_otp",
    "verify_otp_hash",
    "hash_identifier",
]
