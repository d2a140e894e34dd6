"""
OTP Hashing Utilities
=====================
Secure code generation, hashing and verification.
"""

import hashlib
import hmac
import secrets

DIGITS = "0123456789"
# Uppercase letters and digits without the confusable 0/O and 1/I
ALPHANUMERIC = "23456789ABCDEFGHJKLMNPQRSTUVWXYZ"


def generate_otp(length: int = 6, alphabet: str = DIGITS) -> str:
    """
    Generate a random code from a cryptographically secure source.

    Args:
        length: Number of characters
        alphabet: Characters to draw from (digits by default)

    Returns:
        Code string
    """
    if length <= 0:
        raise ValueError("length must be positive")
    if len(set(alphabet)) < 2:
        raise ValueError("alphabet needs at least two distinct characters")

    if alphabet == DIGITS:
        return str(secrets.randbelow(10 ** length)).zfill(length)
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_salt() -> str:
    """Generate a random salt for code hashing."""
    return secrets.token_hex(16)


def hash_otp(otp: str, salt: str) -> str:
    """
    Hash a code with salt using SHA-256.

    Args:
        otp: Plain code
        salt: Random salt

    Returns:
        Hex digest
    """
    return hashlib.sha256(f"{salt}:{otp}".encode()).hexdigest()


def verify_otp_hash(otp: str, salt: str, stored_hash: str) -> bool:
    """
    Verify a code against its stored hash.

    Uses constant-time comparison to prevent timing attacks.
    """
    computed_hash = hash_otp(otp.strip().upper(), salt)
    return hmac.compare_digest(computed_hash, stored_hash)


def hash_identifier(identifier: str, pepper: str = "") -> str:
    """
    Hash a normalized identifier for use in store keys.

    Args:
        identifier: Normalized phone number or email
        pepper: Optional secret pepper

    Returns:
        SHA-256 hex digest
    """
    return hashlib.sha256(f"{pepper}:{identifier}".encode()).hexdigest()
