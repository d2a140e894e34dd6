"""
Verify Core Library
===================
Verification-code issuance and checking for phone numbers and email addresses.
"""

__version__ = "0.1.0"

# Configuration
from verify_core.config import VerificationConfig
from verify_core.clock import Clock, utc_now

# Identifiers
from verify_core.identifiers import (
    IdentifierKind,
    IdentifierValidator,
    ValidatedIdentifier,
    CountryCodeInfo,
    supported_countries,
)
from verify_core.masking import mask_identifier

# Codes
from verify_core.otp import (
    Channel,
    Purpose,
    VerificationRequest,
    AttemptRecord,
    generate_otp,
)

# Errors
from verify_core.errors import (
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
    to_http_exception,
)

# Storage and rate limiting
from verify_core.store import CodeStore, InMemoryCodeStore, RedisCodeStore
from verify_core.rate_limit import (
    CounterBackend,
    InMemoryCounterBackend,
    RedisCounterBackend,
    VerificationRateLimiter,
)

# Dispatch
from verify_core.dispatch import (
    DeliveryResult,
    DispatchRouter,
    TemplateCatalog,
    SmsSender,
    EmailSender,
    VoiceSender,
)

# Engine
from verify_core.users import UserStore, InMemoryUserStore
from verify_core.engine import (
    VerificationEngine,
    VerificationState,
    IssueResult,
    VerificationResult,
    AttemptStats,
)

# Logging
from verify_core.logging import setup_logging, AuditEventType

__all__ = [
    "__version__",
    # Configuration
    "VerificationConfig",
    "Clock",
    "utc_now",
    # Identifiers
    "IdentifierKind",
    "IdentifierValidator",
    "ValidatedIdentifier",
    "CountryCodeInfo",
    "supported_countries",
    "mask_identifier",
    # Codes
    "Channel",
    "Purpose",
    "VerificationRequest",
    "AttemptRecord",
    "generate_otp",
    # Errors
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
    "to_http_exception",
    # Storage and rate limiting
    "CodeStore",
    "InMemoryCodeStore",
    "RedisCodeStore",
    "CounterBackend",
    "InMemoryCounterBackend",
    "RedisCounterBackend",
    "VerificationRateLimiter",
    # Dispatch
    "DeliveryResult",
    "DispatchRouter",
    "TemplateCatalog",
    "SmsSender",
    "EmailSender",
    "VoiceSender",
    # Engine
    "UserStore",
    "InMemoryUserStore",
    "VerificationEngine",
    "VerificationState",
    "IssueResult",
    "VerificationResult",
    "AttemptStats",
    # Logging
    "setup_logging",
    "AuditEventType",
]
