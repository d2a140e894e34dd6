"""
Verification Logging
====================
Structured logging with mandatory identifier redaction.
"""

from .structured import (
    AuditEventType,
    SENSITIVE_KEYS,
    redact_identifiers,
    setup_logging,
    log_audit,
)

__all__ = [
    "AuditEventType",
    "SENSITIVE_KEYS",
    "redact_identifiers",
    "setup_logging",
    "log_audit",
]
