"""
Structured Logging
==================
structlog configuration for services embedding the verification core.

Usage:
    from verify_core.logging import setup_logging, log_audit, AuditEventType

    setup_logging(service_name="plantix-auth")
    log_audit(AuditEventType.VERIFY_STARTED, identifier="+14155551234")

Every event passes through ``redact_identifiers`` so phone numbers and
email addresses are partially masked before rendering.
"""

import logging
import sys
from enum import Enum
from typing import Any, MutableMapping

import structlog

from verify_core.masking import is_masked, mask_identifier

SENSITIVE_KEYS = frozenset({"identifier", "phone", "phone_number", "email", "to"})


class AuditEventType(str, Enum):
    """Audit events emitted by the verification engine."""
    VERIFY_STARTED = "verify.started"
    VERIFY_RESENT = "verify.resent"
    VERIFY_COMPLETED = "verify.completed"
    VERIFY_FAILED = "verify.failed"
    VERIFY_INVALIDATED = "verify.invalidated"
    DELIVERY_FAILED = "message.failed"
    RATE_LIMIT_HIT = "security.rate_limit"


def redact_identifiers(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor masking identifier-like values."""
    for key in SENSITIVE_KEYS.intersection(event_dict):
        value = event_dict[key]
        if isinstance(value, str) and not is_masked(value):
            event_dict[key] = mask_identifier(value)
    return event_dict


def setup_logging(
    service_name: str,
    level: str = "INFO",
    json_output: bool = True,
) -> None:
    """
    Configure structlog and stdlib logging for a service.

    Args:
        service_name: Name of the service (bound to every event)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Render JSON (production) instead of console output
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_identifiers,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(service=service_name)

    structlog.get_logger(__name__).info(
        "Logging configured", service=service_name, level=level.upper()
    )


def log_audit(event_type: AuditEventType, **fields: Any) -> None:
    """Emit an audit event through the audit logger."""
    structlog.get_logger("verify_core.audit").info(
        event_type.value, audit=True, **fields
    )
