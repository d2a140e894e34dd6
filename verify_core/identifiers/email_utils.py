"""
Email Utilities
===============
Syntax validation and normalization of email addresses.

Validation is syntactic only: no DNS lookups happen on the request path.
"""

from email_validator import EmailNotValidError
from email_validator import validate_email as check_email_syntax

from verify_core.errors import InvalidFormat

from .models import IdentifierKind, ValidatedIdentifier


def normalize_email(email: str) -> str:
    """Trim surrounding whitespace and lowercase."""
    return email.strip().lower()


def validate_email(email: str) -> ValidatedIdentifier:
    """
    Validate and normalize an email address.

    Internationalized local parts and domains are accepted.

    Raises:
        InvalidFormat: If the address is syntactically invalid
    """
    if not isinstance(email, str) or not email.strip():
        raise InvalidFormat("Email address is required")

    try:
        info = check_email_syntax(email.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise InvalidFormat(
            f"Invalid email address: {e}",
            identifier=normalize_email(email),
        ) from e

    normalized = normalize_email(info.normalized)
    return ValidatedIdentifier(
        kind=IdentifierKind.EMAIL,
        normalized=normalized,
        display_formatted=normalized,
    )
