"""
Phone Utilities
===============
Functions for phone number validation, normalization and display.
"""

import re

from verify_core.errors import InvalidFormat

from .countries import match_dialing_code
from .models import CountryCodeInfo, IdentifierKind, ValidatedIdentifier

MIN_NATIONAL_DIGITS = 7
MAX_NATIONAL_DIGITS = 15


def clean_phone(phone: str) -> str:
    """Remove every character except digits and '+'."""
    return re.sub(r"[^\d+]", "", phone)


def format_phone(e164: str, country: CountryCodeInfo) -> str:
    """
    Format a normalized number for display by country convention.

    Args:
        e164: Normalized number (e.g. "+14155551234")
        country: Matched dialing-code metadata

    Returns:
        Display string (e.g. "+1 (415) 555-1234")
    """
    code = country.dialing_code
    national = e164[len(code):]

    if country.country in ("US", "CA") and len(national) == 10:
        return f"{code} ({national[:3]}) {national[3:6]}-{national[6:]}"
    if country.country == "IN" and len(national) == 10:
        return f"{code} {national[:5]} {national[5:]}"

    groups = [national[i:i + 3] for i in range(0, len(national), 3)]
    return f"{code} {' '.join(groups)}"


def validate_phone(phone: str) -> ValidatedIdentifier:
    """
    Validate and normalize a phone number.

    Rules:
    - Only digits and a leading '+' are kept
    - A country code is required
    - The national part must have 7 to 15 digits

    Raises:
        InvalidFormat: If any rule is violated
    """
    if not isinstance(phone, str) or not phone.strip():
        raise InvalidFormat("Phone number is required")

    clean = clean_phone(phone)
    if not clean.startswith("+"):
        raise InvalidFormat(
            "Phone number must include country code (e.g., +1234567890)",
            identifier=clean,
        )
    if "+" in clean[1:] or len(clean) < 2:
        raise InvalidFormat("Invalid phone number", identifier=clean)

    country = match_dialing_code(clean)
    if country is None:
        raise InvalidFormat("Unsupported country code", identifier=clean)

    national = clean[len(country.dialing_code):]
    if not MIN_NATIONAL_DIGITS <= len(national) <= MAX_NATIONAL_DIGITS:
        raise InvalidFormat("Invalid phone number length", identifier=clean)

    return ValidatedIdentifier(
        kind=IdentifierKind.PHONE,
        normalized=clean,
        display_formatted=format_phone(clean, country),
        country_info=country,
    )
