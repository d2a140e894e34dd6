"""
Identifier Masking
==================
Partial redaction of phone numbers and email addresses for logs and payloads.
"""

import re

_MASK = "*"


def mask_email(email: str) -> str:
    """
    Mask an email address, keeping two characters of the local part.

    Examples:
        "farmer@example.com" -> "fa****@example.com"
    """
    local, sep, domain = email.partition("@")
    if not sep:
        return mask_phone(email)
    if len(local) > 2:
        local = local[:2] + _MASK * (len(local) - 2)
    else:
        local = _MASK * len(local)
    return f"{local}@{domain}"


def mask_phone(phone: str) -> str:
    """
    Mask a phone number, keeping the first four and last two characters.

    Examples:
        "+14155551234" -> "+141******34"
    """
    compact = re.sub(r"[^\d+]", "", phone)
    if len(compact) <= 6:
        return _MASK * len(compact)
    return compact[:4] + _MASK * (len(compact) - 6) + compact[-2:]


def mask_identifier(identifier: str) -> str:
    """Mask an identifier of either kind."""
    if identifier is None:
        return ""
    if "@" in identifier:
        return mask_email(identifier)
    return mask_phone(identifier)


_MASKED_PATTERN = re.compile(r"^(?:[^@*]{0,2}\*+@[^@*]*|[+\d]{0,4}\*+\d{0,2})$")


def is_masked(value: str) -> bool:
    """True if the value has the exact shape ``mask_identifier`` produces."""
    return bool(_MASKED_PATTERN.match(value))
