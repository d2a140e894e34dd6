"""
Identifier Validation
=====================
Phone and email normalization with dialing-code metadata.
"""

from .models import IdentifierKind, CountryCodeInfo, ValidatedIdentifier
from .countries import COUNTRY_CODES, match_dialing_code, supported_countries
from .phone_utils import clean_phone, format_phone, validate_phone
from .email_utils import normalize_email, validate_email
from .validator import IdentifierValidator, validate

__all__ = [
    # Models
    "IdentifierKind",
    "CountryCodeInfo",
    "ValidatedIdentifier",
    # Countries
    "COUNTRY_CODES",
    "match_dialing_code",
    "supported_countries",
    # Phone
    "clean_phone",
    "format_phone",
    "validate_phone",
    # Email
    "normalize_email",
    "validate_email",
    # Registry
    "IdentifierValidator",
    "validate",
]
