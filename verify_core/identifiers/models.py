"""
Identifier Models
=================
Identifier kinds, dialing-code metadata and validation results.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class IdentifierKind(str, Enum):
    """What a verification identifier refers to."""
    PHONE = "phone"
    EMAIL = "email"


@dataclass(frozen=True)
class CountryCodeInfo:
    """Static dialing-code metadata for one country."""
    country: str  # ISO 3166-1 alpha-2
    dialing_code: str  # e.g. "+1"
    display_name: str
    format_template: str  # e.g. "+1 XXX XXX XXXX"


@dataclass(frozen=True)
class ValidatedIdentifier:
    """A normalized identifier ready to be used as a store key."""
    kind: IdentifierKind
    normalized: str
    display_formatted: str
    country_info: Optional[CountryCodeInfo] = None
