"""
Dialing Codes
=============
Static dialing-code reference data for supported countries.
"""

from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from .models import CountryCodeInfo

COUNTRY_CODES: Tuple[CountryCodeInfo, ...] = (
    CountryCodeInfo("US", "+1", "United States", "+1 XXX XXX XXXX"),
    CountryCodeInfo("GB", "+44", "United Kingdom", "+44 XXXX XXXXXX"),
    CountryCodeInfo("IN", "+91", "India", "+91 XXXXX XXXXX"),
    CountryCodeInfo("CN", "+86", "China", "+86 XXX XXXX XXXX"),
    CountryCodeInfo("BR", "+55", "Brazil", "+55 XX XXXXX XXXX"),
    CountryCodeInfo("DE", "+49", "Germany", "+49 XXX XXXXXXXX"),
    CountryCodeInfo("FR", "+33", "France", "+33 X XX XX XX XX"),
    CountryCodeInfo("JP", "+81", "Japan", "+81 XX XXXX XXXX"),
    CountryCodeInfo("AU", "+61", "Australia", "+61 XXX XXX XXX"),
    CountryCodeInfo("CA", "+1", "Canada", "+1 XXX XXX XXXX"),
    CountryCodeInfo("MX", "+52", "Mexico", "+52 XXX XXX XXXX"),
    CountryCodeInfo("AR", "+54", "Argentina", "+54 XX XXXX XXXX"),
    CountryCodeInfo("ZA", "+27", "South Africa", "+27 XX XXX XXXX"),
    CountryCodeInfo("NG", "+234", "Nigeria", "+234 XXX XXX XXXX"),
    CountryCodeInfo("KE", "+254", "Kenya", "+254 XXX XXXXXX"),
    CountryCodeInfo("ET", "+251", "Ethiopia", "+251 XX XXX XXXX"),
    CountryCodeInfo("EG", "+20", "Egypt", "+20 XX XXX XXXX"),
    CountryCodeInfo("ID", "+62", "Indonesia", "+62 XXX XXXX XXXX"),
    CountryCodeInfo("TH", "+66", "Thailand", "+66 XX XXX XXXX"),
    CountryCodeInfo("VN", "+84", "Vietnam", "+84 XX XXXX XXXX"),
    CountryCodeInfo("BD", "+880", "Bangladesh", "+880 XXXX XXXXXX"),
    CountryCodeInfo("PK", "+92", "Pakistan", "+92 XXX XXXXXXX"),
    CountryCodeInfo("PH", "+63", "Philippines", "+63 XXX XXX XXXX"),
)


def _index_by_dialing_code(codes: Tuple[CountryCodeInfo, ...]) -> Mapping[str, CountryCodeInfo]:
    # Shared codes (+1 US/CA) resolve to the first entry
    index: Dict[str, CountryCodeInfo] = {}
    for info in codes:
        index.setdefault(info.dialing_code, info)
    return MappingProxyType(index)


BY_DIALING_CODE = _index_by_dialing_code(COUNTRY_CODES)
MAX_DIALING_CODE_DIGITS = max(len(code) - 1 for code in BY_DIALING_CODE)


def match_dialing_code(e164: str) -> Optional[CountryCodeInfo]:
    """
    Longest-prefix match of a '+'-prefixed number against the table.

    Args:
        e164: Number starting with '+' followed by digits only

    Returns:
        Matching CountryCodeInfo, or None
    """
    digits = e164[1:]
    for size in range(min(MAX_DIALING_CODE_DIGITS, len(digits)), 0, -1):
        info = BY_DIALING_CODE.get("+" + digits[:size])
        if info is not None:
            return info
    return None


def supported_countries() -> List[CountryCodeInfo]:
    """All supported countries sorted by display name."""
    return sorted(COUNTRY_CODES, key=lambda info: info.display_name)
