"""
Identifier Validator
====================
Pluggable validators keyed by identifier kind.
"""

from typing import Callable, Dict, Optional

from verify_core.errors import InvalidFormat

from .email_utils import validate_email
from .models import IdentifierKind, ValidatedIdentifier
from .phone_utils import validate_phone

ValidatorFunc = Callable[[str], ValidatedIdentifier]


class IdentifierValidator:
    """
    Registry of validators, one per identifier kind.

    The engine routes every channel through one registry, so every counter
    and store key is derived from the same normalized form.
    """

    def __init__(self, validators: Optional[Dict[IdentifierKind, ValidatorFunc]] = None):
        self._validators: Dict[IdentifierKind, ValidatorFunc] = {
            IdentifierKind.PHONE: validate_phone,
            IdentifierKind.EMAIL: validate_email,
        }
        if validators:
            self._validators.update(validators)

    def register(self, kind: IdentifierKind, validator: ValidatorFunc) -> None:
        """Replace the validator used for a kind."""
        self._validators[kind] = validator

    def validate(self, identifier: str, kind: IdentifierKind) -> ValidatedIdentifier:
        """
        Validate an identifier.

        Raises:
            InvalidFormat: If the identifier is invalid or the kind is unknown
        """
        validator = self._validators.get(kind)
        if validator is None:
            raise InvalidFormat(f"No validator registered for {kind}")
        return validator(identifier)

    def detect(self, identifier: str) -> ValidatedIdentifier:
        """Validate an identifier of unknown kind."""
        if isinstance(identifier, str) and "@" in identifier:
            return self.validate(identifier, IdentifierKind.EMAIL)
        return self.validate(identifier, IdentifierKind.PHONE)


_default_validator = IdentifierValidator()


def validate(identifier: str, kind: IdentifierKind) -> ValidatedIdentifier:
    """Validate with the default registry."""
    return _default_validator.validate(identifier, kind)
