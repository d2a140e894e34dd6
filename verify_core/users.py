"""
User Store
==========
Collaborator that owns the "verified" flag on user records.
"""

from abc import ABC, abstractmethod
from typing import Dict, Set, Tuple

import structlog

from verify_core.identifiers.models import IdentifierKind
from verify_core.masking import mask_identifier

logger = structlog.get_logger(__name__)


class UserStore(ABC):
    """Flips a user's phone or email verified flag."""

    @abstractmethod
    async def mark_verified(self, identifier: str, kind: IdentifierKind) -> None:
        """Mark the identifier as verified on its owning record."""


class InMemoryUserStore(UserStore):
    """User store for development and tests."""

    def __init__(self):
        self.verified: Set[Tuple[str, IdentifierKind]] = set()
        self.calls: Dict[Tuple[str, IdentifierKind], int] = {}

    async def mark_verified(self, identifier: str, kind: IdentifierKind) -> None:
        key = (identifier, IdentifierKind(kind))
        self.verified.add(key)
        self.calls[key] = self.calls.get(key, 0) + 1
        logger.info(
            "Identifier marked verified",
            identifier=mask_identifier(identifier),
            kind=key[1].value,
        )

    def is_verified(self, identifier: str, kind: IdentifierKind) -> bool:
        return (identifier, IdentifierKind(kind)) in self.verified
