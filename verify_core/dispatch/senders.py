"""
Channel Senders
===============
Base classes for the collaborators that actually deliver codes.

Gateway protocols live outside this package; implementations only need to
provide ``send`` with the signature of their channel.
"""

from abc import ABC, abstractmethod
from typing import Optional

import structlog

from .models import DeliveryResult

logger = structlog.get_logger(__name__)


class BaseSender(ABC):
    """Common lifecycle for channel senders."""

    name: str = "base"

    async def initialize(self) -> None:
        """Initialize the sender (e.g., create HTTP clients)."""
        logger.info("Sender initialized", sender=self.name)

    async def close(self) -> None:
        """Clean up resources (e.g., close HTTP clients)."""
        logger.info("Sender closed", sender=self.name)


class SmsSender(BaseSender):
    name = "sms"

    @abstractmethod
    async def send(self, phone_number: str, message: str) -> DeliveryResult:
        """
        Send an SMS.

        Args:
            phone_number: Recipient in E.164 format
            message: Rendered message body
        """


class EmailSender(BaseSender):
    name = "email"

    @abstractmethod
    async def send(
        self,
        to: str,
        subject: str,
        html: str,
        text: Optional[str] = None,
    ) -> DeliveryResult:
        """Send an email with HTML and optional plain-text bodies."""


class VoiceSender(BaseSender):
    name = "voice"

    @abstractmethod
    async def send(self, phone_number: str, code: str) -> DeliveryResult:
        """Place a call that reads the code out."""
