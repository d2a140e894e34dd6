"""
Dispatch Models
===============
Delivery results and rendered messages.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class MessageStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


@dataclass
class DeliveryResult:
    """Result of handing a code to a channel sender."""
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    status: MessageStatus = MessageStatus.SENT
    channel: Optional[str] = None

    @classmethod
    def failed(cls, error: str, channel: Optional[str] = None) -> "DeliveryResult":
        return cls(success=False, error=error, status=MessageStatus.FAILED, channel=channel)


@dataclass(frozen=True)
class SmsMessage:
    body: str


@dataclass(frozen=True)
class EmailMessage:
    subject: str
    html: str
    text: Optional[str] = None
