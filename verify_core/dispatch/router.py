"""
Dispatch Router
===============
Picks the template for a channel and locale, then hands off to the sender.
"""

from typing import Dict, Iterable, Optional

import structlog

from verify_core.errors import UnsupportedChannel
from verify_core.masking import mask_identifier
from verify_core.otp.models import Channel, Purpose

from .models import DeliveryResult
from .senders import BaseSender, EmailSender, SmsSender, VoiceSender
from .templates import TemplateCatalog

logger = structlog.get_logger(__name__)

_SENDER_TYPES = {
    Channel.SMS: SmsSender,
    Channel.EMAIL: EmailSender,
    Channel.VOICE: VoiceSender,
}


class DispatchRouter:
    """
    Routes rendered codes to channel senders.

    Channels without a sender are rejected when the router is built, and
    again (before any counter is touched) if a request asks for one.
    """

    def __init__(
        self,
        senders: Dict[Channel, BaseSender],
        templates: TemplateCatalog,
        required_channels: Optional[Iterable[Channel]] = None,
    ):
        for channel, sender in senders.items():
            expected = _SENDER_TYPES[Channel(channel)]
            if not isinstance(sender, expected):
                raise TypeError(
                    f"Sender for {Channel(channel).value} must be a {expected.__name__}"
                )
        self.senders: Dict[Channel, BaseSender] = {Channel(c): s for c, s in senders.items()}
        self.templates = templates

        for channel in required_channels or ():
            self.ensure_supported(channel)

    @property
    def channels(self) -> Iterable[Channel]:
        return tuple(self.senders)

    def ensure_supported(self, channel: Channel) -> Channel:
        """
        Resolve a channel name to a configured channel.

        Raises:
            UnsupportedChannel: If no sender is configured for it
        """
        try:
            resolved = Channel(channel)
        except ValueError:
            raise UnsupportedChannel(channel)
        if resolved not in self.senders:
            raise UnsupportedChannel(resolved)
        return resolved

    async def send(
        self,
        identifier: str,
        purpose: Purpose,
        code: str,
        channel: Channel,
        locale: Optional[str] = None,
        expires_in_seconds: int = 600,
    ) -> DeliveryResult:
        """
        Render and deliver a code.

        Sender exceptions are logged and reported as a failed result.
        """
        channel = self.ensure_supported(channel)
        sender = self.senders[channel]
        minutes = max(1, -(-expires_in_seconds // 60))

        try:
            if channel is Channel.SMS:
                message = self.templates.render_sms(purpose, code, minutes, locale)
                result = await sender.send(identifier, message.body)
            elif channel is Channel.EMAIL:
                email = self.templates.render_email(purpose, code, minutes, locale)
                result = await sender.send(identifier, email.subject, email.html, email.text)
            else:
                result = await sender.send(identifier, code)
        except Exception as e:
            logger.error(
                "Channel sender raised",
                channel=channel.value,
                sender=sender.name,
                identifier=mask_identifier(identifier),
                error=str(e),
                exc_info=True,
            )
            return DeliveryResult.failed(str(e) or type(e).__name__, channel=channel.value)

        if result.channel is None:
            result.channel = channel.value
        if not result.success:
            logger.warning(
                "Code delivery failed",
                channel=channel.value,
                sender=sender.name,
                identifier=mask_identifier(identifier),
                error=result.error,
            )
        return result

    async def close(self) -> None:
        for sender in self.senders.values():
            await sender.close()
