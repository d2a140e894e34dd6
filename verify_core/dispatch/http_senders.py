"""
HTTP Channel Senders
====================
Senders that hand codes to an internal messaging service over HTTP.

Sends are never retried here: a retried send can bill twice, and the
engine surfaces failures so the caller can decide to resend.
"""

from typing import Any, Dict, Optional

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from verify_core.masking import mask_identifier

from .models import DeliveryResult, MessageStatus
from .senders import EmailSender, SmsSender, VoiceSender

logger = structlog.get_logger(__name__)


class MessagingServiceResponse(BaseModel):
    """Accepted-message payload returned by the messaging service."""
    id: str
    status: str = "sent"


class MessagingServiceClient:
    """
    Async HTTP client for the internal messaging service.

    Features:
    - Connection pooling (via httpx.AsyncClient)
    - Pydantic response validation
    - Failures reported as DeliveryResult instead of raised
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {
            "User-Agent": "verify-core/messaging-client",
            "Accept": "application/json",
        }
        if api_key:
            headers["X-Internal-Secret"] = api_key

        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    async def post(self, path: str, payload: Dict[str, Any], channel: str) -> DeliveryResult:
        """Post a message and translate the outcome into a DeliveryResult."""
        try:
            response = await self.client.post(path, json=payload)
            response.raise_for_status()
            accepted = MessagingServiceResponse.model_validate(response.json())
        except httpx.TimeoutException:
            logger.error("Messaging service timed out", channel=channel)
            return DeliveryResult.failed("timeout", channel=channel)
        except httpx.HTTPStatusError as e:
            logger.error(
                "Messaging service rejected message",
                channel=channel,
                status_code=e.response.status_code,
            )
            return DeliveryResult.failed(f"http_{e.response.status_code}", channel=channel)
        except httpx.HTTPError as e:
            logger.error("Messaging service unreachable", channel=channel, error=str(e))
            return DeliveryResult.failed("unavailable", channel=channel)
        except (ValueError, ValidationError) as e:
            logger.error("Invalid messaging service response", channel=channel, error=str(e))
            return DeliveryResult.failed("invalid_response", channel=channel)

        status = MessageStatus.PENDING if accepted.status in ("queued", "pending") else MessageStatus.SENT
        return DeliveryResult(
            success=True,
            message_id=accepted.id,
            status=status,
            channel=channel,
        )


class HttpSmsSender(SmsSender):
    name = "http-sms"

    def __init__(self, client: MessagingServiceClient, sender_id: Optional[str] = None):
        self.client = client
        self.sender_id = sender_id

    async def send(self, phone_number: str, message: str) -> DeliveryResult:
        payload = {"to": phone_number, "body": message}
        if self.sender_id:
            payload["from"] = self.sender_id
        logger.debug("Sending SMS", to=mask_identifier(phone_number))
        return await self.client.post("/v1/sms", payload, channel="sms")

    async def close(self) -> None:
        await self.client.aclose()
        await super().close()


class HttpEmailSender(EmailSender):
    name = "http-email"

    def __init__(self, client: MessagingServiceClient, from_address: Optional[str] = None):
        self.client = client
        self.from_address = from_address

    async def send(
        self,
        to: str,
        subject: str,
        html: str,
        text: Optional[str] = None,
    ) -> DeliveryResult:
        payload = {"to": to, "subject": subject, "html": html}
        if text is not None:
            payload["text"] = text
        if self.from_address:
            payload["from"] = self.from_address
        logger.debug("Sending email", to=mask_identifier(to))
        return await self.client.post("/v1/email", payload, channel="email")

    async def close(self) -> None:
        await self.client.aclose()
        await super().close()


class HttpVoiceSender(VoiceSender):
    name = "http-voice"

    def __init__(self, client: MessagingServiceClient, locale: str = "en"):
        self.client = client
        self.locale = locale

    async def send(self, phone_number: str, code: str) -> DeliveryResult:
        # Digits are spaced so text-to-speech reads them one by one
        payload = {"to": phone_number, "code": " ".join(code), "locale": self.locale}
        logger.debug("Placing voice call", to=mask_identifier(phone_number))
        return await self.client.post("/v1/voice", payload, channel="voice")

    async def close(self) -> None:
        await self.client.aclose()
        await super().close()
