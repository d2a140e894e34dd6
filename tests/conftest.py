"""
Shared fixtures: a controllable clock, recording senders and a wired engine.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

import pytest

from verify_core.config import VerificationConfig
from verify_core.dispatch import (
    DeliveryResult,
    DispatchRouter,
    EmailSender,
    SmsSender,
    TemplateCatalog,
    VoiceSender,
)
from verify_core.engine import VerificationEngine
from verify_core.otp.models import Channel
from verify_core.rate_limit import InMemoryCounterBackend, VerificationRateLimiter
from verify_core.store import InMemoryCodeStore
from verify_core.users import InMemoryUserStore

CODE_PATTERN = re.compile(r"\b(\d{6})\b")


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class RecordingSmsSender(SmsSender):
    name = "recording-sms"

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[Tuple[str, str]] = []

    async def send(self, phone_number: str, message: str) -> DeliveryResult:
        self.sent.append((phone_number, message))
        if self.fail:
            return DeliveryResult.failed("gateway unavailable")
        return DeliveryResult(success=True, message_id=f"sms-{len(self.sent)}")

    @property
    def last_code(self) -> str:
        return CODE_PATTERN.search(self.sent[-1][1]).group(1)


class RecordingEmailSender(EmailSender):
    name = "recording-email"

    def __init__(self):
        self.sent: List[dict] = []

    async def send(self, to, subject, html, text=None) -> DeliveryResult:
        self.sent.append({"to": to, "subject": subject, "html": html, "text": text})
        return DeliveryResult(success=True, message_id=f"email-{len(self.sent)}")

    @property
    def last_code(self) -> str:
        return CODE_PATTERN.search(self.sent[-1]["subject"]).group(1)


class RecordingVoiceSender(VoiceSender):
    name = "recording-voice"

    def __init__(self):
        self.calls: List[Tuple[str, str]] = []

    async def send(self, phone_number: str, code: str) -> DeliveryResult:
        self.calls.append((phone_number, code))
        return DeliveryResult(success=True, message_id=f"call-{len(self.calls)}")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sms_sender():
    return RecordingSmsSender()


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
def user_store():
    return InMemoryUserStore()


@pytest.fixture
def make_engine(clock, sms_sender, email_sender, user_store):
    """Build an engine over in-memory backends; keyword args override config."""

    def _make(senders=None, side_effects=None, **overrides):
        config = VerificationConfig(**overrides)
        router = DispatchRouter(
            senders if senders is not None else {
                Channel.SMS: sms_sender,
                Channel.EMAIL: email_sender,
            },
            TemplateCatalog(config.product_name, config.default_locale),
        )
        return VerificationEngine(
            config,
            InMemoryCodeStore(clock=clock),
            VerificationRateLimiter(InMemoryCounterBackend(), config, clock=clock),
            router,
            user_store=user_store,
            side_effects=side_effects,
            clock=clock,
        )

    return _make


@pytest.fixture
def engine(make_engine):
    return make_engine()
