"""
Code Store Tests
================
Slot supersession, the single-use transition and the attempt log.
"""

import asyncio
from datetime import timedelta

import pytest

from verify_core.otp.models import AttemptRecord, Channel, Purpose, VerificationRequest
from verify_core.store import InMemoryCodeStore

PHONE = "+14155551234"


def make_request(clock, request_id="req-1", purpose=Purpose.LOGIN, ttl=600):
    now = clock()
    return VerificationRequest(
        id=request_id,
        identifier=PHONE,
        purpose=purpose,
        channel=Channel.SMS,
        code_hash="hash",
        salt="salt",
        created_at=now,
        expires_at=now + timedelta(seconds=ttl),
    )


class TestInMemoryCodeStore:
    """Tests for the in-memory store."""

    @pytest.mark.asyncio
    async def test_put_and_get(self, clock):
        store = InMemoryCodeStore(clock=clock)
        request = make_request(clock)

        assert await store.put(request) == "req-1"
        assert await store.get(PHONE, Purpose.LOGIN) == request
        assert await store.get_by_id("req-1") == request

    @pytest.mark.asyncio
    async def test_supersede(self, clock):
        store = InMemoryCodeStore(clock=clock)
        await store.put(make_request(clock, "req-1"))
        await store.put(make_request(clock, "req-2"))

        active = await store.get(PHONE, Purpose.LOGIN)
        assert active.id == "req-2"
        assert await store.get_by_id("req-1") is not None

    @pytest.mark.asyncio
    async def test_slots_per_purpose(self, clock):
        store = InMemoryCodeStore(clock=clock)
        await store.put(make_request(clock, "req-1", Purpose.LOGIN))
        await store.put(make_request(clock, "req-2", Purpose.REGISTRATION))

        assert (await store.get(PHONE, Purpose.LOGIN)).id == "req-1"
        assert (await store.get(PHONE, Purpose.REGISTRATION)).id == "req-2"

    @pytest.mark.asyncio
    async def test_get_hides_expired_and_used(self, clock):
        store = InMemoryCodeStore(clock=clock)
        await store.put(make_request(clock))

        clock.advance(600)
        assert await store.get(PHONE, Purpose.LOGIN) is None
        assert (await store.get_latest(PHONE, Purpose.LOGIN)).id == "req-1"

    @pytest.mark.asyncio
    async def test_mark_used_once(self, clock):
        store = InMemoryCodeStore(clock=clock)
        await store.put(make_request(clock))

        results = await asyncio.gather(*(store.mark_used("req-1", clock()) for _ in range(5)))

        assert results.count(True) == 1
        assert (await store.get_by_id("req-1")).used_at == clock()
        assert await store.get(PHONE, Purpose.LOGIN) is None
        assert await store.mark_used("missing", clock()) is False

    @pytest.mark.asyncio
    async def test_increment_attempts(self, clock):
        store = InMemoryCodeStore(clock=clock)
        await store.put(make_request(clock))

        assert await store.increment_attempts("req-1") == 1
        assert await store.increment_attempts("req-1") == 2
        assert await store.increment_attempts("missing") == 0

    @pytest.mark.asyncio
    async def test_invalidate(self, clock):
        store = InMemoryCodeStore(clock=clock)
        await store.put(make_request(clock))

        assert await store.invalidate(PHONE, Purpose.LOGIN) is True
        assert await store.get_latest(PHONE, Purpose.LOGIN) is None
        assert await store.invalidate(PHONE, Purpose.LOGIN) is False

    @pytest.mark.asyncio
    async def test_prunes_old_requests(self, clock):
        store = InMemoryCodeStore(clock=clock, retention_seconds=60)
        await store.put(make_request(clock, "old", ttl=10))

        clock.advance(120)
        await store.put(make_request(clock, "new", Purpose.REGISTRATION))

        assert await store.get_by_id("old") is None
        assert await store.get_latest(PHONE, Purpose.LOGIN) is None

    @pytest.mark.asyncio
    async def test_attempt_log(self, clock):
        store = InMemoryCodeStore(clock=clock)
        start = clock()
        for success in (False, True):
            await store.append_attempt(AttemptRecord(PHONE, Purpose.LOGIN, Channel.SMS, success, clock()))
            clock.advance(60)

        records = await store.attempts_since(PHONE, start + timedelta(seconds=30))
        assert [r.success for r in records] == [True]
        assert await store.attempts_since("+10000000000", start) == []
