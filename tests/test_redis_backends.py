"""
Redis Backend Tests
===================
The Lua-scripted store and counters, run against fakeredis.
"""

import asyncio
from datetime import timedelta

import pytest
import pytest_asyncio

pytest.importorskip("lupa")
FakeRedis = pytest.importorskip("fakeredis.aioredis").FakeRedis

from verify_core.config import VerificationConfig
from verify_core.dispatch import DispatchRouter, TemplateCatalog
from verify_core.engine import VerificationEngine
from verify_core.errors import AlreadyUsed, CooldownActive, Mismatch, TooManyAttempts
from verify_core.otp.models import AttemptRecord, Channel, Purpose, VerificationRequest
from verify_core.rate_limit import RedisCounterBackend, VerificationRateLimiter
from verify_core.store import RedisCodeStore

PHONE = "+14155551234"


@pytest_asyncio.fixture
async def redis_client():
    client = FakeRedis()
    try:
        yield client
    finally:
        await client.flushall()
        await client.aclose()


def make_request(clock, request_id, purpose=Purpose.LOGIN):
    now = clock()
    return VerificationRequest(
        id=request_id,
        identifier=PHONE,
        purpose=purpose,
        channel=Channel.SMS,
        code_hash="hash",
        salt="salt",
        created_at=now,
        expires_at=now + timedelta(seconds=600),
        user_id="u-1",
        locale="es",
    )


class TestRedisCodeStore:
    """Tests for the Redis code store."""

    @pytest.mark.asyncio
    async def test_round_trip(self, redis_client, clock):
        store = RedisCodeStore(redis_client, clock=clock)
        request = make_request(clock, "req-1")

        await store.put(request)

        assert await store.get_by_id("req-1") == request
        assert await store.get(PHONE, Purpose.LOGIN) == request

    @pytest.mark.asyncio
    async def test_keys_do_not_contain_identifier(self, redis_client, clock):
        store = RedisCodeStore(redis_client, clock=clock, pepper="pepper")
        await store.put(make_request(clock, "req-1"))

        keys = [key.decode() for key in await redis_client.keys("*")]
        assert keys
        assert not any("4155551234" in key for key in keys)

    @pytest.mark.asyncio
    async def test_supersede(self, redis_client, clock):
        store = RedisCodeStore(redis_client, clock=clock)
        await store.put(make_request(clock, "req-1"))
        await store.put(make_request(clock, "req-2"))

        assert (await store.get_latest(PHONE, Purpose.LOGIN)).id == "req-2"

    @pytest.mark.asyncio
    async def test_mark_used_once(self, redis_client, clock):
        store = RedisCodeStore(redis_client, clock=clock)
        await store.put(make_request(clock, "req-1"))

        results = await asyncio.gather(*(store.mark_used("req-1", clock()) for _ in range(5)))

        assert results.count(True) == 1
        assert (await store.get_by_id("req-1")).used_at == clock()
        assert await store.mark_used("missing", clock()) is False

    @pytest.mark.asyncio
    async def test_increment_and_invalidate(self, redis_client, clock):
        store = RedisCodeStore(redis_client, clock=clock)
        await store.put(make_request(clock, "req-1"))

        assert await store.increment_attempts("req-1") == 1
        assert await store.increment_attempts("req-1") == 2
        assert await store.invalidate(PHONE, Purpose.LOGIN) is True
        assert await store.get_latest(PHONE, Purpose.LOGIN) is None

    @pytest.mark.asyncio
    async def test_attempt_log(self, redis_client, clock):
        store = RedisCodeStore(redis_client, clock=clock)
        start = clock()
        await store.append_attempt(AttemptRecord(PHONE, Purpose.LOGIN, Channel.SMS, False, clock()))
        await store.append_attempt(AttemptRecord(PHONE, Purpose.LOGIN, None, False, clock()))
        clock.advance(60)
        await store.append_attempt(AttemptRecord(PHONE, Purpose.LOGIN, Channel.SMS, True, clock()))

        records = await store.attempts_since(PHONE, start)
        assert len(records) == 3
        assert records[-1].success is True
        assert records[-1].attempted_at == clock()
        assert len(await store.attempts_since(PHONE, start + timedelta(seconds=30))) == 1

    @pytest.mark.asyncio
    async def test_script_reloaded_after_flush(self, redis_client, clock):
        store = RedisCodeStore(redis_client, clock=clock)
        await store.put(make_request(clock, "req-1"))

        await redis_client.script_flush()
        await store.put(make_request(clock, "req-2"))

        assert (await store.get_latest(PHONE, Purpose.LOGIN)).id == "req-2"


class TestRedisCounterBackend:
    """Tests for the Redis counters."""

    @pytest.mark.asyncio
    async def test_fixed_window(self, redis_client):
        backend = RedisCounterBackend(redis_client)

        infos = [await backend.hit("k", 3, 60, 1000) for _ in range(4)]

        assert [info.allowed for info in infos] == [True, True, True, False]
        assert infos[-1].retry_after == 60
        assert (await backend.peek("k", 3, 60, 1030)).count == 3
        assert (await backend.hit("k", 3, 60, 1060)).allowed is True

    @pytest.mark.asyncio
    async def test_concurrent_hits(self, redis_client):
        backend = RedisCounterBackend(redis_client)

        infos = await asyncio.gather(*(backend.hit("k", 5, 60, 1000) for _ in range(20)))

        assert sum(1 for info in infos if info.allowed) == 5

    @pytest.mark.asyncio
    async def test_cooldown(self, redis_client):
        backend = RedisCounterBackend(redis_client)

        results = await asyncio.gather(*(backend.acquire_cooldown("c", 60, 1000) for _ in range(5)))
        assert sorted(results) == [0, 60, 60, 60, 60]

        assert await backend.acquire_cooldown("c", 60, 1010) == 50
        assert await backend.acquire_cooldown("c", 60, 1061) == 0

    @pytest.mark.asyncio
    async def test_reset_releases_cooldown(self, redis_client):
        backend = RedisCounterBackend(redis_client)

        assert await backend.acquire_cooldown("c", 60, 1000) == 0
        assert await backend.acquire_cooldown("c", 60, 1030) == 30

        await backend.reset("c")
        assert await backend.acquire_cooldown("c", 60, 1030) == 0


class TestEngineOnRedis:
    """The engine scenarios against the Redis backends."""

    @pytest.fixture
    def redis_engine(self, redis_client, clock, sms_sender, user_store):
        def _make(**overrides):
            config = VerificationConfig(enabled_channels=(Channel.SMS,), **overrides)
            return VerificationEngine(
                config,
                RedisCodeStore(redis_client, clock=clock),
                VerificationRateLimiter(RedisCounterBackend(redis_client), config, clock=clock),
                DispatchRouter({Channel.SMS: sms_sender}, TemplateCatalog(config.product_name)),
                user_store=user_store,
                clock=clock,
            )

        return _make

    @pytest.mark.asyncio
    async def test_scenario(self, redis_engine, sms_sender, clock):
        engine = redis_engine()
        issued = await engine.issue(PHONE, Purpose.REGISTRATION, Channel.SMS)

        assert issued.expires_at == clock() + timedelta(seconds=600)
        result = await engine.verify(PHONE, sms_sender.last_code, Purpose.REGISTRATION)
        assert result.verified is True
        with pytest.raises(AlreadyUsed):
            await engine.verify(PHONE, sms_sender.last_code, Purpose.REGISTRATION)

    @pytest.mark.asyncio
    async def test_cooldown_and_attempts(self, redis_engine, sms_sender, clock):
        engine = redis_engine()
        await engine.issue(PHONE, Purpose.LOGIN, Channel.SMS)
        code = sms_sender.last_code
        wrong = "000000" if code != "000000" else "111111"

        clock.advance(10)
        with pytest.raises(CooldownActive):
            await engine.resend(PHONE, Purpose.LOGIN)

        for _ in range(3):
            assert (await engine.verify(PHONE, wrong, Purpose.LOGIN)).verified is False
        with pytest.raises(TooManyAttempts):
            await engine.verify(PHONE, code, Purpose.LOGIN)

    @pytest.mark.asyncio
    async def test_concurrent_verifications(self, redis_engine, sms_sender):
        engine = redis_engine(max_attempts=10)
        await engine.issue(PHONE, Purpose.LOGIN, Channel.SMS)
        code = sms_sender.last_code

        results = await asyncio.gather(
            *(engine.verify(PHONE, code, Purpose.LOGIN) for _ in range(10)),
            return_exceptions=True,
        )

        verified = [r for r in results if not isinstance(r, Exception) and r.verified]
        rejected = [
            r for r in results
            if isinstance(r, (AlreadyUsed, Mismatch))
            or (not isinstance(r, Exception) and not r.verified)
        ]
        assert len(verified) == 1
        assert len(rejected) == 9
