"""
Redis Code Store
================
Redis-backed code store using Lua scripts for atomic slot and used-flag updates.
"""

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import structlog
from redis.exceptions import NoScriptError

from verify_core.clock import Clock, epoch_seconds
from verify_core.otp.hashing import hash_identifier
from verify_core.otp.models import AttemptRecord, Channel, Purpose, VerificationRequest

from .base import CodeStore

logger = structlog.get_logger(__name__)

# KEYS: request hash, slot key
# ARGV: ttl, then field/value pairs
PUT_REQUEST_SCRIPT = """
local ttl = tonumber(ARGV[1])
redis.call('DEL', KEYS[1])
for i = 2, #ARGV, 2 do
    redis.call('HSET', KEYS[1], ARGV[i], ARGV[i + 1])
end
redis.call('EXPIRE', KEYS[1], ttl)
redis.call('SET', KEYS[2], redis.call('HGET', KEYS[1], 'id'), 'EX', ttl)
return 1
"""

# Returns -1 when the request is gone, 1 for the first caller, 0 otherwise
MARK_USED_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return -1
end
local used = redis.call('HGET', KEYS[1], 'used_at')
if used and used ~= '' then
    return 0
end
redis.call('HSET', KEYS[1], 'used_at', ARGV[1])
return 1
"""

INCREMENT_ATTEMPTS_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return 0
end
return redis.call('HINCRBY', KEYS[1], 'attempt_count', 1)
"""


def _decode(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


def _dt(value: str) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


class RedisCodeStore(CodeStore):
    """
    Redis-backed code store.

    Keys:
        verify:req:{id}                 request hash
        verify:slot:{purpose}:{digest}  id of the slot's current request
        verify:attempts:{digest}        sorted set of attempt records
    Identifier digests are peppered SHA-256 hashes of the normalized form.
    """

    def __init__(
        self,
        redis_client,
        clock: Optional[Clock] = None,
        pepper: str = "",
        retention_seconds: int = 86400,
        prefix: str = "verify",
    ):
        """
        Args:
            redis_client: Async Redis client
            clock: Time source
            pepper: Secret mixed into identifier digests
            retention_seconds: How long used/expired requests stay readable
            prefix: Key prefix
        """
        super().__init__(clock)
        self.redis = redis_client
        self.pepper = pepper
        self.retention_seconds = retention_seconds
        self.prefix = prefix
        self._script_shas: Dict[str, str] = {}

    async def _eval(self, script: str, keys: Sequence[str], args: Sequence[Any]) -> Any:
        """Run a Lua script by SHA, loading it into Redis if needed."""
        sha = self._script_shas.get(script)
        if sha is None:
            sha = _decode(await self.redis.script_load(script))
            self._script_shas[script] = sha
        try:
            return await self.redis.evalsha(sha, len(keys), *keys, *args)
        except NoScriptError:
            # Script cache flushed on the server
            self._script_shas.pop(script, None)
            sha = _decode(await self.redis.script_load(script))
            self._script_shas[script] = sha
            return await self.redis.evalsha(sha, len(keys), *keys, *args)

    def _digest(self, identifier: str) -> str:
        return hash_identifier(identifier, self.pepper)

    def _request_key(self, request_id: str) -> str:
        return f"{self.prefix}:req:{request_id}"

    def _slot_key(self, identifier: str, purpose: Purpose) -> str:
        return f"{self.prefix}:slot:{purpose.value}:{self._digest(identifier)}"

    def _attempts_key(self, identifier: str) -> str:
        return f"{self.prefix}:attempts:{self._digest(identifier)}"

    @staticmethod
    def _serialize(request: VerificationRequest) -> Dict[str, str]:
        return {
            "id": request.id,
            "identifier": request.identifier,
            "purpose": request.purpose.value,
            "channel": request.channel.value,
            "code_hash": request.code_hash,
            "salt": request.salt,
            "created_at": request.created_at.isoformat(),
            "expires_at": request.expires_at.isoformat(),
            "used_at": request.used_at.isoformat() if request.used_at else "",
            "attempt_count": str(request.attempt_count),
            "user_id": request.user_id or "",
            "locale": request.locale or "",
        }

    @staticmethod
    def _deserialize(raw: Dict[Any, Any]) -> VerificationRequest:
        data = {_decode(k): _decode(v) for k, v in raw.items()}
        return VerificationRequest(
            id=data["id"],
            identifier=data["identifier"],
            purpose=Purpose(data["purpose"]),
            channel=Channel(data["channel"]),
            code_hash=data["code_hash"],
            salt=data["salt"],
            created_at=_dt(data["created_at"]),
            expires_at=_dt(data["expires_at"]),
            used_at=_dt(data.get("used_at", "")),
            attempt_count=int(data.get("attempt_count") or 0),
            user_id=data.get("user_id") or None,
            locale=data.get("locale") or None,
        )

    async def put(self, request: VerificationRequest) -> str:
        lifetime = epoch_seconds(request.expires_at) - epoch_seconds(self.clock())
        ttl = max(1, lifetime) + self.retention_seconds

        fields: List[str] = []
        for name, value in self._serialize(request).items():
            fields.extend((name, value))

        await self._eval(
            PUT_REQUEST_SCRIPT,
            [self._request_key(request.id), self._slot_key(request.identifier, request.purpose)],
            [ttl, *fields],
        )
        return request.id

    async def get_latest(self, identifier: str, purpose: Purpose) -> Optional[VerificationRequest]:
        request_id = await self.redis.get(self._slot_key(identifier, purpose))
        if request_id is None:
            return None
        return await self.get_by_id(_decode(request_id))

    async def get_by_id(self, request_id: str) -> Optional[VerificationRequest]:
        raw = await self.redis.hgetall(self._request_key(request_id))
        if not raw:
            return None
        return self._deserialize(raw)

    async def mark_used(self, request_id: str, used_at: datetime) -> bool:
        result = await self._eval(
            MARK_USED_SCRIPT,
            [self._request_key(request_id)],
            [used_at.isoformat()],
        )
        return int(result) == 1

    async def increment_attempts(self, request_id: str) -> int:
        result = await self._eval(
            INCREMENT_ATTEMPTS_SCRIPT,
            [self._request_key(request_id)],
            [],
        )
        return int(result)

    async def invalidate(self, identifier: str, purpose: Purpose) -> bool:
        deleted = await self.redis.delete(self._slot_key(identifier, purpose))
        return int(deleted) > 0

    async def append_attempt(self, record: AttemptRecord) -> None:
        key = self._attempts_key(record.identifier)
        score = record.attempted_at.timestamp()
        member = json.dumps({
            "purpose": record.purpose.value,
            "channel": record.channel.value if record.channel else None,
            "success": record.success,
            "attempted_at": record.attempted_at.isoformat(),
            "nonce": uuid.uuid4().hex[:12],
        }, separators=(",", ":"))

        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.zadd(key, {member: score})
            pipe.zremrangebyscore(key, 0, score - self.retention_seconds)
            pipe.expire(key, self.retention_seconds)
            await pipe.execute()

    async def attempts_since(self, identifier: str, since: datetime) -> List[AttemptRecord]:
        members = await self.redis.zrangebyscore(
            self._attempts_key(identifier), since.timestamp(), "+inf"
        )
        records = []
        for member in members:
            data = json.loads(_decode(member))
            records.append(AttemptRecord(
                identifier=identifier,
                purpose=Purpose(data["purpose"]),
                channel=Channel(data["channel"]) if data.get("channel") else None,
                success=bool(data["success"]),
                attempted_at=_dt(data["attempted_at"]).astimezone(timezone.utc),
            ))
        return records
