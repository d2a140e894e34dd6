"""
In-Memory Code Store
====================
Single-process code store for development and testing.
"""

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from verify_core.clock import Clock
from verify_core.otp.models import AttemptRecord, Purpose, VerificationRequest

from .base import CodeStore


class InMemoryCodeStore(CodeStore):
    """
    Dict-backed code store.

    For development and testing only. Use RedisCodeStore in production.
    Methods never await between reading and writing shared state, so each
    one is atomic with respect to other coroutines on the same loop.
    """

    def __init__(self, clock: Optional[Clock] = None, retention_seconds: int = 86400):
        super().__init__(clock)
        self.retention = timedelta(seconds=retention_seconds)
        self._requests: Dict[str, VerificationRequest] = {}
        self._slots: Dict[Tuple[str, Purpose], str] = {}
        self._attempts: Dict[str, List[AttemptRecord]] = defaultdict(list)

    async def put(self, request: VerificationRequest) -> str:
        self._prune()
        self._requests[request.id] = request
        self._slots[(request.identifier, request.purpose)] = request.id
        return request.id

    async def get_latest(self, identifier: str, purpose: Purpose) -> Optional[VerificationRequest]:
        request_id = self._slots.get((identifier, purpose))
        if request_id is None:
            return None
        return self._requests.get(request_id)

    async def get_by_id(self, request_id: str) -> Optional[VerificationRequest]:
        return self._requests.get(request_id)

    async def mark_used(self, request_id: str, used_at: datetime) -> bool:
        request = self._requests.get(request_id)
        if request is None or request.is_used:
            return False
        self._requests[request_id] = request.with_changes(used_at=used_at)
        return True

    async def increment_attempts(self, request_id: str) -> int:
        request = self._requests.get(request_id)
        if request is None:
            return 0
        updated = request.with_changes(attempt_count=request.attempt_count + 1)
        self._requests[request_id] = updated
        return updated.attempt_count

    async def invalidate(self, identifier: str, purpose: Purpose) -> bool:
        return self._slots.pop((identifier, purpose), None) is not None

    async def append_attempt(self, record: AttemptRecord) -> None:
        self._attempts[record.identifier].append(record)

    async def attempts_since(self, identifier: str, since: datetime) -> List[AttemptRecord]:
        return [r for r in self._attempts.get(identifier, []) if r.attempted_at >= since]

    def _prune(self) -> None:
        """Drop requests that expired longer ago than the retention period."""
        cutoff = self.clock() - self.retention
        stale = [rid for rid, req in self._requests.items() if req.expires_at < cutoff]
        for rid in stale:
            request = self._requests.pop(rid)
            slot = (request.identifier, request.purpose)
            if self._slots.get(slot) == rid:
                del self._slots[slot]
        for identifier in list(self._attempts):
            kept = [r for r in self._attempts[identifier] if r.attempted_at >= cutoff]
            if kept:
                self._attempts[identifier] = kept
            else:
                del self._attempts[identifier]
