"""
Code Store
==========
Hashed verification requests and the append-only attempt log.
"""

from .base import CodeStore
from .in_memory import InMemoryCodeStore
from .redis_store import (
    RedisCodeStore,
    PUT_REQUEST_SCRIPT,
    MARK_USED_SCRIPT,
    INCREMENT_ATTEMPTS_SCRIPT,
)

__all__ = [
    "CodeStore",
    "InMemoryCodeStore",
    "RedisCodeStore",
    # Scripts
    "PUT_REQUEST_SCRIPT",
    "MARK_USED_SCRIPT",
    "INCREMENT_ATTEMPTS_SCRIPT",
]
