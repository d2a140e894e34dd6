"""
Verification Rate Limiter
=========================
The four independent counters guarding issuance and verification.

All keys derive from the peppered digest of the normalized identifier, so
SMS, voice and email flows share one key space per identifier.
"""

from typing import Optional

from verify_core.clock import Clock, epoch_seconds, utc_now
from verify_core.config import VerificationConfig
from verify_core.errors import CooldownActive, RateLimited, TooManyAttempts
from verify_core.logging import AuditEventType, log_audit
from verify_core.masking import mask_identifier
from verify_core.metrics import record_rate_limited
from verify_core.otp.hashing import hash_identifier

from .base import CounterBackend
from .models import LimitScope, RateLimitInfo


class VerificationRateLimiter:
    """
    Issuance caps, resend cooldown and verification-attempt cap.

    Owns the lifecycle of every counter it touches.
    """

    def __init__(
        self,
        backend: CounterBackend,
        config: VerificationConfig,
        clock: Optional[Clock] = None,
        prefix: str = "otp",
    ):
        self.backend = backend
        self.config = config
        self.clock = clock or utc_now
        self.prefix = prefix

    def _now(self) -> int:
        return epoch_seconds(self.clock())

    def key(self, scope: LimitScope, identifier: str) -> str:
        """Build a counter key for a normalized identifier."""
        digest = hash_identifier(identifier, self.config.identifier_pepper)
        return f"{self.prefix}:{scope.value}:{digest}"

    def user_key(self, user_id: str) -> str:
        return f"{self.prefix}:{LimitScope.USER.value}:{user_id}"

    async def check_issuance(self, identifier: str, user_id: Optional[str] = None) -> RateLimitInfo:
        """
        Count one issuance against the identifier and, if given, the user.

        Raises:
            RateLimited: If either hourly cap is reached
        """
        now = self._now()
        info = await self.backend.hit(
            self.key(LimitScope.IDENTIFIER, identifier),
            self.config.max_requests_per_hour,
            self.config.issuance_window_seconds,
            now,
        )
        if not info.allowed:
            self._blocked(LimitScope.IDENTIFIER, identifier, info)
            raise RateLimited(info.retry_after, scope=LimitScope.IDENTIFIER.value, identifier=identifier)

        if user_id:
            user_info = await self.backend.hit(
                self.user_key(user_id),
                self.config.max_requests_per_hour,
                self.config.issuance_window_seconds,
                now,
            )
            if not user_info.allowed:
                self._blocked(LimitScope.USER, identifier, user_info, user_id=user_id)
                raise RateLimited(
                    user_info.retry_after,
                    scope=LimitScope.USER.value,
                    identifier=identifier,
                    message="Too many verification requests from this account. Please try again later.",
                )
        return info

    async def check_cooldown(self, identifier: str) -> int:
        """
        Atomically claim the resend cooldown for one issuance.

        Returns:
            The cooldown length in seconds

        Raises:
            CooldownActive: If the previous issuance was too recent
        """
        retry_after = await self.backend.acquire_cooldown(
            self.key(LimitScope.COOLDOWN, identifier),
            self.config.resend_cooldown_seconds,
            self._now(),
        )
        if retry_after > 0:
            self._blocked(LimitScope.COOLDOWN, identifier, None, retry_after=retry_after)
            raise CooldownActive(retry_after, identifier=identifier)
        return self.config.resend_cooldown_seconds

    async def release_cooldown(self, identifier: str) -> None:
        """Give back a cooldown claimed for an issuance that never happened."""
        await self.backend.reset(self.key(LimitScope.COOLDOWN, identifier))

    async def hit_attempt(self, identifier: str) -> RateLimitInfo:
        """
        Count one verification attempt.

        Raises:
            TooManyAttempts: If the attempt cap for the window is reached
        """
        info = await self.backend.hit(
            self.key(LimitScope.ATTEMPTS, identifier),
            self.config.max_attempts,
            self.config.attempt_window_seconds,
            self._now(),
        )
        if not info.allowed:
            self._blocked(LimitScope.ATTEMPTS, identifier, info)
            raise TooManyAttempts(info.retry_after, identifier=identifier)
        return info

    async def attempts_exhausted(self, identifier: str) -> bool:
        info = await self.backend.peek(
            self.key(LimitScope.ATTEMPTS, identifier),
            self.config.max_attempts,
            self.config.attempt_window_seconds,
            self._now(),
        )
        return not info.allowed

    async def reset_attempts(self, identifier: str) -> None:
        await self.backend.reset(self.key(LimitScope.ATTEMPTS, identifier))

    def _blocked(
        self,
        scope: LimitScope,
        identifier: str,
        info: Optional[RateLimitInfo],
        retry_after: Optional[int] = None,
        user_id: Optional[str] = None,
    ) -> None:
        retry_after = info.retry_after if info else retry_after
        record_rate_limited(scope.value)
        log_audit(
            AuditEventType.RATE_LIMIT_HIT,
            scope=scope.value,
            identifier=mask_identifier(identifier),
            user_id=user_id,
            retry_after=retry_after,
        )
