"""
Verification Engine
===================
Orchestrates code issuance and verification.

Issuance:     validator -> cooldown -> issuance limits -> generator -> store -> dispatch
Verification: attempt limit -> store lookup -> hash compare -> mark used -> side effect

Usage:
    engine = VerificationEngine(config, store, limiter, router, user_store=users)
    issued = await engine.issue("+14155551234", Purpose.REGISTRATION, Channel.SMS)
    result = await engine.verify("+14155551234", "123456", Purpose.REGISTRATION)
"""

import uuid
from datetime import timedelta
from typing import Awaitable, Callable, Dict, Optional

import structlog

from verify_core.clock import Clock, utc_now
from verify_core.config import VerificationConfig
from verify_core.dispatch.router import DispatchRouter
from verify_core.errors import (
    AlreadyUsed,
    DeliveryFailed,
    ErrorCode,
    Expired,
    RateLimited,
    TooManyAttempts,
    UnsupportedChannel,
    VerificationNotFound,
)
from verify_core.identifiers import IdentifierKind, IdentifierValidator, ValidatedIdentifier
from verify_core.logging import AuditEventType, log_audit
from verify_core.masking import mask_identifier
from verify_core.metrics import record_delivery_failure, record_issued, record_outcome
from verify_core.otp.hashing import (
    ALPHANUMERIC,
    DIGITS,
    generate_otp,
    generate_salt,
    hash_otp,
    verify_otp_hash,
)
from verify_core.otp.models import AttemptRecord, Channel, Purpose, VerificationRequest
from verify_core.rate_limit.limiter import VerificationRateLimiter
from verify_core.store.base import CodeStore
from verify_core.users import UserStore

from .models import AttemptStats, IssueResult, VerificationResult, VerificationState

logger = structlog.get_logger(__name__)

SideEffect = Callable[[VerificationRequest, IdentifierKind], Awaitable[None]]


class VerificationEngine:
    """
    Single entry point for issuing and checking verification codes.

    Every channel goes through one validator registry and one limiter, so
    an identifier has exactly one set of counters regardless of channel.
    """

    def __init__(
        self,
        config: VerificationConfig,
        store: CodeStore,
        limiter: VerificationRateLimiter,
        router: DispatchRouter,
        validator: Optional[IdentifierValidator] = None,
        user_store: Optional[UserStore] = None,
        side_effects: Optional[Dict[Purpose, SideEffect]] = None,
        clock: Optional[Clock] = None,
    ):
        self.config = config.validate()
        self.store = store
        self.limiter = limiter
        self.router = router
        self.validator = validator or IdentifierValidator()
        self.user_store = user_store
        self.side_effects: Dict[Purpose, SideEffect] = dict(side_effects or {})
        self.clock = clock or utc_now

        # Misconfigured channels fail here, not on the first request
        for channel in self.config.enabled_channels:
            self.router.ensure_supported(channel)

    # =========================================================================
    # Issuance
    # =========================================================================

    async def issue(
        self,
        identifier: str,
        purpose: Purpose,
        channel: Channel,
        locale: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> IssueResult:
        """
        Issue a code, superseding any active code for (identifier, purpose).

        Raises:
            UnsupportedChannel: Channel disabled or without a sender
            InvalidFormat: Identifier invalid for the channel
            CooldownActive: The previous code was sent too recently
            RateLimited: Hourly issuance cap reached
            DeliveryFailed: Sender failed; the stored code stays valid
        """
        channel = self._resolve_channel(channel)
        validated = self.validator.validate(identifier, channel.identifier_kind)
        return await self._issue(validated, Purpose(purpose), channel, locale, user_id)

    async def resend(
        self,
        identifier: str,
        purpose: Purpose,
        channel: Optional[Channel] = None,
        locale: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> IssueResult:
        """
        Issue a fresh code for a slot that already had one.

        Channel and locale default to the previous request's.

        Raises:
            Everything ``issue`` raises
        """
        purpose = Purpose(purpose)
        detected = self.validator.detect(identifier)
        prior = await self.store.get_latest(detected.normalized, purpose)

        if channel is None:
            if prior is not None:
                channel = prior.channel
            elif detected.kind is IdentifierKind.EMAIL:
                channel = Channel.EMAIL
            else:
                channel = Channel.SMS
        if locale is None and prior is not None:
            locale = prior.locale

        channel = self._resolve_channel(channel)
        validated = self.validator.validate(identifier, channel.identifier_kind)
        return await self._issue(validated, purpose, channel, locale, user_id, resent=True)

    async def resend_by_id(self, request_id: str) -> IssueResult:
        """Resend for a known verification id, reusing its channel and locale."""
        request = await self._get_request(request_id)
        return await self.resend(
            request.identifier,
            request.purpose,
            channel=request.channel,
            locale=request.locale,
            user_id=request.user_id,
        )

    async def _issue(
        self,
        validated: ValidatedIdentifier,
        purpose: Purpose,
        channel: Channel,
        locale: Optional[str],
        user_id: Optional[str],
        resent: bool = False,
    ) -> IssueResult:
        identifier = validated.normalized
        retry_after = await self.limiter.check_cooldown(identifier)
        try:
            await self.limiter.check_issuance(identifier, user_id=user_id)
        except RateLimited:
            await self.limiter.release_cooldown(identifier)
            raise

        alphabet = ALPHANUMERIC if self.config.use_alphanumeric else DIGITS
        code = generate_otp(self.config.code_length, alphabet)
        salt = generate_salt()
        now = self.clock()

        request = VerificationRequest(
            id=str(uuid.uuid4()),
            identifier=identifier,
            purpose=purpose,
            channel=channel,
            code_hash=hash_otp(code, salt),
            salt=salt,
            created_at=now,
            expires_at=now + timedelta(seconds=self.config.expiry_seconds),
            user_id=user_id,
            locale=locale,
        )
        await self.store.put(request)

        log_audit(
            AuditEventType.VERIFY_RESENT if resent else AuditEventType.VERIFY_STARTED,
            identifier=mask_identifier(identifier),
            request_id=request.id,
            purpose=purpose.value,
            channel=channel.value,
            user_id=user_id,
        )

        # No lock or store transaction is held across the sender call
        delivery = await self.router.send(
            identifier,
            purpose,
            code,
            channel,
            locale=locale,
            expires_in_seconds=self.config.expiry_seconds,
        )
        if not delivery.success:
            record_delivery_failure(channel.value)
            log_audit(
                AuditEventType.DELIVERY_FAILED,
                identifier=mask_identifier(identifier),
                request_id=request.id,
                channel=channel.value,
                error=delivery.error,
            )
            raise DeliveryFailed(
                request.id,
                request.expires_at,
                identifier=identifier,
                reason=delivery.error,
            )

        record_issued(channel.value, purpose.value)
        logger.info(
            "Verification code issued",
            request_id=request.id,
            identifier=mask_identifier(identifier),
            purpose=purpose.value,
            channel=channel.value,
            expires_in=self.config.expiry_seconds,
        )
        return IssueResult(
            request_id=request.id,
            expires_at=request.expires_at,
            retry_after=retry_after,
            channel=channel,
            purpose=purpose,
            message_id=delivery.message_id,
        )

    # =========================================================================
    # Verification
    # =========================================================================

    async def verify(self, identifier: str, code: str, purpose: Purpose) -> VerificationResult:
        """
        Check a code for (identifier, purpose).

        The attempt counter is hit before anything else, so a correct code
        is still rejected once the cap is reached.

        Raises:
            InvalidFormat: Identifier is malformed
            TooManyAttempts: Attempt cap reached for the window
            Expired: The code's lifetime elapsed
            AlreadyUsed: The code was already verified
        """
        validated = self.validator.detect(identifier)
        return await self._verify(validated, Purpose(purpose), code)

    async def verify_by_id(self, request_id: str, code: str) -> VerificationResult:
        """
        Check a code for a known verification id.

        A request that has since been superseded or invalidated is treated
        as expired.

        Raises:
            VerificationNotFound: Unknown id
            Plus everything ``verify`` raises
        """
        request = await self._get_request(request_id)
        validated = self.validator.detect(request.identifier)
        return await self._verify(validated, request.purpose, code, request_id=request.id)

    async def _verify(
        self,
        validated: ValidatedIdentifier,
        purpose: Purpose,
        code: str,
        request_id: Optional[str] = None,
    ) -> VerificationResult:
        identifier = validated.normalized
        masked = mask_identifier(identifier)

        try:
            limit = await self.limiter.hit_attempt(identifier)
        except TooManyAttempts:
            await self._record(identifier, purpose, None, success=False)
            record_outcome(purpose.value, ErrorCode.TOO_MANY_ATTEMPTS.value)
            log_audit(
                AuditEventType.VERIFY_FAILED,
                identifier=masked,
                purpose=purpose.value,
                reason=ErrorCode.TOO_MANY_ATTEMPTS.value,
            )
            raise

        remaining = limit.remaining
        request = await self.store.get_latest(identifier, purpose)
        superseded = request_id is not None and (request is None or request.id != request_id)

        if request is None and not superseded:
            await self._record(identifier, purpose, None, success=False)
            return self._mismatch(identifier, purpose, remaining, None)

        if superseded:
            request = await self._get_request(request_id)
        await self.store.increment_attempts(request.id)

        now = self.clock()
        if request.is_used:
            await self._fail(request, ErrorCode.ALREADY_USED)
            raise AlreadyUsed(identifier=identifier)
        if superseded:
            await self._fail(request, ErrorCode.EXPIRED)
            raise Expired(
                "Verification code is no longer valid. Please use the latest code.",
                identifier=identifier,
            )
        if request.is_expired(now):
            await self._fail(request, ErrorCode.EXPIRED)
            raise Expired(identifier=identifier)

        if not verify_otp_hash(code or "", request.salt, request.code_hash):
            await self._record(identifier, purpose, request.channel, success=False)
            return self._mismatch(identifier, purpose, remaining, request.id)

        # Linearization point: only one concurrent caller wins the transition
        if not await self.store.mark_used(request.id, now):
            await self._fail(request, ErrorCode.ALREADY_USED)
            raise AlreadyUsed(identifier=identifier)

        await self._record(identifier, purpose, request.channel, success=True)
        await self.limiter.reset_attempts(identifier)
        record_outcome(purpose.value, "verified")
        log_audit(
            AuditEventType.VERIFY_COMPLETED,
            identifier=masked,
            request_id=request.id,
            purpose=purpose.value,
            channel=request.channel.value,
        )

        await self._run_side_effect(request.with_changes(used_at=now), validated.kind)
        return VerificationResult(
            verified=True,
            attempts_remaining=remaining,
            request_id=request.id,
        )

    def _mismatch(
        self,
        identifier: str,
        purpose: Purpose,
        remaining: int,
        request_id: Optional[str],
    ) -> VerificationResult:
        record_outcome(purpose.value, ErrorCode.MISMATCH.value)
        log_audit(
            AuditEventType.VERIFY_FAILED,
            identifier=mask_identifier(identifier),
            request_id=request_id,
            purpose=purpose.value,
            reason=ErrorCode.MISMATCH.value,
            attempts_remaining=remaining,
        )
        return VerificationResult(
            verified=False,
            attempts_remaining=remaining,
            request_id=request_id,
            reason=ErrorCode.MISMATCH,
            identifier=identifier,
        )

    async def _fail(self, request: VerificationRequest, reason: ErrorCode) -> None:
        await self._record(request.identifier, request.purpose, request.channel, success=False)
        record_outcome(request.purpose.value, reason.value)
        log_audit(
            AuditEventType.VERIFY_FAILED,
            identifier=mask_identifier(request.identifier),
            request_id=request.id,
            purpose=request.purpose.value,
            reason=reason.value,
        )

    async def _record(
        self,
        identifier: str,
        purpose: Purpose,
        channel: Optional[Channel],
        success: bool,
    ) -> None:
        await self.store.append_attempt(
            AttemptRecord(
                identifier=identifier,
                purpose=purpose,
                channel=channel,
                success=success,
                attempted_at=self.clock(),
            )
        )

    async def _run_side_effect(self, request: VerificationRequest, kind: IdentifierKind) -> None:
        hook = self.side_effects.get(request.purpose)
        try:
            if hook is not None:
                await hook(request, kind)
            elif self.user_store is not None:
                await self.user_store.mark_verified(request.identifier, kind)
            else:
                logger.debug("No side effect configured", purpose=request.purpose.value)
        except Exception as e:
            logger.error(
                "Verification side effect failed",
                request_id=request.id,
                identifier=mask_identifier(request.identifier),
                purpose=request.purpose.value,
                error=str(e),
                exc_info=True,
            )
            raise

    # =========================================================================
    # Queries and administration
    # =========================================================================

    async def status(self, identifier: str, purpose: Purpose) -> VerificationState:
        """Current lifecycle state of (identifier, purpose)."""
        validated = self.validator.detect(identifier)
        request = await self.store.get_latest(validated.normalized, Purpose(purpose))
        if request is None:
            return VerificationState.NONE
        if request.is_used:
            return VerificationState.VERIFIED
        if request.is_expired(self.clock()):
            return VerificationState.EXPIRED
        if await self.limiter.attempts_exhausted(validated.normalized):
            return VerificationState.EXHAUSTED
        return VerificationState.ISSUED

    async def invalidate(self, identifier: str, purpose: Purpose) -> bool:
        """Drop the active code for (identifier, purpose), if any."""
        validated = self.validator.detect(identifier)
        removed = await self.store.invalidate(validated.normalized, Purpose(purpose))
        if removed:
            log_audit(
                AuditEventType.VERIFY_INVALIDATED,
                identifier=mask_identifier(validated.normalized),
                purpose=Purpose(purpose).value,
            )
        return removed

    async def attempt_stats(self, identifier: str, hours: int = 24) -> AttemptStats:
        """Attempt totals for an identifier over the trailing `hours`."""
        validated = self.validator.detect(identifier)
        since = self.clock() - timedelta(hours=hours)
        records = await self.store.attempts_since(validated.normalized, since)

        total = len(records)
        succeeded = sum(1 for r in records if r.success)
        return AttemptStats(
            total=total,
            succeeded=succeeded,
            failed=total - succeeded,
            success_rate=round(succeeded * 100.0 / total, 2) if total else 0.0,
            last_attempt_at=max((r.attempted_at for r in records), default=None),
        )

    async def close(self) -> None:
        await self.router.close()
        await self.store.close()

    # =========================================================================
    # Helpers
    # =========================================================================

    def _resolve_channel(self, channel: Channel) -> Channel:
        resolved = self.router.ensure_supported(channel)
        if resolved not in self.config.enabled_channels:
            raise UnsupportedChannel(resolved)
        return resolved

    async def _get_request(self, request_id: str) -> VerificationRequest:
        request = await self.store.get_by_id(request_id)
        if request is None:
            raise VerificationNotFound()
        return request
