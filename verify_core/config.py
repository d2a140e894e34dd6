"""
Verification Configuration
==========================
Service-wide defaults, passed explicitly to the engine at construction.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from verify_core.otp.models import Channel


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class VerificationConfig:
    """Configuration for code issuance, verification and rate limiting."""
    code_length: int = 6
    use_alphanumeric: bool = False
    expiry_seconds: int = 600  # 10 minutes
    max_attempts: int = 3
    attempt_window_seconds: int = 900  # 15 minutes
    max_requests_per_hour: int = 5
    issuance_window_seconds: int = 3600
    resend_cooldown_seconds: int = 60
    default_locale: str = "en"
    product_name: str = "Plantix"
    identifier_pepper: str = ""
    enabled_channels: Tuple[Channel, ...] = field(
        default=(Channel.SMS, Channel.EMAIL)
    )

    def validate(self) -> "VerificationConfig":
        """
        Reject values that would disable a safety control.

        Returns:
            self, so the call can be chained
        """
        if not 4 <= self.code_length <= 12:
            raise ValueError("code_length must be between 4 and 12")
        for name in (
            "expiry_seconds",
            "max_attempts",
            "attempt_window_seconds",
            "max_requests_per_hour",
            "issuance_window_seconds",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.resend_cooldown_seconds < 0:
            raise ValueError("resend_cooldown_seconds must not be negative")
        if not self.enabled_channels:
            raise ValueError("at least one channel must be enabled")
        return self

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "VerificationConfig":
        """
        Build a config from process environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        channels = defaults.enabled_channels
        raw_channels = env.get("OTP_CHANNELS")
        if raw_channels:
            channels = tuple(
                Channel(name.strip().lower())
                for name in raw_channels.split(",")
                if name.strip()
            )

        return cls(
            code_length=_env_int(env, "OTP_LENGTH", defaults.code_length),
            use_alphanumeric=_env_bool(env, "OTP_ENABLE_ALPHANUMERIC", defaults.use_alphanumeric),
            expiry_seconds=_env_int(env, "OTP_EXPIRY_SECONDS", defaults.expiry_seconds),
            max_attempts=_env_int(env, "OTP_MAX_ATTEMPTS", defaults.max_attempts),
            attempt_window_seconds=_env_int(
                env, "OTP_ATTEMPT_WINDOW_SECONDS", defaults.attempt_window_seconds
            ),
            max_requests_per_hour=_env_int(
                env, "OTP_MAX_REQUESTS_PER_HOUR", defaults.max_requests_per_hour
            ),
            resend_cooldown_seconds=_env_int(
                env, "OTP_RESEND_COOLDOWN_SECONDS", defaults.resend_cooldown_seconds
            ),
            default_locale=env.get("OTP_DEFAULT_LOCALE", defaults.default_locale),
            product_name=env.get("APP_NAME", defaults.product_name),
            identifier_pepper=env.get("OTP_IDENTIFIER_PEPPER", defaults.identifier_pepper),
            enabled_channels=channels,
        ).validate()
