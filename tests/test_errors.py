"""
Error Mapping Tests
===================
Error payloads, HTTP status mapping and the pydantic contract schemas.
"""

import json
from datetime import datetime, timezone

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from verify_core.engine.models import IssueResult, VerificationResult
from verify_core.errors import (
    AlreadyUsed,
    CooldownActive,
    DeliveryFailed,
    ErrorCode,
    Expired,
    InvalidFormat,
    Mismatch,
    RateLimited,
    TooManyAttempts,
    UnsupportedChannel,
    to_error_response,
    to_http_exception,
)
from verify_core.otp.models import Channel, Purpose
from verify_core.schemas import (
    ErrorResponse,
    IssueRequest,
    IssueResponse,
    ResendRequest,
    VerifyRequest,
    VerifyResponse,
)

EXPIRES = datetime(2026, 3, 2, 9, 40, tzinfo=timezone.utc)


class TestErrorPayloads:
    """Tests for error serialization."""

    def test_identifier_masked(self):
        error = RateLimited(120, identifier="+14155551234")

        payload = error.to_dict()
        assert payload == {
            "error": "rate_limited",
            "message": "Too many verification requests. Please try again later.",
            "retryable": True,
            "identifier": "+141******34",
            "retry_after": 120,
            "scope": "identifier",
        }

    def test_mismatch_carries_remaining(self):
        assert Mismatch(1).to_dict()["attempts_remaining"] == 1

    def test_delivery_failed_carries_request(self):
        payload = DeliveryFailed("req-1", EXPIRES, identifier="farmer@example.com").to_dict()

        assert payload["verification_id"] == "req-1"
        assert payload["expires_at"] == EXPIRES.isoformat()
        assert payload["identifier"] == "fa****@example.com"
        assert payload["retryable"] is False

    def test_retryable_flags(self):
        assert CooldownActive(5).retryable is True
        assert TooManyAttempts(5).retryable is True
        assert InvalidFormat().retryable is False
        assert UnsupportedChannel("fax").retryable is False


class TestHttpMapping:
    """Tests for FastAPI exception mapping."""

    @pytest.mark.parametrize("error,status", [
        (InvalidFormat(), 400),
        (UnsupportedChannel(Channel.VOICE), 400),
        (RateLimited(60), 429),
        (CooldownActive(30), 429),
        (TooManyAttempts(900), 429),
        (Expired(), 410),
        (AlreadyUsed(), 409),
        (DeliveryFailed("req-1", EXPIRES), 502),
    ])
    def test_status(self, error, status):
        exc = to_http_exception(error)

        assert isinstance(exc, HTTPException)
        assert exc.status_code == status
        assert exc.detail["error"] == error.code.value

    def test_retry_after_header(self):
        exc = to_http_exception(CooldownActive(42))

        assert exc.headers == {"Retry-After": "42"}
        assert to_http_exception(Expired()).headers is None

    def test_json_response(self):
        response = to_error_response(TooManyAttempts(300, identifier="+14155551234"))

        assert response.status_code == 429
        assert response.headers["retry-after"] == "300"
        body = json.loads(response.body)
        assert body["error"] == ErrorCode.TOO_MANY_ATTEMPTS.value
        assert "+14155551234" not in response.body.decode()


class TestSchemas:
    """Tests for the HTTP contract bodies."""

    def test_issue_request_defaults(self):
        request = IssueRequest.model_validate({"identifier": "+14155551234", "purpose": "registration"})

        assert request.channel is Channel.SMS
        assert request.purpose is Purpose.REGISTRATION

    def test_issue_request_rejects_unknown_purpose(self):
        with pytest.raises(ValidationError):
            IssueRequest.model_validate({"identifier": "+14155551234", "purpose": "marketing"})

    def test_issue_response_camel_case(self):
        result = IssueResult("req-1", EXPIRES, 60, Channel.SMS, Purpose.LOGIN)

        body = IssueResponse.from_result(result).model_dump(by_alias=True, mode="json")

        assert body == {
            "verificationId": "req-1",
            "expiresAt": "2026-03-02T09:40:00Z",
            "retryAfter": 60,
            "channel": "sms",
        }

    def test_verify_request_targets(self):
        by_id = VerifyRequest.model_validate({"verificationId": "req-1", "code": "123456"})
        by_identifier = VerifyRequest.model_validate(
            {"identifier": "+14155551234", "purpose": "login", "code": "123456"}
        )

        assert by_id.verification_id == "req-1"
        assert by_identifier.purpose is Purpose.LOGIN
        with pytest.raises(ValidationError):
            VerifyRequest.model_validate({"identifier": "+14155551234", "code": "123456"})
        with pytest.raises(ValidationError):
            ResendRequest.model_validate({})

    def test_verify_response(self):
        ok = VerifyResponse.from_result(VerificationResult(verified=True, attempts_remaining=2))
        failed = VerifyResponse.from_result(
            VerificationResult(verified=False, attempts_remaining=1, reason=ErrorCode.MISMATCH)
        )

        assert ok.model_dump(by_alias=True, exclude_none=True) == {"verified": True}
        assert failed.model_dump(by_alias=True) == {"verified": False, "attemptsRemaining": 1}

    def test_error_response(self):
        body = ErrorResponse.from_error(Mismatch(2, identifier="+14155551234"))

        assert body.error == "mismatch"
        assert body.attempts_remaining == 2
        assert body.identifier == "+141******34"
