"""
HTTP Error Mapping
==================
Translate verification errors into FastAPI responses for the HTTP layer.

The status codes follow the issue/verify/resend contract:
400 for bad input, 429 for anything with a wait time, 410 for expired
codes, 409 for reused codes and 502 when delivery failed.
"""

from typing import Dict

from fastapi import HTTPException
from fastapi.responses import JSONResponse
import structlog

from .exceptions import ErrorCode, VerificationError

logger = structlog.get_logger(__name__)


STATUS_BY_CODE: Dict[ErrorCode, int] = {
    ErrorCode.INVALID_FORMAT: 400,
    ErrorCode.UNSUPPORTED_CHANNEL: 400,
    ErrorCode.RATE_LIMITED: 429,
    ErrorCode.COOLDOWN_ACTIVE: 429,
    ErrorCode.TOO_MANY_ATTEMPTS: 429,
    ErrorCode.EXPIRED: 410,
    ErrorCode.ALREADY_USED: 409,
    ErrorCode.MISMATCH: 200,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.DELIVERY_FAILED: 502,
}


def status_for(error: VerificationError) -> int:
    return STATUS_BY_CODE.get(error.code, 400)


def _headers(error: VerificationError) -> Dict[str, str]:
    if error.retry_after is not None:
        return {"Retry-After": str(max(0, int(error.retry_after)))}
    return {}


def to_http_exception(error: VerificationError) -> HTTPException:
    """
    Create an HTTPException carrying the error payload.

    Args:
        error: Any verification error

    Returns:
        HTTPException with status, detail and Retry-After header
    """
    status_code = status_for(error)
    logger.info(
        "Verification error mapped",
        code=error.code.value,
        status_code=status_code,
        identifier=error.identifier,
    )
    return HTTPException(
        status_code=status_code,
        detail=error.to_dict(),
        headers=_headers(error) or None,
    )


def to_error_response(error: VerificationError) -> JSONResponse:
    """Create a JSONResponse for use in exception handlers."""
    return JSONResponse(
        status_code=status_for(error),
        content=error.to_dict(),
        headers=_headers(error) or None,
    )
