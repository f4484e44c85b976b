"""
api/errors.py — Standard error response shapes and helpers.
"""
from __future__ import annotations

from typing import Any, Optional

from fastapi.responses import JSONResponse

from ..core.exceptions import (
    AllocationSaveFailed,
    RateLimited,
    ToolgateError,
    VerificationError,
)


def error_response(
    code: str,
    message: str,
    http_status: int = 400,
    details: Optional[dict] = None,
) -> JSONResponse:
    body: dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
        },
        "status": "error",
    }
    if details:
        body["error"].update(details)

    return JSONResponse(status_code=http_status, content=body)


def from_exception(exc: ToolgateError, http_status: int) -> JSONResponse:
    return error_response(exc.code, exc.message, http_status, exc.details)


# ── Named constructors for common error codes ─────────────────────────────────

def unauthorized(message: str = "Authentication required") -> JSONResponse:
    return error_response("UNAUTHORIZED", message, 401)


def invalid_input(message: str) -> JSONResponse:
    return error_response("INVALID_INPUT", message, 400)


def account_not_found() -> JSONResponse:
    return error_response(
        "ACCOUNT_NOT_FOUND",
        "No account was found for this email. Please check you are registered on the course platform.",
        404,
    )


def service_unavailable(message: str = "Unable to verify your account. Please try again later.") -> JSONResponse:
    return error_response("SERVICE_UNAVAILABLE", message, 503)


def rate_limited(exc: RateLimited) -> JSONResponse:
    resp = from_exception(exc, 429)
    resp.headers["Retry-After"] = str(exc.retry_after_seconds)
    return resp


def verification_failed(exc: VerificationError) -> JSONResponse:
    return from_exception(exc, 401)


def allocation_save_failed(exc: AllocationSaveFailed) -> JSONResponse:
    return error_response(
        exc.code,
        "Failed to save tool allocations. Reload the course to see its current tools.",
        500,
        exc.details,
    )


def email_delivery_failed() -> JSONResponse:
    return error_response(
        "EMAIL_DELIVERY_FAILED",
        "Failed to send verification email. Please try again in a few moments.",
        502,
    )
