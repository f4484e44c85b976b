"""
exceptions.py — Error taxonomy shared by the core and the API layer.

Routes catch these at their boundary and convert them into the structured
error body from api/errors.py. Anything not listed here is unexpected and
surfaces as a generic 500.
"""
from __future__ import annotations

from typing import Optional


class ToolgateError(Exception):
    """Base class for every expected failure."""

    code = "ERROR"

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ── Sessions / entitlement ────────────────────────────────────────────────────

class MalformedToken(ToolgateError):
    """Session token could not be verified or parsed into a known shape."""

    code = "MALFORMED_TOKEN"


class EntitlementLookupFailed(ToolgateError):
    """Transport or API failure talking to LearnWorlds. Transient."""

    code = "ENTITLEMENT_LOOKUP_FAILED"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, {"status_code": status_code} if status_code else None)
        self.status_code = status_code


class EntitlementRevoked(ToolgateError):
    """LearnWorlds confirmed the account behind a session no longer exists."""

    code = "ENTITLEMENT_REVOKED"

    def __init__(self, email: str):
        super().__init__(f"External account for {email} no longer exists.")
        self.email = email


# ── Verification codes ────────────────────────────────────────────────────────

class VerificationError(ToolgateError):
    code = "VERIFICATION_FAILED"


class CodeNotFound(VerificationError):
    code = "CODE_NOT_FOUND"

    def __init__(self) -> None:
        super().__init__("No verification code found. Please request a new code.")


class RateLimited(VerificationError):
    code = "RATE_LIMITED"

    def __init__(self, retry_after_seconds: int):
        super().__init__(
            "Please wait before requesting another code.",
            {"retryAfterSeconds": retry_after_seconds},
        )
        self.retry_after_seconds = retry_after_seconds


class CodeExpired(VerificationError):
    code = "CODE_EXPIRED"

    def __init__(self) -> None:
        super().__init__("Verification code has expired. Please request a new code.")


class TooManyAttempts(VerificationError):
    code = "TOO_MANY_ATTEMPTS"

    def __init__(self) -> None:
        super().__init__("Too many attempts. Please request a new code.")


class CodeMismatch(VerificationError):
    code = "CODE_MISMATCH"

    def __init__(self, attempts_remaining: int):
        plural = "" if attempts_remaining == 1 else "s"
        super().__init__(
            f"Invalid code. {attempts_remaining} attempt{plural} remaining.",
            {"attemptsRemaining": attempts_remaining},
        )
        self.attempts_remaining = attempts_remaining


# ── Allocations / email ───────────────────────────────────────────────────────

class AllocationSaveFailed(ToolgateError):
    """Replace-all write failed; the course's allocations must be re-queried."""

    code = "ALLOCATION_SAVE_FAILED"

    def __init__(self, course_id: str, message: str = "Failed to save tool allocations."):
        super().__init__(message, {"courseId": course_id})
        self.course_id = course_id


class EmailDeliveryFailed(ToolgateError):
    code = "EMAIL_DELIVERY_FAILED"
