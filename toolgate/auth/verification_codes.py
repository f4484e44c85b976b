"""
auth/verification_codes.py — One-time email codes: issue, verify, clean up.

One live code per email. Codes live five minutes, allow three guesses, can be
re-issued once a minute and are deleted on first successful use.
"""
from __future__ import annotations

import logging
import math
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from .. import config
from ..core.exceptions import (
    CodeExpired,
    CodeMismatch,
    CodeNotFound,
    RateLimited,
    TooManyAttempts,
)
from .models import VerificationCode
from .sqlite_db import get_conn

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def generate_code() -> str:
    """Random 6-digit numeric code."""
    return str(100_000 + secrets.randbelow(900_000))


def get_code(email: str) -> Optional[VerificationCode]:
    with get_conn() as conn:
        row = conn.execute(
            "SELECT * FROM verification_codes WHERE email = ?", (normalize_email(email),)
        ).fetchone()
    return VerificationCode.from_row(row) if row else None


def _delete(email: str) -> None:
    with get_conn() as conn:
        conn.execute("DELETE FROM verification_codes WHERE email = ?", (email,))
        conn.commit()


def issue_code(email: str, now: Optional[datetime] = None) -> str:
    """
    Create (or replace) the code for ``email`` and return it for delivery.
    Raises RateLimited if the previous code is younger than the rate limit.
    """
    email = normalize_email(email)
    now = now or datetime.now(timezone.utc)

    existing = get_code(email)
    if existing:
        elapsed = (now - existing.created_at).total_seconds()
        if elapsed < config.VERIFICATION_RATE_LIMIT_SECONDS:
            retry_after = math.ceil(config.VERIFICATION_RATE_LIMIT_SECONDS - elapsed)
            logger.info("Verification code rate limited for %s (%ds)", email, retry_after)
            raise RateLimited(retry_after)

    code = generate_code()
    expires_at = now + timedelta(seconds=config.VERIFICATION_CODE_TTL_SECONDS)
    with get_conn() as conn:
        conn.execute(
            """
            INSERT INTO verification_codes (email, code, expires_at, attempts, created_at)
            VALUES (?, ?, ?, 0, ?)
            ON CONFLICT(email) DO UPDATE SET
                code = excluded.code,
                expires_at = excluded.expires_at,
                attempts = 0,
                created_at = excluded.created_at
            """,
            (email, code, expires_at.isoformat(), now.isoformat()),
        )
        conn.commit()
    return code


def verify_code(email: str, code: str, now: Optional[datetime] = None) -> None:
    """
    Consume the code for ``email``. Returns None on success; raises a
    VerificationError subclass otherwise.
    """
    email = normalize_email(email)
    now = now or datetime.now(timezone.utc)

    stored = get_code(email)
    if stored is None:
        raise CodeNotFound()

    if now > stored.expires_at:
        _delete(email)
        raise CodeExpired()

    if stored.attempts >= config.VERIFICATION_MAX_ATTEMPTS:
        _delete(email)
        raise TooManyAttempts()

    if not secrets.compare_digest(stored.code.encode(), code.strip().encode()):
        attempts = stored.attempts + 1
        with get_conn() as conn:
            conn.execute(
                "UPDATE verification_codes SET attempts = ? WHERE email = ?",
                (attempts, email),
            )
            conn.commit()
        raise CodeMismatch(config.VERIFICATION_MAX_ATTEMPTS - attempts)

    _delete(email)


def cleanup_expired_codes(now: Optional[datetime] = None) -> int:
    """Delete expired codes. Returns the number removed."""
    now = now or datetime.now(timezone.utc)
    with get_conn() as conn:
        cur = conn.execute(
            "DELETE FROM verification_codes WHERE expires_at < ?", (now.isoformat(),)
        )
        conn.commit()
    return cur.rowcount
