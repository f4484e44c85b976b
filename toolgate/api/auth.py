"""
api/auth.py — Cookie handling, session issuance and admin account helpers.

Cookie policy: the role cookie ("user" | "admin") is a non-sensitive UI flag
and stays readable by client scripts; the signed session cookie and the
student-view cookie are always httpOnly. Role and session cookies are set
and cleared together.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlsplit

import bcrypt
from starlette.responses import Response

from .. import config
from ..auth.models import AdminUser
from ..auth.sqlite_db import get_conn
from ..core.models import AdminSession, AnySession, StudentView
from ..core.session_codec import StudentViewCodec, encode_session

logger = logging.getLogger(__name__)

SESSION_MAX_AGE = config.SESSION_TTL_DAYS * 86_400
STUDENT_VIEW_MAX_AGE = config.STUDENT_VIEW_TTL_HOURS * 3_600


# ── Cookies ───────────────────────────────────────────────────────────────────

def set_session_cookies(response: Response, session: AnySession) -> None:
    common = dict(
        secure=config.COOKIE_SECURE,
        samesite="lax",
        max_age=SESSION_MAX_AGE,
        path="/",
    )
    response.set_cookie(
        key=config.ROLE_COOKIE_NAME,
        value=session.role_cookie_value,
        httponly=False,
        **common,
    )
    response.set_cookie(
        key=config.SESSION_COOKIE_NAME,
        value=encode_session(session),
        httponly=True,
        **common,
    )


def clear_session_cookies(response: Response) -> None:
    for name in (
        config.ROLE_COOKIE_NAME,
        config.SESSION_COOKIE_NAME,
        config.STUDENT_VIEW_COOKIE_NAME,
    ):
        response.delete_cookie(
            key=name, path="/", secure=config.COOKIE_SECURE, samesite="lax"
        )


def set_student_view_cookie(response: Response, view: StudentView) -> None:
    response.set_cookie(
        key=config.STUDENT_VIEW_COOKIE_NAME,
        value=StudentViewCodec().encode(view),
        httponly=True,
        secure=config.COOKIE_SECURE,
        samesite="lax",
        max_age=STUDENT_VIEW_MAX_AGE,
        path="/",
    )


def clear_student_view_cookie(response: Response) -> None:
    response.delete_cookie(
        key=config.STUDENT_VIEW_COOKIE_NAME, path="/", secure=config.COOKIE_SECURE, samesite="lax"
    )


def safe_return_to(return_to: Optional[str], default: str = config.DEFAULT_RETURN_TO) -> str:
    """Only same-origin absolute paths are accepted as redirect targets."""
    if not return_to or not return_to.startswith("/") or return_to.startswith("//"):
        return default
    parts = urlsplit(return_to)
    if parts.scheme or parts.netloc or "\\" in return_to:
        return default
    return return_to


def mask_email(email: str) -> str:
    """u***r@example.com"""
    local, _, domain = email.partition("@")
    if len(local) > 2:
        masked = f"{local[0]}***{local[-1]}"
    else:
        masked = f"{local[:1]}***"
    return f"{masked}@{domain}"


# ── Admin accounts ────────────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=12)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def get_admin_by_email(email: str) -> Optional[AdminUser]:
    with get_conn() as conn:
        row = conn.execute(
            "SELECT * FROM admin_users WHERE email = ?", (email.strip().lower(),)
        ).fetchone()
    return AdminUser.from_row(row) if row else None


def create_admin_user(email: str, password: str, role: str = "admin") -> AdminUser:
    admin_id = str(uuid.uuid4())
    with get_conn() as conn:
        conn.execute(
            """
            INSERT INTO admin_users (id, email, password_hash, role, is_active, created_at)
            VALUES (?, ?, ?, ?, 1, ?)
            """,
            (
                admin_id, email.strip().lower(), hash_password(password), role,
                datetime.now(timezone.utc).isoformat(),
            ),
        )
        conn.commit()
    return get_admin_by_email(email)  # type: ignore[return-value]


def update_last_login(admin_id: str) -> None:
    with get_conn() as conn:
        conn.execute(
            "UPDATE admin_users SET last_login = ? WHERE id = ?",
            (datetime.now(timezone.utc).isoformat(), admin_id),
        )
        conn.commit()


def authenticate_admin(email: str, password: str) -> Optional[AdminUser]:
    """Local credential check. Returns the admin, or None on any mismatch."""
    admin = get_admin_by_email(email)
    if admin is None or not admin.is_active:
        return None
    if not verify_password(password, admin.password_hash):
        return None
    update_last_login(admin.id)
    return admin


def admin_session_for(admin: AdminUser) -> AdminSession:
    return AdminSession(
        email=admin.email,
        role=admin.role,
        authenticated_at=datetime.now(timezone.utc),
    )
