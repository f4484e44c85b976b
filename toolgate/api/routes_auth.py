"""
api/routes_auth.py — Email-code login, admin login, logout, session refresh.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, RedirectResponse

from .. import config
from ..auth.verification_codes import issue_code, normalize_email, verify_code
from ..core.email_client import is_email_configured, send_verification_code_email
from ..core.exceptions import (
    EmailDeliveryFailed,
    EntitlementLookupFailed,
    RateLimited,
    VerificationError,
)
from ..core.learnworlds_client import LearnWorldsClient
from ..core.models import AnySession, UserSession, as_enrollment
from ..core.refresh import refresh_session
from .auth import (
    admin_session_for,
    authenticate_admin,
    clear_session_cookies,
    mask_email,
    safe_return_to,
    set_session_cookies,
)
from .dependencies import get_entitlement_client, get_session, require_session
from .dto import (
    AdminLoginBody,
    EnrollmentItem,
    LoginResponse,
    LoginUser,
    SendCodeBody,
    SendCodeResponse,
    SessionResponse,
    VerifyCodeBody,
)
from .errors import (
    account_not_found,
    email_delivery_failed,
    invalid_input,
    rate_limited,
    service_unavailable,
    unauthorized,
    verification_failed,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _landing_redirect() -> RedirectResponse:
    resp = RedirectResponse(url=config.PUBLIC_LANDING_URL, status_code=302)
    clear_session_cookies(resp)
    return resp


# ── Email code login ──────────────────────────────────────────────────────────

@router.post("/api/auth/send-code")
async def send_code(
    body: SendCodeBody,
    client: LearnWorldsClient = Depends(get_entitlement_client),
):
    email = normalize_email(body.email)
    if not _EMAIL_RE.match(email):
        return invalid_input("Invalid email format.")
    if not is_email_configured():
        return service_unavailable("Email service not configured.")

    try:
        external_user = client.get_user_by_email(email)
    except EntitlementLookupFailed as exc:
        logger.error("LearnWorlds lookup failed for send-code: %s", exc)
        return service_unavailable()
    if external_user is None:
        logger.info("Send-code for unknown account %s", email)
        return account_not_found()

    try:
        code = issue_code(email)
    except RateLimited as exc:
        return rate_limited(exc)

    try:
        send_verification_code_email(email, code)
    except EmailDeliveryFailed:
        return email_delivery_failed()

    masked = mask_email(email)
    return SendCodeResponse(
        masked_email=masked,
        expires_in=config.VERIFICATION_CODE_TTL_SECONDS,
        message=f"Verification code sent to {masked}",
    )


@router.post("/api/auth/verify-code")
async def verify_code_login(
    body: VerifyCodeBody,
    client: LearnWorldsClient = Depends(get_entitlement_client),
):
    email = normalize_email(body.email)
    if not email or not body.code.strip():
        return invalid_input("Email and verification code are required.")

    try:
        verify_code(email, body.code)
    except VerificationError as exc:
        return verification_failed(exc)

    try:
        external_user = client.get_user_by_email(email)
        if external_user is None:
            return account_not_found()
        course_ids = client.get_user_course_access(external_user.id)
        enrollments = client.get_user_enrollments(external_user.id)
    except EntitlementLookupFailed as exc:
        logger.error("LearnWorlds lookup failed after code verification: %s", exc)
        return service_unavailable("Unable to complete verification. Please try again later.")

    now = datetime.now(timezone.utc)
    session = UserSession(
        email=email,
        external_user_id=external_user.id,
        accessible_course_ids=list(course_ids),
        enrollments=[as_enrollment(e) for e in enrollments],
        authenticated_at=now,
        last_entitlement_check=now,
    )
    logger.info("Learner %s signed in with %d courses", email, len(course_ids))

    redirect_to = safe_return_to(body.return_to)
    resp = JSONResponse(
        LoginResponse(
            redirect_to=redirect_to,
            user=LoginUser(
                email=email,
                role="user",
                enrollment_count=len(session.enrollments),
                course_count=len(session.accessible_course_ids),
            ),
        ).model_dump(mode="json", by_alias=True)
    )
    set_session_cookies(resp, session)
    return resp


# ── Admin login ───────────────────────────────────────────────────────────────

@router.post("/api/auth/admin/login")
async def admin_login(body: AdminLoginBody):
    if not body.email or not body.password:
        return invalid_input("Email and password are required.")
    admin = authenticate_admin(body.email, body.password)
    if admin is None:
        logger.info("Admin login rejected for %s", normalize_email(body.email))
        return unauthorized("Invalid email or password.")

    session = admin_session_for(admin)
    resp = JSONResponse(
        LoginResponse(
            redirect_to=config.ADMIN_LANDING,
            user=LoginUser(email=admin.email, role=admin.role),
        ).model_dump(mode="json", by_alias=True, exclude_none=True)
    )
    set_session_cookies(resp, session)
    return resp


# ── Logout / refresh ──────────────────────────────────────────────────────────

@router.post("/api/auth/logout")
async def logout(session: Optional[AnySession] = Depends(get_session)):
    if session is not None:
        logger.info("%s logged out", session.email)
    resp = JSONResponse({"success": True})
    clear_session_cookies(resp)
    return resp


@router.get("/api/auth/refresh-session")
async def refresh(
    return_to: Optional[str] = Query(default=None, alias="returnTo"),
    session: Optional[AnySession] = Depends(get_session),
    client: LearnWorldsClient = Depends(get_entitlement_client),
):
    """Re-validate now, then send the browser back to ``returnTo``."""
    if session is None:
        return _landing_redirect()

    outcome = refresh_session(session, client, force=True)
    if outcome.revoked:
        return _landing_redirect()

    resp = RedirectResponse(url=safe_return_to(return_to), status_code=302)
    if outcome.reissued:
        set_session_cookies(resp, outcome.session)
    return resp


@router.get("/api/auth/session", response_model=SessionResponse)
async def current_session(session: AnySession = Depends(require_session)):
    if session.is_admin:
        return SessionResponse(
            authenticated=True,
            email=session.email,
            role=session.role,
            authenticated_at=session.authenticated_at,
        )
    return SessionResponse(
        authenticated=True,
        email=session.email,
        role=session.role,
        accessible_course_ids=session.accessible_course_ids,
        enrollments=[EnrollmentItem(**e.model_dump()) for e in session.enrollments],
        authenticated_at=session.authenticated_at,
        last_entitlement_check=session.last_entitlement_check,
    )
