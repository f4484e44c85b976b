"""
api/dependencies.py — FastAPI dependency injection: session resolution,
entitlement refresh, role guards and collaborators.

The session is decoded once per request by get_session and handed to
handlers explicitly; nothing below re-reads raw cookies.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Cookie, Depends, HTTPException, Response, status

from .. import config
from ..core.allocations import AllocationStore
from ..core.exceptions import EntitlementRevoked, MalformedToken
from ..core.learnworlds_client import LearnWorldsClient
from ..core.models import AdminSession, AnySession, StudentView
from ..core.refresh import refresh_session
from ..core.session_codec import StudentViewCodec, decode_session
from .auth import set_session_cookies

logger = logging.getLogger(__name__)


# ── Collaborators ─────────────────────────────────────────────────────────────

@lru_cache(maxsize=1)
def get_entitlement_client() -> LearnWorldsClient:
    return LearnWorldsClient()


def get_allocation_store() -> AllocationStore:
    return AllocationStore()


# ── Session ───────────────────────────────────────────────────────────────────

def get_session(
    token: Optional[str] = Cookie(default=None, alias=config.SESSION_COOKIE_NAME),
) -> Optional[AnySession]:
    """Decoded session, or None. A malformed token counts as no session."""
    if not token:
        return None
    try:
        return decode_session(token)
    except MalformedToken as exc:
        logger.info("Ignoring malformed session cookie: %s", exc.message)
        return None


def get_active_session(
    response: Response,
    session: Optional[AnySession] = Depends(get_session),
    client: LearnWorldsClient = Depends(get_entitlement_client),
) -> Optional[AnySession]:
    """
    Session after the entitlement refresh step. Re-issues the cookie when the
    refresh produced a new token; raises EntitlementRevoked on confirmed
    account deletion (handled app-wide as a redirect that clears cookies).
    """
    if session is None:
        return None
    outcome = refresh_session(session, client)
    if outcome.revoked:
        raise EntitlementRevoked(session.email)
    if outcome.reissued:
        set_session_cookies(response, outcome.session)
    return outcome.session


def get_student_view(
    token: Optional[str] = Cookie(default=None, alias=config.STUDENT_VIEW_COOKIE_NAME),
) -> Optional[StudentView]:
    if not token:
        return None
    try:
        return StudentViewCodec().decode(token)
    except MalformedToken:
        return None


# ── Guards ────────────────────────────────────────────────────────────────────

def require_session(session: Optional[AnySession] = Depends(get_active_session)) -> AnySession:
    if session is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return session


def require_admin(session: Optional[AnySession] = Depends(get_session)) -> AdminSession:
    if session is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    if not session.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required.")
    return session
