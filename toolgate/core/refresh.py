"""
refresh.py — Entitlement refresh state machine.

A session's cached course list is trusted for ENTITLEMENT_REFRESH_HOURS.
After that it is re-validated against LearnWorlds:

    state   lookup result            outcome
    ------  -----------------------  ---------------------------------------
    FRESH   (not performed)          session unchanged
    STALE   user is None             REVOKED, session destroyed
    STALE   user found               FRESH, cache replaced, check = now
    STALE   lookup raised            FRESH, cache kept, check = now (fail open)

Admins and users without an external ID are always FRESH. Confirmed absence
revokes immediately; failure to confirm never revokes.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from .. import config
from .exceptions import EntitlementLookupFailed
from .models import Session, UserSession, as_enrollment

logger = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    FRESH = "fresh"
    STALE = "stale"
    REVOKED = "revoked"


@dataclass
class RefreshOutcome:
    state: SessionState
    session: Optional[Session]
    reissued: bool = False          # caller must write a new token
    lookup_failed: bool = False

    @property
    def revoked(self) -> bool:
        return self.state is SessionState.REVOKED


def refresh_window() -> timedelta:
    return timedelta(hours=config.ENTITLEMENT_REFRESH_HOURS)


def evaluate_state(
    session: Session,
    now: Optional[datetime] = None,
    window: Optional[timedelta] = None,
) -> SessionState:
    """FRESH or STALE; never REVOKED, which needs a lookup."""
    if session.is_admin or not session.external_user_id:
        return SessionState.FRESH
    if session.last_entitlement_check is None:
        return SessionState.STALE
    now = now or datetime.now(timezone.utc)
    if now - session.last_entitlement_check > (window or refresh_window()):
        return SessionState.STALE
    return SessionState.FRESH


def refresh_session(
    session: Session,
    client,
    now: Optional[datetime] = None,
    force: bool = False,
    window: Optional[timedelta] = None,
) -> RefreshOutcome:
    """
    Run one step of the state machine for ``session``.

    ``client`` is any object exposing get_user_by_id / get_user_course_access /
    get_user_enrollments with LearnWorldsClient's contract. ``force`` skips the
    window check (admins and ID-less users still pass through untouched).
    """
    now = now or datetime.now(timezone.utc)

    if session.is_admin or not session.external_user_id:
        return RefreshOutcome(SessionState.FRESH, session)
    if not force and evaluate_state(session, now, window) is SessionState.FRESH:
        return RefreshOutcome(SessionState.FRESH, session)

    external_id = session.external_user_id
    try:
        user = client.get_user_by_id(external_id)
        if user is None:
            logger.info("Session revoked: %s no longer exists in LearnWorlds", session.email)
            return RefreshOutcome(SessionState.REVOKED, None)
        course_ids = client.get_user_course_access(external_id)
        enrollments = client.get_user_enrollments(external_id)
    except EntitlementLookupFailed as exc:
        logger.warning("Entitlement refresh failed for %s, keeping session: %s", session.email, exc)
        kept = session.model_copy(update={"last_entitlement_check": now})
        return RefreshOutcome(SessionState.FRESH, kept, reissued=True, lookup_failed=True)

    refreshed = UserSession(
        email=session.email,
        external_user_id=external_id,
        accessible_course_ids=list(course_ids),
        enrollments=[as_enrollment(e) for e in enrollments],
        authenticated_at=session.authenticated_at,
        last_entitlement_check=now,
    )
    logger.info(
        "Session refreshed for %s: %d courses, %d enrollments",
        session.email, len(refreshed.accessible_course_ids), len(refreshed.enrollments),
    )
    return RefreshOutcome(SessionState.FRESH, refreshed, reissued=True)
