"""
access.py — Tool authorisation from a session's cached entitlements.

    allowed = courses_for_tool(tool) ∩ session.accessible_course_ids ≠ ∅

Admins are always allowed. Nothing is cached here beyond the session's own
course list, so correctness depends on refresh.py keeping that list current.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .allocations import AllocationStore
from .models import AdminSession, Session, StudentView, UserSession

REASON_ADMIN = "admin"
REASON_ENROLLED = "enrolled"
REASON_NO_ENROLLMENT = "no_enrollment"
REASON_NOT_AUTHENTICATED = "not_authenticated"


@dataclass
class RequiredCourse:
    id: str
    name: str


@dataclass
class AccessResult:
    allowed: bool
    via_courses: list[str] = field(default_factory=list)
    reason: str = REASON_NO_ENROLLMENT
    # Courses that would unlock the tool; filled on a learner denial only.
    required_courses: list[RequiredCourse] = field(default_factory=list)


def has_access(
    session: Optional[Session],
    tool_id: str,
    store: AllocationStore,
) -> AccessResult:
    if session is None:
        return AccessResult(False, [], REASON_NOT_AUTHENTICATED)
    if session.is_admin:
        return AccessResult(True, [], REASON_ADMIN)

    owned = set(session.accessible_course_ids)
    allocations = store.list_allocations_for_tool(tool_id)
    via = [a.course_id for a in allocations if a.course_id in owned]
    if via:
        return AccessResult(True, via, REASON_ENROLLED)
    required = [RequiredCourse(a.course_id, a.course_name or a.course_id) for a in allocations]
    return AccessResult(False, [], REASON_NO_ENROLLMENT, required)


def effective_session(
    session: Optional[Session],
    view: Optional[StudentView],
) -> Optional[Session]:
    """
    Apply an admin's student-view overlay: while previewing, the admin is
    evaluated as a learner holding only the selected course.
    """
    if not isinstance(session, AdminSession) or view is None or view.mode != "student":
        return session
    return UserSession(
        email=session.email,
        accessible_course_ids=[view.selected_course_id] if view.selected_course_id else [],
        authenticated_at=session.authenticated_at,
    )
