"""
api/routes_tools.py — Learner-facing tool access and course listings.

Every route here runs the entitlement refresh step first (require_session).
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from ..core.access import effective_session, has_access
from ..core.allocations import AllocationStore
from ..core.models import AnySession, StudentView
from .dependencies import get_allocation_store, get_student_view, require_session
from .dto import CourseWithToolsItem, EnrollmentItem, RequiredCourseItem, ToolAccessResponse

router = APIRouter()


@router.get("/api/tools/{tool_id}/access", response_model=ToolAccessResponse)
async def tool_access(
    tool_id: str,
    session: AnySession = Depends(require_session),
    view: Optional[StudentView] = Depends(get_student_view),
    store: AllocationStore = Depends(get_allocation_store),
):
    result = has_access(effective_session(session, view), tool_id, store)
    return ToolAccessResponse(
        tool_id=tool_id,
        allowed=result.allowed,
        via_courses=result.via_courses,
        reason=result.reason,
        required_courses=[RequiredCourseItem(id=c.id, name=c.name) for c in result.required_courses],
    )


@router.get("/api/courses/enrollments")
async def enrollments(session: AnySession = Depends(require_session)):
    if session.is_admin:
        return {"success": True, "enrollments": [], "accessibleCourseIds": []}
    return {
        "success": True,
        "enrollments": [
            EnrollmentItem(**e.model_dump()).model_dump(mode="json", by_alias=True)
            for e in session.enrollments
        ],
        "accessibleCourseIds": session.accessible_course_ids,
    }


@router.get("/api/dashboard/courses", response_model=list[CourseWithToolsItem])
async def dashboard_courses(
    session: AnySession = Depends(require_session),
    view: Optional[StudentView] = Depends(get_student_view),
    store: AllocationStore = Depends(get_allocation_store),
):
    """Courses with allocated tools that the caller can open."""
    session = effective_session(session, view)
    courses = store.get_courses_with_tools()
    if not session.is_admin:
        owned = set(session.accessible_course_ids)
        courses = [c for c in courses if c.course_id in owned]
    return [
        CourseWithToolsItem(
            course_id=c.course_id,
            course_name=c.course_name,
            tool_count=c.tool_count,
            tool_ids=c.tool_ids,
        )
        for c in courses
    ]
