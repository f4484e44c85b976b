"""
api/routes_admin.py — Admin-only endpoints: course/tool allocations and the
student-view preview overlay.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..core.allocations import AllocationStore
from ..core.exceptions import AllocationSaveFailed, EntitlementLookupFailed
from ..core.learnworlds_client import LearnWorldsClient
from ..core.models import AdminSession, StudentView
from .auth import clear_student_view_cookie, set_student_view_cookie
from .dependencies import (
    get_allocation_store,
    get_entitlement_client,
    get_student_view,
    require_admin,
)
from .dto import (
    AdminCourseItem,
    CourseToolsResponse,
    SetCourseToolsBody,
    StudentViewBody,
    StudentViewResponse,
)
from .errors import allocation_save_failed, invalid_input, service_unavailable

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Allocations ───────────────────────────────────────────────────────────────

@router.get("/api/admin/courses/{course_id}/tools", response_model=CourseToolsResponse)
async def admin_get_course_tools(
    course_id: str,
    admin: AdminSession = Depends(require_admin),
    store: AllocationStore = Depends(get_allocation_store),
):
    return CourseToolsResponse(course_id=course_id, tool_ids=store.get_tools_for_course(course_id))


@router.put("/api/admin/courses/{course_id}/tools", response_model=CourseToolsResponse)
async def admin_set_course_tools(
    course_id: str,
    body: SetCourseToolsBody,
    admin: AdminSession = Depends(require_admin),
    store: AllocationStore = Depends(get_allocation_store),
):
    try:
        tool_ids = store.set_tools_for_course(course_id, body.tool_ids, body.course_name)
    except AllocationSaveFailed as exc:
        return allocation_save_failed(exc)
    logger.info("%s allocated %d tools to course %s", admin.email, len(tool_ids), course_id)
    return CourseToolsResponse(course_id=course_id, tool_ids=tool_ids)


@router.delete("/api/admin/courses/{course_id}/tools", response_model=CourseToolsResponse)
async def admin_clear_course_tools(
    course_id: str,
    admin: AdminSession = Depends(require_admin),
    store: AllocationStore = Depends(get_allocation_store),
):
    try:
        store.clear_course_allocations(course_id)
    except AllocationSaveFailed as exc:
        return allocation_save_failed(exc)
    return CourseToolsResponse(course_id=course_id, tool_ids=[])


@router.post("/api/admin/courses/{course_id}/tools/{tool_id}", response_model=CourseToolsResponse)
async def admin_add_course_tool(
    course_id: str,
    tool_id: str,
    admin: AdminSession = Depends(require_admin),
    store: AllocationStore = Depends(get_allocation_store),
):
    try:
        store.add_tool_to_course(course_id, tool_id)
    except AllocationSaveFailed as exc:
        return allocation_save_failed(exc)
    return CourseToolsResponse(course_id=course_id, tool_ids=store.get_tools_for_course(course_id))


@router.delete("/api/admin/courses/{course_id}/tools/{tool_id}", response_model=CourseToolsResponse)
async def admin_remove_course_tool(
    course_id: str,
    tool_id: str,
    admin: AdminSession = Depends(require_admin),
    store: AllocationStore = Depends(get_allocation_store),
):
    try:
        store.remove_tool_from_course(course_id, tool_id)
    except AllocationSaveFailed as exc:
        return allocation_save_failed(exc)
    return CourseToolsResponse(course_id=course_id, tool_ids=store.get_tools_for_course(course_id))


@router.get("/api/admin/allocations")
async def admin_all_allocations(
    admin: AdminSession = Depends(require_admin),
    store: AllocationStore = Depends(get_allocation_store),
):
    return {"success": True, "allocations": store.get_all_allocations()}


@router.get("/api/admin/courses", response_model=list[AdminCourseItem])
async def admin_list_courses(
    admin: AdminSession = Depends(require_admin),
    client: LearnWorldsClient = Depends(get_entitlement_client),
    store: AllocationStore = Depends(get_allocation_store),
):
    """LearnWorlds products with the number of tools allocated to each."""
    try:
        products = client.get_all_products()
    except EntitlementLookupFailed as exc:
        logger.error("Listing LearnWorlds products failed: %s", exc)
        return service_unavailable("Unable to load courses from the course platform.")
    allocations = store.get_all_allocations()
    return [
        AdminCourseItem(
            id=p.id,
            title=p.title or p.id,
            type=p.type,
            tool_count=len(allocations.get(p.id, [])),
        )
        for p in products
    ]


# ── Student view ──────────────────────────────────────────────────────────────

@router.get("/api/admin/student-view", response_model=StudentViewResponse)
async def admin_get_student_view(
    admin: AdminSession = Depends(require_admin),
    view: Optional[StudentView] = Depends(get_student_view),
):
    if view is None:
        return StudentViewResponse(mode="admin")
    return StudentViewResponse(**view.model_dump())


@router.post("/api/admin/student-view")
async def admin_set_student_view(
    body: StudentViewBody,
    admin: AdminSession = Depends(require_admin),
):
    if body.mode == "admin":
        resp = JSONResponse({"success": True, "mode": "admin"})
        clear_student_view_cookie(resp)
        return resp

    if not body.selected_course_id:
        return invalid_input("selectedCourseId is required for student view.")
    view = StudentView(
        mode="student",
        selected_course_id=body.selected_course_id,
        selected_course_name=body.selected_course_name,
    )
    resp = JSONResponse(
        StudentViewResponse(**view.model_dump()).model_dump(mode="json", by_alias=True)
    )
    set_student_view_cookie(resp, view)
    return resp
