"""
api/dto.py — Pydantic request/response models for all API endpoints.

JSON bodies use camelCase on the wire, matching the session payload.
"""
from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Auth ──────────────────────────────────────────────────────────────────────

class SendCodeBody(_Camel):
    email: str


class SendCodeResponse(_Camel):
    success: bool = True
    masked_email: str
    expires_in: int
    message: str


class VerifyCodeBody(_Camel):
    email: str
    code: str
    return_to: Optional[str] = None


class AdminLoginBody(_Camel):
    email: str
    password: str


class LoginUser(_Camel):
    email: str
    role: str
    enrollment_count: Optional[int] = None
    course_count: Optional[int] = None


class LoginResponse(_Camel):
    success: bool = True
    redirect_to: str
    user: LoginUser


class EnrollmentItem(_Camel):
    product_id: str
    product_title: str
    product_type: str
    enrolled_at: Optional[datetime] = None


class SessionResponse(_Camel):
    authenticated: bool
    email: Optional[str] = None
    role: Optional[str] = None
    accessible_course_ids: list[str] = Field(default_factory=list)
    enrollments: list[EnrollmentItem] = Field(default_factory=list)
    authenticated_at: Optional[datetime] = None
    last_entitlement_check: Optional[datetime] = None


# ── Tools / courses ───────────────────────────────────────────────────────────

class RequiredCourseItem(_Camel):
    id: str
    name: str


class ToolAccessResponse(_Camel):
    success: bool = True
    tool_id: str
    allowed: bool
    via_courses: list[str] = Field(default_factory=list)
    reason: str
    required_courses: list[RequiredCourseItem] = Field(default_factory=list)


class CourseWithToolsItem(_Camel):
    course_id: str
    course_name: str
    tool_count: int
    tool_ids: list[str]


# ── Admin ─────────────────────────────────────────────────────────────────────

class SetCourseToolsBody(_Camel):
    tool_ids: list[str]
    course_name: Optional[str] = None


class CourseToolsResponse(_Camel):
    success: bool = True
    course_id: str
    tool_ids: list[str]


class AdminCourseItem(_Camel):
    id: str
    title: str
    type: str
    tool_count: int = 0


class StudentViewBody(_Camel):
    mode: Literal["admin", "student"]
    selected_course_id: Optional[str] = None
    selected_course_name: Optional[str] = None


class StudentViewResponse(_Camel):
    success: bool = True
    mode: str
    selected_course_id: Optional[str] = None
    selected_course_name: Optional[str] = None
