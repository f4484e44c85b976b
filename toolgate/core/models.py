"""
models.py — Pydantic models for sessions and LearnWorlds records.

Session payloads are untrusted client input: they are validated strictly
(unknown keys rejected) and tagged by ``role``, since admin sessions carry
no entitlement cache. LearnWorlds records are parsed leniently because the
upstream API adds fields freely.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


# ── Session payload ───────────────────────────────────────────────────────────

class _Payload(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )


class Enrollment(_Payload):
    product_id: str
    product_title: str = "Unknown"
    product_type: str = "course"
    enrolled_at: Optional[datetime] = None


class UserSession(_Payload):
    role: Literal["user"] = "user"
    email: str
    external_user_id: Optional[str] = None
    accessible_course_ids: list[str] = Field(default_factory=list)
    enrollments: list[Enrollment] = Field(default_factory=list)
    authenticated_at: datetime
    last_entitlement_check: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return False

    @property
    def role_cookie_value(self) -> str:
        return "user"


class AdminSession(_Payload):
    role: Literal["admin", "super_admin"] = "admin"
    email: str
    authenticated_at: datetime

    @property
    def is_admin(self) -> bool:
        return True

    @property
    def role_cookie_value(self) -> str:
        return "admin"


Session = Annotated[Union[UserSession, AdminSession], Field(discriminator="role")]
SESSION_ADAPTER: TypeAdapter = TypeAdapter(Session)

# Plain union for FastAPI parameter annotations.
AnySession = Union[UserSession, AdminSession]


# ── Student-view overlay ──────────────────────────────────────────────────────

class StudentView(_Payload):
    mode: Literal["admin", "student"] = "admin"
    selected_course_id: Optional[str] = None
    selected_course_name: Optional[str] = None


# ── LearnWorlds records ───────────────────────────────────────────────────────

class ExternalUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    email: str
    username: Optional[str] = None


class ExternalEnrollment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    product_id: str
    product_title: Optional[str] = None
    product_type: Optional[str] = None
    enrolled_at: Optional[Union[str, float]] = None

    def to_enrollment(self) -> Enrollment:
        return Enrollment(
            product_id=self.product_id,
            product_title=self.product_title or "Unknown",
            product_type=self.product_type or "course",
            enrolled_at=_parse_timestamp(self.enrolled_at),
        )


class Product(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    title: str = ""
    type: str = "course"       # course | bundle | subscription


def _parse_timestamp(value: Optional[Union[str, float]]) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def as_enrollment(record) -> Enrollment:
    """Accept either a stored Enrollment or a raw LearnWorlds record."""
    return record if isinstance(record, Enrollment) else record.to_enrollment()
