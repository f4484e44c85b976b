"""
auth/models.py — Pure-Python dataclass models for stored rows.
No ORM dependency; raw sqlite3 rows are mapped here.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


def parse_ts(value) -> Optional[datetime]:
    """ISO text column → aware UTC datetime."""
    if value is None:
        return None
    ts = datetime.fromisoformat(str(value))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass
class AdminUser:
    id: str
    email: str
    password_hash: str
    role: str                           # admin | super_admin
    is_active: bool = True
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    @classmethod
    def from_row(cls, row) -> "AdminUser":
        return cls(
            id=row["id"],
            email=row["email"],
            password_hash=row["password_hash"],
            role=row["role"],
            is_active=bool(row["is_active"]),
            created_at=parse_ts(row["created_at"]),
            last_login=parse_ts(row["last_login"]),
        )


@dataclass
class VerificationCode:
    email: str
    code: str
    expires_at: datetime
    attempts: int
    created_at: datetime

    @classmethod
    def from_row(cls, row) -> "VerificationCode":
        return cls(
            email=row["email"],
            code=row["code"],
            expires_at=parse_ts(row["expires_at"]),
            attempts=row["attempts"],
            created_at=parse_ts(row["created_at"]),
        )


@dataclass
class CourseToolAllocation:
    course_id: str
    tool_id: str
    course_name: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "CourseToolAllocation":
        return cls(
            course_id=row["course_id"],
            tool_id=row["tool_id"],
            course_name=row["course_name"],
        )


@dataclass
class CourseWithTools:
    course_id: str
    course_name: str
    tool_ids: list[str]

    @property
    def tool_count(self) -> int:
        return len(self.tool_ids)
