"""
allocations.py — Course ↔ tool allocation store.

"Tool T is usable by anyone with access to course C." Rows are unique per
(course_id, tool_id). Writes raise AllocationSaveFailed; after one, the
course's allocations are indeterminate and callers should re-query.
"""
from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Iterable, Optional

from ..auth.models import CourseToolAllocation, CourseWithTools
from ..auth.sqlite_db import get_conn
from .exceptions import AllocationSaveFailed

logger = logging.getLogger(__name__)


class AllocationStore:

    # ── Reads ─────────────────────────────────────────────────────────────────

    def get_tools_for_course(self, course_id: str) -> list[str]:
        with get_conn() as conn:
            rows = conn.execute(
                "SELECT tool_id FROM course_tool_allocations WHERE course_id = ? ORDER BY id",
                (course_id,),
            ).fetchall()
        return [r["tool_id"] for r in rows]

    def get_courses_for_tool(self, tool_id: str) -> list[str]:
        with get_conn() as conn:
            rows = conn.execute(
                "SELECT course_id FROM course_tool_allocations WHERE tool_id = ? ORDER BY id",
                (tool_id,),
            ).fetchall()
        return [r["course_id"] for r in rows]

    def list_allocations(self) -> list[CourseToolAllocation]:
        with get_conn() as conn:
            rows = conn.execute(
                "SELECT course_id, tool_id, course_name FROM course_tool_allocations ORDER BY id"
            ).fetchall()
        return [CourseToolAllocation.from_row(r) for r in rows]

    def list_allocations_for_tool(self, tool_id: str) -> list[CourseToolAllocation]:
        with get_conn() as conn:
            rows = conn.execute(
                "SELECT course_id, tool_id, course_name FROM course_tool_allocations "
                "WHERE tool_id = ? ORDER BY id",
                (tool_id,),
            ).fetchall()
        return [CourseToolAllocation.from_row(r) for r in rows]

    def get_all_allocations(self) -> dict[str, list[str]]:
        result: dict[str, list[str]] = {}
        for alloc in self.list_allocations():
            result.setdefault(alloc.course_id, []).append(alloc.tool_id)
        return result

    def get_courses_with_tools(self) -> list[CourseWithTools]:
        """Courses that have at least one tool, grouped for dashboards."""
        courses: dict[str, CourseWithTools] = {}
        for alloc in self.list_allocations():
            entry = courses.get(alloc.course_id)
            if entry is None:
                entry = courses[alloc.course_id] = CourseWithTools(
                    course_id=alloc.course_id,
                    course_name=alloc.course_name or alloc.course_id,
                    tool_ids=[],
                )
            entry.tool_ids.append(alloc.tool_id)
        return list(courses.values())

    # ── Writes ────────────────────────────────────────────────────────────────

    def set_tools_for_course(
        self,
        course_id: str,
        tool_ids: Iterable[str],
        course_name: Optional[str] = None,
    ) -> list[str]:
        """
        Replace every allocation of ``course_id`` with ``tool_ids``.
        Delete and insert share one SQLite transaction and roll back together.
        Returns the de-duplicated tool list that was written.
        """
        unique_ids = list(dict.fromkeys(tool_ids))
        now = datetime.now(timezone.utc).isoformat()
        with get_conn() as conn:
            try:
                conn.execute("DELETE FROM course_tool_allocations WHERE course_id = ?", (course_id,))
                conn.executemany(
                    """
                    INSERT INTO course_tool_allocations (course_id, course_name, tool_id, created_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    [(course_id, course_name, tool_id, now) for tool_id in unique_ids],
                )
                conn.commit()
            except sqlite3.Error as exc:
                conn.rollback()
                logger.error("Replacing allocations for course %s failed: %s", course_id, exc)
                raise AllocationSaveFailed(course_id) from exc
        logger.info("Course %s now has %d tools", course_id, len(unique_ids))
        return unique_ids

    def add_tool_to_course(
        self, course_id: str, tool_id: str, course_name: Optional[str] = None
    ) -> None:
        with get_conn() as conn:
            try:
                conn.execute(
                    """
                    INSERT INTO course_tool_allocations (course_id, course_name, tool_id, created_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(course_id, tool_id) DO NOTHING
                    """,
                    (course_id, course_name, tool_id, datetime.now(timezone.utc).isoformat()),
                )
                conn.commit()
            except sqlite3.Error as exc:
                raise AllocationSaveFailed(course_id) from exc

    def remove_tool_from_course(self, course_id: str, tool_id: str) -> bool:
        """Returns True if a row was removed."""
        with get_conn() as conn:
            try:
                cur = conn.execute(
                    "DELETE FROM course_tool_allocations WHERE course_id = ? AND tool_id = ?",
                    (course_id, tool_id),
                )
                conn.commit()
            except sqlite3.Error as exc:
                raise AllocationSaveFailed(course_id) from exc
        return cur.rowcount > 0

    def clear_course_allocations(self, course_id: str) -> int:
        """Returns the number of rows removed."""
        with get_conn() as conn:
            try:
                cur = conn.execute(
                    "DELETE FROM course_tool_allocations WHERE course_id = ?", (course_id,)
                )
                conn.commit()
            except sqlite3.Error as exc:
                raise AllocationSaveFailed(course_id) from exc
        logger.info("Cleared %d allocations for course %s", cur.rowcount, course_id)
        return cur.rowcount
