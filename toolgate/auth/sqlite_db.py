"""
auth/sqlite_db.py — SQLite schema bootstrap and shared connection helper.
"""
from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from typing import Generator

DB_PATH = os.getenv("SQLITE_DB_PATH", "toolgate.db")

_CREATE_ADMIN_USERS = """
CREATE TABLE IF NOT EXISTS admin_users (
    id             TEXT PRIMARY KEY,
    email          TEXT UNIQUE NOT NULL,
    password_hash  TEXT NOT NULL,
    role           TEXT NOT NULL DEFAULT 'admin' CHECK(role IN ('admin','super_admin')),
    is_active      INTEGER NOT NULL DEFAULT 1,
    created_at     TEXT,
    last_login     TEXT
);
"""

_CREATE_VERIFICATION_CODES = """
CREATE TABLE IF NOT EXISTS verification_codes (
    email       TEXT PRIMARY KEY,
    code        TEXT NOT NULL,
    expires_at  TEXT NOT NULL,
    attempts    INTEGER NOT NULL DEFAULT 0,
    created_at  TEXT NOT NULL
);
"""

_CREATE_COURSE_TOOL_ALLOCATIONS = """
CREATE TABLE IF NOT EXISTS course_tool_allocations (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    course_id    TEXT NOT NULL,
    course_name  TEXT,
    tool_id      TEXT NOT NULL,
    created_at   TEXT,
    UNIQUE(course_id, tool_id)
);
"""

_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_allocations_course ON course_tool_allocations(course_id);",
    "CREATE INDEX IF NOT EXISTS idx_allocations_tool ON course_tool_allocations(tool_id);",
    "CREATE INDEX IF NOT EXISTS idx_codes_expires ON verification_codes(expires_at);",
]


def init_db() -> None:
    """Create tables if they don't exist. Safe to call on every startup."""
    with get_conn() as conn:
        conn.execute(_CREATE_ADMIN_USERS)
        conn.execute(_CREATE_VERIFICATION_CODES)
        conn.execute(_CREATE_COURSE_TOOL_ALLOCATIONS)
        for idx in _INDEXES:
            conn.execute(idx)
        conn.commit()


@contextmanager
def get_conn() -> Generator[sqlite3.Connection, None, None]:
    """Yield a connection with row_factory set."""
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL;")
    try:
        yield conn
    finally:
        conn.close()
