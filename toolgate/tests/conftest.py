"""
conftest.py — Shared fixtures for all toolgate tests.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from toolgate import config
from toolgate.core.models import AdminSession, Enrollment, ExternalUser, UserSession
from toolgate.core.session_codec import encode_session

# ---------------------------------------------------------------------------
# Session builders
# ---------------------------------------------------------------------------

def _make_user_session(
    email: str = "learner@example.com",
    external_user_id: Optional[str] = "lw_user_001",
    course_ids: Optional[list[str]] = None,
    checked_hours_ago: Optional[float] = 1,
) -> UserSession:
    course_ids = ["C1"] if course_ids is None else course_ids
    last_check = None
    if checked_hours_ago is not None:
        last_check = datetime.now(timezone.utc) - timedelta(hours=checked_hours_ago)
    return UserSession(
        email=email,
        external_user_id=external_user_id,
        accessible_course_ids=course_ids,
        enrollments=[
            Enrollment(product_id=c, product_title=f"Course {c}", product_type="course")
            for c in course_ids
        ],
        authenticated_at=datetime.now(timezone.utc) - timedelta(days=2),
        last_entitlement_check=last_check,
    )


def _make_admin_session(email: str = "admin@example.com", role: str = "admin") -> AdminSession:
    return AdminSession(email=email, role=role, authenticated_at=datetime.now(timezone.utc))


def _sign_in(client: TestClient, session) -> None:
    """Put the role and session cookies for ``session`` into the client jar."""
    client.cookies.set(config.ROLE_COOKIE_NAME, session.role_cookie_value)
    client.cookies.set(config.SESSION_COOKIE_NAME, encode_session(session))


@pytest.fixture
def make_user():
    return _make_user_session


@pytest.fixture
def make_admin():
    return _make_admin_session


@pytest.fixture
def sign_in():
    return _sign_in


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_db(tmp_path, monkeypatch):
    """Fresh SQLite file per test."""
    from toolgate.auth import sqlite_db

    monkeypatch.setattr(sqlite_db, "DB_PATH", str(tmp_path / "toolgate-test.db"))
    sqlite_db.init_db()
    return sqlite_db.DB_PATH


@pytest.fixture
def store(tmp_db):
    from toolgate.core.allocations import AllocationStore
    return AllocationStore()


# ---------------------------------------------------------------------------
# LearnWorlds mock
# ---------------------------------------------------------------------------

@pytest.fixture
def lw_client():
    """Mock LearnWorlds client: the learner exists and owns course C1."""
    client = MagicMock()
    client.get_user_by_email.return_value = ExternalUser(
        id="lw_user_001", email="learner@example.com"
    )
    client.get_user_by_id.return_value = ExternalUser(
        id="lw_user_001", email="learner@example.com"
    )
    client.get_user_course_access.return_value = ["C1"]
    client.get_user_enrollments.return_value = []
    client.get_all_products.return_value = []
    return client


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

@pytest.fixture
def app(tmp_db, lw_client):
    from toolgate.api.app import create_app
    from toolgate.api.dependencies import get_entitlement_client

    application = create_app()
    application.dependency_overrides[get_entitlement_client] = lambda: lw_client
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)
