"""
test_api_tools.py — Learner tool access, enrollment listings and the
refresh step that runs in front of them.
"""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from toolgate import config
from toolgate.core.exceptions import EntitlementLookupFailed
from toolgate.core.models import StudentView
from toolgate.core.session_codec import StudentViewCodec, decode_session


@pytest.fixture
def allocated(store):
    store.set_tools_for_course("C1", ["T1"], course_name="Course One")
    store.set_tools_for_course("C2", ["T2"], course_name="Course Two")
    return store


# ---------------------------------------------------------------------------
# Tool access
# ---------------------------------------------------------------------------

def test_tool_access_requires_session(client):
    assert client.get("/api/tools/T1/access").status_code == 401


def test_enrolled_learner_can_use_tool(client, allocated, sign_in, make_user):
    sign_in(client, make_user(course_ids=["C1"]))
    data = client.get("/api/tools/T1/access").json()
    assert data["allowed"] is True
    assert data["viaCourses"] == ["C1"]
    assert data["reason"] == "enrolled"


def test_learner_without_course_is_denied(client, allocated, sign_in, make_user):
    sign_in(client, make_user(course_ids=["C1"]))
    data = client.get("/api/tools/T2/access").json()
    assert data["allowed"] is False
    assert data["reason"] == "no_enrollment"
    assert data["requiredCourses"] == [{"id": "C2", "name": "Course Two"}]


def test_unallocated_tool_lists_no_required_courses(client, allocated, sign_in, make_user):
    sign_in(client, make_user(course_ids=["C1"]))
    data = client.get("/api/tools/T9/access").json()
    assert data["allowed"] is False
    assert data["requiredCourses"] == []


def test_admin_can_use_any_tool(client, sign_in, make_admin):
    sign_in(client, make_admin())
    data = client.get("/api/tools/anything/access").json()
    assert data["allowed"] is True
    assert data["reason"] == "admin"


def test_admin_student_view_limits_access(client, allocated, sign_in, make_admin):
    sign_in(client, make_admin())
    view = StudentView(mode="student", selected_course_id="C2")
    client.cookies.set(config.STUDENT_VIEW_COOKIE_NAME, StudentViewCodec().encode(view))

    assert client.get("/api/tools/T1/access").json()["allowed"] is False
    assert client.get("/api/tools/T2/access").json()["allowed"] is True


# ---------------------------------------------------------------------------
# Refresh in front of tool access
# ---------------------------------------------------------------------------

def test_stale_session_is_refreshed_and_reissued(client, allocated, lw_client, sign_in, make_user):
    sign_in(client, make_user(course_ids=["C1"], checked_hours_ago=30))
    lw_client.get_user_course_access.return_value = ["C1", "C2"]

    resp = client.get("/api/tools/T2/access")

    assert resp.status_code == 200
    assert resp.json()["allowed"] is True
    session = decode_session(resp.cookies[config.SESSION_COOKIE_NAME])
    assert session.accessible_course_ids == ["C1", "C2"]
    assert resp.cookies[config.ROLE_COOKIE_NAME] == "user"


def test_fresh_session_is_not_reissued(client, allocated, lw_client, sign_in, make_user):
    sign_in(client, make_user(course_ids=["C1"], checked_hours_ago=2))
    resp = client.get("/api/tools/T1/access")
    assert "set-cookie" not in resp.headers
    lw_client.get_user_by_id.assert_not_called()


def test_revoked_account_is_logged_out(client, allocated, lw_client, sign_in, make_user):
    sign_in(client, make_user(course_ids=["C1"], checked_hours_ago=30))
    lw_client.get_user_by_id.return_value = None

    resp = client.get("/api/tools/T1/access", follow_redirects=False)

    assert resp.status_code == 302
    assert resp.headers["location"] == config.PUBLIC_LANDING_URL
    cleared = {h.split("=", 1)[0] for h in resp.headers.get_list("set-cookie")
               if "max-age=0" in h.lower()}
    assert {config.ROLE_COOKIE_NAME, config.SESSION_COOKIE_NAME} <= cleared


def test_lookup_outage_keeps_learner_signed_in(client, allocated, lw_client, sign_in, make_user):
    sign_in(client, make_user(course_ids=["C1"], checked_hours_ago=30))
    lw_client.get_user_by_id.side_effect = EntitlementLookupFailed("timeout")

    resp = client.get("/api/tools/T1/access")

    assert resp.status_code == 200
    assert resp.json()["allowed"] is True
    session = decode_session(resp.cookies[config.SESSION_COOKIE_NAME])
    assert session.last_entitlement_check > datetime(2026, 1, 1, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

def test_enrollments_listing(client, sign_in, make_user):
    sign_in(client, make_user(course_ids=["C1", "C3"]))
    data = client.get("/api/courses/enrollments").json()
    assert data["accessibleCourseIds"] == ["C1", "C3"]
    assert [e["productId"] for e in data["enrollments"]] == ["C1", "C3"]


def test_dashboard_lists_only_owned_courses(client, allocated, sign_in, make_user):
    sign_in(client, make_user(course_ids=["C2", "C9"]))
    data = client.get("/api/dashboard/courses").json()
    assert data == [
        {"courseId": "C2", "courseName": "Course Two", "toolCount": 1, "toolIds": ["T2"]},
    ]


def test_dashboard_lists_everything_for_admin(client, allocated, sign_in, make_admin):
    sign_in(client, make_admin())
    data = client.get("/api/dashboard/courses").json()
    assert [c["courseId"] for c in data] == ["C1", "C2"]
