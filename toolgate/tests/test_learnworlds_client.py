"""
test_learnworlds_client.py — LearnWorlds client: not-found vs failure,
email lookup fallback and course access extraction.
"""
from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from toolgate.core.exceptions import EntitlementLookupFailed
from toolgate.core.learnworlds_client import LearnWorldsClient


def _resp(status: int = 200, body=None):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 400
    resp.reason = "Error" if status >= 400 else "OK"
    resp.json.return_value = body if body is not None else {}
    return resp


@pytest.fixture
def http():
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def lw(http):
    return LearnWorldsClient(
        api_url="https://school.example.com/admin/api/",
        access_token="tok",
        client_id="client-1",
        timeout=5,
        http=http,
    )


def test_auth_headers_are_set(lw, http):
    assert http.headers["Authorization"] == "Bearer tok"
    assert http.headers["Lw-Client"] == "client-1"


# ---------------------------------------------------------------------------
# get_user_by_id
# ---------------------------------------------------------------------------

def test_get_user_by_id_returns_user(lw, http):
    http.get.return_value = _resp(200, {"id": "u1", "email": "a@example.com", "extra": 1})
    user = lw.get_user_by_id("u1")
    assert user.id == "u1"
    assert http.get.call_args.args[0] == "https://school.example.com/admin/api/v2/users/u1"


def test_get_user_by_id_404_is_none(lw, http):
    http.get.return_value = _resp(404)
    assert lw.get_user_by_id("gone") is None


def test_get_user_by_id_server_error_raises(lw, http):
    http.get.return_value = _resp(500)
    with pytest.raises(EntitlementLookupFailed) as excinfo:
        lw.get_user_by_id("u1")
    assert excinfo.value.status_code == 500


def test_transport_error_raises_lookup_failed(lw, http):
    http.get.side_effect = requests.ConnectionError("refused")
    with pytest.raises(EntitlementLookupFailed):
        lw.get_user_by_id("u1")


def test_non_json_body_raises_lookup_failed(lw, http):
    resp = _resp(200)
    resp.json.side_effect = ValueError("no json")
    http.get.return_value = resp
    with pytest.raises(EntitlementLookupFailed):
        lw.get_user_by_id("u1")


# ---------------------------------------------------------------------------
# get_user_by_email
# ---------------------------------------------------------------------------

def test_email_lookup_uses_direct_query_first(lw, http):
    http.get.return_value = _resp(200, {"data": [{"id": "u1", "email": "A@Example.com"}]})
    user = lw.get_user_by_email(" a@example.com ")
    assert user.id == "u1"
    assert http.get.call_count == 1
    assert http.get.call_args.kwargs["params"] == {"email": "a@example.com"}


def test_email_lookup_falls_back_to_scan(lw, http):
    http.get.side_effect = [
        _resp(200, {"data": []}),
        _resp(200, {"data": [{"id": "u2", "email": "b@example.com"}] * 50}),
        _resp(200, {"data": [{"id": "u9", "email": "a@example.com"}]}),
    ]
    assert lw.get_user_by_email("a@example.com").id == "u9"


def test_email_lookup_not_found(lw, http):
    http.get.side_effect = [_resp(200, {"data": []}), _resp(200, {"data": []})]
    assert lw.get_user_by_email("a@example.com") is None


# ---------------------------------------------------------------------------
# Course access
# ---------------------------------------------------------------------------

def test_course_access_reads_course_ids(lw, http):
    http.get.return_value = _resp(200, {
        "data": [{"course": {"id": "C1"}}, {"course": {"id": "C2"}}, {"course": {}}],
    })
    assert lw.get_user_course_access("u1") == ["C1", "C2"]


def test_course_access_falls_back_to_course_enrollments(lw, http):
    http.get.side_effect = [
        _resp(500),
        _resp(200, {"data": [
            {"product_id": "C1", "product_type": "course"},
            {"product_id": "B1", "product_type": "bundle"},
        ]}),
    ]
    assert lw.get_user_course_access("u1") == ["C1"]


def test_enrollments_parse_timestamps(lw, http):
    http.get.return_value = _resp(200, {"data": [
        {"product_id": "C1", "product_title": "One", "product_type": "course",
         "enrolled_at": 1_700_000_000},
        {"product_id": "C2", "enrolled_at": "2025-01-05T10:00:00Z"},
    ]})
    enrollments = [e.to_enrollment() for e in lw.get_user_enrollments("u1")]
    assert enrollments[0].enrolled_at.year == 2023
    assert enrollments[1].product_title == "Unknown"
    assert enrollments[1].enrolled_at.tzinfo is not None


def test_get_all_products_tags_types(lw, http):
    http.get.side_effect = [
        _resp(200, {"data": [{"id": "C1", "title": "Course"}]}),
        _resp(200, {"data": [{"id": "B1", "title": "Bundle"}]}),
        _resp(200, {"data": []}),
    ]
    products = lw.get_all_products()
    assert [(p.id, p.type) for p in products] == [("C1", "course"), ("B1", "bundle")]


# ---------------------------------------------------------------------------
# Schema drift
# ---------------------------------------------------------------------------

def test_enrollment_without_product_id_raises_lookup_failed(lw, http):
    http.get.return_value = _resp(200, {"data": [{"product_title": "No id"}]})
    with pytest.raises(EntitlementLookupFailed):
        lw.get_user_enrollments("u1")


def test_user_without_email_raises_lookup_failed(lw, http):
    http.get.return_value = _resp(200, {"id": "u1"})
    with pytest.raises(EntitlementLookupFailed):
        lw.get_user_by_id("u1")


def test_list_body_raises_lookup_failed(lw, http):
    http.get.return_value = _resp(200, [{"id": "u1"}])
    with pytest.raises(EntitlementLookupFailed):
        lw.get_user_by_id("u1")


def test_product_without_id_raises_lookup_failed(lw, http):
    http.get.return_value = _resp(200, {"data": [{"title": "Nameless"}]})
    with pytest.raises(EntitlementLookupFailed):
        lw.get_all_products()
