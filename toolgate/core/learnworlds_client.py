"""
learnworlds_client.py — Typed LearnWorlds REST client.

Uses requests. "Not found" is reported as ``None``; every transport or API
failure raises EntitlementLookupFailed so callers can tell a deleted account
apart from an unreachable service. One attempt per call: the entitlement
refresh window is the retry mechanism.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import requests
from pydantic import BaseModel, ValidationError

from .. import config
from .exceptions import EntitlementLookupFailed
from .models import ExternalEnrollment, ExternalUser, Product

logger = logging.getLogger(__name__)


class LearnWorldsClient:
    """
    Thin wrapper over the LearnWorlds v2 API.
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        access_token: Optional[str] = None,
        client_id: Optional[str] = None,
        timeout: Optional[float] = None,
        http: Optional[requests.Session] = None,
    ):
        self._base_url = (api_url or config.LEARNWORLDS_API_URL).rstrip("/")
        self._timeout = timeout or config.LEARNWORLDS_TIMEOUT
        self._http = http or requests.Session()
        self._http.headers.update({
            "Authorization": f"Bearer {access_token or config.LEARNWORLDS_ACCESS_TOKEN}",
            "Lw-Client": client_id or config.LEARNWORLDS_CLIENT_ID,
            "Accept": "application/json",
        })

    # ── Transport ─────────────────────────────────────────────────────────────

    def _get(self, path: str, params: Optional[dict] = None, allow_404: bool = False) -> Any:
        """GET ``path``. Returns None on 404 when ``allow_404`` is set."""
        url = f"{self._base_url}{path}"
        try:
            resp = self._http.get(url, params=params, timeout=self._timeout)
        except requests.RequestException as exc:
            raise EntitlementLookupFailed(f"LearnWorlds request failed: {exc}") from exc

        if allow_404 and resp.status_code == 404:
            return None
        if not resp.ok:
            raise EntitlementLookupFailed(
                f"LearnWorlds API error: {resp.status_code} {resp.reason}",
                status_code=resp.status_code,
            )
        try:
            body = resp.json()
        except ValueError as exc:
            raise EntitlementLookupFailed("LearnWorlds returned a non-JSON body.") from exc
        if not isinstance(body, dict):
            raise EntitlementLookupFailed("LearnWorlds returned a non-object body.")
        return body

    def _paginate(self, path: str, params: Optional[dict] = None) -> list[dict]:
        items: list[dict] = []
        page_size = config.LEARNWORLDS_PAGE_SIZE
        for page in range(1, config.LEARNWORLDS_MAX_PAGES + 1):
            body = self._get(path, {**(params or {}), "page": page, "items_per_page": page_size})
            batch = (body or {}).get("data") or []
            items.extend(batch)
            if len(batch) < page_size:
                break
        else:
            logger.warning("Reached page limit (%d) paginating %s", config.LEARNWORLDS_MAX_PAGES, path)
        return items

    # ── Users ─────────────────────────────────────────────────────────────────

    def get_user_by_email(self, email: str) -> Optional[ExternalUser]:
        """
        Find a user by email.

        The ``email`` filter is not honoured by every school, so a direct query
        is tried first and the user list is scanned page by page afterwards.
        """
        normalized = email.strip().lower()

        body = self._get("/v2/users", {"email": normalized})
        match = _find_by_email((body or {}).get("data") or [], normalized)
        if match:
            return match

        page_size = config.LEARNWORLDS_PAGE_SIZE
        for page in range(1, config.LEARNWORLDS_MAX_PAGES + 1):
            body = self._get("/v2/users", {"page": page, "items_per_page": page_size})
            users = (body or {}).get("data") or []
            match = _find_by_email(users, normalized)
            if match:
                logger.info("Found LearnWorlds user on page %d", page)
                return match
            if len(users) < page_size:
                break
        else:
            logger.warning("Reached page limit (%d) searching for user", config.LEARNWORLDS_MAX_PAGES)

        return None

    def get_user_by_id(self, user_id: str) -> Optional[ExternalUser]:
        body = self._get(f"/v2/users/{user_id}", allow_404=True)
        if not body:
            return None
        return _parse(ExternalUser, body)

    # ── Enrollment & access ───────────────────────────────────────────────────

    def get_user_enrollments(self, user_id: str) -> list[ExternalEnrollment]:
        body = self._get(f"/v2/users/{user_id}/products")
        return [_parse(ExternalEnrollment, e) for e in (body or {}).get("data") or []]

    def get_user_course_access(self, user_id: str) -> list[str]:
        """
        Course IDs the user can open, whether bought directly, through a bundle
        or through a subscription. Falls back to course-type enrollments when
        the courses endpoint fails.
        """
        try:
            body = self._get(f"/v2/users/{user_id}/courses")
        except EntitlementLookupFailed as exc:
            logger.warning("Course access lookup failed for %s, using enrollments: %s", user_id, exc)
            return [
                e.product_id
                for e in self.get_user_enrollments(user_id)
                if e.product_type == "course"
            ]
        course_ids: list[str] = []
        for entry in (body or {}).get("data") or []:
            course = entry.get("course") if isinstance(entry, dict) else None
            course_id = course.get("id") if isinstance(course, dict) else None
            if course_id:
                course_ids.append(course_id)
        return course_ids

    # ── Products ──────────────────────────────────────────────────────────────

    def get_all_products(self) -> list[Product]:
        """Courses, bundles and subscriptions, for the admin allocation screens."""
        products: list[Product] = []
        for path, kind in (
            ("/v2/courses", "course"),
            ("/v2/bundles", "bundle"),
            ("/v2/subscriptions", "subscription"),
        ):
            for raw in self._paginate(path):
                raw = {**raw, "type": kind} if isinstance(raw, dict) else raw
                products.append(_parse(Product, raw))
        return products


def _parse(model: type[BaseModel], raw: Any):
    """Validate one LearnWorlds record; schema drift counts as a failed lookup."""
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise EntitlementLookupFailed(
            f"LearnWorlds returned an unexpected {model.__name__} record: {exc.error_count()} errors"
        ) from exc


def _find_by_email(users: list[dict], normalized_email: str) -> Optional[ExternalUser]:
    for raw in users:
        if (raw.get("email") or "").lower() == normalized_email:
            return _parse(ExternalUser, raw)
    return None
