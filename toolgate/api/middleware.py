"""
api/middleware.py — Coarse routing gate on the role cookie.

Only the role cookie is consulted here; handlers still resolve and refresh
the full session before authorising anything.
"""
from __future__ import annotations

from typing import Optional
from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import RedirectResponse

from .. import config

_AUTHENTICATED_ROLES = ("user", "admin")


def _under(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix.rstrip("/") + "/")


def gate_redirect(path: str, role_cookie: Optional[str]) -> Optional[str]:
    """Login URL to redirect to, or None when the request may pass."""
    if _under(path, config.ADMIN_PATH_PREFIX):
        allowed = role_cookie == "admin"
    elif _under(path, config.AUTH_AREA_PREFIX):
        allowed = role_cookie in _AUTHENTICATED_ROLES
    else:
        return None
    if allowed:
        return None
    return f"{config.LOGIN_PATH}?{urlencode({'returnTo': path})}"


async def role_gate(request: Request, call_next):
    target = gate_redirect(request.url.path, request.cookies.get(config.ROLE_COOKIE_NAME))
    if target:
        return RedirectResponse(url=target, status_code=307)
    return await call_next(request)
