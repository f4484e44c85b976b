"""
api/app.py — FastAPI application factory.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from .. import config
from ..auth.sqlite_db import init_db
from ..auth.verification_codes import cleanup_expired_codes
from ..core.exceptions import EntitlementRevoked
from .auth import clear_session_cookies
from .middleware import role_gate
from .routes_admin import router as admin_router
from .routes_auth import router as auth_router
from .routes_tools import router as tools_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    removed = cleanup_expired_codes()
    if removed:
        logger.info("Removed %d expired verification codes", removed)
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Toolgate API",
        version="0.1.0",
        lifespan=lifespan,
    )

    # ── Role-cookie routing gate ──────────────────────────────────────────────
    app.middleware("http")(role_gate)

    # ── CORS ──────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Routers ───────────────────────────────────────────────────────────────
    app.include_router(auth_router)
    app.include_router(tools_router)
    app.include_router(admin_router)

    # ── Health ────────────────────────────────────────────────────────────────
    @app.get("/health")
    async def health():
        return {"status": "ok", "version": "0.1.0"}

    # ── Revoked entitlement: log out and send to the public landing page ─────
    @app.exception_handler(EntitlementRevoked)
    async def entitlement_revoked_handler(request: Request, exc: EntitlementRevoked):
        logger.info("Session for %s revoked on %s", exc.email, request.url.path)
        resp = RedirectResponse(url=config.PUBLIC_LANDING_URL, status_code=302)
        clear_session_cookies(resp)
        return resp

    # ── Global exception handler ──────────────────────────────────────────────
    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred.",
                },
                "status": "error",
            },
        )

    return app
