"""
main.py — Uvicorn entry point and admin provisioning.

Run with:
  uvicorn toolgate.main:app --reload --host 0.0.0.0 --port 8000

Create an admin account:
  python -m toolgate.main create-admin admin@example.com 'password' [--super]
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional

import uvicorn
from dotenv import load_dotenv

load_dotenv()

from .api.app import create_app  # noqa: E402
from .api.auth import create_admin_user, get_admin_by_email  # noqa: E402
from .auth.sqlite_db import init_db  # noqa: E402

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

app = create_app()


def _create_admin(email: str, password: str, super_admin: bool) -> int:
    init_db()
    if get_admin_by_email(email):
        logger.error("Admin %s already exists", email)
        return 1
    admin = create_admin_user(email, password, role="super_admin" if super_admin else "admin")
    logger.info("Created %s %s", admin.role, admin.email)
    return 0


def cli(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="toolgate")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("serve", help="run the API server (default)")
    create = sub.add_parser("create-admin", help="provision a local admin account")
    create.add_argument("email")
    create.add_argument("password")
    create.add_argument("--super", dest="super_admin", action="store_true")
    args = parser.parse_args(argv)

    if args.command == "create-admin":
        return _create_admin(args.email, args.password, args.super_admin)

    uvicorn.run(
        "toolgate.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "false").lower() == "true",
    )
    return 0


if __name__ == "__main__":
    sys.exit(cli())
