"""
email_client.py — Verification-code delivery through the Resend HTTP API.

Outside production, a missing RESEND_API_KEY falls back to logging the code
so the login flow can be exercised locally.
"""
from __future__ import annotations

import logging

import requests

from .. import config
from .exceptions import EmailDeliveryFailed

logger = logging.getLogger(__name__)


def is_email_configured() -> bool:
    return bool(config.RESEND_API_KEY) or not config.IS_PRODUCTION


def _render(code: str) -> tuple[str, str]:
    minutes = config.VERIFICATION_CODE_TTL_SECONDS // 60
    text = (
        f"Your verification code is {code}.\n\n"
        f"It expires in {minutes} minutes. If you did not request it, ignore this email."
    )
    html = (
        "<p>Your verification code is:</p>"
        f"<p style=\"font-size:28px;letter-spacing:6px\"><strong>{code}</strong></p>"
        f"<p>It expires in {minutes} minutes. If you did not request it, ignore this email.</p>"
    )
    return text, html


def send_verification_code_email(email: str, code: str) -> None:
    """Deliver ``code`` to ``email``. Raises EmailDeliveryFailed."""
    if not config.RESEND_API_KEY:
        if config.IS_PRODUCTION:
            raise EmailDeliveryFailed("Email service not configured.")
        logger.warning("RESEND_API_KEY not set; verification code for %s is %s", email, code)
        return

    text, html = _render(code)
    try:
        resp = requests.post(
            config.RESEND_API_URL,
            headers={"Authorization": f"Bearer {config.RESEND_API_KEY}"},
            json={
                "from": config.EMAIL_FROM,
                "to": email,
                "subject": "Your verification code",
                "html": html,
                "text": text,
            },
            timeout=config.EMAIL_TIMEOUT,
        )
    except requests.RequestException as exc:
        logger.error("Email send error for %s: %s", email, exc)
        raise EmailDeliveryFailed("Failed to send verification email.") from exc

    if not resp.ok:
        logger.error("Resend API error %s for %s: %s", resp.status_code, email, resp.text[:200])
        raise EmailDeliveryFailed("Failed to send verification email.")
