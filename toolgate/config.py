"""
config.py — environment variables and application constants.
"""
import os

from dotenv import load_dotenv

load_dotenv()

# ── Environment ──────────────────────────────────────────────────────────────
ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
IS_PRODUCTION: bool = ENVIRONMENT == "production"

# ── Secrets ──────────────────────────────────────────────────────────────────
SESSION_SECRET: str = os.getenv("SESSION_SECRET", "change-me")
RESEND_API_KEY: str = os.getenv("RESEND_API_KEY", "")
LEARNWORLDS_ACCESS_TOKEN: str = os.getenv("LEARNWORLDS_ACCESS_TOKEN", "")
LEARNWORLDS_CLIENT_ID: str = os.getenv("LEARNWORLDS_CLIENT_ID", "")

# ── Cookies ──────────────────────────────────────────────────────────────────
ROLE_COOKIE_NAME = "toolgate-auth"          # literally "user" | "admin"
SESSION_COOKIE_NAME = "toolgate-session"    # signed session payload
STUDENT_VIEW_COOKIE_NAME = "toolgate-student-view"
COOKIE_SECURE: bool = os.getenv(
    "COOKIE_SECURE", "true" if IS_PRODUCTION else "false"
).lower() == "true"
SESSION_TTL_DAYS: int = 7
STUDENT_VIEW_TTL_HOURS: int = 24

# ── Entitlement refresh ──────────────────────────────────────────────────────
ENTITLEMENT_REFRESH_HOURS: int = int(os.getenv("ENTITLEMENT_REFRESH_HOURS", "24"))

# ── LearnWorlds ──────────────────────────────────────────────────────────────
LEARNWORLDS_API_URL: str = os.getenv("LEARNWORLDS_API_URL", "").rstrip("/")
LEARNWORLDS_TIMEOUT: float = float(os.getenv("LEARNWORLDS_TIMEOUT", "10"))
LEARNWORLDS_PAGE_SIZE: int = 50
LEARNWORLDS_MAX_PAGES: int = 100     # hard stop for the email scan

# ── Verification codes ───────────────────────────────────────────────────────
VERIFICATION_CODE_TTL_SECONDS: int = 5 * 60
VERIFICATION_MAX_ATTEMPTS: int = 3
VERIFICATION_RATE_LIMIT_SECONDS: int = 60

# ── Email ────────────────────────────────────────────────────────────────────
RESEND_API_URL = "https://api.resend.com/emails"
EMAIL_FROM: str = os.getenv("EMAIL_FROM", "Toolgate <noreply@example.com>")
EMAIL_TIMEOUT: float = 10.0

# ── Routing ──────────────────────────────────────────────────────────────────
PUBLIC_LANDING_URL: str = os.getenv("PUBLIC_LANDING_URL", "/")
LOGIN_PATH = "/auth/login"
ADMIN_PATH_PREFIX = "/admin"
AUTH_AREA_PREFIX = "/dashboard"
DEFAULT_RETURN_TO = "/dashboard"
ADMIN_LANDING = "/admin"

CORS_ORIGINS: list[str] = [
    o.strip()
    for o in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://localhost:5173",
    ).split(",")
    if o.strip()
]
