"""
Centralised configuration constants and environment helpers.
"""

import os
import sys
from typing import Any, Dict, Optional

from dotenv import load_dotenv

load_dotenv()

# ── Identity / sessions ──────────────────────────────────────────────
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
TOKEN_EXPIRY_HOURS = int(os.getenv("TOKEN_EXPIRY_HOURS", "24"))
TOKEN_COOKIE_NAME = "vf_token"

# "api_key" (real identity provider) or "dev" (seed identities, local only)
AUTH_PROVIDER = os.getenv("AUTH_PROVIDER", "api_key").strip().lower()
APP_ENV = os.getenv("APP_ENV", "development").strip().lower()

# Browser origins allowed to call the API with credentials (comma-separated).
CORS_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()
]

# ── Listing / dashboard limits ───────────────────────────────────────
DEFAULT_PAGE_LIMIT = 50
RECENT_ACTIVITY_LIMIT = 10
MEDICAL_EXPIRY_WARNING_DAYS = 30

# Volunteer service term; a position without an end date runs this long.
POSITION_TERM_MONTHS = 27


def get_env(name: str) -> str:
    """Return an environment variable or exit with an error message."""
    value = os.getenv(name)
    if not value:
        print(f"ERROR: env var {name} is not set", file=sys.stderr)
        sys.exit(1)
    return value


def load_settings(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Collect the settings stored on ``app.config``."""
    settings = {
        "SECRET_KEY": SECRET_KEY,
        "TOKEN_EXPIRY_HOURS": TOKEN_EXPIRY_HOURS,
        "TOKEN_COOKIE_NAME": TOKEN_COOKIE_NAME,
        "AUTH_PROVIDER": AUTH_PROVIDER,
        "APP_ENV": APP_ENV,
        "CORS_ORIGINS": CORS_ORIGINS,
        "DEFAULT_PAGE_LIMIT": DEFAULT_PAGE_LIMIT,
        "RECENT_ACTIVITY_LIMIT": RECENT_ACTIVITY_LIMIT,
        "MEDICAL_EXPIRY_WARNING_DAYS": MEDICAL_EXPIRY_WARNING_DAYS,
        "POSITION_TERM_MONTHS": POSITION_TERM_MONTHS,
    }
    if overrides:
        settings.update(overrides)
    return settings
