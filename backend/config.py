# backend/config.py
# Environment-aware configuration for the portfolio CMS backend

import os
from typing import Literal

# Environment detection
ENV: Literal["dev", "staging", "prod"] = os.environ.get("ENV", "dev")  # type: ignore
IS_DEV = (ENV == "dev")
IS_STAGING = (ENV == "staging")
IS_PROD = (ENV == "prod")

# JWT and session configuration
SECRET_KEY = os.environ.get("SECRET_KEY", "dev-only-portfolio-secret")
ALGORITHM = "HS256"

# Session cookie (name matches what the frontend forwards)
AUTH_COOKIE_NAME = "payload-token"
TOKEN_EXPIRATION_SECONDS = int(os.environ.get("TOKEN_EXPIRATION_SECONDS", str(60 * 60 * 24 * 7)))

# Database configuration (SQLite file, relative to this package)
DATABASE_PATH = os.environ.get("DATABASE_PATH", "portfolio.db")

# Listing defaults for GET /api/projects
DEFAULT_PROJECT_LIMIT = 1000
MAX_PROJECT_LIMIT = 1000

# CORS origins (expand for staging/prod)
CORS_ORIGINS = [
    "http://localhost:8501",  # Streamlit default
    "http://127.0.0.1:8501",
]

_extra_origins = os.environ.get("CORS_ORIGINS", "")
if _extra_origins:
    CORS_ORIGINS.extend(o.strip() for o in _extra_origins.split(",") if o.strip())
elif IS_PROD:
    CORS_ORIGINS.append("https://bbaysinger.com")


def get_contact_env_keys() -> list[str]:
    """
    Environment keys checked, in order, for the public contact email.

    Profile-specific override first, then the site-wide names.
    """
    upper = ENV.upper()
    return [
        f"{upper}_CONTACT_EMAIL",
        "OBFUSCATED_CONTACT_EMAIL",
        "CONTACT_EMAIL",
        "SECURITY_CONTACT_EMAIL",
    ]


print(f"[CONFIG] Environment: {ENV}")
print(f"[CONFIG] Database: SQLite ({DATABASE_PATH})")
print(f"[CONFIG] Session cookie lifetime: {TOKEN_EXPIRATION_SECONDS} seconds")
