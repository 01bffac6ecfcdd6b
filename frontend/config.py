# frontend/config.py
# Environment-aware configuration for the portfolio frontend

import os
from typing import Literal, Optional

Profile = Literal["prod", "dev", "local", ""]

# Service-DNS names of the backend inside the compose network, per profile
SERVICE_DNS_FALLBACKS = {
    "dev": "http://bb-portfolio-backend-dev:3000",
    "prod": "http://bb-portfolio-backend-prod:3000",
    "local": "http://bb-portfolio-backend-local:3001",
}

# Listing query sent to the backend (depth=2 populates brand logos)
PROJECTS_QUERY = "depth=2&limit=1000&sort=sortIndex"


def normalize_profile(raw: Optional[str]) -> str:
    """
    Normalize ENV_PROFILE / NODE_ENV style values.

    "production", "prod-blue" -> "prod"; "development", "dev" -> "dev";
    "local*" -> "local"; anything else is returned lowercased as-is.
    """
    value = (raw or "").strip().lower()
    if value.startswith("prod"):
        return "prod"
    if value == "development" or value.startswith("dev"):
        return "dev"
    if value.startswith("local"):
        return "local"
    return value


def get_profile() -> str:
    return normalize_profile(os.environ.get("ENV_PROFILE") or os.environ.get("NODE_ENV"))


def is_http_url(value: str) -> bool:
    return value.lower().startswith(("http://", "https://"))


def get_service_dns_fallback(profile: Optional[str] = None) -> str:
    return SERVICE_DNS_FALLBACKS.get(profile if profile is not None else get_profile(), "")


def get_backend_base_url(profile: Optional[str] = None) -> str:
    """
    Backend origin used for server-side fetches.

    Priority:
    1. <PROFILE>_BACKEND_INTERNAL_URL
    2. BACKEND_INTERNAL_URL
    3. Service-DNS fallback for the profile
    4. http://localhost:8000 (uvicorn default)

    Values that are not http(s) URLs are ignored.
    """
    profile = profile if profile is not None else get_profile()
    candidates = []
    if profile:
        candidates.append(os.environ.get(f"{profile.upper()}_BACKEND_INTERNAL_URL", ""))
    candidates.append(os.environ.get("BACKEND_INTERNAL_URL", ""))

    for candidate in candidates:
        candidate = candidate.strip()
        if candidate and is_http_url(candidate):
            return candidate.rstrip("/")

    return get_service_dns_fallback(profile) or "http://localhost:8000"


def get_backend_base_path() -> str:
    """Optional subdirectory the backend is mounted under (e.g. "/admin"), without trailing slash."""
    return os.environ.get("BACKEND_BASE_PATH", "").strip().rstrip("/")


def get_api_prefix() -> str:
    base_path = get_backend_base_path()
    return f"{base_path}/api" if base_path else "/api"


def get_fetch_timeout(profile: Optional[str] = None) -> float:
    """Seconds to wait for the projects listing: dev/local cold starts are slow."""
    profile = profile if profile is not None else get_profile()
    return 20.0 if profile in ("dev", "local") else 5.0


def is_debug_project_data() -> bool:
    """Project data debug logging: DEBUG_PROJECT_DATA=1 and never in prod."""
    return os.environ.get("DEBUG_PROJECT_DATA") == "1" and get_profile() != "prod"


PROFILE = get_profile()
IS_PROD = PROFILE == "prod"
IS_DEV = PROFILE in ("dev", "local")

# Feature flags
ENABLE_DEBUG_UI = IS_DEV  # Show the session-state debug panel only in dev

print(f"[CONFIG] Profile: {PROFILE or 'unset'}")
print(f"[CONFIG] Backend URL: {get_backend_base_url()}{get_backend_base_path()}")
print(f"[CONFIG] Debug UI: {'enabled' if ENABLE_DEBUG_UI else 'disabled'}")
