# frontend/test_config.py
# Unit tests for profile normalization and backend URL resolution

import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from frontend.config import (
    get_api_prefix,
    get_backend_base_url,
    get_fetch_timeout,
    is_debug_project_data,
    normalize_profile,
)


@pytest.mark.parametrize("raw,expected", [
    ("production", "prod"),
    ("PROD", "prod"),
    ("development", "dev"),
    ("dev-blue", "dev"),
    ("local", "local"),
    ("staging", "staging"),
    ("", ""),
    (None, ""),
])
def test_normalize_profile(raw, expected):
    assert normalize_profile(raw) == expected


def test_profile_specific_backend_url_wins(monkeypatch):
    monkeypatch.setenv("PROD_BACKEND_INTERNAL_URL", "https://api.example.test/")
    monkeypatch.setenv("BACKEND_INTERNAL_URL", "http://generic.test")
    assert get_backend_base_url("prod") == "https://api.example.test"


def test_non_http_backend_url_falls_back_to_service_dns(monkeypatch):
    monkeypatch.delenv("LOCAL_BACKEND_INTERNAL_URL", raising=False)
    monkeypatch.setenv("BACKEND_INTERNAL_URL", "backend:3000")
    assert get_backend_base_url("local") == "http://bb-portfolio-backend-local:3001"


def test_unknown_profile_defaults_to_localhost(monkeypatch):
    monkeypatch.delenv("BACKEND_INTERNAL_URL", raising=False)
    assert get_backend_base_url("staging") == "http://localhost:8000"


def test_api_prefix(monkeypatch):
    monkeypatch.delenv("BACKEND_BASE_PATH", raising=False)
    assert get_api_prefix() == "/api"
    monkeypatch.setenv("BACKEND_BASE_PATH", "/admin/")
    assert get_api_prefix() == "/admin/api"


def test_fetch_timeout():
    assert get_fetch_timeout("dev") == 20.0
    assert get_fetch_timeout("local") == 20.0
    assert get_fetch_timeout("prod") == 5.0


def test_debug_logging_never_in_prod(monkeypatch):
    monkeypatch.setenv("DEBUG_PROJECT_DATA", "1")
    monkeypatch.setenv("ENV_PROFILE", "production")
    assert is_debug_project_data() is False
    monkeypatch.setenv("ENV_PROFILE", "dev")
    assert is_debug_project_data() is True
