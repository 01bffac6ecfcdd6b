# frontend/test_dev_observability.py
# Unit tests for DEV observability: redaction, event timeline, store snapshots

import asyncio
import json
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from frontend.api_client import FetchProjectsResult
from frontend.dev_observability import (
    clear_debug_history,
    compute_store_fingerprint,
    export_snapshot_json,
    get_recent_events,
    redact_headers,
    redact_value,
    snapshot_store,
    track_event,
)
from frontend.project_data import ProjectDataStore
from frontend.project_records import NdaSanitizedProject, PublicProject


def loaded_store():
    records = [
        PublicProject(id="alpha", uuid="u-alpha", title="Alpha", active=True),
        NdaSanitizedProject(id="u-beta", uuid="u-beta", active=True, brand_is_nda=True),
    ]

    async def fetcher(headers, disable_cache):
        return FetchProjectsResult(records=records, contains_sanitized_placeholders=True, has_nda_access=False)

    store = ProjectDataStore(fetcher=fetcher)
    asyncio.run(store.initialize())
    return store


def test_redact_sensitive_keys():
    """Sensitive keys should be fully redacted."""
    assert redact_value("auth_token", "abc123") == "[REDACTED]"
    assert redact_value("password", "secret123") == "[REDACTED]"
    assert redact_value("login_password", "hunter2") == "[REDACTED]"
    assert redact_value("Cookie", "payload-token=abc") == "[REDACTED]"
    assert redact_value("Authorization", "JWT abc") == "[REDACTED]"
    assert redact_value("payload-token", "abc") == "[REDACTED]"


def test_redact_id_fields():
    """ID fields should show last 4 chars only."""
    assert redact_value("user_id", "user_123456789") == "…6789"
    assert redact_value("project_uuid", "0f0e-4b1d-9a9a") == "…9a9a"
    assert redact_value("user_id", 7) == 7


def test_non_sensitive_keys():
    """Non-sensitive keys should pass through unchanged."""
    assert redact_value("nav_page", "Projects") == "Projects"
    assert redact_value("version", 3) == 3
    assert redact_value("current_user", {"email": "test@example.com"}) == {"email": "test@example.com"}


def test_redact_headers_hides_session():
    headers = {"Accept": "application/json", "Cookie": "payload-token=abc", "Authorization": "JWT abc"}
    redacted = redact_headers(headers)
    assert redacted["Accept"] == "application/json"
    assert redacted["Cookie"] == "[REDACTED]"
    assert redacted["Authorization"] == "[REDACTED]"
    assert "abc" not in json.dumps(redacted)
    assert redact_headers(None) == {}


def test_track_event_with_details():
    """track_event should redact sensitive details."""
    ss = {}
    track_event(ss, "login_attempt", {"ok": True, "auth_token": "secret123"})

    event = ss["_dev_events"][0]
    assert event["name"] == "login_attempt"
    assert "ts" in event
    assert event["details"]["ok"] is True
    assert event["details"]["auth_token"] == "[REDACTED]"


def test_track_event_truncation():
    """Event list should truncate to last 100 events."""
    ss = {}
    for i in range(150):
        track_event(ss, f"event_{i}")

    assert len(ss["_dev_events"]) == 100
    assert ss["_dev_events"][0]["name"] == "event_50"
    assert ss["_dev_events"][-1]["name"] == "event_149"


def test_get_recent_events():
    """get_recent_events should return limited list in reverse order."""
    ss = {}
    for i in range(10):
        track_event(ss, f"event_{i}")

    recent = get_recent_events(ss, limit=5)
    assert [e["name"] for e in recent] == ["event_9", "event_8", "event_7", "event_6", "event_5"]


def test_clear_debug_history():
    """clear_debug_history should remove only debug data."""
    ss = {"nav_page": "Projects", "auth_token": "secret123", "_dev_events": [{"name": "test"}]}
    clear_debug_history(ss)
    assert ss["_dev_events"] == []
    assert ss["nav_page"] == "Projects"
    assert ss["auth_token"] == "secret123"


def test_snapshot_store_counts():
    snapshot = snapshot_store(loaded_store())
    assert snapshot["version"] == 1
    assert snapshot["is_ready"] is True
    assert snapshot["total"] == 2
    assert snapshot["sanitized"] == 1
    assert snapshot["listed_keys"] == ["alpha", "u-beta"]
    assert snapshot["active_keys"] == ["alpha"]
    assert snapshot["contains_sanitized_placeholders"] is True


def test_store_fingerprint_is_stable():
    assert compute_store_fingerprint(loaded_store()) == compute_store_fingerprint(loaded_store())
    assert len(compute_store_fingerprint(loaded_store())) == 12


def test_export_snapshot_json():
    """export_snapshot_json should produce valid JSON with store summary."""
    ss = {"_dev_events": [{"name": "projects_loaded", "ts": "2026-01-16T10:00:00.000Z"}]}
    data = json.loads(export_snapshot_json(ss, loaded_store()))

    assert "timestamp" in data
    assert data["recent_events"][0]["name"] == "projects_loaded"
    assert data["store"]["total"] == 2
    assert len(data["fingerprint"]) == 12


def test_export_without_store():
    data = json.loads(export_snapshot_json({}))
    assert "store" not in data
    assert data["recent_events"] == []
