# frontend/dev_observability.py
# DEV-only observability for the portfolio frontend: redaction, event timeline, store snapshots

from __future__ import annotations

import hashlib
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

# Sensitive keys that must be redacted
SENSITIVE_KEYS = {
    "auth_token",
    "payload-token",
    "payload_token",
    "password",
    "login_password",
    "cookie",
    "authorization",
    "jwt",
    "token",
    "secret",
    "api_key",
}

MAX_EVENTS = 100


def redact_value(key: str, value: Any) -> Any:
    """
    Redact sensitive values.
    - If key is sensitive: return "[REDACTED]"
    - If key ends in "id"/"uuid" and value is a long string: return last 4 chars (e.g., "…a9f2")
    - Otherwise: return actual value
    """
    key_lower = key.lower()

    # Full redaction for known sensitive keys
    if any(sensitive in key_lower for sensitive in SENSITIVE_KEYS):
        return "[REDACTED]"

    # Partial redaction for identifiers
    if key_lower.endswith(("id", "uuid")) and isinstance(value, str) and len(value) > 4:
        return f"…{value[-4:]}"

    return value


def redact_headers(headers: Optional[Mapping[str, str]]) -> Dict[str, Any]:
    """Header dict safe to print: cookies and Authorization never appear."""
    return {k: redact_value(k, v) for k, v in (headers or {}).items()}


def now_iso() -> str:
    """Return current timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def track_event(session_state: dict, event_name: str, details: Optional[Dict[str, Any]] = None) -> None:
    """
    Append an event to the session event timeline.

    Args:
        session_state: Streamlit session_state (or any dict)
        event_name: Short descriptive name (e.g., "login_success", "projects_loaded")
        details: Optional dict of additional context (will be redacted)
    """
    if "_dev_events" not in session_state:
        session_state["_dev_events"] = []

    event: Dict[str, Any] = {"ts": now_iso(), "name": event_name}
    if details:
        event["details"] = {k: redact_value(k, v) for k, v in details.items()}

    session_state["_dev_events"].append(event)

    # Keep only the most recent events
    if len(session_state["_dev_events"]) > MAX_EVENTS:
        session_state["_dev_events"] = session_state["_dev_events"][-MAX_EVENTS:]


def get_recent_events(session_state: dict, limit: int = 30) -> List[Dict[str, Any]]:
    """Most recent events first."""
    events = session_state.get("_dev_events", [])
    return list(reversed(events[-limit:]))


def clear_debug_history(session_state: dict) -> None:
    if "_dev_events" in session_state:
        session_state["_dev_events"] = []


def snapshot_store(store: Any) -> Dict[str, Any]:
    """
    Summary of a ProjectDataStore safe to display: counts, flags and keys only.

    Keys of sanitized records are opaque UUIDs, so listing them reveals nothing.
    """
    records = store.projects_record
    return {
        "version": store.version,
        "is_ready": store.is_ready,
        "include_nda_in_active": store.include_nda_in_active,
        "contains_sanitized_placeholders": store.contains_sanitized_placeholders,
        "total": len(records),
        "sanitized": sum(1 for r in records.values() if r.is_sanitized),
        "listed_keys": store.listed_keys,
        "active_keys": store.active_keys,
    }


def compute_store_fingerprint(store: Any) -> str:
    """
    Short stable hash of the store's visible state for change detection.

    Returns:
        First 12 chars of SHA256 over the snapshot JSON
    """
    json_str = json.dumps(snapshot_store(store), sort_keys=True, default=str)
    return hashlib.sha256(json_str.encode()).hexdigest()[:12]


def export_snapshot_json(session_state: dict, store: Any = None) -> str:
    """Full diagnostic snapshot (store summary + recent events) as formatted JSON."""
    export: Dict[str, Any] = {
        "timestamp": now_iso(),
        "recent_events": get_recent_events(session_state, limit=50),
    }
    if store is not None:
        export["store"] = snapshot_store(store)
        export["fingerprint"] = compute_store_fingerprint(store)
    return json.dumps(export, indent=2)
