"""
frontend/api_client.py
Backend client for the portfolio project listing.

This module ensures:
1. The caller's session (payload-token cookie) is forwarded so the backend can
   decide NDA access, and is mirrored as `Authorization: JWT <token>`
2. Authenticated responses are never cacheable (no-store whenever a session is forwarded)
3. Transport failures get one retry (service-DNS fallback or the primary again)
4. The Payload-style `{docs: [...]}` body becomes ordered, client-safe records;
   an NDA document without access always becomes an NdaSanitizedProject

Security:
- Never logs cookies, tokens or Authorization headers (debug output is redacted)
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

import requests
from pydantic import ValidationError

# Import config (robust fallback for different run contexts)
try:
    from frontend.config import (
        PROJECTS_QUERY,
        get_api_prefix,
        get_backend_base_url,
        get_fetch_timeout,
        get_profile,
        get_service_dns_fallback,
        is_debug_project_data,
    )
    from frontend.dev_observability import redact_headers
    from frontend.project_records import (
        PLACEHOLDER_TITLE,
        MobileOrientation,
        NdaFullProject,
        NdaSanitizedProject,
        ProjectRecordType,
        PublicProject,
        ScreenshotUrls,
    )
except ModuleNotFoundError:
    from config import (
        PROJECTS_QUERY,
        get_api_prefix,
        get_backend_base_url,
        get_fetch_timeout,
        get_profile,
        get_service_dns_fallback,
        is_debug_project_data,
    )
    from dev_observability import redact_headers
    from project_records import (
        PLACEHOLDER_TITLE,
        MobileOrientation,
        NdaFullProject,
        NdaSanitizedProject,
        ProjectRecordType,
        PublicProject,
        ScreenshotUrls,
    )

SESSION_COOKIE_NAME = "payload-token"
RETRY_BACKOFF_SECONDS = 0.6

__all__ = [
    "ProjectFetchError",
    "FetchProjectsResult",
    "get_cookie_header_value",
    "extract_payload_token",
    "headers_contain_session",
    "build_forward_headers",
    "fetch_portfolio_projects",
    "fetch_portfolio_projects_async",
    "transform_project_docs",
]


class ProjectFetchError(Exception):
    """Transport failure, non-success status or malformed listing body."""


@dataclass(frozen=True)
class FetchProjectsResult:
    records: List[ProjectRecordType] = field(default_factory=list)
    contains_sanitized_placeholders: bool = False
    has_nda_access: Optional[bool] = None


# ---------------------------------------------------------
# Header helpers
# ---------------------------------------------------------
def get_cookie_header_value(headers: Optional[Mapping[str, str]]) -> str:
    """Case-insensitive lookup of the Cookie header."""
    if not headers:
        return ""
    for key, value in headers.items():
        if key.lower() == "cookie":
            return value or ""
    return ""


def extract_payload_token(cookie_header: str) -> str:
    """Value of the payload-token cookie, or "" (values may contain '=')."""
    if not cookie_header:
        return ""
    for part in cookie_header.split(";"):
        name, sep, value = part.strip().partition("=")
        if sep and name.strip() == SESSION_COOKIE_NAME:
            return value
    return ""


def headers_contain_session(headers: Optional[Mapping[str, str]]) -> bool:
    return bool(extract_payload_token(get_cookie_header_value(headers)))


def build_forward_headers(
    request_headers: Optional[Mapping[str, str]],
    disable_cache: bool,
) -> Dict[str, str]:
    """
    Headers for the backend request: the caller's headers, plus
    `Authorization: JWT <token>` when a session cookie is present, plus cache directives.
    """
    headers: Dict[str, str] = {"Accept": "application/json"}
    if request_headers:
        headers.update(request_headers)
        token = extract_payload_token(get_cookie_header_value(request_headers))
        if token:
            headers["Authorization"] = f"JWT {token}"

    if disable_cache or headers_contain_session(request_headers):
        headers["Cache-Control"] = "no-store"
        headers["Pragma"] = "no-cache"
    else:
        headers["Cache-Control"] = "max-age=3600"
    return headers


# ---------------------------------------------------------
# Fetch
# ---------------------------------------------------------
def _listing_urls(profile: str) -> Tuple[str, Optional[str]]:
    path = f"{get_api_prefix()}/projects/?{PROJECTS_QUERY}"
    primary = f"{get_backend_base_url(profile)}{path}"
    fallback_base = get_service_dns_fallback(profile)
    fallback = f"{fallback_base.rstrip('/')}{path}" if fallback_base else None
    if fallback == primary:
        fallback = None
    return primary, fallback


def fetch_portfolio_projects(
    request_headers: Optional[Mapping[str, str]] = None,
    disable_cache: bool = False,
) -> FetchProjectsResult:
    """
    GET the project listing and transform it into records.

    Raises:
        ProjectFetchError: On connection failure (after one retry), non-2xx status,
            or a body that is not a project listing
    """
    profile = get_profile()
    debug = is_debug_project_data()
    timeout = get_fetch_timeout(profile)
    headers = build_forward_headers(request_headers, disable_cache)
    primary_url, fallback_url = _listing_urls(profile)

    if debug:
        print(f"[ProjectData] profile={profile or 'unset'} primary={primary_url} "
              f"fallback={fallback_url} headers={redact_headers(headers)}")

    try:
        resp = requests.get(primary_url, headers=headers, timeout=timeout)
        if resp.status_code >= 500 and fallback_url:
            try:
                alt = requests.get(fallback_url, headers=headers, timeout=timeout)
                if alt.ok:
                    if debug:
                        print(f"[ProjectData] primary returned {resp.status_code}, using fallback")
                    resp = alt
            except requests.exceptions.RequestException as e:
                if debug:
                    print(f"[ProjectData] fallback failed ({type(e).__name__}), keeping primary status")
    except requests.exceptions.RequestException as e:
        retry_url = fallback_url or primary_url
        if profile != "prod":
            time.sleep(RETRY_BACKOFF_SECONDS)
        try:
            resp = requests.get(retry_url, headers=headers, timeout=timeout * 1.5)
        except requests.exceptions.RequestException as e2:
            suffix = "(retried primary)" if retry_url == primary_url else f"(fallback {retry_url})"
            message = (f"Failed to fetch project data: {primary_url} ({type(e).__name__}) "
                       f"{suffix} also failed ({type(e2).__name__})")
            if debug:
                print(f"[ProjectData] fetch error: {message}")
            raise ProjectFetchError(message) from e2

    if not resp.ok:
        detail = (resp.text or "")[:300]
        if debug:
            print(f"[ProjectData] non-ok response: {resp.status_code}")
        raise ProjectFetchError(
            f"Failed to fetch project data: {resp.status_code} {resp.reason}"
            + (f" - {detail}" if detail else "")
        )

    try:
        payload = resp.json()
    except ValueError as e:
        raise ProjectFetchError("Failed to fetch project data: response is not JSON") from e

    return transform_project_docs(payload, headers_contain_session(request_headers))


async def fetch_portfolio_projects_async(
    request_headers: Optional[Mapping[str, str]] = None,
    disable_cache: bool = False,
) -> FetchProjectsResult:
    """Run the blocking fetch in a worker thread so the caller's event loop stays free."""
    return await asyncio.to_thread(fetch_portfolio_projects, request_headers, disable_cache)


# ---------------------------------------------------------
# Transform
# ---------------------------------------------------------
def _brand_info(rel: Any) -> Tuple[str, bool, Optional[str], Optional[str]]:
    """(brand key, brand is NDA, light logo url, dark logo url) from a brand relation."""
    if isinstance(rel, str):
        return rel, False, None, None
    if isinstance(rel, list):
        rel = rel[0] if rel else None
    if isinstance(rel, Mapping):
        return (
            str(rel.get("slug") or rel.get("id") or ""),
            bool(rel.get("nda")),
            _upload_url(rel.get("logoLight")),
            _upload_url(rel.get("logoDark")),
        )
    return "", False, None, None


def _upload_doc(value: Any) -> Optional[Mapping[str, Any]]:
    if isinstance(value, list):
        value = next((v for v in value if isinstance(v, Mapping)), None)
    return value if isinstance(value, Mapping) else None


def _upload_url(value: Any) -> Optional[str]:
    """Upload URL, falling back to the thumbnail then the mobile rendition."""
    doc = _upload_doc(value)
    if not doc:
        return None
    if doc.get("url"):
        return doc["url"]
    sizes = doc.get("sizes") if isinstance(doc.get("sizes"), Mapping) else {}
    for size in ("thumbnail", "mobile"):
        rendition = sizes.get(size)
        if isinstance(rendition, Mapping) and rendition.get("url"):
            return rendition["url"]
    return None


def _is_rich_nda_doc(doc: Mapping[str, Any]) -> bool:
    title = (doc.get("title") or "").strip().lower()
    sanitized_title = not title or title == PLACEHOLDER_TITLE.lower()
    has_rich_fields = bool(doc.get("desc") or doc.get("urls") or doc.get("thumbnail") or doc.get("screenshots"))
    return not sanitized_title or has_rich_fields


def _clean_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _joined(items: Any, key: str) -> str:
    if isinstance(items, str):
        return items
    if isinstance(items, list):
        return ", ".join(str(i[key]) for i in items if isinstance(i, Mapping) and i.get(key))
    return ""


def _screenshots(value: Any) -> Tuple[ScreenshotUrls, MobileOrientation]:
    laptop = phone = None
    orientation = MobileOrientation.none
    for entry in value if isinstance(value, list) else []:
        if not isinstance(entry, Mapping) or not entry.get("url"):
            continue
        if entry.get("screenType") == "laptop" and not laptop:
            laptop = entry["url"]
        elif entry.get("screenType") == "phone" and not phone:
            phone = entry["url"]
            if entry.get("orientation") == "portrait":
                orientation = MobileOrientation.portrait
            elif entry.get("orientation") == "landscape":
                orientation = MobileOrientation.landscape
        if laptop and phone:
            break
    return ScreenshotUrls(laptop=laptop, phone=phone), orientation


def _doc_to_record(
    doc: Mapping[str, Any],
    index: int,
    has_nda_access: bool,
) -> Optional[ProjectRecordType]:
    slug = _clean_str(doc.get("slug"))
    uuid = _clean_str(doc.get("uuid"))
    brand_key, brand_is_nda, logo_light, logo_dark = _brand_info(doc.get("brandId"))
    project_is_nda = bool(doc.get("nda") or brand_is_nda)

    # Public projects route by slug; NDA projects by slug only with access, otherwise by uuid
    if project_is_nda:
        route_key = (slug or uuid) if has_nda_access else uuid
    else:
        route_key = slug
    if not route_key:
        return None

    locked = _upload_doc(doc.get("lockedThumbnail"))
    common = {
        "id": route_key,
        "uuid": uuid,
        "index": index,
        "active": bool(doc.get("active")),
        "omit_from_list": bool(doc.get("omitFromList")),
        "sort_index": doc.get("sortIndex") if isinstance(doc.get("sortIndex"), int) else None,
        "locked_thumb_url": _upload_url(locked),
        "locked_thumb_alt": locked.get("alt") if locked else None,
    }

    if project_is_nda and not has_nda_access:
        return NdaSanitizedProject(brand_is_nda=True, **common)

    thumb = _upload_doc(doc.get("thumbnail"))
    screenshot_urls, orientation = _screenshots(doc.get("screenshots"))
    urls = {
        u["label"]: u["url"]
        for u in doc.get("urls") or []
        if isinstance(u, Mapping) and u.get("label") and u.get("url")
    }
    detail = {
        "title": doc.get("title") or "Untitled",
        "brand_id": brand_key,
        "brand_is_nda": brand_is_nda,
        "tags": [t["tag"] for t in doc.get("tags") or [] if isinstance(t, Mapping) and t.get("tag")],
        "role": _joined(doc.get("role"), "value"),
        "year": doc.get("year"),
        "awards": _joined(doc.get("awards"), "award") or None,
        "type": doc.get("type"),
        "desc": [d["block"] for d in doc.get("desc") or [] if isinstance(d, Mapping) and d.get("block")],
        "date": doc.get("date") or "",
        "urls": urls,
        "thumb_url": _upload_url(thumb),
        "thumb_alt": thumb.get("alt") if thumb else None,
        "brand_logo_light_url": logo_light,
        "brand_logo_dark_url": logo_dark,
        "screenshot_urls": screenshot_urls,
        "mobile_orientation": orientation,
    }
    if project_is_nda:
        return NdaFullProject(**common, **detail)
    return PublicProject(**common, **detail)


def transform_project_docs(payload: Any, session_cookie_present: bool) -> FetchProjectsResult:
    """
    Turn a Payload REST listing into ordered records plus access metadata.

    Access is inferred from the body: any NDA document carrying real detail
    means the backend granted access; with no NDA documents at all, a session
    cookie counts as access. Malformed individual docs are skipped.

    Raises:
        ProjectFetchError: If the body has no `docs` list
    """
    if not isinstance(payload, Mapping) or not isinstance(payload.get("docs"), list):
        raise ProjectFetchError("Malformed project listing: expected an object with a 'docs' list")

    docs = [d for d in payload["docs"] if isinstance(d, Mapping)]
    nda_docs = [d for d in docs if d.get("nda") or _brand_info(d.get("brandId"))[1]]
    backend_provided_details = any(_is_rich_nda_doc(d) for d in nda_docs)
    has_nda_access = backend_provided_details or (not nda_docs and session_cookie_present)

    records: List[ProjectRecordType] = []
    seen = set()
    skipped = 0
    for doc in docs:
        try:
            record = _doc_to_record(doc, len(records), has_nda_access)
        except (ValidationError, TypeError, KeyError):
            record = None
        if record is None or record.id in seen:
            skipped += 1
            continue
        seen.add(record.id)
        records.append(record)

    placeholders = sum(1 for r in records if r.is_sanitized)
    if is_debug_project_data():
        print(f"[ProjectData] summary: docs={len(payload['docs'])} nda={len(nda_docs)} "
              f"placeholders={placeholders} skipped={skipped} records={len(records)} "
              f"has_nda_access={has_nda_access}")

    return FetchProjectsResult(
        records=records,
        contains_sanitized_placeholders=placeholders > 0,
        has_nda_access=has_nda_access,
    )
