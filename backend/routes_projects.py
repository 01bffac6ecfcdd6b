"""
backend/routes_projects.py

Project endpoints for the portfolio CMS.

Read path (public):
- GET /api/projects           Payload-style listing: {docs, totalDocs, limit}
- GET /api/projects/{key}     One project by id, uuid, slug or short code

Every outgoing document goes through backend/nda.py: brand-inherited NDA
normalization for anonymous callers, then per-field gating. Responses are
marked private/no-store and vary on the session, because the same URL yields
different bodies for signed-in and anonymous visitors.

Write path (admin only):
- POST   /api/projects
- PATCH  /api/projects/{project_id}
- DELETE /api/projects/{project_id}
- POST   /api/projects/{project_id}/screenshots
"""

from __future__ import annotations

import json
import secrets
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response

from backend.auth_context import RequestUser, get_optional_user
from backend.authz import Capability
from backend.config import DEFAULT_PROJECT_LIMIT, IS_DEV, MAX_PROJECT_LIMIT
from backend.db import (
    PROJECT_ORDERINGS,
    fetch_brand,
    fetch_project,
    fetch_projects,
    fetch_screenshots,
    get_db_connection,
)
from backend.dependencies import require_capability
from backend.models import ProjectScreenshot
from backend.nda import (
    BrandLookup,
    apply_field_access,
    can_read_brand_asset,
    can_read_nda_field,
    document_requires_nda,
    normalize_nda_after_read,
    sanitize_project_doc,
)
from backend.schemas_projects import (
    ProjectCreateRequest,
    ProjectUpdateRequest,
    ScreenshotCreateRequest,
)
from backend.short_code import generate_short_code


router = APIRouter(
    prefix="/api/projects",
    tags=["projects"],
)

NO_STORE_HEADERS = {
    "Cache-Control": "private, no-store",
    "Vary": "Cookie, Authorization",
}


def _mark_uncacheable(response: Response) -> None:
    for name, value in NO_STORE_HEADERS.items():
        response.headers[name] = value


# ---------------------------------------------------------
# Serialization
# ---------------------------------------------------------
def make_brand_lookup(conn: sqlite3.Connection) -> BrandLookup:
    """
    Brand lookup for one request, memoized so repeated brands cost one query.
    Reads bypass access rules: the NDA flag itself is never secret to the gate.
    """
    cache: Dict[str, Optional[Dict[str, Any]]] = {}

    def lookup(brand_id: str) -> Optional[Dict[str, Any]]:
        if brand_id not in cache:
            cache[brand_id] = fetch_brand(conn, brand_id)
        return cache[brand_id]

    return lookup


def serialize_brand(brand: Dict[str, Any], authenticated: bool) -> Dict[str, Any]:
    """Populated brand relation; logos only when can_read_brand_asset allows."""
    out: Dict[str, Any] = {
        "id": brand["id"],
        "slug": brand["slug"],
        "name": brand["name"],
        "nda": bool(brand.get("nda")),
        "website": brand.get("website"),
    }
    if can_read_brand_asset(authenticated, brand):
        out["logoLight"] = {"url": brand["logo_light_url"]} if brand.get("logo_light_url") else None
        out["logoDark"] = {"url": brand["logo_dark_url"]} if brand.get("logo_dark_url") else None
    return out


def serialize_project(
    conn: sqlite3.Connection,
    row: Dict[str, Any],
    depth: int,
    authenticated: bool,
) -> Dict[str, Any]:
    """
    Convert a stored project row to the Payload REST document shape.

    depth 0 leaves brandId as an id string; depth >= 1 populates the brand.
    """
    brand_ref: Any = row.get("brand_id")
    if brand_ref and depth >= 1:
        brand = fetch_brand(conn, brand_ref)
        brand_ref = serialize_brand(brand, authenticated) if brand else brand_ref

    screenshots = [
        {
            "url": s["url"],
            "screenType": s["screen_type"],
            "orientation": s["orientation"],
            "alt": s.get("alt"),
        }
        for s in fetch_screenshots(conn, row["id"])
    ]

    return {
        "id": row["id"],
        "slug": row["slug"],
        "uuid": row["uuid"],
        "shortCode": row.get("short_code"),
        "title": row["title"],
        "brandId": brand_ref,
        "nda": bool(row.get("nda")),
        "active": bool(row.get("active")),
        "omitFromList": bool(row.get("omit_from_list")),
        "sortIndex": row.get("sort_index"),
        "tags": [{"tag": t} for t in row.get("tags") or []],
        "role": [{"value": r} for r in row.get("role") or []],
        "year": row.get("year"),
        "awards": [{"award": a} for a in row.get("awards") or []],
        "type": row.get("type"),
        "desc": [{"block": d} for d in row.get("desc") or []],
        "date": row.get("date"),
        "urls": row.get("urls") or [],
        "thumbnail": (
            {"url": row["thumbnail_url"], "alt": row.get("thumbnail_alt")}
            if row.get("thumbnail_url") else None
        ),
        "lockedThumbnail": (
            {"url": row["locked_thumbnail_url"], "alt": row.get("locked_thumbnail_alt")}
            if row.get("locked_thumbnail_url") else None
        ),
        "screenshots": screenshots,
        "updatedAt": row.get("updated_at"),
    }


def present_project(
    conn: sqlite3.Connection,
    row: Dict[str, Any],
    depth: int,
    user: Optional[RequestUser],
    brand_lookup: BrandLookup,
) -> Dict[str, Any]:
    """Serialize, normalize and gate one project for the current caller."""
    authenticated = user is not None
    doc = serialize_project(conn, row, depth, authenticated)
    doc = normalize_nda_after_read(doc, authenticated, brand_lookup)
    gated = apply_field_access(doc, authenticated)
    if not can_read_nda_field(authenticated, gated.get("nda")):
        return sanitize_project_doc(gated)
    return gated


# ---------------------------------------------------------
# Read path
# ---------------------------------------------------------
@router.get("")
@router.get("/", include_in_schema=False)
def list_projects(
    response: Response,
    depth: int = Query(1, ge=0, le=2, description="Relation population depth"),
    limit: int = Query(DEFAULT_PROJECT_LIMIT, ge=1, le=MAX_PROJECT_LIMIT),
    sort: str = Query("sortIndex", description="sortIndex, -sortIndex or title"),
    user: Optional[RequestUser] = Depends(get_optional_user),
) -> Dict[str, Any]:
    """
    List projects in canonical order, shaped for the caller.

    Anonymous callers receive NDA projects as placeholders (title replaced,
    slug and details removed, uuid kept for direct links).
    """
    if sort not in PROJECT_ORDERINGS:
        raise HTTPException(status_code=400, detail=f"Unsupported sort: {sort}")

    _mark_uncacheable(response)
    with get_db_connection() as conn:
        brand_lookup = make_brand_lookup(conn)
        rows = fetch_projects(conn, limit, sort)
        docs = [present_project(conn, row, depth, user, brand_lookup) for row in rows]

    if IS_DEV:
        redacted = sum(1 for d in docs if "slug" not in d)
        print(f"[PROJECTS] Listed {len(docs)} projects (redacted={redacted}, "
              f"authenticated={user is not None})")

    return {"docs": docs, "totalDocs": len(docs), "limit": limit}


@router.get("/{key}")
def get_project(
    response: Response,
    key: str = Path(..., min_length=1, max_length=200),
    depth: int = Query(1, ge=0, le=2),
    user: Optional[RequestUser] = Depends(get_optional_user),
) -> Dict[str, Any]:
    """
    Fetch one project by id, uuid, slug or short code.

    An anonymous caller asking for an NDA project by slug or short code gets the
    same 404 as a missing project, so probing slugs confirms nothing. The opaque
    id/uuid still resolves to the placeholder document.
    """
    _mark_uncacheable(response)
    with get_db_connection() as conn:
        row = fetch_project(conn, key)
        if row is None:
            raise HTTPException(status_code=404, detail="Not found")

        brand_lookup = make_brand_lookup(conn)
        if user is None and key not in (row["id"], row["uuid"]):
            if document_requires_nda({"nda": row["nda"], "brandId": row.get("brand_id")}, brand_lookup):
                raise HTTPException(status_code=404, detail="Not found")

        return present_project(conn, row, depth, user, brand_lookup)


# ---------------------------------------------------------
# Write path (admin)
# ---------------------------------------------------------
JSON_FIELDS = {"tags", "role", "awards", "desc"}


def _now_iso() -> str:
    """UTC timestamp in the Payload style, e.g. 2024-05-01T12:00:00.000000Z."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _column_value(field: str, value: Any) -> Any:
    if field in JSON_FIELDS:
        return json.dumps(value or [])
    if field == "urls":
        return json.dumps([u if isinstance(u, dict) else u.model_dump() for u in value or []])
    if isinstance(value, bool):
        return int(value)
    return value


def _assert_brand_exists(conn: sqlite3.Connection, brand_id: Optional[str]) -> Optional[str]:
    if not brand_id:
        return None
    brand = fetch_brand(conn, brand_id)
    if brand is None:
        raise HTTPException(status_code=400, detail=f"Unknown brand: {brand_id}")
    return brand["id"]


@router.post("", status_code=201)
def create_project(
    request: ProjectCreateRequest,
    user: RequestUser = Depends(require_capability(Capability.PROJECT_MANAGE)),
) -> Dict[str, Any]:
    """
    Create a project. The server assigns id, uuid and short code.

    Raises:
        HTTPException(400): Unknown brand or duplicate slug
        HTTPException(403): Caller is not an admin
    """
    fields = request.model_dump()
    now = _now_iso()

    with get_db_connection() as conn:
        fields["brand_id"] = _assert_brand_exists(conn, fields.get("brand_id"))
        record = {
            "id": secrets.token_hex(12),
            "uuid": str(uuid.uuid4()),
            "short_code": generate_short_code(),
            "updated_at": now,
            **{k: _column_value(k, v) for k, v in fields.items()},
        }
        columns = ", ".join(f'"{c}"' for c in record)
        placeholders = ", ".join("?" for _ in record)
        try:
            conn.execute(
                f"INSERT INTO projects ({columns}) VALUES ({placeholders})",
                tuple(record.values()),
            )
            conn.commit()
        except sqlite3.IntegrityError:
            raise HTTPException(status_code=400, detail="Project slug already exists")

        if IS_DEV:
            print(f"[PROJECTS] Created project id={record['id']} by user_id={user.id}")

        row = fetch_project(conn, record["id"])
        return present_project(conn, row, 1, user, make_brand_lookup(conn))


@router.patch("/{project_id}")
def update_project(
    request: ProjectUpdateRequest,
    project_id: str = Path(..., min_length=1),
    user: RequestUser = Depends(require_capability(Capability.PROJECT_MANAGE)),
) -> Dict[str, Any]:
    """Update only the fields present in the request body."""
    changes = request.model_dump(exclude_unset=True)

    with get_db_connection() as conn:
        row = fetch_project(conn, project_id)
        if row is None:
            raise HTTPException(status_code=404, detail="Not found")
        if "brand_id" in changes:
            changes["brand_id"] = _assert_brand_exists(conn, changes["brand_id"])

        if changes:
            values = {k: _column_value(k, v) for k, v in changes.items()}
            values["updated_at"] = _now_iso()
            assignments = ", ".join(f'"{c}" = ?' for c in values)
            try:
                conn.execute(
                    f"UPDATE projects SET {assignments} WHERE id = ?",
                    (*values.values(), row["id"]),
                )
                conn.commit()
            except sqlite3.IntegrityError:
                raise HTTPException(status_code=400, detail="Project slug already exists")

        row = fetch_project(conn, row["id"])
        return present_project(conn, row, 1, user, make_brand_lookup(conn))


@router.delete("/{project_id}")
def delete_project(
    project_id: str = Path(..., min_length=1),
    user: RequestUser = Depends(require_capability(Capability.PROJECT_MANAGE)),
) -> Dict[str, Any]:
    with get_db_connection() as conn:
        row = fetch_project(conn, project_id)
        if row is None:
            raise HTTPException(status_code=404, detail="Not found")
        conn.execute("DELETE FROM project_screenshots WHERE project_id = ?", (row["id"],))
        conn.execute("DELETE FROM projects WHERE id = ?", (row["id"],))
        conn.commit()

    if IS_DEV:
        print(f"[PROJECTS] Deleted project id={row['id']} by user_id={user.id}")
    return {"id": row["id"], "deleted": True}


@router.post("/{project_id}/screenshots", status_code=201)
def add_screenshot(
    request: ScreenshotCreateRequest,
    project_id: str = Path(..., min_length=1),
    user: RequestUser = Depends(require_capability(Capability.PROJECT_MANAGE)),
) -> Dict[str, Any]:
    """Attach a laptop/phone screenshot; orientation defaults from the screen type."""
    with get_db_connection() as conn:
        row = fetch_project(conn, project_id)
        if row is None:
            raise HTTPException(status_code=404, detail="Not found")

        shot = ProjectScreenshot(project_id=row["id"], **request.model_dump())
        orientation = shot.resolved_orientation()
        cur = conn.execute(
            "INSERT INTO project_screenshots (project_id, url, screen_type, orientation, alt) "
            "VALUES (?, ?, ?, ?, ?)",
            (shot.project_id, shot.url, shot.screen_type.value, orientation.value, shot.alt),
        )
        conn.commit()

    return {
        "id": cur.lastrowid,
        "url": shot.url,
        "screenType": shot.screen_type.value,
        "orientation": orientation.value,
        "alt": shot.alt,
    }
