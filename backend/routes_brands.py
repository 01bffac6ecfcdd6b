"""
backend/routes_brands.py

Brand (client logo) endpoints.

- GET   /api/brands              Public listing; logos of NDA brands only for signed-in callers
- GET   /api/brands/{key}        One brand by id or slug
- POST  /api/brands              Admin only
- PATCH /api/brands/{brand_id}   Admin only
"""

from __future__ import annotations

import secrets
import sqlite3
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Response

from backend.auth_context import RequestUser, get_optional_user
from backend.authz import Capability
from backend.config import IS_DEV
from backend.db import fetch_brand, get_db_connection, row_to_dict
from backend.dependencies import require_capability
from backend.models import Brand
from backend.routes_projects import NO_STORE_HEADERS, serialize_brand
from backend.schemas_projects import BrandCreateRequest, BrandUpdateRequest


router = APIRouter(
    prefix="/api/brands",
    tags=["brands"],
)


@router.get("")
@router.get("/", include_in_schema=False)
def list_brands(
    response: Response,
    user: Optional[RequestUser] = Depends(get_optional_user),
) -> Dict[str, Any]:
    response.headers.update(NO_STORE_HEADERS)
    with get_db_connection() as conn:
        rows = conn.execute("SELECT * FROM brands ORDER BY name").fetchall()
    docs = []
    for row in rows:
        brand = Brand(**row_to_dict(row)).model_dump()
        docs.append(serialize_brand(brand, user is not None))
    return {"docs": docs, "totalDocs": len(docs), "limit": len(docs)}


@router.get("/{key}")
def get_brand(
    response: Response,
    key: str = Path(..., min_length=1, max_length=200),
    user: Optional[RequestUser] = Depends(get_optional_user),
) -> Dict[str, Any]:
    response.headers.update(NO_STORE_HEADERS)
    with get_db_connection() as conn:
        brand = fetch_brand(conn, key)
    if brand is None:
        raise HTTPException(status_code=404, detail="Not found")
    return serialize_brand(brand, user is not None)


@router.post("", status_code=201)
def create_brand(
    request: BrandCreateRequest,
    user: RequestUser = Depends(require_capability(Capability.BRAND_MANAGE)),
) -> Dict[str, Any]:
    """
    Create a brand. The server assigns the id.

    Raises:
        HTTPException(400): Duplicate slug
        HTTPException(403): Caller is not an admin
    """
    brand_id = secrets.token_hex(12)
    with get_db_connection() as conn:
        try:
            conn.execute(
                "INSERT INTO brands (id, slug, name, nda, logo_light_url, logo_dark_url, website) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    brand_id,
                    request.slug,
                    request.name,
                    int(request.nda),
                    request.logo_light_url,
                    request.logo_dark_url,
                    request.website,
                ),
            )
            conn.commit()
        except sqlite3.IntegrityError:
            raise HTTPException(status_code=400, detail="Brand slug already exists")
        brand = fetch_brand(conn, brand_id)

    if IS_DEV:
        print(f"[BRANDS] Created brand id={brand_id} nda={request.nda} by user_id={user.id}")
    return serialize_brand(brand, True)


@router.patch("/{brand_id}")
def update_brand(
    request: BrandUpdateRequest,
    brand_id: str = Path(..., min_length=1),
    user: RequestUser = Depends(require_capability(Capability.BRAND_MANAGE)),
) -> Dict[str, Any]:
    changes = request.model_dump(exclude_unset=True)
    with get_db_connection() as conn:
        brand = fetch_brand(conn, brand_id)
        if brand is None:
            raise HTTPException(status_code=404, detail="Not found")
        if changes:
            values = {k: int(v) if isinstance(v, bool) else v for k, v in changes.items()}
            assignments = ", ".join(f"{c} = ?" for c in values)
            conn.execute(
                f"UPDATE brands SET {assignments} WHERE id = ?",
                (*values.values(), brand["id"]),
            )
            conn.commit()
        brand = fetch_brand(conn, brand["id"])
    return serialize_brand(brand, True)
