# ---------------------------------------------------------
# backend/main.py
# Portfolio CMS Backend
#
# Run: uvicorn backend.main:app --reload (from repo root)
#
# - FastAPI + SQLite
# - /api/users/login|logout|me : session cookie (payload-token) auth
# - /api/projects              : NDA-aware project listing and detail (routes_projects.py)
# - /api/brands                : client brands, NDA logos gated (routes_brands.py)
# - /api/contact-info          : obfuscated contact email / phone
# ---------------------------------------------------------

from __future__ import annotations

import base64
import os
import sqlite3
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from backend.auth_context import (
    RequestUser,
    create_access_token,
    get_optional_user,
    verify_password,
)
from backend.authz import Capability
from backend.config import (
    AUTH_COOKIE_NAME,
    CORS_ORIGINS,
    IS_DEV,
    IS_PROD,
    TOKEN_EXPIRATION_SECONDS,
    get_contact_env_keys,
)
from backend.db import get_db_connection, init_db, row_to_dict
from backend.dependencies import require_capability
from backend.models import ContactInfo, User
from backend.routes_brands import router as brands_router
from backend.routes_projects import router as projects_router
from backend.schemas_projects import ContactInfoUpdateRequest, LoginRequest


# ---------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------
app = FastAPI(title="Portfolio CMS Backend", version="0.1")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS if IS_PROD else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

init_db()

app.include_router(projects_router)
app.include_router(brands_router)


# ---------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------
def _b64(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def _checksum(*encoded: str) -> str:
    return format(sum(len(e) for e in encoded), "x")


def obfuscate_email(email: str) -> Dict[str, Any]:
    """
    Split an email into base64 local/domain parts so it never appears verbatim in a response.

    Raises:
        ValueError: If the address has no single '@' separator
    """
    local, sep, domain = email.strip().rpartition("@")
    if not sep or not local or not domain:
        raise ValueError("Contact email is malformed")
    l, d = _b64(local), _b64(domain)
    return {"l": l, "d": d, "timestamp": int(time.time() * 1000), "checksum": _checksum(l, d)}


def obfuscate_phone(phone_e164: str, phone_display: Optional[str]) -> Dict[str, str]:
    e = _b64(phone_e164)
    d = _b64(phone_display) if phone_display else ""
    return {"e": e, "d": d, "checksum": _checksum(e, d)}


def resolve_contact_info() -> ContactInfo:
    """
    Contact details from the stored global, falling back to the environment.

    Environment keys are checked in get_contact_env_keys() order.
    """
    with get_db_connection() as conn:
        stored = row_to_dict(conn.execute("SELECT * FROM contact_info WHERE id = 1").fetchone())

    email = stored.get("contact_email")
    if not email:
        email = next((os.environ[k] for k in get_contact_env_keys() if os.environ.get(k)), None)

    return ContactInfo(
        contact_email=email,
        phone_e164=stored.get("phone_e164") or os.environ.get("CONTACT_PHONE_E164"),
        phone_display=stored.get("phone_display") or os.environ.get("CONTACT_PHONE_DISPLAY"),
    )


# ---------------------------------------------------------
# Routes
# ---------------------------------------------------------
@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


# Auth endpoints
async def _read_login_body(request: Request) -> Dict[str, Any]:
    content_type = request.headers.get("content-type", "")
    try:
        if content_type.startswith("application/json"):
            body = await request.json()
        else:
            body = dict(await request.form())
    except ValueError:
        raise HTTPException(status_code=400, detail="Malformed request body")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Malformed request body")
    return body


@app.post("/api/users/login")
async def login(request: Request, response: Response):
    """
    Exchange email/password for a session.

    Accepts JSON or form bodies. Sets the payload-token cookie and also returns
    the token so server-side callers can forward it.

    Raises:
        HTTPException(400): Missing email or password
        HTTPException(401): Unknown user, inactive user or wrong password
    """
    body = await _read_login_body(request)
    try:
        req = LoginRequest(**body)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Email and password are required")

    email_norm = req.email.strip().lower()
    with get_db_connection() as conn:
        row = conn.execute("SELECT * FROM users WHERE email = ?", (email_norm,)).fetchone()

    if not row or not row["is_active"]:
        if IS_DEV:
            print("[LOGIN] User not found or inactive")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    account = User(**dict(row))
    if not verify_password(req.password, account.password_hash):
        if IS_DEV:
            print(f"[LOGIN] Password verification failed: user_id={account.id}")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    user = RequestUser(id=account.id, email=account.email, role=account.role.value)
    token = create_access_token({"sub": str(user.id), "email": user.email})
    exp = int(datetime.now(timezone.utc).timestamp()) + TOKEN_EXPIRATION_SECONDS

    response.set_cookie(
        AUTH_COOKIE_NAME,
        token,
        max_age=TOKEN_EXPIRATION_SECONDS,
        httponly=True,
        secure=IS_PROD,
        samesite="lax",
        path="/",
    )
    if IS_DEV:
        print(f"[LOGIN] Session created: user_id={user.id}, role={user.role}")
    return {"user": user.public_dict(), "token": token, "exp": exp}


@app.post("/api/users/logout")
def logout(response: Response):
    response.delete_cookie(AUTH_COOKIE_NAME, path="/")
    return {"message": "Logged out"}


@app.get("/api/users/me")
def me(response: Response, user: Optional[RequestUser] = Depends(get_optional_user)):
    response.headers["Cache-Control"] = "private, no-store"
    return {"user": user.public_dict() if user else None}


# Contact info
@app.get("/api/contact-info")
@app.get("/api/contact-info/", include_in_schema=False)
def get_contact_info():
    """
    Obfuscated contact details for the public site.

    Raises:
        HTTPException(500): No contact email is configured anywhere
    """
    info = resolve_contact_info()
    if not info.contact_email:
        print("[CONTACT] No contact email configured (checked stored global and "
              f"{', '.join(get_contact_env_keys())})")
        raise HTTPException(status_code=500, detail="Contact information not configured")

    try:
        data = obfuscate_email(info.contact_email)
    except ValueError as e:
        print(f"[CONTACT] {e}")
        raise HTTPException(status_code=500, detail="Contact information not configured")

    if info.phone_e164:
        data["phone"] = obfuscate_phone(info.phone_e164, info.phone_display)
    return {"success": True, "data": data}


@app.patch("/api/contact-info")
def update_contact_info(
    req: ContactInfoUpdateRequest,
    user: RequestUser = Depends(require_capability(Capability.CONTACT_MANAGE)),
):
    changes = req.model_dump(exclude_unset=True)
    with get_db_connection() as conn:
        try:
            conn.execute("INSERT OR IGNORE INTO contact_info (id) VALUES (1)")
            if changes:
                assignments = ", ".join(f"{c} = ?" for c in changes)
                conn.execute(
                    f"UPDATE contact_info SET {assignments} WHERE id = 1",
                    tuple(changes.values()),
                )
            conn.commit()
        except sqlite3.Error as e:
            print(f"[CONTACT] Update failed: {type(e).__name__}")
            raise HTTPException(status_code=500, detail="Failed to update contact information")
        stored = row_to_dict(conn.execute("SELECT * FROM contact_info WHERE id = 1").fetchone())

    if IS_DEV:
        print(f"[CONTACT] Contact info updated by user_id={user.id}: fields={sorted(changes)}")
    stored.pop("id", None)
    return stored
