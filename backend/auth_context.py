"""
backend/auth_context.py

Shared authentication primitives for FastAPI dependency injection.

Contains:
- RequestUser: Immutable identity of the caller, derived from the session token
- get_optional_user: Dependency resolving the caller or None (anonymous)
- require_user: Dependency enforcing an authenticated caller
- create_access_token / verify_token: JWT helpers
- hash_password / verify_password: Credential helpers

A request is authenticated when it carries a valid session token either as the
`payload-token` cookie or as an `Authorization: JWT <token>` / `Bearer <token>`
header. Anything else (missing, malformed, expired, unknown user) is anonymous.

This module MUST NOT import backend.main to avoid circular dependencies.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict

from backend.config import (
    SECRET_KEY,
    ALGORITHM,
    AUTH_COOKIE_NAME,
    TOKEN_EXPIRATION_SECONDS,
    IS_DEV,
)
from backend.db import get_db_connection

AUTH_SCHEMES = ("jwt", "bearer")
PBKDF2_ITERATIONS = 200_000


# ---------------------------------------------------------
# Credentials
# ---------------------------------------------------------
def hash_password(password: str, salt: Optional[str] = None) -> str:
    """Hash a password as `salt$hexdigest` (PBKDF2-SHA256)."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return f"{salt}${digest.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    salt, _, expected = password_hash.partition("$")
    if not salt or not expected:
        return False
    candidate = hash_password(password, salt).partition("$")[2]
    return hmac.compare_digest(candidate, expected)


# ---------------------------------------------------------
# JWT Tokens
# ---------------------------------------------------------
def create_access_token(data: dict, expires_in: int = TOKEN_EXPIRATION_SECONDS) -> str:
    payload = dict(data)
    payload["exp"] = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str) -> dict:
    """
    Verify JWT access token and return decoded payload.

    Raises:
        HTTPException(401): If token is expired or invalid
    """
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


def extract_token(request: Request) -> Optional[str]:
    """
    Pull the session token from the Authorization header or the session cookie.

    The header wins when both are present (the frontend forwards the cookie
    value as `Authorization: JWT <token>` for server-side fetches).
    """
    auth_header = request.headers.get("authorization", "")
    scheme, _, value = auth_header.partition(" ")
    if scheme.lower() in AUTH_SCHEMES and value.strip():
        return value.strip()
    cookie = request.cookies.get(AUTH_COOKIE_NAME)
    return cookie or None


# ---------------------------------------------------------
# RequestUser
# ---------------------------------------------------------
class RequestUser(BaseModel):
    """
    Identity of an authenticated caller.
    Backend is the source of truth: role and active flag come from the users table.
    """
    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def public_dict(self) -> dict:
        return {"id": self.id, "email": self.email, "role": self.role}


def load_user(user_id: int) -> Optional[RequestUser]:
    with get_db_connection() as conn:
        row = conn.execute(
            "SELECT id, email, role, is_active FROM users WHERE id = ?",
            (user_id,),
        ).fetchone()
    if not row or not row["is_active"]:
        return None
    return RequestUser(id=row["id"], email=row["email"], role=row["role"] or "user")


def get_optional_user(request: Request) -> Optional[RequestUser]:
    """
    Resolve the caller for read paths that serve both anonymous and signed-in visitors.

    Never raises: a bad token is treated exactly like no token, so NDA-gated
    reads fail closed to the anonymous view.
    """
    token = extract_token(request)
    if not token:
        return None
    try:
        payload = verify_token(token)
    except HTTPException as e:
        if IS_DEV:
            print(f"[AUTH] Ignoring session token: {e.detail}")
        return None
    try:
        user_id = int(payload.get("sub", ""))
    except (TypeError, ValueError):
        return None
    user = load_user(user_id)
    if user is None and IS_DEV:
        print(f"[AUTH] Token subject not found or inactive: user_id={user_id}")
    return user


def require_user(user: Optional[RequestUser] = Depends(get_optional_user)) -> RequestUser:
    """
    Dependency for endpoints that need an authenticated caller.

    Raises:
        HTTPException(401): If the request carries no valid session
    """
    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user
