"""
backend/dependencies.py

Reusable FastAPI dependencies for capability enforcement.
"""

from __future__ import annotations

from typing import Callable

from fastapi import Depends, HTTPException

from backend.auth_context import RequestUser, require_user
from backend.authz import has_capability
from backend.config import IS_DEV


def require_capability(capability: str) -> Callable:
    """
    FastAPI dependency factory for role-based capability authorization.

    Usage in routes:
        @router.post("", dependencies=[Depends(require_capability(Capability.PROJECT_MANAGE))])
        def create_project(...):
            ...

    Raises:
        HTTPException(401): If the request is anonymous (via require_user)
        HTTPException(403): If the user's role lacks the capability
    """
    def _check_capability(user: RequestUser = Depends(require_user)) -> RequestUser:
        if not has_capability(user.role, capability):
            if IS_DEV:
                print(f"[AUTHZ] Capability denied: capability={capability}, role={user.role}")
            raise HTTPException(
                status_code=403,
                detail="Insufficient permissions",
            )
        return user

    return _check_capability
