"""
backend/authz.py

Role-based authorization for CMS write operations.

Single source of truth for which roles may manage content. Read access to
NDA content is a separate concern handled by backend/nda.py: any signed-in
user may read NDA projects, only admins may edit anything.

Roles: admin (full capabilities), user (read-only)
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Set


# ============================================================================
# Capability-Based Authorization
# ============================================================================

class Capability(str, Enum):
    """Available capabilities in the portfolio CMS."""

    # Read capabilities
    NDA_VIEW = "nda:view"
    CONTACT_VIEW = "contact:view"

    # Content management
    PROJECT_MANAGE = "project:manage"
    BRAND_MANAGE = "brand:manage"
    CONTACT_MANAGE = "contact:manage"


ROLE_CAPABILITIES: Dict[str, Set[str]] = {
    "admin": {
        Capability.NDA_VIEW,
        Capability.CONTACT_VIEW,
        Capability.PROJECT_MANAGE,
        Capability.BRAND_MANAGE,
        Capability.CONTACT_MANAGE,
    },
    "user": {
        Capability.NDA_VIEW,
        Capability.CONTACT_VIEW,
    },
}


def has_capability(role: str, capability: str) -> bool:
    """
    Check if a role has a specific capability.

    Pure Python logic - no FastAPI imports, no database access.

    Returns:
        True if the role has the capability, False otherwise.
        Returns False for unknown roles.
    """
    role_caps = ROLE_CAPABILITIES.get((role or "").lower(), set())
    return capability in role_caps

