"""
backend/schemas_projects.py

Pydantic request schemas for the CMS write endpoints (projects, brands,
screenshots, contact info) and the login form.

Responses on the read path are Payload-shaped dicts built in
routes_projects.serialize_project(), because their shape depends on the
caller (NDA fields are removed for anonymous requests).
"""

from __future__ import annotations

import re
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from backend.models import Orientation, ProjectUrl, ScreenType

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
E164_PATTERN = re.compile(r"^\+\d{7,15}$")


def _validate_slug(v: str) -> str:
    v = v.strip().lower()
    if not SLUG_PATTERN.match(v):
        raise ValueError("slug must be lowercase letters, digits and single hyphens")
    return v


# ========================================================================
# PROJECT SCHEMAS
# ========================================================================

class ProjectCreateRequest(BaseModel):
    """Request schema for creating a project (admin only)."""
    slug: str = Field(..., min_length=1, max_length=120, description="Human-readable route key")
    title: str = Field(..., min_length=1, max_length=200, description="Display title")
    brand_id: Optional[str] = Field(None, description="Brand id or slug")
    nda: bool = Field(False, description="Restrict details to signed-in visitors")
    active: bool = Field(True, description="Displayed at all")
    omit_from_list: bool = Field(False, description="Hidden from the grid but reachable by link")
    sort_index: Optional[int] = Field(None, description="Lower numbers first")
    tags: List[str] = Field(default_factory=list)
    role: List[str] = Field(default_factory=list)
    year: Optional[str] = Field(None, max_length=20)
    awards: List[str] = Field(default_factory=list)
    type: Optional[str] = Field(None, max_length=80)
    desc: List[str] = Field(default_factory=list, description="Description paragraphs")
    date: Optional[str] = Field(None, max_length=40)
    urls: List[ProjectUrl] = Field(default_factory=list)
    thumbnail_url: Optional[str] = None
    thumbnail_alt: Optional[str] = None
    locked_thumbnail_url: Optional[str] = None
    locked_thumbnail_alt: Optional[str] = None

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v):
        return _validate_slug(v)

    @field_validator("title", mode="before")
    @classmethod
    def trim_title(cls, v):
        """Trim whitespace from title."""
        if isinstance(v, str):
            return v.strip()
        return v


class ProjectUpdateRequest(BaseModel):
    """Partial update; only fields present in the body are written."""
    slug: Optional[str] = Field(None, min_length=1, max_length=120)
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    brand_id: Optional[str] = None
    nda: Optional[bool] = None
    active: Optional[bool] = None
    omit_from_list: Optional[bool] = None
    sort_index: Optional[int] = None
    tags: Optional[List[str]] = None
    role: Optional[List[str]] = None
    year: Optional[str] = Field(None, max_length=20)
    awards: Optional[List[str]] = None
    type: Optional[str] = Field(None, max_length=80)
    desc: Optional[List[str]] = None
    date: Optional[str] = Field(None, max_length=40)
    urls: Optional[List[ProjectUrl]] = None
    thumbnail_url: Optional[str] = None
    thumbnail_alt: Optional[str] = None
    locked_thumbnail_url: Optional[str] = None
    locked_thumbnail_alt: Optional[str] = None

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v):
        return _validate_slug(v) if v is not None else v


class ScreenshotCreateRequest(BaseModel):
    url: str = Field(..., min_length=1)
    screen_type: ScreenType
    orientation: Optional[Orientation] = None
    alt: Optional[str] = Field(None, max_length=200)


# ========================================================================
# BRAND SCHEMAS
# ========================================================================

class BrandCreateRequest(BaseModel):
    slug: str = Field(..., min_length=1, max_length=120)
    name: str = Field(..., min_length=1, max_length=200)
    nda: bool = Field(False, description="Hide public logo exposure")
    logo_light_url: Optional[str] = None
    logo_dark_url: Optional[str] = None
    website: Optional[str] = None

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v):
        return _validate_slug(v)


class BrandUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    nda: Optional[bool] = None
    logo_light_url: Optional[str] = None
    logo_dark_url: Optional[str] = None
    website: Optional[str] = None


# ========================================================================
# CONTACT / AUTH SCHEMAS
# ========================================================================

class ContactInfoUpdateRequest(BaseModel):
    contact_email: Optional[str] = Field(None, max_length=254)
    phone_e164: Optional[str] = Field(None, description="E.164, e.g. +12065551234")
    phone_display: Optional[str] = Field(None, max_length=40)

    @field_validator("phone_e164")
    @classmethod
    def validate_phone(cls, v):
        if v and not E164_PATTERN.match(v):
            raise ValueError("Must be in E.164 format (e.g., +12065551234)")
        return v


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=1)
