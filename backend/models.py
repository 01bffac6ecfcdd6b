from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime, timezone
from enum import Enum

# Enums
class UserRole(str, Enum):
    admin = "admin"
    user = "user"

class ScreenType(str, Enum):
    laptop = "laptop"
    phone = "phone"

class Orientation(str, Enum):
    portrait = "portrait"
    landscape = "landscape"

# Models
class User(BaseModel):
    id: Optional[int] = None
    email: str
    password_hash: str
    role: UserRole = UserRole.user
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    is_active: bool = True

class Brand(BaseModel):
    id: str
    slug: str
    name: str
    nda: bool = False  # hides public logo exposure and makes its projects NDA-like
    logo_light_url: Optional[str] = None
    logo_dark_url: Optional[str] = None
    website: Optional[str] = None

class ProjectUrl(BaseModel):
    label: str
    url: str

class Project(BaseModel):
    id: str
    slug: str
    uuid: str
    short_code: Optional[str] = None
    title: str
    brand_id: Optional[str] = None
    nda: bool = False
    active: bool = True
    omit_from_list: bool = False  # hidden from the grid but reachable by direct link
    sort_index: Optional[int] = None
    tags: List[str] = Field(default_factory=list)
    role: List[str] = Field(default_factory=list)
    year: Optional[str] = None
    awards: List[str] = Field(default_factory=list)
    type: Optional[str] = None
    desc: List[str] = Field(default_factory=list)
    date: Optional[str] = None
    urls: List[ProjectUrl] = Field(default_factory=list)
    thumbnail_url: Optional[str] = None
    thumbnail_alt: Optional[str] = None
    locked_thumbnail_url: Optional[str] = None
    locked_thumbnail_alt: Optional[str] = None
    updated_at: Optional[str] = None

class ProjectScreenshot(BaseModel):
    id: Optional[int] = None
    project_id: str
    url: str
    screen_type: ScreenType
    orientation: Optional[Orientation] = None
    alt: Optional[str] = None

    def resolved_orientation(self) -> Orientation:
        """Phones default to portrait, laptops to landscape."""
        if self.orientation is not None:
            return self.orientation
        return Orientation.portrait if self.screen_type == ScreenType.phone else Orientation.landscape

class ContactInfo(BaseModel):
    contact_email: Optional[str] = None
    phone_e164: Optional[str] = None
    phone_display: Optional[str] = None
