"""
frontend/project_records.py

Client-safe project records held by the project data store.

A record is one of three variants, discriminated by `kind`:

- PublicProject        "public"         not NDA, full detail
- NdaFullProject       "nda_full"       NDA, caller has access, full detail
- NdaSanitizedProject  "nda_sanitized"  NDA, caller has no access, no detail

A sanitized record has no detail fields at all, so no code path can read a
confidential value out of it. Records are frozen.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

PLACEHOLDER_TITLE = "Confidential Project"


class MobileOrientation(str, Enum):
    portrait = "Portrait"
    landscape = "Landscape"
    none = "none"


class ScreenshotUrls(BaseModel):
    model_config = ConfigDict(frozen=True)

    laptop: Optional[str] = None
    phone: Optional[str] = None


class _RecordBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Route key: human slug or UUID")
    uuid: Optional[str] = None
    index: int = 0
    title: str
    brand_id: str = ""
    brand_is_nda: bool = False
    active: bool = False
    omit_from_list: bool = False
    sort_index: Optional[int] = None
    locked_thumb_url: Optional[str] = None
    locked_thumb_alt: Optional[str] = None


class _DetailFields(BaseModel):
    tags: List[str] = Field(default_factory=list)
    role: str = ""
    year: Optional[str] = None
    awards: Optional[str] = None
    type: Optional[str] = None
    desc: List[str] = Field(default_factory=list)
    date: str = ""
    urls: Dict[str, str] = Field(default_factory=dict)
    thumb_url: Optional[str] = None
    thumb_alt: Optional[str] = None
    brand_logo_light_url: Optional[str] = None
    brand_logo_dark_url: Optional[str] = None
    screenshot_urls: ScreenshotUrls = Field(default_factory=ScreenshotUrls)
    mobile_orientation: MobileOrientation = MobileOrientation.none


class PublicProject(_RecordBase, _DetailFields):
    kind: Literal["public"] = "public"
    nda: Literal[False] = False
    is_sanitized: Literal[False] = False


class NdaFullProject(_RecordBase, _DetailFields):
    kind: Literal["nda_full"] = "nda_full"
    nda: Literal[True] = True
    is_sanitized: Literal[False] = False


class NdaSanitizedProject(_RecordBase):
    kind: Literal["nda_sanitized"] = "nda_sanitized"
    nda: Literal[True] = True
    is_sanitized: Literal[True] = True
    title: str = PLACEHOLDER_TITLE
    brand_id: Literal[""] = ""


ProjectRecord = Annotated[
    Union[PublicProject, NdaFullProject, NdaSanitizedProject],
    Field(discriminator="kind"),
]

_record_adapter: TypeAdapter = TypeAdapter(ProjectRecord)


def parse_record(data: Union[Dict[str, Any], "ProjectRecordType"]) -> "ProjectRecordType":
    """Validate a dict (e.g. a server-rendered snapshot entry) into its record variant."""
    if isinstance(data, (PublicProject, NdaFullProject, NdaSanitizedProject)):
        return data
    return _record_adapter.validate_python(data)


def project_requires_nda(record: Optional["ProjectRecordType"]) -> bool:
    """A project is NDA-like when its own flag or its brand's flag is set."""
    if record is None:
        return False
    return bool(record.nda or record.brand_is_nda)


ProjectRecordType = Union[PublicProject, NdaFullProject, NdaSanitizedProject]
