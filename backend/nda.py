"""
backend/nda.py

NDA-aware access control for project documents on the CMS read path.

Every project document leaving the backend passes through two steps:

1. normalize_nda_after_read(): document-level correction. A project can be
   confidential because its own `nda` flag is set, or because it belongs to an
   NDA brand. For anonymous callers the outgoing `nda` flag is forced to True
   when the brand says so, so the frontend treats the document as confidential
   even if the stored project flag is stale.

2. apply_field_access(): field-level gating. Each NDA-sensitive field is kept
   only if can_read_nda_field() allows it; a redacted title is replaced by a
   neutral placeholder.

Authenticated callers skip the brand lookup entirely: the stored project flag
is trusted and the secondary query is never issued.

Pure Python logic - no FastAPI imports. The brand lookup is injected so the
same rules run against SQLite in production and against fakes in tests.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional

# Resolves a brand id to its stored document (or None when it does not exist).
BrandLookup = Callable[[str], Optional[Mapping[str, Any]]]

PLACEHOLDER_TITLE = "Confidential Project"

# Outgoing (Payload-shaped) project fields that reveal what or whose the work is.
NDA_SENSITIVE_FIELDS = frozenset({
    "slug",
    "shortCode",
    "title",
    "brandId",
    "tags",
    "role",
    "year",
    "awards",
    "type",
    "desc",
    "date",
    "urls",
    "thumbnail",
    "screenshots",
})

# Empty values used when a list-shaped field is redacted, so the shape stays stable.
REDACTED_LIST_FIELDS = frozenset({"tags", "role", "awards", "desc", "urls", "screenshots"})


def can_read_nda_field(requester_authenticated: Optional[bool], document_is_nda: Optional[bool]) -> bool:
    """
    Permit a field read when the document is not NDA, otherwise require an authenticated requester.

    Missing `document_is_nda` means "not NDA" (public by default); missing
    `requester_authenticated` means anonymous. Both branches do the same work
    so the outcome is not observable through timing.

    Args:
        requester_authenticated: Whether the request carries a valid session
        document_is_nda: The document's NDA flag (None/absent = not NDA)

    Returns:
        True if the field may be disclosed, False otherwise.
    """
    is_public = not bool(document_is_nda)
    is_authenticated = bool(requester_authenticated)
    return is_public or is_authenticated


def can_read_brand_asset(requester_authenticated: Optional[bool], brand: Optional[Mapping[str, Any]]) -> bool:
    """Brand logos follow the same rule, keyed on the brand's own flag."""
    return can_read_nda_field(requester_authenticated, (brand or {}).get("nda"))


def _brand_reference(doc: Mapping[str, Any]) -> Any:
    return doc.get("brandId")


def _lookup_is_nda(brand_id: str, brand_lookup: BrandLookup) -> bool:
    # Unresolvable brands count as NDA so a broken reference never exposes a project.
    try:
        brand = brand_lookup(brand_id)
    except Exception as e:
        print(f"[NDA] Brand lookup failed for {brand_id!r}: {type(e).__name__}")
        return True
    if not brand:
        return True
    return bool(brand.get("nda"))


def document_requires_nda(doc: Optional[Mapping[str, Any]], brand_lookup: BrandLookup) -> bool:
    """
    Decide whether a project document is confidential.

    Rules, in order:
    - No document: not NDA.
    - Project `nda` flag set: NDA (authoritative).
    - No brand reference: not NDA.
    - Populated brand carrying a boolean `nda`: use it.
    - Brand id (or populated brand without `nda`): resolve via brand_lookup;
      a missing brand or a failing lookup is treated as NDA.
    """
    if not doc:
        return False
    if doc.get("nda"):
        return True

    brand = _brand_reference(doc)
    if not brand:
        return False

    if isinstance(brand, Mapping):
        if isinstance(brand.get("nda"), bool):
            return brand["nda"]
        brand_id = brand.get("id") or brand.get("slug")
        if not brand_id:
            return True
        return _lookup_is_nda(str(brand_id), brand_lookup)

    if isinstance(brand, str):
        return _lookup_is_nda(brand, brand_lookup)

    return False


def can_read_nda_document(
    requester_authenticated: Optional[bool],
    doc: Optional[Mapping[str, Any]],
    brand_lookup: BrandLookup,
) -> bool:
    """
    Document-level gate including brand-inherited NDA status.

    Authenticated requesters are allowed without consulting brand_lookup.
    """
    if requester_authenticated:
        return True
    return not document_requires_nda(doc, brand_lookup)


def normalize_nda_after_read(
    doc: Dict[str, Any],
    requester_authenticated: Optional[bool],
    brand_lookup: BrandLookup,
) -> Dict[str, Any]:
    """
    Force `nda: True` on the outgoing copy when an anonymous caller reads a
    project that inherits NDA status from its brand.

    Returns the same dict untouched for authenticated callers (no lookup) and
    for documents that are already flagged or not NDA-like.
    """
    if requester_authenticated:
        return doc
    if doc.get("nda"):
        return doc
    if not _brand_reference(doc):
        return doc
    if document_requires_nda(doc, brand_lookup):
        return {**doc, "nda": True}
    return doc


def apply_field_access(doc: Mapping[str, Any], requester_authenticated: Optional[bool]) -> Dict[str, Any]:
    """
    Field-level gating for one (already normalized) project document.

    Each NDA-sensitive field is checked individually with can_read_nda_field().
    Redacted list fields become empty lists, other redacted fields are dropped,
    and a redacted title is replaced with PLACEHOLDER_TITLE.
    """
    document_is_nda = doc.get("nda")
    out: Dict[str, Any] = {}
    redacted = False
    for field, value in doc.items():
        if field in NDA_SENSITIVE_FIELDS and not can_read_nda_field(requester_authenticated, document_is_nda):
            redacted = True
            if field in REDACTED_LIST_FIELDS:
                out[field] = []
            continue
        out[field] = value
    if redacted:
        out["title"] = PLACEHOLDER_TITLE
    return out


SANITIZED_KEPT_FIELDS = ("id", "uuid", "active", "omitFromList", "sortIndex", "lockedThumbnail")


def sanitize_project_doc(doc: Mapping[str, Any]) -> Dict[str, Any]:
    """
    The anonymous view of an NDA project document.

    Only identity and layout fields survive; everything else, including any
    field not known to be safe, is dropped.
    """
    out: Dict[str, Any] = {k: doc[k] for k in SANITIZED_KEPT_FIELDS if k in doc}
    out["nda"] = True
    out["title"] = PLACEHOLDER_TITLE
    for field in REDACTED_LIST_FIELDS:
        out[field] = []
    return out
