"""
frontend/project_data.py

ProjectDataStore: the frontend's cache of portfolio project records.

- initialize() fetches the listing (forwarding the caller's session) and
  commits it as one immutable snapshot. Every call takes a generation token
  when it starts; a result is committed only if no newer-started call has
  committed already, so a slow stale response never overwrites fresh data.
- A failed fetch leaves the current snapshot in place and is reported in the
  InitializeResult; nothing is raised to the caller. A failed anonymous fetch
  first drops the full NDA records a previous session unlocked.
- Each commit bumps `version` by one and notifies subscribers synchronously.
- hydrate() commits a server-rendered snapshot without fetching.

There is no module-level instance. Server-rendering code builds one store per
request (it may hold one visitor's NDA data); the Streamlit UI keeps one store
per browser session in st.session_state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

# Import siblings (robust fallback for different run contexts)
try:
    from frontend.api_client import (
        FetchProjectsResult,
        ProjectFetchError,
        fetch_portfolio_projects_async,
        headers_contain_session,
    )
    from frontend.config import is_debug_project_data
    from frontend.project_records import ProjectRecordType, parse_record, project_requires_nda
except ModuleNotFoundError:
    from api_client import (
        FetchProjectsResult,
        ProjectFetchError,
        fetch_portfolio_projects_async,
        headers_contain_session,
    )
    from config import is_debug_project_data
    from project_records import ProjectRecordType, parse_record, project_requires_nda

Fetcher = Callable[[Optional[Mapping[str, str]], bool], Awaitable[FetchProjectsResult]]
Subscriber = Callable[[], None]

__all__ = ["InitializeResult", "ProjectDataStore", "project_requires_nda"]


@dataclass(frozen=True)
class InitializeResult:
    """Outcome of one initialize() call. `ok=False` means no fetched data was committed."""
    ok: bool
    superseded: bool = False
    include_nda_in_active: Optional[bool] = None
    contains_sanitized_placeholders: bool = False
    has_nda_access: Optional[bool] = None
    error: Optional[str] = None
    version: int = 0


@dataclass(frozen=True)
class _Snapshot:
    records: Mapping[str, ProjectRecordType] = field(default_factory=dict)
    uuid_to_key: Mapping[str, str] = field(default_factory=dict)
    active_keys: Tuple[str, ...] = ()
    listed_keys: Tuple[str, ...] = ()
    include_nda_in_active: bool = False
    contains_sanitized_placeholders: bool = False


def build_snapshot(
    records: Iterable[ProjectRecordType],
    include_nda_in_active: bool,
    contains_sanitized_placeholders: bool,
) -> _Snapshot:
    """
    Derive the store views from records in source order.

    Per active record: non-NDA (or NDA when include_nda_in_active) is active;
    any active record not omitted from the list is listed, so NDA placeholder
    cards still render. Duplicate keys keep their first occurrence.
    """
    by_key: Dict[str, ProjectRecordType] = {}
    uuid_to_key: Dict[str, str] = {}
    active: List[str] = []
    listed: List[str] = []
    duplicates: List[str] = []

    for record in records:
        if record.id in by_key:
            duplicates.append(record.id)
            continue
        by_key[record.id] = record
        if record.uuid and record.uuid.strip():
            uuid_to_key.setdefault(record.uuid.strip(), record.id)

        if not record.active:
            continue
        if not project_requires_nda(record) or include_nda_in_active:
            active.append(record.id)
        if not record.omit_from_list:
            listed.append(record.id)

    if duplicates and is_debug_project_data():
        print(f"[ProjectData] Duplicate keys dropped: {sorted(set(duplicates))}")

    return _Snapshot(
        records=MappingProxyType(by_key),
        uuid_to_key=MappingProxyType(uuid_to_key),
        active_keys=tuple(active),
        listed_keys=tuple(listed),
        include_nda_in_active=include_nda_in_active,
        contains_sanitized_placeholders=contains_sanitized_placeholders,
    )


class ProjectDataStore:
    """
    Versioned, subscribable cache of project records.

    Args:
        fetcher: async (headers, disable_cache) -> FetchProjectsResult;
            defaults to the backend listing client
    """

    def __init__(self, fetcher: Optional[Fetcher] = None):
        self._fetcher: Fetcher = fetcher or fetch_portfolio_projects_async
        self._snapshot = _Snapshot()
        self._version = 0
        self._ready = False
        self._next_token = 0
        self._committed_token = 0
        self._subscribers: Dict[int, Subscriber] = {}
        self._next_subscriber_id = 0

    # ---------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------
    def _take_token(self) -> int:
        self._next_token += 1
        return self._next_token

    def _commit(self, token: int, snapshot: _Snapshot) -> bool:
        if token < self._committed_token:
            return False
        self._committed_token = token
        self._snapshot = snapshot
        self._version += 1
        self._ready = True
        self._notify()
        return True

    def _notify(self) -> None:
        for subscriber_id, callback in list(self._subscribers.items()):
            try:
                callback()
            except Exception as e:
                print(f"[ProjectData] Subscriber {subscriber_id} raised {type(e).__name__}: {e}")

    async def initialize(
        self,
        headers: Optional[Mapping[str, str]] = None,
        disable_cache: bool = False,
        include_nda_in_active: Optional[bool] = None,
    ) -> InitializeResult:
        """
        Fetch the listing and commit it unless a newer call already committed.

        disable_cache is forced on when `headers` carry a session, so an
        authenticated listing is never stored by an intermediary cache.
        include_nda_in_active defaults to the fetch's access metadata, then to
        whether the headers carry a session.
        """
        token = self._take_token()
        session_present = headers_contain_session(headers)
        disable_cache = disable_cache or session_present

        try:
            fetched = await self._fetcher(headers, disable_cache)
        except ProjectFetchError as e:
            return self._failure(str(e), token, session_present)
        except Exception as e:
            return self._failure(f"{type(e).__name__}: {e}", token, session_present)

        if include_nda_in_active is None:
            include_nda_in_active = (
                fetched.has_nda_access if fetched.has_nda_access is not None else session_present
            )

        try:
            snapshot = build_snapshot(
                fetched.records, include_nda_in_active, fetched.contains_sanitized_placeholders
            )
        except (AttributeError, TypeError) as e:
            return self._failure(f"Malformed project records: {e}", token, session_present)

        committed = self._commit(token, snapshot)
        if not committed and is_debug_project_data():
            print(f"[ProjectData] Discarded stale result (token={token}, committed={self._committed_token})")

        return InitializeResult(
            ok=True,
            superseded=not committed,
            include_nda_in_active=include_nda_in_active,
            contains_sanitized_placeholders=fetched.contains_sanitized_placeholders,
            has_nda_access=fetched.has_nda_access,
            version=self._version,
        )

    def _failure(self, message: str, token: int, session_present: bool) -> InitializeResult:
        # An anonymous caller keeps the last snapshot minus anything a session unlocked
        if not session_present and token >= self._committed_token:
            self.drop_session_records()
        if is_debug_project_data():
            print(f"[ProjectData] initialize failed, keeping version {self._version}: {message}")
        # A store that never loaded becomes ready with an empty snapshot
        self._ready = True
        return InitializeResult(
            ok=False,
            include_nda_in_active=self._snapshot.include_nda_in_active,
            contains_sanitized_placeholders=self._snapshot.contains_sanitized_placeholders,
            error=message,
            version=self._version,
        )

    def hydrate(
        self,
        parsed: Iterable[Any],
        include_nda_in_active: bool,
        contains_sanitized_placeholders: bool = False,
    ) -> None:
        """
        Commit a server-rendered snapshot (records or their model_dump() dicts).

        Counts as the newest commit: any fetch already in flight is discarded.

        Raises:
            pydantic.ValidationError: If an entry is not a valid record
        """
        records = [parse_record(item) for item in parsed]
        self._commit(self._take_token(), build_snapshot(records, include_nda_in_active, contains_sanitized_placeholders))

    def drop_session_records(self) -> bool:
        """
        Remove full NDA records, which only a signed-in caller may see.

        Public records and sanitized placeholders stay. The result counts as
        the newest commit, so a fetch started under the old session is
        discarded when it lands. Returns False when there was nothing to drop.
        """
        snapshot = self._snapshot
        kept = [r for r in snapshot.records.values() if r.is_sanitized or not project_requires_nda(r)]
        if len(kept) == len(snapshot.records):
            return False
        self._commit(
            self._take_token(),
            build_snapshot(kept, False, snapshot.contains_sanitized_placeholders),
        )
        if is_debug_project_data():
            print(f"[ProjectData] Dropped {len(snapshot.records) - len(kept)} session-only records")
        return True

    # ---------------------------------------------------------
    # Subscribers
    # ---------------------------------------------------------
    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback run after every commit; returns an idempotent unsubscribe."""
        subscriber_id = self._next_subscriber_id
        self._next_subscriber_id += 1
        self._subscribers[subscriber_id] = callback

        def unsubscribe() -> None:
            self._subscribers.pop(subscriber_id, None)

        return unsubscribe

    # ---------------------------------------------------------
    # Queries
    # ---------------------------------------------------------
    def get_project(self, key: str) -> Optional[ProjectRecordType]:
        """Lookup by route key, then by UUID. Never fetches."""
        snapshot = self._snapshot
        record = snapshot.records.get(key)
        if record is not None:
            return record
        resolved = snapshot.uuid_to_key.get(key)
        return snapshot.records.get(resolved) if resolved else None

    def project_index(self, key: str) -> int:
        """Position in the active keys (UUIDs resolve to their route key), -1 if absent."""
        snapshot = self._snapshot
        resolved = snapshot.uuid_to_key.get(key, key)
        try:
            return snapshot.active_keys.index(resolved)
        except ValueError:
            return -1

    def next_key(self, key: str) -> Optional[str]:
        keys = self._snapshot.active_keys
        if not keys:
            return None
        return keys[(self.project_index(key) + 1) % len(keys)]

    def prev_key(self, key: str) -> Optional[str]:
        keys = self._snapshot.active_keys
        if not keys:
            return None
        index = self.project_index(key)
        if index < 0:
            return keys[-1]
        return keys[(index - 1) % len(keys)]

    @property
    def version(self) -> int:
        return self._version

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def include_nda_in_active(self) -> bool:
        return self._snapshot.include_nda_in_active

    @property
    def contains_sanitized_placeholders(self) -> bool:
        return self._snapshot.contains_sanitized_placeholders

    @property
    def projects_record(self) -> Dict[str, ProjectRecordType]:
        return dict(self._snapshot.records)

    @property
    def listed_keys(self) -> List[str]:
        return list(self._snapshot.listed_keys)

    @property
    def listed_projects(self) -> List[ProjectRecordType]:
        snapshot = self._snapshot
        return [snapshot.records[k] for k in snapshot.listed_keys]

    @property
    def active_keys(self) -> List[str]:
        return list(self._snapshot.active_keys)

    @property
    def active_projects(self) -> List[ProjectRecordType]:
        snapshot = self._snapshot
        return [snapshot.records[k] for k in snapshot.active_keys]

    @property
    def active_projects_record(self) -> Dict[str, ProjectRecordType]:
        """Active records keyed by route key, and also by UUID where it differs."""
        out: Dict[str, ProjectRecordType] = {}
        for record in self.active_projects:
            out[record.id] = record
        for record in self.active_projects:
            if record.uuid and record.uuid.strip():
                out.setdefault(record.uuid.strip(), record)
        return out
