# backend/db.py
# SQLite storage for the portfolio CMS (projects, brands, screenshots, users, contact info)

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path as FsPath
from typing import Any, Dict, Generator, List, Optional

from backend.config import DATABASE_PATH, IS_DEV
from backend.models import Project

# Resolved once; tests point this at a temporary file
DB_PATH = str(FsPath(__file__).resolve().parent / DATABASE_PATH)

# Columns holding JSON-encoded lists/objects
JSON_COLUMNS = {"tags", "role", "awards", "desc", "urls"}


SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    email TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    role TEXT NOT NULL DEFAULT 'user',
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS brands (
    id TEXT PRIMARY KEY,
    slug TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL,
    nda INTEGER NOT NULL DEFAULT 0,
    logo_light_url TEXT,
    logo_dark_url TEXT,
    website TEXT
);

CREATE TABLE IF NOT EXISTS projects (
    id TEXT PRIMARY KEY,
    slug TEXT NOT NULL UNIQUE,
    uuid TEXT NOT NULL UNIQUE,
    short_code TEXT UNIQUE,
    title TEXT NOT NULL,
    brand_id TEXT REFERENCES brands(id),
    nda INTEGER NOT NULL DEFAULT 0,
    active INTEGER NOT NULL DEFAULT 1,
    omit_from_list INTEGER NOT NULL DEFAULT 0,
    sort_index INTEGER,
    tags TEXT NOT NULL DEFAULT '[]',
    role TEXT NOT NULL DEFAULT '[]',
    year TEXT,
    awards TEXT NOT NULL DEFAULT '[]',
    type TEXT,
    "desc" TEXT NOT NULL DEFAULT '[]',
    date TEXT,
    urls TEXT NOT NULL DEFAULT '[]',
    thumbnail_url TEXT,
    thumbnail_alt TEXT,
    locked_thumbnail_url TEXT,
    locked_thumbnail_alt TEXT,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS project_screenshots (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project_id TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    url TEXT NOT NULL,
    screen_type TEXT NOT NULL,
    orientation TEXT NOT NULL,
    alt TEXT
);

CREATE TABLE IF NOT EXISTS contact_info (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    contact_email TEXT,
    phone_e164 TEXT,
    phone_display TEXT
);
"""


def row_to_dict(row: Optional[sqlite3.Row]) -> Dict[str, Any]:
    """
    Convert a sqlite3.Row to a plain dict, decoding JSON columns.

    Returns {} for None so callers can use .get() freely.
    """
    if row is None:
        return {}
    out = dict(row)
    for key in JSON_COLUMNS & out.keys():
        raw = out[key]
        if isinstance(raw, str):
            try:
                out[key] = json.loads(raw)
            except json.JSONDecodeError:
                out[key] = []
    return out


def get_db() -> sqlite3.Connection:
    """
    Create and return a SQLite connection with Row factory.
    Callers are responsible for closing it (or use get_db_connection()).
    """
    conn = sqlite3.connect(DB_PATH, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_db_connection() -> Generator[sqlite3.Connection, None, None]:
    """Context manager that always closes the connection."""
    conn = get_db()
    try:
        yield conn
    finally:
        conn.close()


def init_db() -> None:
    """Create all tables if they do not exist yet."""
    with get_db_connection() as conn:
        conn.executescript(SCHEMA)
        conn.commit()
    if IS_DEV:
        print(f"[DB] Schema ready at {DB_PATH}")


# ---------------------------------------------------------
# Read helpers used by the CMS read path
# ---------------------------------------------------------
def fetch_brand(conn: sqlite3.Connection, brand_id: str) -> Optional[Dict[str, Any]]:
    """Fetch one brand by id or slug (bypasses any access rules)."""
    row = conn.execute(
        "SELECT * FROM brands WHERE id = ? OR slug = ?",
        (brand_id, brand_id),
    ).fetchone()
    if row is None:
        return None
    brand = row_to_dict(row)
    brand["nda"] = bool(brand.get("nda"))
    return brand


def fetch_screenshots(conn: sqlite3.Connection, project_id: str) -> List[Dict[str, Any]]:
    rows = conn.execute(
        "SELECT url, screen_type, orientation, alt FROM project_screenshots "
        "WHERE project_id = ? ORDER BY id",
        (project_id,),
    ).fetchall()
    return [row_to_dict(r) for r in rows]


PROJECT_ORDERINGS = {
    "sortIndex": "CASE WHEN sort_index IS NULL THEN 1 ELSE 0 END, sort_index, title",
    "-sortIndex": "CASE WHEN sort_index IS NULL THEN 1 ELSE 0 END, sort_index DESC, title",
    "title": "title, sort_index",
}


def fetch_projects(conn: sqlite3.Connection, limit: int, sort: str = "sortIndex") -> List[Dict[str, Any]]:
    """
    Fetch projects in canonical order.

    Default: sort_index ascending (missing last), then title. `sort` must be a
    key of PROJECT_ORDERINGS; the ORDER BY clause is never built from input.
    """
    order_by = PROJECT_ORDERINGS[sort]
    rows = conn.execute(
        f"SELECT * FROM projects ORDER BY {order_by} LIMIT ?",
        (limit,),
    ).fetchall()
    return [_project_row(r) for r in rows]


def fetch_project(conn: sqlite3.Connection, key: str) -> Optional[Dict[str, Any]]:
    """Fetch one project by id, slug, uuid or short code."""
    row = conn.execute(
        "SELECT * FROM projects WHERE id = ? OR slug = ? OR uuid = ? OR short_code = ?",
        (key, key, key, key),
    ).fetchone()
    return _project_row(row) if row is not None else None


def _project_row(row: sqlite3.Row) -> Dict[str, Any]:
    return Project(**row_to_dict(row)).model_dump()
