"""
Shared fixtures for backend tests: a throwaway SQLite database seeded with
users, brands and projects, plus a TestClient bound to the app.
"""

import json
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

import backend.db as db
from backend.auth_context import create_access_token, hash_password

ADMIN_PASSWORD = "admin-pass"
USER_PASSWORD = "user-pass"


def insert_project(conn, **fields):
    record = {
        "id": fields["slug"] + "-id",
        "uuid": fields["slug"] + "-uuid",
        "short_code": None,
        "brand_id": None,
        "nda": 0,
        "active": 1,
        "omit_from_list": 0,
        "sort_index": None,
        "tags": [],
        "role": [],
        "awards": [],
        "desc": [],
        "urls": [],
        "year": None,
        "type": None,
        "thumbnail_url": None,
        "locked_thumbnail_url": None,
        "updated_at": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    }
    record.update(fields)
    for key in db.JSON_COLUMNS:
        record[key] = json.dumps(record[key])
    columns = ", ".join(f'"{c}"' for c in record)
    placeholders = ", ".join("?" for _ in record)
    conn.execute(f"INSERT INTO projects ({columns}) VALUES ({placeholders})", tuple(record.values()))


@pytest.fixture
def seeded_db(tmp_path, monkeypatch):
    """
    Fresh database with:
    - admin@test.com (admin), user@test.com (user), gone@test.com (inactive)
    - brands: acme (public), secretco (NDA)
    - projects: alpha (public), beta (NDA flag), gamma (NDA via brand),
      delta (public, omitted from list), epsilon (dangling brand reference)
    """
    monkeypatch.setattr(db, "DB_PATH", str(tmp_path / "test.db"))
    db.init_db()

    with db.get_db_connection() as conn:
        now = datetime.now(timezone.utc).isoformat()
        users = [
            ("admin@test.com", hash_password(ADMIN_PASSWORD), "admin", 1, now),
            ("user@test.com", hash_password(USER_PASSWORD), "user", 1, now),
            ("gone@test.com", hash_password(USER_PASSWORD), "user", 0, now),
        ]
        conn.executemany(
            "INSERT INTO users (email, password_hash, role, is_active, created_at) VALUES (?, ?, ?, ?, ?)",
            users,
        )
        conn.executemany(
            "INSERT INTO brands (id, slug, name, nda, logo_light_url, logo_dark_url, website) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            [
                ("brand-acme", "acme", "Acme", 0, "/logos/acme-light.svg", "/logos/acme-dark.svg", "https://acme.test"),
                ("brand-secret", "secretco", "SecretCo", 1, "/logos/secret-light.svg", "/logos/secret-dark.svg", None),
            ],
        )
        insert_project(
            conn, slug="alpha", title="Alpha Site", brand_id="brand-acme", sort_index=1,
            short_code="AlphaCode1", tags=["react"], role=["Lead"], year="2021",
            desc=["Built the site."], thumbnail_url="/thumbs/alpha.png",
        )
        insert_project(
            conn, slug="beta", title="Beta Launch", brand_id="brand-acme", nda=1, sort_index=2,
            short_code="BetaCode22", tags=["vue"], year="2022",
            locked_thumbnail_url="/thumbs/locked.png",
        )
        insert_project(
            conn, slug="gamma", title="Gamma Campaign", brand_id="brand-secret", sort_index=3,
            tags=["banner"], year="2019",
        )
        insert_project(conn, slug="delta", title="Delta Hidden", omit_from_list=1, sort_index=4)
        # The dangling brand reference is intentional; seed it with FK enforcement off.
        conn.commit()
        conn.execute("PRAGMA foreign_keys = OFF")
        insert_project(conn, slug="epsilon", title="Epsilon Orphan", brand_id="brand-missing")
        conn.commit()
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute(
            "INSERT INTO project_screenshots (project_id, url, screen_type, orientation, alt) "
            "VALUES (?, ?, ?, ?, ?)",
            ("gamma-id", "/shots/gamma.png", "laptop", "landscape", "Gamma home"),
        )
        conn.commit()

        ids = {r["email"]: r["id"] for r in conn.execute("SELECT id, email FROM users").fetchall()}

    return {
        "admin_token": create_access_token({"sub": str(ids["admin@test.com"])}),
        "user_token": create_access_token({"sub": str(ids["user@test.com"])}),
        "inactive_token": create_access_token({"sub": str(ids["gone@test.com"])}),
    }


@pytest.fixture
def client(seeded_db):
    from backend.main import app

    with TestClient(app) as c:
        yield c
