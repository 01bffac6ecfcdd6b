"""
HTTP tests for the NDA-aware read path, admin writes, login and contact info.

Tests that verify:
1. Anonymous listings never contain NDA detail (own flag, brand flag, dangling brand)
2. Signed-in listings contain full detail and the stored project flag
3. Slug / short code probes for NDA projects are indistinguishable from missing projects
4. Write endpoints are admin only
5. Login sets the session cookie that the read path honours

Run: pytest backend/test_projects_api.py -v
"""

import base64

import pytest

from backend.nda import PLACEHOLDER_TITLE


def auth(token):
    return {"Authorization": f"JWT {token}"}


def docs_by_uuid(response):
    return {d["uuid"]: d for d in response.json()["docs"]}


# ---------------------------------------------------------
# Listing
# ---------------------------------------------------------
def test_list_is_payload_shaped_and_canonically_ordered(client):
    response = client.get("/api/projects?depth=1&limit=1000&sort=sortIndex")
    assert response.status_code == 200
    body = response.json()
    assert body["totalDocs"] == 5
    assert body["limit"] == 1000
    assert [d["uuid"] for d in body["docs"]] == [
        "alpha-uuid", "beta-uuid", "gamma-uuid", "delta-uuid", "epsilon-uuid",
    ]


def test_list_responses_are_not_cacheable(client):
    response = client.get("/api/projects")
    assert response.headers["cache-control"] == "private, no-store"
    assert "Cookie" in response.headers["vary"]


def test_unknown_sort_rejected(client):
    assert client.get("/api/projects?sort=password_hash").status_code == 400


def test_anonymous_list_redacts_nda_projects(client):
    docs = docs_by_uuid(client.get("/api/projects"))

    alpha = docs["alpha-uuid"]
    assert alpha["title"] == "Alpha Site"
    assert alpha["slug"] == "alpha"
    assert alpha["tags"] == [{"tag": "react"}]
    assert alpha["brandId"]["logoLight"] == {"url": "/logos/acme-light.svg"}

    for uuid in ("beta-uuid", "gamma-uuid", "epsilon-uuid"):
        doc = docs[uuid]
        assert doc["nda"] is True, uuid
        assert doc["title"] == PLACEHOLDER_TITLE
        assert "slug" not in doc
        assert "brandId" not in doc
        assert "shortCode" not in doc
        assert doc["tags"] == []
        assert doc["screenshots"] == []

    assert docs["beta-uuid"]["lockedThumbnail"]["url"] == "/thumbs/locked.png"


def test_anonymous_depth_zero_still_inherits_brand_nda(client):
    docs = docs_by_uuid(client.get("/api/projects?depth=0"))
    assert docs["gamma-uuid"]["nda"] is True
    assert docs["gamma-uuid"]["title"] == PLACEHOLDER_TITLE
    assert docs["alpha-uuid"]["brandId"] == "brand-acme"


def test_authenticated_list_has_full_detail(client, seeded_db):
    docs = docs_by_uuid(client.get("/api/projects", headers=auth(seeded_db["user_token"])))

    assert docs["beta-uuid"]["title"] == "Beta Launch"
    assert docs["beta-uuid"]["slug"] == "beta"
    assert docs["beta-uuid"]["nda"] is True

    gamma = docs["gamma-uuid"]
    assert gamma["title"] == "Gamma Campaign"
    assert gamma["nda"] is False  # stored project flag is trusted for signed-in readers
    assert gamma["brandId"]["nda"] is True
    assert gamma["brandId"]["logoLight"] == {"url": "/logos/secret-light.svg"}
    assert gamma["screenshots"][0]["screenType"] == "laptop"


def test_invalid_token_is_treated_as_anonymous(client):
    response = client.get("/api/projects", headers=auth("not-a-jwt"))
    assert response.status_code == 200
    assert docs_by_uuid(response)["beta-uuid"]["title"] == PLACEHOLDER_TITLE


def test_inactive_user_token_is_treated_as_anonymous(client, seeded_db):
    response = client.get("/api/projects", headers=auth(seeded_db["inactive_token"]))
    assert docs_by_uuid(response)["beta-uuid"]["title"] == PLACEHOLDER_TITLE


# ---------------------------------------------------------
# Detail
# ---------------------------------------------------------
def test_public_project_by_slug(client):
    response = client.get("/api/projects/alpha")
    assert response.status_code == 200
    assert response.json()["title"] == "Alpha Site"


@pytest.mark.parametrize("key", ["beta", "BetaCode22", "gamma", "does-not-exist"])
def test_anonymous_probes_get_identical_404(client, key):
    response = client.get(f"/api/projects/{key}")
    assert response.status_code == 404
    assert response.json() == {"detail": "Not found"}


def test_anonymous_uuid_lookup_returns_placeholder(client):
    response = client.get("/api/projects/beta-uuid")
    assert response.status_code == 200
    body = response.json()
    assert body["title"] == PLACEHOLDER_TITLE
    assert "slug" not in body


def test_authenticated_slug_lookup_of_nda_project(client, seeded_db):
    response = client.get("/api/projects/gamma", headers=auth(seeded_db["user_token"]))
    assert response.status_code == 200
    assert response.json()["title"] == "Gamma Campaign"


# ---------------------------------------------------------
# Brands
# ---------------------------------------------------------
def test_anonymous_brand_list_hides_nda_logos(client):
    brands = {b["slug"]: b for b in client.get("/api/brands").json()["docs"]}
    assert brands["acme"]["logoLight"] == {"url": "/logos/acme-light.svg"}
    assert "logoLight" not in brands["secretco"]
    assert "logoDark" not in brands["secretco"]


def test_authenticated_brand_list_shows_all_logos(client, seeded_db):
    response = client.get("/api/brands", headers=auth(seeded_db["user_token"]))
    brands = {b["slug"]: b for b in response.json()["docs"]}
    assert brands["secretco"]["logoDark"] == {"url": "/logos/secret-dark.svg"}


# ---------------------------------------------------------
# Admin writes
# ---------------------------------------------------------
NEW_PROJECT = {"slug": "zeta", "title": "  Zeta  ", "brand_id": "acme", "tags": ["python"], "sort_index": 0}


def test_create_project_requires_session(client):
    assert client.post("/api/projects", json=NEW_PROJECT).status_code == 401


def test_create_project_requires_admin(client, seeded_db):
    response = client.post("/api/projects", json=NEW_PROJECT, headers=auth(seeded_db["user_token"]))
    assert response.status_code == 403
    assert response.json()["detail"] == "Insufficient permissions"


def test_admin_creates_project_with_generated_codes(client, seeded_db):
    response = client.post("/api/projects", json=NEW_PROJECT, headers=auth(seeded_db["admin_token"]))
    assert response.status_code == 201
    body = response.json()
    assert body["title"] == "Zeta"
    assert len(body["shortCode"]) == 10
    assert len(body["uuid"]) == 36
    assert body["brandId"]["id"] == "brand-acme"

    first = client.get("/api/projects").json()["docs"][0]
    assert first["slug"] == "zeta"


def test_duplicate_slug_rejected(client, seeded_db):
    response = client.post(
        "/api/projects",
        json={"slug": "alpha", "title": "Again"},
        headers=auth(seeded_db["admin_token"]),
    )
    assert response.status_code == 400


def test_admin_marks_project_nda(client, seeded_db):
    response = client.patch(
        "/api/projects/alpha-id",
        json={"nda": True},
        headers=auth(seeded_db["admin_token"]),
    )
    assert response.status_code == 200
    assert client.get("/api/projects/alpha").status_code == 404


def test_writes_stamp_updated_at_in_utc(client, seeded_db):
    created = client.post("/api/projects", json=NEW_PROJECT, headers=auth(seeded_db["admin_token"])).json()
    assert created["updatedAt"].endswith("Z")
    assert "+00:00" not in created["updatedAt"]

    patched = client.patch(
        f"/api/projects/{created['id']}",
        json={"title": "Zeta Renamed"},
        headers=auth(seeded_db["admin_token"]),
    ).json()
    assert patched["updatedAt"].endswith("Z")
    assert patched["updatedAt"] >= created["updatedAt"]


def test_admin_deletes_project(client, seeded_db):
    response = client.delete("/api/projects/delta-id", headers=auth(seeded_db["admin_token"]))
    assert response.json() == {"id": "delta-id", "deleted": True}
    assert client.get("/api/projects").json()["totalDocs"] == 4


def test_phone_screenshot_defaults_to_portrait(client, seeded_db):
    response = client.post(
        "/api/projects/alpha-id/screenshots",
        json={"url": "/shots/alpha-phone.png", "screen_type": "phone"},
        headers=auth(seeded_db["admin_token"]),
    )
    assert response.status_code == 201
    assert response.json()["orientation"] == "portrait"


def test_admin_creates_nda_brand(client, seeded_db):
    response = client.post(
        "/api/brands",
        json={"slug": "hush", "name": "Hush", "nda": True, "logo_light_url": "/logos/hush.svg"},
        headers=auth(seeded_db["admin_token"]),
    )
    assert response.status_code == 201
    anonymous = client.get("/api/brands/hush").json()
    assert anonymous["nda"] is True
    assert "logoLight" not in anonymous


# ---------------------------------------------------------
# Login / session
# ---------------------------------------------------------
def test_login_sets_cookie_and_unlocks_nda(client):
    response = client.post("/api/users/login", json={"email": "User@Test.com ", "password": "user-pass"})
    assert response.status_code == 200
    body = response.json()
    assert body["user"]["email"] == "user@test.com"
    assert body["token"]
    assert body["exp"] > 0
    assert "payload-token" in response.cookies

    docs = docs_by_uuid(client.get("/api/projects"))
    assert docs["beta-uuid"]["title"] == "Beta Launch"

    assert client.get("/api/users/me").json()["user"]["role"] == "user"


def test_form_login(client):
    response = client.post("/api/users/login", data={"email": "admin@test.com", "password": "admin-pass"})
    assert response.status_code == 200
    assert response.json()["user"]["role"] == "admin"


def test_login_failures(client):
    assert client.post("/api/users/login", json={"email": "user@test.com"}).status_code == 400
    assert client.post("/api/users/login", json={"email": "user@test.com", "password": "nope"}).status_code == 401
    assert client.post("/api/users/login", json={"email": "gone@test.com", "password": "user-pass"}).status_code == 401
    assert client.post("/api/users/login", json={"email": "who@test.com", "password": "x"}).status_code == 401


def test_logout_clears_session(client):
    client.post("/api/users/login", json={"email": "user@test.com", "password": "user-pass"})
    client.post("/api/users/logout")
    assert client.get("/api/users/me").json() == {"user": None}


# ---------------------------------------------------------
# Contact info
# ---------------------------------------------------------
CONTACT_ENV_KEYS = [
    "DEV_CONTACT_EMAIL", "STAGING_CONTACT_EMAIL", "PROD_CONTACT_EMAIL",
    "OBFUSCATED_CONTACT_EMAIL", "CONTACT_EMAIL", "SECURITY_CONTACT_EMAIL",
    "CONTACT_PHONE_E164", "CONTACT_PHONE_DISPLAY",
]


@pytest.fixture
def no_contact_env(monkeypatch):
    for key in CONTACT_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_contact_info_missing_is_500(client, no_contact_env):
    assert client.get("/api/contact-info").status_code == 500


def test_contact_info_from_environment_is_obfuscated(client, no_contact_env):
    no_contact_env.setenv("CONTACT_EMAIL", "hello@example.com")
    response = client.get("/api/contact-info")
    assert response.status_code == 200
    data = response.json()["data"]
    assert "hello@example.com" not in response.text
    assert base64.b64decode(data["l"]).decode() == "hello"
    assert base64.b64decode(data["d"]).decode() == "example.com"
    assert data["checksum"] == format(len(data["l"]) + len(data["d"]), "x")
    assert "phone" not in data


def test_admin_contact_update_takes_precedence(client, seeded_db, no_contact_env):
    no_contact_env.setenv("CONTACT_EMAIL", "env@example.com")
    response = client.patch(
        "/api/contact-info",
        json={"contact_email": "me@site.test", "phone_e164": "+12065551234", "phone_display": "(206) 555-1234"},
        headers=auth(seeded_db["admin_token"]),
    )
    assert response.status_code == 200

    data = client.get("/api/contact-info").json()["data"]
    assert base64.b64decode(data["l"]).decode() == "me"
    assert base64.b64decode(data["phone"]["e"]).decode() == "+12065551234"


def test_contact_update_validates_phone(client, seeded_db):
    response = client.patch(
        "/api/contact-info",
        json={"phone_e164": "206-555"},
        headers=auth(seeded_db["admin_token"]),
    )
    assert response.status_code == 422
