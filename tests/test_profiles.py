from conftest import auth_headers

PROFILE = {
    "full_name": "Jordan Reyes",
    "former_sport": "Basketball",
    "career_end_reason": "injury",
    "career_end_date": "2025-11-20",
}


def test_onboarding_creates_profile_keyed_by_identity(client):
    r = client.post("/api/v1/profiles", json=PROFILE, headers=auth_headers())

    assert r.status_code == 201
    data = r.json()
    assert data["id"] == "athlete-1"
    assert data["email"] == "athlete@example.com"
    assert data["former_sport"] == "Basketball"
    assert data["career_end_date"] == "2025-11-20"


def test_onboarding_twice_is_rejected(client):
    client.post("/api/v1/profiles", json=PROFILE, headers=auth_headers())

    r = client.post("/api/v1/profiles", json=PROFILE, headers=auth_headers())

    assert r.status_code == 400
    assert r.json() == {"error": "Profile already exists"}


def test_get_own_profile(client):
    r = client.get("/api/v1/profiles/me", headers=auth_headers())
    assert r.status_code == 404
    assert r.json() == {"error": "Profile not found"}

    client.post("/api/v1/profiles", json=PROFILE, headers=auth_headers())

    r = client.get("/api/v1/profiles/me", headers=auth_headers())
    assert r.status_code == 200
    assert r.json()["full_name"] == "Jordan Reyes"


def test_profile_requires_all_fields(client):
    body = {k: v for k, v in PROFILE.items() if k != "former_sport"}

    r = client.post("/api/v1/profiles", json=body, headers=auth_headers())

    assert r.status_code == 422
