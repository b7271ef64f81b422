"""
Tests for the user profile API (/api/users).
"""


def test_profile_requires_auth(client):
    assert client.get("/api/users/profile").status_code == 401
    assert client.put("/api/users/profile", json={"name": "Ana"}).status_code == 401
    assert client.post("/api/users/profile-image", json={"profileImage": "https://x"}).status_code == 401


def test_get_profile_before_first_write(client, owner_headers):
    r = client.get("/api/users/profile", headers=owner_headers)
    assert r.status_code == 404
    assert r.get_json() == {"message": "User not found"}


def test_put_creates_profile_with_defaults(client, owner_headers):
    r = client.put("/api/users/profile", json={}, headers=owner_headers)
    assert r.status_code == 200, r.data
    body = r.get_json()
    assert body["name"] == "New User"
    assert body["shopName"] == "My Shop"
    assert body["email"] == "owner-1@example.com"  # from the verified token
    assert body["profileImage"] == ""
    assert "uid" not in body

    assert client.get("/api/users/profile", headers=owner_headers).get_json() == body


def test_put_updates_existing_profile(client, owner_headers):
    client.put("/api/users/profile", json={"name": "Ana", "shopName": "Corner Shop"}, headers=owner_headers)
    r = client.put("/api/users/profile", json={"shopName": "Ana's Corner", "email": "ana@shop.test"},
                   headers=owner_headers)
    assert r.status_code == 200
    body = r.get_json()
    assert body["name"] == "Ana"
    assert body["shopName"] == "Ana's Corner"
    assert body["email"] == "ana@shop.test"


def test_email_already_in_use(client, owner_headers, other_headers):
    client.put("/api/users/profile", json={"email": "taken@shop.test"}, headers=other_headers)
    client.put("/api/users/profile", json={"name": "Ana"}, headers=owner_headers)

    r = client.put("/api/users/profile", json={"email": "taken@shop.test"}, headers=owner_headers)
    assert r.status_code == 400
    assert r.get_json() == {"message": "Email already in use"}
    assert client.get("/api/users/profile", headers=owner_headers).get_json()["email"] == "owner-1@example.com"


def test_put_rejects_non_string_fields(client, owner_headers):
    r = client.put("/api/users/profile", json={"name": 12}, headers=owner_headers)
    assert r.status_code == 400


def test_profile_image_is_stored(client, owner_headers):
    url = "https://media.example.com/u/owner-1.png"
    r = client.post("/api/users/profile-image", json={"profileImage": url}, headers=owner_headers)
    assert r.status_code == 200
    assert r.get_json() == {"profileImage": url}
    assert client.get("/api/users/profile", headers=owner_headers).get_json()["profileImage"] == url

    newer = "https://media.example.com/u/owner-1-v2.png"
    client.post("/api/users/profile-image", json={"profileImage": newer}, headers=owner_headers)
    assert client.get("/api/users/profile", headers=owner_headers).get_json()["profileImage"] == newer


def test_profile_image_requires_url(client, owner_headers):
    r = client.post("/api/users/profile-image", json={}, headers=owner_headers)
    assert r.status_code == 400
    assert r.get_json() == {"message": "Profile image URL is required"}


def test_profiles_are_per_user(client, owner_headers, other_headers):
    client.put("/api/users/profile", json={"name": "Ana"}, headers=owner_headers)
    assert client.get("/api/users/profile", headers=other_headers).status_code == 404
