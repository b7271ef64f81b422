"""
Tests for the product catalog API (/api/products).
"""


def create_product(client, headers, **overrides):
    body = {"name": "Notebook", "price": 2.5, "quantity": 10, "category": "Stationery"}
    body.update(overrides)
    r = client.post("/api/products", json=body, headers=headers)
    assert r.status_code == 201, r.data
    return r.get_json()


def test_requires_bearer_token(client):
    r = client.get("/api/products")
    assert r.status_code == 401
    assert r.get_json()["message"] == "Authentication required"


def test_rejects_bad_token(client):
    r = client.get("/api/products", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.get_json()["message"] == "Invalid token"


def test_create_and_list(client, owner_headers):
    created = create_product(client, owner_headers)
    assert created["name"] == "Notebook"
    assert created["owner"] == "owner-1"
    assert "id" in created

    r = client.get("/api/products", headers=owner_headers)
    assert r.status_code == 200
    assert [p["id"] for p in r.get_json()] == [created["id"]]


def test_create_validates_payload(client, owner_headers):
    r = client.post("/api/products", json={"price": 3}, headers=owner_headers)
    assert r.status_code == 400
    assert "name" in r.get_json()["message"]

    r = client.post("/api/products", json={"name": "Pen", "quantity": -1}, headers=owner_headers)
    assert r.status_code == 400


def test_products_are_owner_scoped(client, owner_headers, other_headers):
    created = create_product(client, owner_headers)

    assert client.get("/api/products", headers=other_headers).get_json() == []
    r = client.put(f"/api/products/{created['id']}", json={"price": 1}, headers=other_headers)
    assert r.status_code == 404
    r = client.delete(f"/api/products/{created['id']}", headers=other_headers)
    assert r.status_code == 404


def test_update(client, owner_headers):
    created = create_product(client, owner_headers)
    r = client.put(f"/api/products/{created['id']}", json={"price": 3.0, "quantity": 4}, headers=owner_headers)
    assert r.status_code == 200
    body = r.get_json()
    assert body["price"] == 3.0
    assert body["quantity"] == 4
    assert body["name"] == "Notebook"


def test_update_unknown_id(client, owner_headers):
    r = client.put("/api/products/not-an-id", json={"price": 1}, headers=owner_headers)
    assert r.status_code == 404


def test_delete(client, owner_headers):
    created = create_product(client, owner_headers)
    r = client.delete(f"/api/products/{created['id']}", headers=owner_headers)
    assert r.status_code == 200
    assert r.get_json() == {"message": "Product deleted successfully"}
    assert client.get("/api/products", headers=owner_headers).get_json() == []


def test_non_string_fields_are_rejected(client, owner_headers):
    r = client.post("/api/products", json={"name": 5}, headers=owner_headers)
    assert r.status_code == 400
    assert r.get_json()["message"] == "name is required"

    r = client.post("/api/products", json={"name": "Pen", "category": ["x"]}, headers=owner_headers)
    assert r.status_code == 400


def test_update_cannot_blank_the_name(client, owner_headers):
    created = create_product(client, owner_headers)
    for bad in ("", "   ", None, 7):
        r = client.put(f"/api/products/{created['id']}", json={"name": bad}, headers=owner_headers)
        assert r.status_code == 400, bad

    names = [p["name"] for p in client.get("/api/products", headers=owner_headers).get_json()]
    assert names == ["Notebook"]
