# Listing API tests: search filters, ownership rules, partial updates and deletion side effects.
from __future__ import annotations

from typing import Tuple

from fastapi.testclient import TestClient

from lejebolig.db import SessionLocal
from lejebolig import models


def register(client: TestClient, email: str, role: str = "tenant") -> Tuple[str, dict]:
    r = client.post(
        "/api/auth/register",
        json={"name": email.split("@")[0], "email": email, "password": "changeme123", "role": role},
    )
    assert r.status_code == 201, r.text
    data = r.json()
    return data["token"], data["user"]


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def listing_payload(**overrides) -> dict:
    payload = {
        "title": "Bright two-room flat",
        "description": "Close to the harbour",
        "address": "Nørrebrogade 12",
        "postal_code": "2200",
        "city": "København",
        "country": "Denmark",
        "price": "9500.00",
        "rooms": 2,
        "size": 58,
        "images": ["https://img.example.com/1.jpg", "data:image/jpeg;base64,/9j/4AAQ"],
    }
    payload.update(overrides)
    return payload


def create_property(client: TestClient, token: str, **overrides) -> dict:
    r = client.post("/api/properties", headers=auth_headers(token), json=listing_payload(**overrides))
    assert r.status_code == 201, r.text
    return r.json()


def test_landlord_creates_listing_price_is_string(client: TestClient):
    token, landlord = register(client, "host@example.com", "landlord")
    prop = create_property(client, token, price=12500.5)
    assert prop["landlord_id"] == landlord["id"]
    assert prop["price"] == "12500.50"
    assert prop["available"] is True
    # image order is preserved
    assert prop["images"][0] == "https://img.example.com/1.jpg"
    assert prop["images"][1].startswith("data:image/jpeg")

    r = client.get(f"/api/properties/{prop['id']}")
    assert r.status_code == 200
    assert r.json()["title"] == "Bright two-room flat"


def test_tenant_and_anonymous_cannot_create_listing(client: TestClient):
    tenant_token, _ = register(client, "tenant@example.com")
    r = client.post("/api/properties", headers=auth_headers(tenant_token), json=listing_payload())
    assert r.status_code == 403
    r = client.post("/api/properties", json=listing_payload())
    assert r.status_code == 401


def test_listing_validation(client: TestClient):
    token, _ = register(client, "host@example.com", "landlord")
    r = client.post("/api/properties", headers=auth_headers(token), json=listing_payload(title="   "))
    assert r.status_code == 422
    r = client.post("/api/properties", headers=auth_headers(token), json=listing_payload(price="12.345"))
    assert r.status_code == 422
    r = client.post("/api/properties", headers=auth_headers(token), json=listing_payload(images=["file:///etc/passwd"]))
    assert r.status_code == 422


def test_search_filters_available_only(client: TestClient):
    token, landlord = register(client, "host@example.com", "landlord")
    cheap = create_property(client, token, title="Cheap", price="6000.00", rooms=1, city="Aarhus", address="Vestergade 1")
    mid = create_property(client, token, title="Mid", price="9000.00", rooms=2)
    create_property(client, token, title="Pricey", price="15000.00", rooms=2)
    hidden = create_property(client, token, title="Hidden", price="5000.00", rooms=1, available=False)

    titles = [p["title"] for p in client.get("/api/properties").json()]
    assert "Hidden" not in titles
    assert len(titles) == 3

    # maxPrice is an inclusive upper bound
    r = client.get("/api/properties", params={"maxPrice": "9000"})
    assert {p["id"] for p in r.json()} == {cheap["id"], mid["id"]}

    r = client.get("/api/properties", params={"rooms": 2, "maxPrice": "10000"})
    assert [p["id"] for p in r.json()] == [mid["id"]]

    r = client.get("/api/properties", params={"location": "aarhus"})
    assert [p["id"] for p in r.json()] == [cheap["id"]]

    r = client.get("/api/properties", params={"location": "nørrebro"})
    assert cheap["id"] not in {p["id"] for p in r.json()}

    r = client.get("/api/properties", params={"landlordId": landlord["id"]})
    assert hidden["id"] not in {p["id"] for p in r.json()}

    # newest first
    ids = [p["id"] for p in client.get("/api/properties").json()]
    assert ids == sorted(ids, reverse=True)


def test_location_wildcards_are_literal(client: TestClient):
    token, _ = register(client, "host@example.com", "landlord")
    plain = create_property(client, token, address="Vesterbrogade 7", city="København")
    odd = create_property(client, token, address="Blok_B 100% renoveret", city="Odense")

    assert [p["id"] for p in client.get("/api/properties", params={"location": "%"}).json()] == [odd["id"]]
    assert [p["id"] for p in client.get("/api/properties", params={"location": "_"}).json()] == [odd["id"]]
    assert [p["id"] for p in client.get("/api/properties", params={"location": "k_b"}).json()] == [odd["id"]]
    assert client.get("/api/properties", params={"location": "vesterbro%7"}).json() == []
    assert [p["id"] for p in client.get("/api/properties", params={"location": "gade 7"}).json()] == [plain["id"]]


def test_mine_includes_unavailable(client: TestClient):
    token, _ = register(client, "host@example.com", "landlord")
    other_token, _ = register(client, "other@example.com", "landlord")
    create_property(client, token, title="Visible")
    create_property(client, token, title="Hidden", available=False)
    create_property(client, other_token, title="Not mine")

    r = client.get("/api/properties/mine", headers=auth_headers(token))
    assert r.status_code == 200
    assert sorted(p["title"] for p in r.json()) == ["Hidden", "Visible"]


def test_update_is_owner_only_and_partial(client: TestClient):
    owner_token, _ = register(client, "owner@example.com", "landlord")
    other_token, _ = register(client, "intruder@example.com", "landlord")
    prop = create_property(client, owner_token)

    r = client.put(f"/api/properties/{prop['id']}", headers=auth_headers(other_token), json={"title": "Mine now"})
    assert r.status_code == 403

    r = client.put(
        f"/api/properties/{prop['id']}",
        headers=auth_headers(owner_token),
        json={"price": "9999.99", "available_from": "2026-12-01"},
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["price"] == "9999.99"
    assert body["available_from"] == "2026-12-01"
    assert body["title"] == prop["title"]

    r = client.put(f"/api/properties/{prop['id']}", headers=auth_headers(owner_token), json={"title": None})
    assert r.status_code == 400

    assert client.put("/api/properties/999", headers=auth_headers(owner_token), json={"title": "x"}).status_code == 404


def test_delete_removes_favorites_but_keeps_messages(client: TestClient):
    owner_token, owner = register(client, "owner@example.com", "landlord")
    tenant_token, tenant = register(client, "tenant@example.com")
    other_token, _ = register(client, "other@example.com", "landlord")
    prop = create_property(client, owner_token)

    assert client.post("/api/favorites", headers=auth_headers(tenant_token), json={"property_id": prop["id"]}).status_code == 201
    r = client.post(
        "/api/messages",
        headers=auth_headers(tenant_token),
        json={"recipient_id": owner["id"], "content": "Is it still free?", "property_id": prop["id"]},
    )
    assert r.status_code == 201, r.text

    assert client.delete(f"/api/properties/{prop['id']}", headers=auth_headers(other_token)).status_code == 403
    r = client.delete(f"/api/properties/{prop['id']}", headers=auth_headers(owner_token))
    assert r.status_code == 200, r.text

    assert client.get(f"/api/properties/{prop['id']}").status_code == 404
    assert client.get("/api/favorites", headers=auth_headers(tenant_token)).json() == []

    db = SessionLocal()
    try:
        assert db.query(models.Favorite).count() == 0
    finally:
        db.close()

    thread = client.get(
        "/api/messages", params={"otherUserId": owner["id"]}, headers=auth_headers(tenant_token)
    ).json()
    assert len(thread) == 1
    assert thread[0]["property_id"] == prop["id"]

    convs = client.get("/api/conversations", headers=auth_headers(owner_token)).json()
    assert convs[0]["property_id"] == prop["id"]
    assert convs[0]["property_title"] is None
