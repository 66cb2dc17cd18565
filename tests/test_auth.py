# Identity API tests: registration, login, token validation, profile updates and public profiles.
from __future__ import annotations

import time
from typing import Tuple

import jwt
from fastapi.testclient import TestClient


# Helper: create a user and return (token, user JSON)
def register(client: TestClient, email: str, role: str = "tenant", name: str = "Test User") -> Tuple[str, dict]:
    r = client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": "changeme123", "role": role},
    )
    assert r.status_code == 201, r.text
    data = r.json()
    return data["token"], data["user"]


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def test_register_returns_user_and_token(client: TestClient):
    token, user = register(client, "  Mette@Example.com ", role="landlord", name="Mette")
    assert user["email"] == "mette@example.com"
    assert user["role"] == "landlord"
    assert user["name"] == "Mette"
    assert "password_hash" not in user and "password" not in user

    payload = jwt.decode(token, "test-secret", algorithms=["HS256"])
    assert set(payload) == {"sub", "exp"}
    assert payload["sub"] == str(user["id"])


def test_register_duplicate_email_conflict(client: TestClient):
    register(client, "dup@example.com")
    r = client.post(
        "/api/auth/register",
        json={"name": "Again", "email": "DUP@example.com", "password": "changeme123"},
    )
    assert r.status_code == 409, r.text


def test_register_rejects_unknown_role_and_short_password(client: TestClient):
    r = client.post(
        "/api/auth/register",
        json={"name": "X", "email": "x@example.com", "password": "changeme123", "role": "admin"},
    )
    assert r.status_code == 422
    r = client.post("/api/auth/register", json={"name": "X", "email": "x@example.com", "password": "short"})
    assert r.status_code == 422


def test_login_and_me(client: TestClient):
    register(client, "login@example.com", name="Lars")
    r = client.post("/api/auth/login", json={"email": "login@example.com", "password": "changeme123"})
    assert r.status_code == 200, r.text
    token = r.json()["token"]

    me = client.get("/api/auth/me", headers=auth_headers(token))
    assert me.status_code == 200
    assert me.json()["name"] == "Lars"

    bad = client.post("/api/auth/login", json={"email": "login@example.com", "password": "wrong-password"})
    assert bad.status_code == 401


# Missing, malformed, tampered and expired credentials all map to 401
def test_invalid_tokens_are_unauthorized(client: TestClient):
    _, user = register(client, "tok@example.com")

    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers={"Authorization": "Token abc"}).status_code == 401
    assert client.get("/api/auth/me", headers=auth_headers("not-a-jwt")).status_code == 401

    forged = jwt.encode({"sub": str(user["id"]), "exp": int(time.time()) + 60}, "other-secret", algorithm="HS256")
    assert client.get("/api/auth/me", headers=auth_headers(forged)).status_code == 401

    expired = jwt.encode({"sub": str(user["id"]), "exp": int(time.time()) - 10}, "test-secret", algorithm="HS256")
    r = client.get("/api/auth/me", headers=auth_headers(expired))
    assert r.status_code == 401
    assert r.json()["detail"] == "Token expired"

    ghost = jwt.encode({"sub": "9999", "exp": int(time.time()) + 60}, "test-secret", algorithm="HS256")
    assert client.get("/api/auth/me", headers=auth_headers(ghost)).status_code == 401

    # Correctly signed but missing required claims: no expiry, or no subject
    no_exp = jwt.encode({"sub": str(user["id"])}, "test-secret", algorithm="HS256")
    r = client.get("/api/auth/me", headers=auth_headers(no_exp))
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid token"

    no_sub = jwt.encode({"exp": int(time.time()) + 60}, "test-secret", algorithm="HS256")
    assert client.get("/api/auth/me", headers=auth_headers(no_sub)).status_code == 401


def test_profile_update_is_partial_and_keeps_role(client: TestClient):
    token, user = register(client, "profile@example.com", name="Old Name")
    r = client.put(
        "/api/auth/profile",
        headers=auth_headers(token),
        json={"name": "New Name", "bio": "Quiet tenant", "phone": "+45 12345678", "role": "landlord"},
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["name"] == "New Name"
    assert body["bio"] == "Quiet tenant"
    assert body["phone"] == "+45 12345678"
    assert body["role"] == "tenant"

    r = client.put("/api/auth/profile", headers=auth_headers(token), json={"bio": "Updated"})
    assert r.json()["name"] == "New Name"
    assert r.json()["bio"] == "Updated"

    r = client.put(
        "/api/auth/profile",
        headers=auth_headers(token),
        json={"profile_picture_url": "data:image/png;base64,iVBORw0KGgo="},
    )
    assert r.status_code == 200
    assert r.json()["profile_picture_url"].startswith("data:image/png")

    r = client.put("/api/auth/profile", headers=auth_headers(token), json={"profile_picture_url": "ftp://x"})
    assert r.status_code == 422


def test_public_user_lookup(client: TestClient):
    _, user = register(client, "public@example.com", role="landlord", name="Pia")
    r = client.get(f"/api/users/{user['id']}")
    assert r.status_code == 200
    assert r.json()["name"] == "Pia"
    assert "created_at" not in r.json()

    assert client.get("/api/users/4242").status_code == 404
