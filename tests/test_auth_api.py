from datetime import timedelta

import pytest

from conftest import PASSWORD, auth_headers
from app.utils.security import create_access_token, decode_access_token


def test_register_returns_token_and_user(client):
    response = client.post("/auth/register", json={
        "name": "Alice",
        "email": "Alice@Example.com",
        "password": PASSWORD,
        "role": "pm",
    })
    assert response.status_code == 201
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == "alice@example.com"
    assert body["user"]["role"] == "pm"
    assert "hashed_password" not in body["user"]

    claims = decode_access_token(body["access_token"])
    assert claims["sub"] == str(body["user"]["id"])
    assert claims["role"] == "pm"


def test_register_duplicate_email_is_conflict(client, member):
    response = client.post("/auth/register", json={
        "name": "Someone",
        "email": "MEMBER@example.com",
        "password": PASSWORD,
        "role": "member",
    })
    assert response.status_code == 409
    assert response.json()["error"] == "conflict"


def test_register_rejects_weak_password(client):
    response = client.post("/auth/register", json={
        "name": "Bob",
        "email": "bob@example.com",
        "password": "short",
        "role": "member",
    })
    assert response.status_code == 422


def test_register_rejects_unknown_role(client):
    response = client.post("/auth/register", json={
        "name": "Bob",
        "email": "bob@example.com",
        "password": PASSWORD,
        "role": "admin",
    })
    assert response.status_code == 422


def test_login_and_me(client, member):
    response = client.post("/auth/login", json={"email": "member@example.com", "password": PASSWORD})
    assert response.status_code == 200
    token = response.json()["access_token"]

    response = client.get("/auth/me", headers=auth_headers(token))
    assert response.status_code == 200
    assert response.json()["id"] == member["id"]


def test_login_with_wrong_password_is_unauthenticated(client, member):
    response = client.post("/auth/login", json={"email": "member@example.com", "password": "Wrong1234"})
    assert response.status_code == 401
    assert response.json()["error"] == "unauthenticated"


def test_requests_without_token_are_rejected(client):
    assert client.get("/projects/").status_code == 401
    assert client.get("/auth/me", headers=auth_headers("not-a-token")).status_code == 401


@pytest.mark.parametrize("headers", [
    {},
    auth_headers("not-a-token"),
    auth_headers(create_access_token({"role": "pm"})),
    auth_headers(create_access_token({"sub": "abc", "role": "pm"})),
])
def test_auth_failures_are_tagged(client, headers):
    response = client.get("/auth/me", headers=headers)
    assert response.status_code == 401
    assert response.json()["error"] == "unauthenticated"
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_expired_token_is_rejected(client, member):
    token = create_access_token({"sub": str(member["id"]), "role": "member"}, expires_delta=timedelta(seconds=-1))
    assert client.get("/auth/me", headers=auth_headers(token)).status_code == 401


def test_token_for_deleted_user_is_rejected(client):
    token = create_access_token({"sub": "9999", "role": "pm"})
    assert client.get("/auth/me", headers=auth_headers(token)).status_code == 401


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
