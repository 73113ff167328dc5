"""
Tests for user endpoints.
"""

from .factories import auth_headers, create_test_user


async def test_healthcheck(client):
    resp = await client.get("/healthcheck")
    assert resp.status_code == 200
    assert resp.json() == {"http": "okay"}


async def test_login_creates_user_once(client):
    first = await client.post("/users/login", headers=auth_headers("alice"))
    assert first.status_code == 201
    assert first.json()["name"] == "alice"

    second = await client.post("/users/login", headers=auth_headers("alice"))
    assert second.status_code == 200
    assert second.json()["id"] == first.json()["id"]


async def test_list_users(client, db_session):
    await create_test_user(db_session, "alice")
    await create_test_user(db_session, "bob")

    resp = await client.get("/users", headers=auth_headers("alice"))
    assert resp.status_code == 200
    assert [u["name"] for u in resp.json()] == ["alice", "bob"]


async def test_get_user(client, db_session):
    bob = await create_test_user(db_session, "bob")

    resp = await client.get(f"/users/{bob.id}", headers=auth_headers("alice"))
    assert resp.status_code == 200
    assert resp.json() == {"id": bob.id, "name": "bob"}


async def test_get_user_not_found(client):
    resp = await client.get("/users/999", headers=auth_headers("alice"))
    assert resp.status_code == 404
    assert resp.json()["error"] == "NotFoundError"


async def test_get_user_non_numeric_id(client):
    resp = await client.get("/users/abc", headers=auth_headers("alice"))
    assert resp.status_code == 400


async def test_missing_token_rejected(client):
    resp = await client.get("/users")
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Token"


async def test_unknown_token_rejected(client):
    resp = await client.get("/users", headers={"Authorization": "token nope"})
    assert resp.status_code == 401


async def test_bearer_scheme_accepted(client):
    resp = await client.post("/users/login", headers={"Authorization": "Bearer bob-token"})
    assert resp.status_code == 201
    assert resp.json()["name"] == "bob"
