import pytest

from labdash.auth.deps import AUTH_COOKIE_NAME
from labdash.auth.jwt import create_refresh_token


@pytest.fixture
def registered(client, real_auth):
    r = client.post(
        "/api/auth/register",
        json={"email": "Ada@Example.com", "password": "secret1", "name": "Ada"},
    )
    assert r.status_code == 201, r.text
    return r.json()


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def test_register_sets_cookie_and_returns_tokens(client, registered):
    assert registered["user"]["email"] == "ada@example.com"
    assert registered["token_type"] == "bearer"
    assert client.cookies.get(AUTH_COOKIE_NAME) == registered["access_token"]


def test_register_duplicate_email(client, registered):
    r = client.post(
        "/api/auth/register",
        json={"email": "ada@example.com", "password": "another1", "name": "Ada 2"},
    )
    assert r.status_code == 409
    assert r.json()["code"] == "CONFLICT"


def test_register_rejects_short_password(client, real_auth):
    r = client.post("/api/auth/register", json={"email": "b@example.com", "password": "123", "name": "B"})
    assert r.status_code == 422


def test_login_and_me(client, registered):
    r = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "secret1"})
    assert r.status_code == 200
    token = r.json()["access_token"]

    me = client.get("/api/auth/me", headers=_bearer(token))
    assert me.status_code == 200
    assert me.json()["user"]["name"] == "Ada"
    assert "no-store" in me.headers["cache-control"]


def test_login_wrong_password(client, registered):
    r = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "wrong-pass"})
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid email or password"


def test_cookie_authenticates_parameter_routes(client, registered):
    r = client.get("/api/lab-parameters")
    assert r.status_code == 200
    assert r.json()["parameters"] == []


def test_requests_without_token_are_rejected(real_auth, client):
    r = client.get("/api/lab-parameters")
    assert r.status_code == 401
    assert r.json()["code"] == "UNAUTHORIZED"


def test_refresh_token_cannot_access_routes(client, registered):
    r = client.get("/api/auth/me", headers=_bearer(registered["refresh_token"]))
    assert r.status_code == 401


def test_refresh_issues_new_access_token(client, registered):
    r = client.post("/api/auth/refresh", json={"refresh_token": registered["refresh_token"]})
    assert r.status_code == 200
    assert client.get("/api/auth/me", headers=_bearer(r.json()["access_token"])).status_code == 200


def test_refresh_for_unknown_user(client, real_auth):
    token = create_refresh_token({"sub": "missing-user"})
    r = client.post("/api/auth/refresh", json={"refresh_token": token})
    assert r.status_code == 401


def test_logout_clears_cookie(client, registered):
    client.post("/api/auth/logout")
    assert client.cookies.get(AUTH_COOKIE_NAME) is None
    assert client.get("/api/auth/me").status_code == 401
