import pytest

from aceprep.main import app
from aceprep.models import AuthSession
from aceprep.routers.auth import get_current_user


@pytest.fixture
def auth_client(client):
    # Exercise the real JWT dependency instead of the fixed test user
    app.dependency_overrides.pop(get_current_user, None)
    return client


def _login(client, username, password="anything"):
    return client.post("/auth/token", data={"username": username, "password": password})


def test_guest_login_and_me(auth_client):
    r = _login(auth_client, "Guest")
    assert r.status_code == 200
    token = r.json()["access_token"]
    me = auth_client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json() == {"username": "guest"}


def test_requests_without_token_are_rejected(auth_client):
    assert auth_client.get("/notes").status_code == 401
    assert auth_client.get("/notes", headers={"Authorization": "Bearer not-a-jwt"}).status_code == 401


def test_register_then_login(auth_client):
    body = {"username": "carol", "password": "s3cret!", "email": "c@example.com", "phone": "555"}
    assert auth_client.post("/auth/register", json=body).status_code == 201
    assert auth_client.post("/auth/register", json=body).status_code == 409
    assert _login(auth_client, "carol", "wrong").status_code == 401
    token = _login(auth_client, "carol", "s3cret!").json()["access_token"]
    r = auth_client.post("/notes", json={"topic": "SAT Math"}, headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 201


def test_register_validation(auth_client):
    base = {"username": "dave", "password": "pw", "email": "d@example.com", "phone": "1"}
    assert auth_client.post("/auth/register", json={**base, "username": "ab"}).status_code == 400
    assert auth_client.post("/auth/register", json={**base, "email": " "}).status_code == 400
    assert auth_client.post("/auth/register", json={**base, "username": "guest"}).status_code == 400


def test_revoked_session_is_rejected(auth_client, db):
    token = _login(auth_client, "guest").json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}
    assert auth_client.get("/auth/me", headers=headers).status_code == 200
    db.query(AuthSession).delete()
    db.commit()
    assert auth_client.get("/auth/me", headers=headers).status_code == 401
