from fastapi.testclient import TestClient

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD
from referly.api.main import create_app
from referly.context import build_context


def test_admin_login(client, ctx):
    resp = client.post("/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})

    assert resp.status_code == 200
    data = resp.json()
    assert data["message"] == "Admin login successful"
    payload = ctx.tokens.decode(data["token"])
    assert payload["role"] == "admin"
    assert payload["sub"] == ADMIN_EMAIL


def test_admin_login_wrong_password(client):
    resp = client.post("/admin/login", json={"email": ADMIN_EMAIL, "password": "guess"})

    assert resp.status_code == 401
    assert resp.json() == {"success": False, "error": "invalid_credentials", "message": "Unauthorized"}


def test_admin_login_wrong_email(client):
    resp = client.post("/admin/login", json={"email": "root@example.com", "password": ADMIN_PASSWORD})
    assert resp.status_code == 401


def test_admin_login_refused_when_unconfigured(settings, transport):
    settings = settings.model_copy(update={"admin_email": None, "admin_password": None})
    ctx = build_context(settings, transport=transport)

    with TestClient(create_app(context=ctx)) as tc:
        resp = tc.post("/admin/login", json={"email": "", "password": ""})

    assert resp.status_code == 401


def test_admin_name(client, admin_headers):
    resp = client.get("/admin/name", headers=admin_headers)

    assert resp.status_code == 200
    assert resp.json() == {"name": "Mahesh Doe", "email": ADMIN_EMAIL}


def test_admin_name_requires_token(client):
    assert client.get("/admin/name").status_code == 401
    assert client.get("/admin/name", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_admin_token_from_other_secret_rejected(client, ctx):
    from referly.auth.local import TokenService

    forged = TokenService("some-other-secret-that-is-long-enough").issue_admin_token(ADMIN_EMAIL)

    resp = client.get("/admin/name", headers={"Authorization": f"Bearer {forged}"})

    assert resp.status_code == 401
    assert resp.headers["WWW-Authenticate"] == "Bearer"
