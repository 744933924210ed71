from ringoshop.extensions import db
from ringoshop.models import User


def test_register_then_login_then_me(client):
    resp = client.post("/api/auth/register", json={
        "username": "carol", "email": "Carol@Example.com", "password": "long-enough",
    })
    assert resp.status_code == 201
    assert resp.get_json()["user"]["role"] == "customer"
    assert resp.get_json()["user"]["email"] == "carol@example.com"

    resp = client.post("/api/auth/login", json={"username": "carol", "password": "long-enough"})
    assert resp.status_code == 200
    token = resp.get_json()["token"]

    resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.get_json()["user"]["username"] == "carol"


def test_register_validates_input(client):
    resp = client.post("/api/auth/register", json={"username": "", "password": "short"})
    body = resp.get_json()
    assert resp.status_code == 400
    assert body["ok"] is False
    assert set(body["fields"]) == {"username", "password"}


def test_register_duplicate_username(client, users):
    resp = client.post("/api/auth/register", json={"username": "alice", "password": "long-enough"})
    assert resp.status_code == 409


def test_login_with_wrong_password(client, users):
    resp = client.post("/api/auth/login", json={"username": "alice", "password": "nope"})
    assert resp.status_code == 401
    assert resp.get_json() == {"ok": False, "error": "invalid credentials"}


def test_me_requires_token(client):
    assert client.get("/api/auth/me").status_code == 401
    resp = client.get("/api/auth/me", headers={"Authorization": "Bearer forged.token.value"})
    assert resp.status_code == 401


def test_expired_token_is_refused(app, client, users, auth_header):
    headers = auth_header(users.customer)
    app.config["AUTH_TOKEN_MAX_AGE"] = -1
    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_admin_routes_need_admin_role(client, users, auth_header):
    assert client.get("/api/admin/orders").status_code == 401
    assert client.get("/api/admin/orders", headers=auth_header(users.customer)).status_code == 403
    assert client.get("/api/admin/orders", headers=auth_header(users.admin)).status_code == 200


def test_password_is_hashed(app, users):
    with app.app_context():
        user = db.session.get(User, users.customer)
        assert user.password_hash != "secret-pass"
        assert user.check_password("secret-pass")
        assert not user.check_password("other")
