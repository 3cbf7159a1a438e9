from conftest import PASSWORD, login

from tokens import AUTH_COOKIE


def _raw(headers):
    return headers["Authorization"].split(" ", 1)[1]


def test_login_returns_user_and_token(client, factory):
    user = factory.user("teacher", username="teacher_one")
    r = client.post("/auth/login", json={"username": "teacher_one", "password": PASSWORD})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    data = body["data"]
    assert data["user"]["id"] == user.id
    assert data["user"]["role"] == "teacher"
    assert data["user"]["fullName"] == user.full_name
    assert "password" not in data["user"] and "passwordHash" not in data["user"]
    assert data["token"]

    cookie = r.headers["set-cookie"]
    assert cookie.startswith(f"{AUTH_COOKIE}=")
    assert "HttpOnly" in cookie
    assert "samesite=strict" in cookie.lower()
    assert "Max-Age=604800" in cookie


def test_login_failure_is_generic(client, factory):
    factory.user("student", username="siswa1")
    wrong_password = client.post("/auth/login", json={"username": "siswa1", "password": "nope12345"})
    unknown_user = client.post("/auth/login", json={"username": "ghost", "password": PASSWORD})
    assert wrong_password.status_code == unknown_user.status_code == 401
    assert wrong_password.json()["message"] == unknown_user.json()["message"] == "Invalid username or password"


def test_login_requires_both_fields(client):
    r = client.post("/auth/login", json={"username": "someone"})
    assert r.status_code == 400
    assert r.json()["success"] is False


def test_me_with_header_and_cookie(client, factory):
    user = factory.user("student", username="reader")
    headers = login(client, "reader")
    r = client.get("/auth/me", headers=headers)
    assert r.status_code == 200 and r.json()["data"]["id"] == user.id

    r = client.post("/auth/verify", headers={"Cookie": f"{AUTH_COOKIE}={_raw(headers)}"})
    assert r.status_code == 200 and r.json()["data"]["username"] == "reader"


def test_header_beats_cookie(client, factory):
    factory.user("student", username="alice")
    factory.user("teacher", username="bob")
    alice = login(client, "alice")
    bob = login(client, "bob")
    r = client.get("/auth/me", headers={**alice, "Cookie": f"{AUTH_COOKIE}={_raw(bob)}"})
    assert r.json()["data"]["username"] == "alice"


def test_missing_and_invalid_token(client):
    r = client.get("/auth/me")
    assert r.status_code == 401
    assert r.json()["errors"][0]["code"] == "token_missing"
    r = client.get("/auth/me", headers={"Authorization": "Bearer not.a.token"})
    assert r.status_code == 401
    assert r.json()["errors"][0]["code"] == "token_invalid"


def test_logout_clears_cookie(client):
    r = client.post("/auth/logout")
    assert r.status_code == 200
    cookie = r.headers["set-cookie"]
    assert cookie.startswith(f'{AUTH_COOKIE}=""') or cookie.startswith(f"{AUTH_COOKIE}=;")
    assert "Max-Age=0" in cookie


def test_register_is_admin_only(client, factory):
    factory.user("admin", username="root")
    factory.user("teacher", username="teach")
    payload = {
        "username": "new_student",
        "email": "new_student@school.example",
        "password": "abc12345",
        "role": "student",
        "fullName": "New Student",
        "class": "10A",
    }
    r = client.post("/auth/register", json=payload, headers=login(client, "teach"))
    assert r.status_code == 403

    admin = login(client, "root")
    r = client.post("/auth/register", json=payload, headers=admin)
    assert r.status_code == 200, r.text
    assert isinstance(r.json()["data"]["userId"], int)

    r = client.post("/auth/login", json={"username": "new_student", "password": "abc12345"})
    assert r.status_code == 200
    assert r.json()["data"]["user"]["class"] == "10A"

    r = client.post("/auth/register", json=payload, headers=admin)
    assert r.status_code == 409
    assert r.json()["errors"][0]["code"] == "duplicate_username"

    r = client.post("/auth/register", json={**payload, "username": "other_name"}, headers=admin)
    assert r.status_code == 409
    assert r.json()["errors"][0]["code"] == "duplicate_email"


def test_register_validation_reports_fields(client, factory):
    factory.user("admin", username="root")
    admin = login(client, "root")
    r = client.post(
        "/auth/register",
        json={
            "username": "x",
            "email": "x@school.example",
            "password": "abc12345",
            "role": "teacher",
            "fullName": "X",
        },
        headers=admin,
    )
    assert r.status_code == 400
    fields = {e.get("field") for e in r.json()["errors"]}
    assert "username" in fields

    r = client.post(
        "/auth/register",
        json={
            "username": "valid_name",
            "email": "valid@school.example",
            "password": "short",
            "role": "teacher",
            "fullName": "X",
        },
        headers=admin,
    )
    assert r.status_code == 400
    assert any(e.get("field") == "password" for e in r.json()["errors"])
