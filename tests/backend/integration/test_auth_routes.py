import datetime as dt

import pytest

from rbac_admin.core.security import TokenClaims, issue_token

pytestmark = pytest.mark.asyncio


async def register_user(client, username: str, email: str, password: str = "StrongPass123"):
    return await client.post(
        "/api/v1/auth/register",
        json={
            "username": username,
            "email": email,
            "password": password,
            "firstname": "Test",
            "lastname": "User",
        },
    )


async def login_user(client, email: str, password: str):
    return await client.post("/api/v1/auth/login", json={"email": email, "password": password})


async def test_register_and_login_flow(client):
    resp = await register_user(client, "member1", "  Member1@Example.com ")
    body = resp.json()
    assert resp.status_code == 201
    assert body["success"] is True
    assert body["data"]["username"] == "member1"
    assert body["data"]["email"] == "member1@example.com"
    assert body["data"]["fullname"] == "Test User"
    assert "password_hash" not in body["data"]

    # Duplicate email / username should conflict
    dup_email = await register_user(client, "member2", "member1@example.com")
    assert dup_email.status_code == 409
    assert dup_email.json()["success"] is False
    dup_name = await register_user(client, "member1", "other@example.com")
    assert dup_name.status_code == 409

    # Successful login (email is case-insensitive)
    login_resp = await login_user(client, "MEMBER1@example.com", "StrongPass123")
    login_body = login_resp.json()
    assert login_resp.status_code == 200
    assert login_body["success"] is True
    assert login_body["data"]["user"]["username"] == "member1"
    assert login_body["data"]["token"]

    # Invalid password / unknown email
    assert (await login_user(client, "member1@example.com", "wrong")).status_code == 401
    assert (await login_user(client, "nobody@example.com", "StrongPass123")).status_code == 401


async def test_register_validation_errors(client):
    resp = await client.post(
        "/api/v1/auth/register",
        json={"username": "ab", "email": "not-an-email", "password": "short", "firstname": "A", "lastname": "Tester"},
    )
    body = resp.json()
    assert resp.status_code == 400
    assert body["success"] is False
    for field in ("username", "email", "password", "firstname"):
        assert f"{field}:" in body["error"]
    assert "lastname" not in body["error"]


async def test_password_needs_letters_and_digits(client):
    resp = await register_user(client, "digits", "digits@example.com", password="12345678")
    assert resp.status_code == 400
    assert "password" in resp.json()["error"]


async def test_deleted_account_cannot_log_in(client, create_user):
    user = await create_user("retired")
    user.deleted_at = dt.datetime.now(dt.timezone.utc)
    await user.save()

    resp = await login_user(client, user.email, "Passw0rd123")
    assert resp.status_code == 403
    assert resp.json()["success"] is False


async def test_me_and_logout(client, create_user, auth_header_factory, grant):
    await grant("operator", "view_user")
    user = await create_user("alice", roles=("operator",))
    headers = await auth_header_factory(user)

    me_resp = await client.get("/api/v1/auth/me", headers=headers)
    me_body = me_resp.json()
    assert me_resp.status_code == 200
    assert me_body["data"]["username"] == "alice"
    assert me_body["data"]["isImpersonating"] is False
    assert "impersonatedBy" not in me_body["data"]
    assert [r["name"] for r in me_body["data"]["roles"]] == ["operator"]
    assert [p["name"] for p in me_body["data"]["permissions"]] == ["view_user"]

    logout_resp = await client.post("/api/v1/auth/logout", headers=headers)
    assert logout_resp.status_code == 200
    assert logout_resp.json()["success"] is True

    # Logout without a token is still acknowledged
    assert (await client.post("/api/v1/auth/logout")).status_code == 200


async def test_auth_gate_states(client, create_user):
    user = await create_user("gate")

    no_token = await client.get("/api/v1/auth/me")
    assert no_token.status_code == 401
    assert no_token.json() == {"success": False, "message": "Not authenticated"}

    not_bearer = await client.get("/api/v1/auth/me", headers={"Authorization": "Basic abc"})
    assert not_bearer.status_code == 401
    assert not_bearer.json()["message"] == "Not authenticated"

    malformed = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not.a.token"})
    assert malformed.status_code == 401
    assert malformed.json()["message"] == "Invalid token"

    expired_token = issue_token(
        TokenClaims(id=str(user.id), email=user.email, username=user.username),
        dt.timedelta(seconds=-5),
    )
    expired = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {expired_token}"})
    assert expired.status_code == 401
    assert expired.json()["message"] == "Token has expired"


async def test_healthz(client):
    resp = await client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json()["success"] is True
