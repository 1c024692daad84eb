import datetime as dt
import uuid

import pytest

from rbac_admin.core.security import verify_token

pytestmark = pytest.mark.asyncio


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def test_root_impersonates_alice_and_returns(client, create_user, headers_for, grant):
    await grant("operator", "view_user")
    root = await create_user("root", roles=("superadmin",))
    alice = await create_user("alice", roles=("operator",))
    root_headers = headers_for(root)

    start = await client.post(f"/api/v1/auth/impersonate/{alice.id}", headers=root_headers)
    assert start.status_code == 200, start.text
    data = start.json()["data"]
    assert data["user"]["username"] == "alice"
    assert [p["name"] for p in data["user"]["permissions"]] == ["view_user"]
    assert data["impersonatedBy"]["username"] == "root"
    imp_token = data["token"]

    # /me reports subject=alice, impersonated by root
    me = await client.get("/api/v1/auth/me", headers=_bearer(imp_token))
    me_data = me.json()["data"]
    assert me_data["username"] == "alice"
    assert me_data["isImpersonating"] is True
    assert me_data["impersonatedBy"] == {"id": str(root.id), "username": "root", "email": "root@example.com"}

    # Requests are authorized as alice, not root
    assert (await client.get("/api/v1/users", headers=_bearer(imp_token))).status_code == 200
    assert (await client.get("/api/v1/roles", headers=_bearer(imp_token))).status_code == 403

    stop = await client.post("/api/v1/auth/stop-impersonate", headers=_bearer(imp_token))
    assert stop.status_code == 200, stop.text
    stop_data = stop.json()["data"]
    assert stop_data["user"]["username"] == "root"
    claims = verify_token(stop_data["token"])
    assert claims.id == str(root.id)
    assert claims.actor_id is None
    assert claims.is_impersonating is False

    me_again = await client.get("/api/v1/auth/me", headers=_bearer(stop_data["token"]))
    assert me_again.json()["data"]["username"] == "root"
    assert me_again.json()["data"]["isImpersonating"] is False


async def test_non_superadmin_cannot_impersonate(client, create_user, headers_for, grant):
    # Holding every user permission is not enough: the gate is the role name
    await grant("operator", "view_any_user", "update_user", "force_delete_any_user")
    operator = await create_user("op", roles=("operator",))
    alice = await create_user("alice")

    resp = await client.post(f"/api/v1/auth/impersonate/{alice.id}", headers=headers_for(operator))
    assert resp.status_code == 403
    assert resp.json()["success"] is False


async def test_cannot_impersonate_deleted_user(client, create_user, headers_for):
    root = await create_user("root", roles=("superadmin",))
    gone = await create_user("gone")
    gone.deleted_at = dt.datetime.now(dt.timezone.utc)
    await gone.save()

    resp = await client.post(f"/api/v1/auth/impersonate/{gone.id}", headers=headers_for(root))
    assert resp.status_code == 409


async def test_impersonate_unknown_or_invalid_target(client, create_user, headers_for):
    root = await create_user("root", roles=("superadmin",))
    missing = await client.post(f"/api/v1/auth/impersonate/{uuid.uuid4()}", headers=headers_for(root))
    assert missing.status_code == 404
    invalid = await client.post("/api/v1/auth/impersonate/not-a-uuid", headers=headers_for(root))
    assert invalid.status_code == 400


async def test_nested_impersonation_is_rejected(client, create_user, headers_for):
    root = await create_user("root", roles=("superadmin",))
    other_root = await create_user("root2", roles=("superadmin",))
    alice = await create_user("alice")

    start = await client.post(f"/api/v1/auth/impersonate/{other_root.id}", headers=headers_for(root))
    imp_token = start.json()["data"]["token"]

    nested = await client.post(f"/api/v1/auth/impersonate/{alice.id}", headers=_bearer(imp_token))
    assert nested.status_code == 409


async def test_stop_with_plain_token_is_bad_request(client, create_user, headers_for):
    root = await create_user("root", roles=("superadmin",))
    resp = await client.post("/api/v1/auth/stop-impersonate", headers=headers_for(root))
    assert resp.status_code == 400
    assert resp.json()["success"] is False


async def test_impersonation_requires_authentication(client, create_user):
    alice = await create_user("alice")
    assert (await client.post(f"/api/v1/auth/impersonate/{alice.id}")).status_code == 401
    assert (await client.post("/api/v1/auth/stop-impersonate")).status_code == 401
