import os
import uuid

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

TEST_DB_URL = "sqlite://:memory:?cache=shared"
os.environ["DATABASE_URL"] = TEST_DB_URL

from rbac_admin.core import db as db_module
from rbac_admin.core.bootstrap import seed_roles_and_permissions
from rbac_admin.core.security import TokenClaims, hash_password, issue_session_token
from rbac_admin.main import app
from rbac_admin.models import Permission, Role, RolePermission, User, UserRole

db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL

DEFAULT_PASSWORD = "Passw0rd123"


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


@pytest_asyncio.fixture
async def db():
    """
    Fresh database seeded with the default roles and permissions
    (superadmin holds every permission, other roles hold none).
    """
    await _init_test_db()
    await seed_roles_and_permissions()
    yield
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def client(db):
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB.
    The app lifespan is not run; the db fixture owns the connection.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client


@pytest_asyncio.fixture
async def grant():
    """Factory fixture: grant permission names to a role (by name)."""

    async def _grant(role_name: str, *permission_names: str) -> Role:
        role = await Role.get(name=role_name)
        for name in permission_names:
            perm, _ = await Permission.get_or_create(name=name)
            await RolePermission.get_or_create(role_id=role.id, permission_id=perm.id)
        return role

    return _grant


@pytest_asyncio.fixture
async def create_user(db):
    """
    Factory fixture to create users directly via ORM, optionally with roles.
    """

    async def _create_user(
        username: str | None = None,
        *,
        roles: tuple[str, ...] = (),
        password: str = DEFAULT_PASSWORD,
    ) -> User:
        username = username or f"user_{uuid.uuid4().hex[:6]}"
        user = await User.create(
            username=username,
            email=f"{username}@example.com",
            password_hash=hash_password(password),
            firstname=username.capitalize(),
            lastname="Tester",
            fullname=f"{username.capitalize()} Tester",
        )
        for role_name in roles:
            role = await Role.get(name=role_name)
            await UserRole.create(user_id=user.id, role_id=role.id)
        return user

    return _create_user


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def headers_for():
    """Authorization headers for a user, minted directly (no login round trip)."""

    def _headers(user: User) -> dict[str, str]:
        token = issue_session_token(TokenClaims(id=str(user.id), email=user.email, username=user.username))
        return bearer(token)

    return _headers


@pytest_asyncio.fixture
async def auth_header_factory(client):
    """
    Helper fixture to obtain Authorization headers via the login endpoint.
    """

    async def _get_headers(user: User, password: str = DEFAULT_PASSWORD) -> dict[str, str]:
        resp = await client.post(
            "/api/v1/auth/login",
            json={"email": user.email, "password": password},
        )
        assert resp.status_code == 200, resp.text
        return bearer(resp.json()["data"]["token"])

    return _get_headers
