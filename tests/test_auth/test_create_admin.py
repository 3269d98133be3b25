import pytest
from httpx import AsyncClient
from pydantic import SecretStr
from sqlalchemy import select

from app.core.config import settings
from app.db.models.user import User

SETUP_KEY = "test-setup-key"


def _body(**overrides) -> dict:
    body = {
        "username": "root",
        "email": "root@example.com",
        "password": "rootpass",
        "setupKey": SETUP_KEY,
    }
    body.update(overrides)
    return body


@pytest.fixture(autouse=True)
def _setup_key(monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_SETUP_KEY", SecretStr(SETUP_KEY))


@pytest.mark.anyio
async def test_missing_fields_is_400_before_key_check(async_client: AsyncClient):
    resp = await async_client.post("/api/auth/create-admin", json={"setupKey": "wrong"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Please provide username, email and password"


@pytest.mark.anyio
async def test_wrong_setup_key_is_403(async_client: AsyncClient):
    resp = await async_client.post("/api/auth/create-admin", json=_body(setupKey="wrong"))
    assert resp.status_code == 403


@pytest.mark.anyio
async def test_provisioning_disabled_without_configured_key(async_client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_SETUP_KEY", None)
    resp = await async_client.post("/api/auth/create-admin", json=_body())
    assert resp.status_code == 403


@pytest.mark.anyio
async def test_creates_new_admin(async_client: AsyncClient, db_session):
    resp = await async_client.post("/api/auth/create-admin", json=_body())
    assert resp.status_code == 201, resp.text
    assert resp.json() == {"success": True, "message": "Admin user created successfully"}

    login = await async_client.post("/api/auth/login", json={"email": "root@example.com", "password": "rootpass"})
    assert login.status_code == 200
    assert login.json()["user"]["role"] == "admin"


@pytest.mark.anyio
async def test_upgrades_existing_user(async_client: AsyncClient, create_test_user, db_session):
    user = await create_test_user(email="root@example.com", username="root")

    resp = await async_client.post("/api/auth/create-admin", json=_body())
    assert resp.status_code == 200
    assert resp.json()["message"] == "User root has been upgraded to admin"

    refreshed = await db_session.get(User, user.id)
    assert refreshed.role == "admin"


@pytest.mark.anyio
async def test_existing_admin_is_updated(async_client: AsyncClient):
    assert (await async_client.post("/api/auth/create-admin", json=_body())).status_code == 201

    resp = await async_client.post("/api/auth/create-admin", json=_body(password="newrootpass"))
    assert resp.status_code == 200
    assert resp.json()["message"] == "Admin user updated successfully"

    login = await async_client.post("/api/auth/login", json={"email": "root@example.com", "password": "newrootpass"})
    assert login.status_code == 200


@pytest.mark.anyio
async def test_upgrade_keeps_the_existing_username(async_client: AsyncClient, create_test_user, db_session):
    user = await create_test_user(email="root@example.com", username="trinity")

    resp = await async_client.post("/api/auth/create-admin", json=_body(username="root"))
    assert resp.status_code == 200
    assert resp.json()["message"] == "User root has been upgraded to admin"

    await db_session.refresh(user)
    assert user.role == "admin"
    assert user.username == "trinity"


@pytest.mark.anyio
async def test_existing_admin_username_is_updated(async_client: AsyncClient, db_session):
    assert (await async_client.post("/api/auth/create-admin", json=_body())).status_code == 201

    resp = await async_client.post("/api/auth/create-admin", json=_body(username="superroot"))
    assert resp.status_code == 200
    assert resp.json()["message"] == "Admin user updated successfully"

    user = (await db_session.execute(select(User).where(User.email == "root@example.com"))).scalar_one()
    assert user.username == "superroot"
