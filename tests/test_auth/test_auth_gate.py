from datetime import timedelta

import pytest
from httpx import AsyncClient

from app.core.config import settings
from app.core.dependencies import get_video_token_codec
from app.core.jwt import SessionTokenService
from app.schemas.enums import UserRole


@pytest.mark.anyio
async def test_missing_header_is_401(async_client: AsyncClient):
    resp = await async_client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.headers.get("www-authenticate") == "Bearer"
    assert resp.json()["message"] == "Not authorized to access this route"


@pytest.mark.anyio
@pytest.mark.parametrize("header", ["Basic dXNlcjpwYXNz", "Bearer", "Bearer not.a.jwt"])
async def test_malformed_credentials_are_401(async_client: AsyncClient, header):
    resp = await async_client.get("/api/auth/me", headers={"Authorization": header})
    assert resp.status_code == 401


@pytest.mark.anyio
async def test_expired_token_is_401(async_client: AsyncClient, create_test_user):
    user = await create_test_user()
    stale = SessionTokenService(
        settings.JWT_SECRET_KEY.get_secret_value(),
        ttl=timedelta(seconds=60),
        clock=lambda: 1_000_000,
    ).issue(user.id)

    resp = await async_client.get("/api/auth/me", headers={"Authorization": f"Bearer {stale}"})
    assert resp.status_code == 401


@pytest.mark.anyio
async def test_token_signed_with_other_key_is_401(async_client: AsyncClient, create_test_user):
    user = await create_test_user()
    forged = SessionTokenService("not-the-server-key").issue(user.id)
    resp = await async_client.get("/api/auth/me", headers={"Authorization": f"Bearer {forged}"})
    assert resp.status_code == 401


@pytest.mark.anyio
async def test_token_for_deleted_user_is_401(async_client: AsyncClient, db_session, user_with_headers):
    user, headers = user_with_headers
    await db_session.delete(user)
    await db_session.commit()

    resp = await async_client.get("/api/auth/me", headers=headers)
    assert resp.status_code == 401


@pytest.mark.anyio
async def test_video_token_is_not_a_session_token(async_client: AsyncClient, create_test_user):
    user = await create_test_user()
    token, _ = get_video_token_codec().issue(str(user.id), "https://cdn.example.com/a.mp4")
    resp = await async_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


@pytest.mark.anyio
async def test_non_admin_is_403_on_admin_route(async_client: AsyncClient, user_with_headers):
    _, headers = user_with_headers
    resp = await async_client.get("/api/users", headers=headers)
    assert resp.status_code == 403
    assert resp.json()["message"] == "Access denied. Admin role required"


@pytest.mark.anyio
async def test_admin_passes_admin_route(async_client: AsyncClient, admin_with_headers):
    _, headers = admin_with_headers
    resp = await async_client.get("/api/users", headers=headers)
    assert resp.status_code == 200


@pytest.mark.anyio
async def test_unauthenticated_admin_route_is_401_not_403(async_client: AsyncClient):
    resp = await async_client.get("/api/users")
    assert resp.status_code == 401


@pytest.mark.anyio
async def test_role_is_read_from_store_not_token(async_client: AsyncClient, create_test_user, session_tokens):
    user = await create_test_user(role=UserRole.USER)
    # A token claiming admin does not grant it
    token = session_tokens.issue(user.id, role="admin")
    resp = await async_client.get("/api/users", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 403
