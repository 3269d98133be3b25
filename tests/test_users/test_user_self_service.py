import uuid

import pytest
from httpx import AsyncClient

from app.core.security import verify_password
from tests.utils.factory import DEFAULT_PASSWORD


# ─────────────────────────────────────────────────────────────
# PUT /users/profile
# ─────────────────────────────────────────────────────────────
@pytest.mark.anyio
async def test_update_profile_fields_and_preferences(async_client: AsyncClient, user_with_headers):
    user, headers = user_with_headers
    resp = await async_client.put(
        "/api/users/profile",
        json={
            "username": "renamed",
            "profilePic": "https://img.example.com/new.png",
            "preferences": {"favGenres": ["Drama"], "recommendationSettings": "similar"},
        },
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert data["username"] == "renamed"
    assert data["profilePic"] == "https://img.example.com/new.png"
    assert data["preferences"] == {"favGenres": ["Drama"], "recommendationSettings": "similar"}
    assert data["email"] == user.email


@pytest.mark.anyio
async def test_profile_update_ignores_password_and_role(async_client: AsyncClient, user_with_headers):
    user, headers = user_with_headers
    old_hash = user.hashed_password

    resp = await async_client.put(
        "/api/users/profile",
        json={"password": "hijacked", "role": "admin"},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["role"] == "user"
    assert user.hashed_password == old_hash


@pytest.mark.anyio
async def test_profile_email_taken_by_other_user_is_400(async_client: AsyncClient, user_with_headers, create_test_user):
    _, headers = user_with_headers
    other = await create_test_user()

    resp = await async_client.put("/api/users/profile", json={"email": other.email}, headers=headers)
    assert resp.status_code == 400


@pytest.mark.anyio
async def test_profile_requires_auth(async_client: AsyncClient):
    assert (await async_client.put("/api/users/profile", json={"username": "x"})).status_code == 401


# ─────────────────────────────────────────────────────────────
# PUT /users/password
# ─────────────────────────────────────────────────────────────
@pytest.mark.anyio
async def test_change_password(async_client: AsyncClient, user_with_headers):
    user, headers = user_with_headers
    resp = await async_client.put(
        "/api/users/password",
        json={"currentPassword": DEFAULT_PASSWORD, "newPassword": "brand-new-pass"},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["message"] == "Password updated successfully"
    assert verify_password("brand-new-pass", user.hashed_password)

    login = await async_client.post("/api/auth/login", json={"email": user.email, "password": "brand-new-pass"})
    assert login.status_code == 200


@pytest.mark.anyio
async def test_change_password_wrong_current_is_401(async_client: AsyncClient, user_with_headers):
    _, headers = user_with_headers
    resp = await async_client.put(
        "/api/users/password",
        json={"currentPassword": "wrong-one", "newPassword": "brand-new-pass"},
        headers=headers,
    )
    assert resp.status_code == 401
    assert resp.json()["message"] == "Current password is incorrect"


@pytest.mark.anyio
@pytest.mark.parametrize(
    "body",
    [
        {"newPassword": "brand-new-pass"},
        {"currentPassword": DEFAULT_PASSWORD},
        {"currentPassword": DEFAULT_PASSWORD, "newPassword": "short"},
    ],
)
async def test_change_password_bad_input_is_400(async_client: AsyncClient, user_with_headers, body):
    _, headers = user_with_headers
    resp = await async_client.put("/api/users/password", json=body, headers=headers)
    assert resp.status_code == 400


# ─────────────────────────────────────────────────────────────
# watchlist / watched
# ─────────────────────────────────────────────────────────────
@pytest.mark.anyio
@pytest.mark.parametrize("list_name", ["watchlist", "watched"])
async def test_toggle_movie_list(async_client: AsyncClient, user_with_headers, create_test_movie, list_name):
    _, headers = user_with_headers
    first = await create_test_movie()
    second = await create_test_movie()

    resp = await async_client.post(f"/api/users/{list_name}/{first.id}", headers=headers)
    assert resp.status_code == 200
    assert resp.json() == {"success": True, list_name: [str(first.id)]}

    resp = await async_client.post(f"/api/users/{list_name}/{second.id}", headers=headers)
    assert resp.json()[list_name] == [str(first.id), str(second.id)]

    resp = await async_client.post(f"/api/users/{list_name}/{first.id}", headers=headers)
    assert resp.json()[list_name] == [str(second.id)]

    me = (await async_client.get("/api/auth/me", headers=headers)).json()["user"]
    assert me[list_name] == [str(second.id)]


@pytest.mark.anyio
@pytest.mark.parametrize("movie_id", [str(uuid.uuid4()), "bogus"])
async def test_toggle_unknown_movie_is_404(async_client: AsyncClient, user_with_headers, movie_id):
    _, headers = user_with_headers
    resp = await async_client.post(f"/api/users/watchlist/{movie_id}", headers=headers)
    assert resp.status_code == 404
    assert resp.json()["message"] == "Movie not found"
