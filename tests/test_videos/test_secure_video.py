import time
import uuid
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest
from httpx import AsyncClient

from app.core.dependencies import get_video_token_codec
from app.schemas.security import Verified

SOURCE = "https://media.example.com/films/arrival.mp4"


@pytest.mark.anyio
async def test_secure_video_requires_auth(async_client: AsyncClient, create_test_movie):
    movie = await create_test_movie(video_url=SOURCE)
    resp = await async_client.get(f"/api/movies/{movie.id}/secure-video")
    assert resp.status_code == 401


@pytest.mark.anyio
async def test_secure_video_without_source_is_404(async_client: AsyncClient, create_test_movie, user_with_headers):
    _, headers = user_with_headers
    movie = await create_test_movie(video_url=None)

    resp = await async_client.get(f"/api/movies/{movie.id}/secure-video", headers=headers)
    assert resp.status_code == 404
    assert resp.json()["message"] == "No video available for this movie"


@pytest.mark.anyio
async def test_secure_video_unknown_movie_is_404(async_client: AsyncClient, user_with_headers):
    _, headers = user_with_headers
    resp = await async_client.get(f"/api/movies/{uuid.uuid4()}/secure-video", headers=headers)
    assert resp.status_code == 404
    assert resp.json()["message"] == "Movie not found"


@pytest.mark.anyio
async def test_secure_video_url_carries_signed_token(async_client: AsyncClient, create_test_movie, user_with_headers):
    _, headers = user_with_headers
    movie = await create_test_movie(video_url=SOURCE)

    before = int(time.time())
    resp = await async_client.get(f"/api/movies/{movie.id}/secure-video", headers=headers)
    assert resp.status_code == 200
    data = resp.json()["data"]

    parts = urlsplit(data["secureUrl"])
    assert parts.path == "/api/videos/stream"
    assert SOURCE not in data["secureUrl"]
    assert before + 3600 <= data["expiresAt"] <= int(time.time()) + 3600

    (token,) = parse_qs(parts.query)["token"]
    result = get_video_token_codec().verify(token)
    assert isinstance(result, Verified)
    assert result.value.resource_id == str(movie.id)
    assert result.value.target_url == SOURCE
    assert result.value.expires_at == data["expiresAt"]


@pytest.mark.anyio
async def test_secure_url_streams_end_to_end(async_client: AsyncClient, create_test_movie, user_with_headers, upstream):
    _, headers = user_with_headers
    movie = await create_test_movie(video_url=SOURCE)
    recorder = upstream(
        lambda request: httpx.Response(
            206,
            headers={"Content-Range": "bytes 0-3/4", "Content-Type": "video/mp4"},
            stream=httpx.ByteStream(b"\x00\x01\x02\x03"),
        )
    )

    secure_url = (await async_client.get(f"/api/movies/{movie.id}/secure-video", headers=headers)).json()["data"][
        "secureUrl"
    ]
    # A <video> element sends no bearer token
    resp = await async_client.get(secure_url)

    assert resp.status_code == 206
    assert resp.content == b"\x00\x01\x02\x03"
    assert str(recorder.requests[0].url) == SOURCE
