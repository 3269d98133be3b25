# app/api/routers/videos.py
"""
Video streaming API — AKFlix
============================

GET /videos/stream?token=<opaque>
    Verifies the signed video token and relays the upstream bytes for its
    `targetUrl`, forwarding the client's `Range` header.

Failure mapping
---------------
- no token                         → 401 "Access denied: No token provided"
- malformed / tampered / expired   → 401 uniform message (reason only logged)
- replayed (single-use enabled)    → 401 uniform message
- target outside allowed origins   → 403
- upstream unreachable             → 500 "Error streaming video"

The session bearer token is not required here: the signed token is the
credential, so `<video src>` elements can use the URL directly.
"""

import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Query, Request
from starlette.responses import StreamingResponse

from app.core.config import settings
from app.core.dependencies import get_replay_guard, get_upstream_client, get_video_token_codec
from app.core.exceptions import InvalidTokenException
from app.core.limiter import rate_limit_exempt
from app.schemas.security import Rejected
from app.services.replay_guard import ReplayGuard
from app.services.signing import SignedTokenCodec
from app.services.video_proxy import build_proxy_response, check_origin, open_upstream, upstream_close

router = APIRouter(prefix="/videos", tags=["Videos"])
logger = logging.getLogger("app.video.proxy")


@router.get("/stream", summary="Stream a video through a signed token", response_class=StreamingResponse)
@rate_limit_exempt()  # players issue many Range requests per title
async def stream_video(
    request: Request,
    token: Optional[str] = Query(None),
    codec: SignedTokenCodec = Depends(get_video_token_codec),
    guard: Optional[ReplayGuard] = Depends(get_replay_guard),
    client: httpx.AsyncClient = Depends(get_upstream_client),
) -> StreamingResponse:
    if not token:
        raise InvalidTokenException("Access denied: No token provided")

    result = codec.verify(token)
    if isinstance(result, Rejected):
        logger.warning("Video token rejected: %s", result.reason.value)
        raise InvalidTokenException()
    payload = result.value

    check_origin(payload.target_url, settings.video_proxy_allowed_origins)

    if guard is not None and not await guard.claim(token, payload.expires_at):
        raise InvalidTokenException()

    upstream = await open_upstream(client, payload.target_url, request.headers.get("range"))
    try:
        logger.info(
            "Proxying resource_id=%s status=%s range=%s",
            payload.resource_id,
            upstream.status_code,
            request.headers.get("range") or "-",
        )
        return build_proxy_response(upstream)
    except Exception:
        await upstream_close(upstream)
        raise


__all__ = ["router"]
