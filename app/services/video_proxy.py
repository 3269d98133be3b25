from __future__ import annotations

"""
Byte-range video passthrough.

`open_upstream()` issues one GET to the token's target URL (forwarding the
client's `Range`, default `bytes=0-`) and returns the streaming response.
`build_proxy_response()` mirrors its status and end-to-end headers and relays
the raw body chunk by chunk: no buffering, no decoding, no retry. The
upstream response is closed on every exit path.
"""

import logging
from typing import AsyncIterator, Iterable, List, Optional, Tuple

import anyio
import httpx
from starlette.responses import StreamingResponse
from starlette.types import Receive, Scope, Send

from app.core.config import origin_of
from app.core.exceptions import ForbiddenException, UpstreamFailureException

logger = logging.getLogger("app.video.proxy")

DEFAULT_RANGE = "bytes=0-"

# Connection-scoped headers (RFC 9110 §7.6.1) are never relayed
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "proxy-connection",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)


def forwardable_headers(headers: httpx.Headers) -> List[Tuple[bytes, bytes]]:
    """End-to-end headers of an upstream response as received (raw bytes), repeated headers kept."""
    dropped = {name.encode("ascii") for name in HOP_BY_HOP_HEADERS}
    # Headers named in `Connection` are hop-by-hop as well
    for name, value in headers.raw:
        if name.lower() == b"connection":
            dropped.update(token.strip().lower() for token in value.split(b",") if token.strip())
    return [(name.lower(), value) for name, value in headers.raw if name.lower() not in dropped]


def check_origin(target_url: str, allowed_origins: Iterable[str]) -> None:
    """Raise 403 when an allow-list is configured and `target_url` is outside it."""
    allowed = list(allowed_origins)
    if not allowed:
        return
    if origin_of(target_url) not in allowed:
        logger.warning("Video target outside allowed origins")
        raise ForbiddenException("Access denied: Video source not allowed")


async def open_upstream(
    client: httpx.AsyncClient,
    target_url: str,
    range_header: Optional[str],
) -> httpx.Response:
    """Send the upstream GET; any transport failure becomes a generic 500."""
    try:
        request = client.build_request("GET", target_url, headers={"Range": range_header or DEFAULT_RANGE})
        return await client.send(request, stream=True)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.error("Error streaming video: %s: %s", type(exc).__name__, exc)
        raise UpstreamFailureException() from exc


async def relay_body(upstream: httpx.Response) -> AsyncIterator[bytes]:
    """Yield the raw upstream bytes; a mid-stream failure truncates the response."""
    try:
        async for chunk in upstream.aiter_raw():
            yield chunk
    except httpx.HTTPError as exc:
        logger.warning("Upstream failed mid-stream: %s", exc)
        raise
    finally:
        await upstream.aclose()


class ProxyStreamingResponse(StreamingResponse):
    """Streaming response that owns its upstream and closes it however sending ends."""

    def __init__(self, upstream: httpx.Response) -> None:
        super().__init__(relay_body(upstream), status_code=upstream.status_code)
        self.upstream = upstream
        self.raw_headers = forwardable_headers(upstream.headers)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            # A disconnect can abandon the body iterator before its own cleanup runs
            with anyio.CancelScope(shield=True):
                await upstream_close(self.upstream)


async def upstream_close(upstream: httpx.Response) -> None:
    if not upstream.is_closed:
        await upstream.aclose()


def build_proxy_response(upstream: httpx.Response) -> StreamingResponse:
    return ProxyStreamingResponse(upstream)


__all__ = [
    "DEFAULT_RANGE",
    "HOP_BY_HOP_HEADERS",
    "forwardable_headers",
    "check_origin",
    "open_upstream",
    "relay_body",
    "ProxyStreamingResponse",
    "upstream_close",
    "build_proxy_response",
]
