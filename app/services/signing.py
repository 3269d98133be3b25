from __future__ import annotations

"""
Signed, time-limited video access tokens.

Wire format
-----------
    token = urlsafe_b64(payload_json + "|" + hex(HMAC-SHA256(key, payload_json)))

`payload_json` is compact JSON with keys in a fixed order
(`resourceId`, `targetUrl`, `expiresAt`); padding is stripped from the
base64 text so the token drops straight into a query string.

A token verifies iff the MAC matches, the payload has the expected shape
and `now < expiresAt`. Tokens are stateless; replay protection, when wanted,
lives in `app.services.replay_guard`.
"""

import base64
import binascii
import hashlib
import hmac
import json
import logging
import time
from typing import Callable, Tuple
from urllib.parse import quote

from pydantic import ValidationError

from app.schemas.enums import TokenRejection
from app.schemas.security import (
    Rejected,
    VerificationResult,
    Verified,
    VideoTokenPayload,
)

logger = logging.getLogger("app.video.tokens")

Clock = Callable[[], float]

DEFAULT_TTL_SECONDS = 3600
_SEPARATOR = "|"


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _b64decode(text: str) -> bytes:
    padded = text + "=" * (-len(text) % 4)
    raw = base64.b64decode(padded, altchars=b"-_", validate=True)
    # Reject non-canonical encodings (e.g. flipped unused trailing bits)
    if _b64encode(raw) != text:
        raise ValueError("non-canonical base64")
    return raw


class SignedTokenCodec:
    """Issue and verify HMAC-signed video tokens with a single secret key."""

    def __init__(
        self,
        secret_key: str,
        *,
        default_ttl: int = DEFAULT_TTL_SECONDS,
        clock: Clock = time.time,
    ) -> None:
        if not secret_key:
            raise ValueError("secret_key must be non-empty")
        self._key = secret_key.encode("utf-8")
        self._default_ttl = int(default_ttl)
        self._clock = clock

    def _mac(self, message: bytes) -> str:
        return hmac.new(self._key, message, hashlib.sha256).hexdigest()

    def issue(
        self,
        resource_id: str,
        target_url: str,
        ttl_seconds: int | None = None,
    ) -> Tuple[str, int]:
        """Return `(token, expires_at)` granting access to `target_url`.

        `expires_at` is epoch seconds.
        """
        ttl = self._default_ttl if ttl_seconds is None else int(ttl_seconds)
        if ttl <= 0:
            raise ValueError("ttl_seconds must be positive")

        expires_at = int(self._clock()) + ttl
        payload = VideoTokenPayload(
            resource_id=str(resource_id),
            target_url=str(target_url),
            expires_at=expires_at,
        )
        body = json.dumps(
            payload.model_dump(by_alias=True),
            separators=(",", ":"),
            ensure_ascii=False,
        )
        signed = f"{body}{_SEPARATOR}{self._mac(body.encode('utf-8'))}"
        return _b64encode(signed.encode("utf-8")), expires_at

    def verify(self, token: str) -> VerificationResult[VideoTokenPayload]:
        """Decode `token`; returns `Verified(payload)` or `Rejected(reason)`."""
        if not token or not isinstance(token, str):
            return Rejected(TokenRejection.MALFORMED)

        try:
            decoded = _b64decode(token).decode("utf-8")
        except (binascii.Error, ValueError, UnicodeDecodeError):
            return Rejected(TokenRejection.MALFORMED)

        # The MAC is hex and never contains the separator; the URL might.
        body, sep, signature = decoded.rpartition(_SEPARATOR)
        if not sep or not body or not signature:
            return Rejected(TokenRejection.MALFORMED)

        expected = self._mac(body.encode("utf-8"))
        if not hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8")):
            return Rejected(TokenRejection.BAD_SIGNATURE)

        try:
            payload = VideoTokenPayload.model_validate(json.loads(body))
        except (ValueError, ValidationError):
            return Rejected(TokenRejection.MALFORMED)

        if not self._clock() < payload.expires_at:
            return Rejected(TokenRejection.EXPIRED)

        return Verified(payload)


def secure_stream_path(token: str, *, api_prefix: str = "") -> str:
    """Relative URL of the proxy endpoint carrying `token`."""
    return f"{api_prefix}/videos/stream?token={quote(token, safe='')}"


__all__ = ["SignedTokenCodec", "DEFAULT_TTL_SECONDS", "secure_stream_path"]
