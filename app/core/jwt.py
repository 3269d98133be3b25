# app/core/jwt.py
from __future__ import annotations

"""
AKFlix — Session tokens (JWT)
=============================
- `SessionTokenService.issue()` mints an HS256 bearer token for a principal
- `SessionTokenService.verify()` returns `Verified(SessionClaims)` or
  `Rejected(reason)`; it never raises for a bad token
- Case-insensitive Bearer token extraction

Notes
-----
- Expiry is checked against the service's injected clock, not python-jose's
  wall clock, so tests can pin time. A token is valid iff `now < exp`.
- Rejection reasons are for logs only; the HTTP layer answers every failure
  with the same 401.
"""

import logging
import time
import uuid
from datetime import timedelta
from typing import Any, Callable, Dict, Optional

from fastapi import Request
from jose import JWTError, jwt
from pydantic import ValidationError

from app.schemas.enums import TokenRejection
from app.schemas.security import Rejected, SessionClaims, VerificationResult, Verified

logger = logging.getLogger("app.auth")

Clock = Callable[[], float]

DEFAULT_SESSION_TTL = timedelta(days=30)


# ─────────────────────────────────────────────────────────────
# 🔐 Session token service
# ─────────────────────────────────────────────────────────────
class SessionTokenService:
    """Issue and verify session bearer tokens signed with one secret key."""

    def __init__(
        self,
        secret_key: str,
        *,
        algorithm: str = "HS256",
        ttl: timedelta = DEFAULT_SESSION_TTL,
        clock: Clock = time.time,
    ) -> None:
        if not secret_key:
            raise ValueError("secret_key must be non-empty")
        self._key = secret_key
        self._algorithm = algorithm
        self._ttl = int(ttl.total_seconds())
        self._clock = clock

    def issue(self, subject: Any, *, role: Optional[str] = None) -> str:
        """Return a signed token for `subject`, expiring after the configured TTL."""
        now = int(self._clock())
        claims: Dict[str, Any] = {
            "sub": str(subject),
            "iat": now,
            "exp": now + self._ttl,
            "jti": uuid.uuid4().hex,
            "token_type": "access",
        }
        if role is not None:
            claims["role"] = role
        return jwt.encode(claims, self._key, algorithm=self._algorithm)

    def verify(self, token: str) -> VerificationResult[SessionClaims]:
        """Check signature, shape and expiry of `token`."""
        if not token:
            return Rejected(TokenRejection.MALFORMED)

        try:
            payload = jwt.decode(
                token,
                self._key,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTError as e:
            # python-jose lumps decode and signature failures together
            reason = (
                TokenRejection.BAD_SIGNATURE
                if "signature" in str(e).lower()
                else TokenRejection.MALFORMED
            )
            logger.info("Session token rejected (%s)", reason.value)
            return Rejected(reason)

        try:
            claims = SessionClaims.model_validate(payload)
        except ValidationError:
            logger.info("Session token rejected (malformed claims)")
            return Rejected(TokenRejection.MALFORMED)

        if claims.token_type != "access":
            return Rejected(TokenRejection.MALFORMED)

        if not self._clock() < claims.exp:
            logger.info("Session token expired for sub=%s", claims.sub)
            return Rejected(TokenRejection.EXPIRED)

        return Verified(claims)


# ─────────────────────────────────────────────────────────────
# 📥 Extract Bearer Token from Authorization Header
# ─────────────────────────────────────────────────────────────
def get_bearer_token(request: Request) -> Optional[str]:
    """Return the Bearer token from `Authorization` (case-insensitive), or None."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        logger.debug("Malformed Authorization header")
        return None

    return parts[1].strip() or None


__all__ = ["SessionTokenService", "DEFAULT_SESSION_TTL", "get_bearer_token"]
