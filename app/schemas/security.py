from __future__ import annotations

"""
Token payloads and verification outcomes.

`verify` on both token services returns either `Verified(value)` or
`Rejected(reason)`; nothing is raised for a bad token. Callers translate a
`Rejected` into their uniform HTTP failure.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr

from app.schemas.enums import TokenRejection

T = TypeVar("T")


@dataclass(frozen=True)
class Verified(Generic[T]):
    value: T


@dataclass(frozen=True)
class Rejected:
    reason: TokenRejection


VerificationResult = Union[Verified[T], Rejected]


class VideoTokenPayload(BaseModel):
    """Body of a signed video token (wire names are camelCase)."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    resource_id: StrictStr = Field(..., alias="resourceId")
    target_url: StrictStr = Field(..., alias="targetUrl")
    expires_at: StrictInt = Field(..., alias="expiresAt")


class SessionClaims(BaseModel):
    """Claims carried by a session bearer token."""

    sub: StrictStr
    exp: StrictInt
    iat: Optional[int] = None
    jti: Optional[str] = None
    role: Optional[str] = None
    token_type: str = "access"


class SecureVideoUrl(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    secure_url: str = Field(..., alias="secureUrl")
    expires_at: int = Field(..., alias="expiresAt")


__all__ = [
    "Verified",
    "Rejected",
    "VerificationResult",
    "VideoTokenPayload",
    "SessionClaims",
    "SecureVideoUrl",
]
