# app/schemas/auth.py

from typing import Optional

from pydantic import EmailStr, Field, SecretStr, constr

from app.schemas.common import CamelModel
from app.schemas.user import UserOut


# ──────────────── Register ────────────────
class RegisterRequest(CamelModel):
    username: constr(strip_whitespace=True, min_length=1, max_length=64)
    email: EmailStr
    password: constr(min_length=6)
    profile_pic: Optional[str] = None


# ──────────────── Login ────────────────
class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class AuthResponse(CamelModel):
    success: bool = True
    token: str
    user: UserOut


class MeResponse(CamelModel):
    success: bool = True
    user: UserOut


# ──────────────── Admin provisioning ────────────────
class CreateAdminRequest(CamelModel):
    # Optional on purpose: missing fields are a 400, checked before the setup key
    username: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6)
    setup_key: Optional[SecretStr] = None
