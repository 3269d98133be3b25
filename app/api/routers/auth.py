# app/api/routers/auth.py
"""
Authentication API — AKFlix
===========================

Endpoints
---------
POST /auth/register
    Create a `user`-role account and return its first session token (201).

POST /auth/login
    Email + password sign-in. Unknown email and wrong password give the same
    401 "Invalid credentials".

GET /auth/me
    The authenticated principal.

POST /auth/create-admin
    Setup-key guarded admin provisioning: 201 when a new admin is created,
    200 when an existing account is promoted or updated.

Security & DX
-------------
- **Route rate limits** on every credential-accepting route.
- **Sensitive cache headers** applied on token-issuing routes (no-store).
- Business logic lives in `app.services.auth.*`; routes stay thin.
"""

from fastapi import APIRouter, Body, Depends, Request, Response, status

from app.core.config import settings
from app.core.dependencies import get_session_tokens, get_user_repository
from app.core.jwt import SessionTokenService
from app.core.limiter import rate_limit
from app.core.security import get_current_user
from app.db.models.user import User
from app.repositories.user import UserRepository
from app.schemas.auth import AuthResponse, CreateAdminRequest, LoginRequest, MeResponse, RegisterRequest
from app.schemas.common import MessageResponse
from app.security_headers import set_sensitive_cache
from app.services.auth.admin_service import create_admin
from app.services.auth.login_service import login_user
from app.services.auth.signup_service import register_user

router = APIRouter(prefix="/auth", tags=["Authentication"])


# ──────────────────────────────────────────────────────────────
# 🆕 POST /auth/register
# ──────────────────────────────────────────────────────────────
@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
)
@rate_limit("10/minute")
async def register(
    request: Request,
    response: Response,
    payload: RegisterRequest = Body(...),
    users: UserRepository = Depends(get_user_repository),
    tokens: SessionTokenService = Depends(get_session_tokens),
) -> AuthResponse:
    """Create the account; duplicate email or username is a 400."""
    set_sensitive_cache(response)
    token, user = await register_user(payload, users, tokens)
    return AuthResponse(token=token, user=user)


# ──────────────────────────────────────────────────────────────
# 🔐 POST /auth/login
# ──────────────────────────────────────────────────────────────
@router.post("/login", response_model=AuthResponse, summary="Email + password login")
@rate_limit("5/minute")
async def login(
    request: Request,
    response: Response,
    payload: LoginRequest = Body(...),
    users: UserRepository = Depends(get_user_repository),
    tokens: SessionTokenService = Depends(get_session_tokens),
) -> AuthResponse:
    set_sensitive_cache(response)
    token, user = await login_user(payload, users, tokens)
    return AuthResponse(token=token, user=user)


# ──────────────────────────────────────────────────────────────
# 👤 GET /auth/me
# ──────────────────────────────────────────────────────────────
@router.get("/me", response_model=MeResponse, summary="Current principal")
async def me(current_user: User = Depends(get_current_user)) -> MeResponse:
    return MeResponse(user=current_user)


# ──────────────────────────────────────────────────────────────
# 🛡️ POST /auth/create-admin
# ──────────────────────────────────────────────────────────────
@router.post("/create-admin", response_model=MessageResponse, summary="Provision an admin account")
@rate_limit("3/minute")
async def create_admin_account(
    request: Request,
    response: Response,
    payload: CreateAdminRequest = Body(...),
    users: UserRepository = Depends(get_user_repository),
) -> MessageResponse:
    """Requires the configured `ADMIN_SETUP_KEY`; disabled when none is set."""
    message, created = await create_admin(payload, users, configured_key=settings.ADMIN_SETUP_KEY)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return MessageResponse(message=message)


__all__ = ["router"]
