# app/core/config.py
from __future__ import annotations

"""
# AKFlix — Centralized Configuration (Pydantic v2)

Single `settings` object with strongly-typed, environment-driven config.

## Goals
- Safe defaults for local/dev; explicit where prod needs secrets.
- CSV → list helpers for origins/allow-lists.
- Separate signing keys for session tokens and signed video URLs.

## Usage
    from app.core.config import settings
"""

import logging
from typing import List, Literal, Optional
from urllib.parse import urlsplit

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

log = logging.getLogger(__name__)
load_dotenv()  # harmless in prod; convenient in dev


# ─────────────────────────────────────────────────────────────
# Small helpers
# ─────────────────────────────────────────────────────────────
def _split_csv(v: str | None) -> list[str]:
    """Split a comma-separated string into a trimmed list (empty-safe)."""
    if not v:
        return []
    return [s.strip() for s in str(v).split(",") if s and s.strip()]


def origin_of(url: str) -> str:
    """Return `scheme://host[:port]` (lowercased) for a URL-ish string."""
    parts = urlsplit(url.strip())
    if not parts.scheme or not parts.netloc:
        return ""
    return f"{parts.scheme.lower()}://{parts.netloc.lower()}"


# ─────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────
class Settings(BaseSettings):
    """
    Global application settings sourced from environment.

    Security:
        - `JWT_SECRET_KEY` signs session tokens.
        - `VIDEO_TOKEN_SECRET_KEY` signs video access tokens; when unset the
          session key is reused (logged at startup).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # don't crash on unknown keys
    )

    # ── App meta ──────────────────────────────────────────────
    PROJECT_NAME: str = "AKFlix API"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    ENV: Literal["development", "staging", "production", "test"] = "development"
    ENABLE_DOCS: bool = True

    # ── Security / JWT sessions ───────────────────────────────
    JWT_SECRET_KEY: SecretStr = Field(...)
    JWT_ALGORITHM: Literal["HS256", "HS384", "HS512"] = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = Field(30, ge=1, le=365)

    # ── Signed video URLs ─────────────────────────────────────
    VIDEO_TOKEN_SECRET_KEY: Optional[SecretStr] = None
    VIDEO_TOKEN_TTL_SECONDS: int = Field(3600, ge=1, le=7 * 24 * 60 * 60)
    VIDEO_TOKEN_SINGLE_USE: bool = False
    VIDEO_PROXY_ALLOWED_ORIGINS: Optional[str] = None  # CSV of scheme://host[:port]

    # ── Admin provisioning ────────────────────────────────────
    ADMIN_SETUP_KEY: Optional[SecretStr] = None
    ADMIN_EMAIL: Optional[str] = None
    ADMIN_PASSWORD: Optional[SecretStr] = None
    ADMIN_USERNAME: str = "admin"

    # ── Redis ─────────────────────────────────────────────────
    # Rate limits are configured in app.core.limiter (RATELIMIT_STORAGE_URI etc.)
    REDIS_URL: str = "redis://localhost:6379/0"

    # ── Database ──────────────────────────────────────────────
    DATABASE_URL: Optional[str] = None  # full DSN; wins over POSTGRES_* parts
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: SecretStr = SecretStr("postgres")
    POSTGRES_DB: str = "akflix"
    DB_CREATE_ALL: bool = True  # create missing tables at startup

    # ── CORS ──────────────────────────────────────────────────
    FRONTEND_ORIGINS: Optional[str] = "http://localhost:3000,http://localhost:5173"  # CSV
    ALLOW_ORIGINS_REGEX: Optional[str] = None

    # ── Default avatar ────────────────────────────────────────
    DEFAULT_PROFILE_PIC: str = "https://i.pravatar.cc/150?img=1"

    # ── Validators / normalizers ──────────────────────────────
    @field_validator("FRONTEND_ORIGINS", "VIDEO_PROXY_ALLOWED_ORIGINS", mode="before")
    @classmethod
    def _normalize_csv(cls, v):
        return None if v is None else ",".join(_split_csv(str(v)))

    @field_validator("API_PREFIX", mode="before")
    @classmethod
    def _normalize_prefix(cls, v) -> str:
        s = str(v or "").strip().rstrip("/")
        if s and not s.startswith("/"):
            s = "/" + s
        return s

    # ── Derived / convenience properties ─────────────────────
    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"

    @property
    def async_database_url(self) -> str:
        """Async SQLAlchemy DSN (explicit `DATABASE_URL` wins)."""
        if self.DATABASE_URL:
            url = self.DATABASE_URL
            if url.startswith("postgresql://"):
                url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
            return url
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD.get_secret_value()}"
            f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def video_token_secret(self) -> str:
        """Key for signed video tokens; reuses the session key when unset."""
        if self.VIDEO_TOKEN_SECRET_KEY is not None:
            return self.VIDEO_TOKEN_SECRET_KEY.get_secret_value()
        return self.JWT_SECRET_KEY.get_secret_value()

    @property
    def video_token_key_shared(self) -> bool:
        return self.VIDEO_TOKEN_SECRET_KEY is None

    @property
    def video_proxy_allowed_origins(self) -> List[str]:
        """Normalized origin allow-list (empty list disables the check)."""
        return [o for o in (origin_of(u) for u in _split_csv(self.VIDEO_PROXY_ALLOWED_ORIGINS)) if o]

    @property
    def frontend_origins_list(self) -> List[str]:
        return _split_csv(self.FRONTEND_ORIGINS)


# Singleton instance
settings = Settings()
