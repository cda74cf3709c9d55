# backend/app/core/config.py

from __future__ import annotations

import json
from typing import Annotated, Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEV_JWT_SECRET = "dev-secret-change-me"
LOCKED_DOWN_ENVIRONMENTS = {"staging", "production"}

# libpq-only query params that asyncpg.connect() rejects as kwargs
_ASYNCPG_REJECTED_PARAMS = {"sslmode", "channel_binding"}


def clean_async_database_url(url: str) -> str:
    """
    Hosted Postgres URLs usually carry ?sslmode=require; passed through to
    asyncpg that fails with "connect() got an unexpected keyword argument".
    Other drivers (aiosqlite) get the URL untouched.
    """
    parts = urlsplit(url)
    if not parts.query or not parts.scheme.startswith("postgresql+asyncpg"):
        return url

    kept = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k not in _ASYNCPG_REJECTED_PARAMS]
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(kept, doseq=True), parts.fragment))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # development | staging | production
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # -----------------------------
    # Database
    # -----------------------------
    # SQLite for local development; production points both at Postgres.
    DATABASE_URL_ASYNC: str = "sqlite+aiosqlite:///./commission_crm.db"
    # alembic only
    DATABASE_URL_SYNC: str = "sqlite:///./commission_crm.db"
    # create tables at startup (dev only; staging/production run alembic)
    DB_AUTO_CREATE: bool = False

    # -----------------------------
    # Auth tokens
    # -----------------------------
    JWT_SECRET: str = DEV_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # -----------------------------
    # HTTP
    # -----------------------------
    # JSON list or comma separated
    CORS_ORIGINS: Annotated[list[str], NoDecode] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # -----------------------------
    # Bootstrap
    # -----------------------------
    SEED_MASTER_ADMIN: bool = True
    MASTER_ADMIN_EMAIL: str = "admin@example.com"
    MASTER_ADMIN_NAME: str = "Master Admin"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, v: Any) -> Any:
        if not isinstance(v, str):
            return v
        if v.strip().startswith("["):
            return json.loads(v)
        return [o.strip() for o in v.split(",") if o.strip()]

    @field_validator("LOG_LEVEL")
    @classmethod
    def known_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported LOG_LEVEL={v!r}")
        return level

    @property
    def is_locked_down(self) -> bool:
        return (self.ENVIRONMENT or "").strip().lower() in LOCKED_DOWN_ENVIRONMENTS

    @property
    def DATABASE_URL_ASYNC_CLEAN(self) -> str:
        return clean_async_database_url(self.DATABASE_URL_ASYNC)

    def model_post_init(self, __context) -> None:  # pydantic v2 hook
        if self.JWT_ALGORITHM != "HS256":
            raise ValueError(f"Unsupported JWT_ALGORITHM={self.JWT_ALGORITHM!r}. Allowed: HS256")

        if not self.is_locked_down:
            return

        secret = (self.JWT_SECRET or "").strip()
        if secret == DEV_JWT_SECRET or len(secret) < 32:
            raise ValueError(f"JWT_SECRET must be a real secret of 32+ characters in {self.ENVIRONMENT}.")
        if self.DATABASE_URL_ASYNC.startswith("sqlite"):
            raise ValueError(f"SQLite is for local development only, not {self.ENVIRONMENT}.")


settings = Settings()
