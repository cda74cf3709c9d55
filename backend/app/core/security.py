# app/core/security.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import HTTPException, status
from fastapi.security import HTTPBearer
from jose import JWTError, jwt

from app.core.config import settings

bearer_scheme = HTTPBearer(auto_error=True)

TOKEN_TYPE_ACCESS = "access"


@dataclass(frozen=True)
class AccessTokenClaims:
    subject: str
    email: Optional[str]
    issued_at: datetime
    expires_at: datetime


def _unauthorized(detail: str = "Invalid token") -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _clean_token(token: str | None) -> str:
    """
    Tolerate copy-paste noise from API clients: whitespace, surrounding
    quotes and a duplicated 'Bearer ' prefix.
    """
    t = (token or "").strip().strip("\"'").strip()
    if t.lower().startswith("bearer "):
        t = t[7:].strip()
    return t


def create_access_token(
    subject: str,
    *,
    email: Optional[str] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    now = datetime.now(timezone.utc)
    expire_dt = now + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    claims: dict[str, Any] = {
        "sub": str(subject),
        "typ": TOKEN_TYPE_ACCESS,
        "iat": int(now.timestamp()),
        "exp": int(expire_dt.timestamp()),
    }
    if email:
        claims["email"] = email

    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> AccessTokenClaims:
    token = _clean_token(token)
    if not token:
        raise _unauthorized()

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require_sub": True, "require_exp": True},
        )
    except JWTError:
        # expired signature, bad format, bad signature, wrong algorithm, ...
        raise _unauthorized()

    if payload.get("typ") != TOKEN_TYPE_ACCESS or not payload.get("sub"):
        raise _unauthorized()

    return AccessTokenClaims(
        subject=str(payload["sub"]),
        email=payload.get("email"),
        issued_at=datetime.fromtimestamp(int(payload.get("iat", 0)), tz=timezone.utc),
        expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
    )
