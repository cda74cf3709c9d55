# backend/app/models/user.py
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from app.core.roles import normalize_role, UserRole
from app.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False, default="")

    # ADMIN | EXECUTIVE | EXECUTIVE_LEADER | ENGINEER | PROGRAMMER | FINANCE
    role: Mapped[str] = mapped_column(String(32), nullable=False, default=UserRole.EXECUTIVE.value)

    # Executive network: an EXECUTIVE_LEADER sees the pipeline of the executives they lead
    leader_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)  # e.g. "São Paulo, SP"

    # Contractor (PJ) payout data: cnpj, legal_name, address, bank_info{...}
    pj_details: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    # Email-first magic code auth
    magic_code: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    magic_code_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, server_default=func.now(), nullable=False
    )

    @staticmethod
    def normalize_email(value: str) -> str:
        return value.strip().lower()

    @staticmethod
    def normalize_name(value: Optional[str]) -> str:
        if value is None:
            return ""
        return " ".join(value.strip().split())

    @staticmethod
    def normalize_user_role(value: Optional[str]) -> str:
        r = normalize_role(value)
        if r not in {m.value for m in UserRole}:
            raise ValueError(f"Unknown role {value!r}. Allowed: {', '.join(m.value for m in UserRole)}")
        return r
