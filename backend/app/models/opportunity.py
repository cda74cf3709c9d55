# app/models/opportunity.py
from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import Boolean, CheckConstraint, Date, DateTime, ForeignKey, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from app.core.pipeline import OpportunityStatus, ProjectType, Temperature
from app.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_opportunity_id() -> str:
    return f"op-{uuid.uuid4().hex[:16]}"


class Opportunity(Base):
    """
    A client engagement moving through the sales/delivery pipeline.

    NOTE:
      - Never hard-deleted: commission records reference it. Removal sets is_archived.
      - status transitions are not enforced here (they can regress).
    """

    __tablename__ = "opportunities"
    __table_args__ = (
        CheckConstraint("estimated_value >= 0", name="ck_opportunities_estimated_value_non_negative"),
        Index("ix_opportunities_executive_created", "executive_id", "created_at"),
        Index("ix_opportunities_status", "status"),
    )

    # Opaque, stable id (also the anchor for deterministic commission ids)
    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_opportunity_id)

    executive_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )

    company_name: Mapped[str] = mapped_column(String(255), nullable=False)  # razão social
    cnpj: Mapped[str | None] = mapped_column(String(32), nullable=True)
    contact_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(320), nullable=True)

    project_type: Mapped[str] = mapped_column(String(32), nullable=False, default=ProjectType.WEB.value)
    estimated_value: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))

    status: Mapped[str] = mapped_column(String(32), nullable=False, default=OpportunityStatus.PROSPECTING.value)
    temperature: Mapped[str] = mapped_column(String(8), nullable=False, default=Temperature.WARM.value)

    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    payment_conditions: Mapped[str | None] = mapped_column(Text, nullable=True)  # e.g. "50% entry + 50% delivery"

    # technical_scope, approval_status, feedback, complexity, risk_analysis, estimated_hours, ...
    engineering: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    project_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    project_deadline: Mapped[date | None] = mapped_column(Date, nullable=True)

    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, server_default=func.now(), nullable=False
    )
