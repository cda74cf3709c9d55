# app/models/commission_record.py
from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CommissionRecord(Base):
    """
    Persisted commission ledger.

    Rows are written by the derivation engine (creation) and by finance actions
    (invoice received, paid). They are upserted by id and never deleted.

    id is deterministic: com-{opportunity_id}-1 | -2 | -2-pending
    """

    __tablename__ = "commission_records"
    __table_args__ = (
        Index("ix_commission_records_opportunity", "opportunity_id"),
        Index("ix_commission_records_status", "status"),
    )

    id: Mapped[str] = mapped_column(String(96), primary_key=True)

    opportunity_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("opportunities.id", ondelete="RESTRICT"),
        nullable=False,
    )

    # CLOSING | SUCCESS_FEE
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    # PENDING | AVAILABLE | INVOICE_RECEIVED | PAID
    status: Mapped[str] = mapped_column(String(24), nullable=False)

    # ISO date or "TBD"
    due_date: Mapped[str] = mapped_column(String(32), nullable=False)

    invoice_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    paid_at: Mapped[date | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, server_default=func.now(), nullable=False
    )
