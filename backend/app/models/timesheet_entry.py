# app/models/timesheet_entry.py
from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class TimesheetEntry(Base):
    __tablename__ = "timesheet_entries"
    __table_args__ = (
        CheckConstraint("hours > 0 AND hours <= 24", name="ck_timesheet_entries_hours_range"),
        Index("ix_timesheet_entries_user_work_date", "user_id", "work_date"),
        Index("ix_timesheet_entries_opportunity", "opportunity_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    # linked project
    opportunity_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("opportunities.id", ondelete="RESTRICT"), nullable=False
    )

    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    hours: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        nullable=False,
    )
