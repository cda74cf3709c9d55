# app/schemas/timesheet.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class TimesheetEntryCreate(BaseModel):
    opportunity_id: str = Field(..., min_length=1, max_length=64)
    work_date: date
    hours: Decimal = Field(..., gt=0, le=24, max_digits=5, decimal_places=2)
    description: str = Field(default="", max_length=2000)


class TimesheetEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    opportunity_id: str
    work_date: date
    hours: Decimal
    description: str
    created_at: datetime
