# app/schemas/commission.py
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CommissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    opportunity_id: str
    type: str
    amount: Decimal
    status: str
    due_date: str
    invoice_url: Optional[str] = None
    paid_at: Optional[date] = None


class CommissionListOut(BaseModel):
    items: List[CommissionOut]
    view: str
    total: int


class InvoiceReceiveIn(BaseModel):
    invoice_url: str = Field(..., min_length=1, max_length=2048)


class PaymentIn(BaseModel):
    # defaults to today (UTC)
    paid_at: Optional[date] = None


class OpportunityCommissionOut(BaseModel):
    opportunity_id: str
    company_name: str
    total_commission: Decimal
    paid_commission: Decimal
    payment_status: str  # PAID | PARTIAL | OPEN


class CommissionSummaryOut(BaseModel):
    total_commission: Decimal
    paid_commission: Decimal
    # AVAILABLE + PAID (earned milestones)
    available_commission: Decimal
    # AVAILABLE + INVOICE_RECEIVED (finance still owes)
    outstanding_commission: Decimal
    pending_commission: Decimal

    closing_total: Decimal
    success_fee_total: Decimal

    by_opportunity: List[OpportunityCommissionOut] = Field(default_factory=list)
