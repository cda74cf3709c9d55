# app/schemas/opportunity.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.core.pipeline import (
    Complexity,
    EngineeringApproval,
    OpportunityStatus,
    ProjectType,
    Temperature,
)


class EngineeringData(BaseModel):
    technical_scope: str = ""
    architecture_notes: Optional[str] = None
    approval_status: EngineeringApproval = EngineeringApproval.PENDING
    approved_by: Optional[str] = None
    feedback: Optional[str] = None

    complexity: Optional[Complexity] = None
    risk_analysis: Optional[str] = None
    estimated_hours: Optional[int] = Field(default=None, ge=0)


class OpportunityBase(BaseModel):
    company_name: str = Field(..., min_length=1, max_length=255)
    cnpj: Optional[str] = Field(default=None, max_length=32)
    contact_name: Optional[str] = Field(default=None, max_length=200)
    contact_email: Optional[EmailStr] = None

    project_type: ProjectType = ProjectType.WEB
    estimated_value: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2)
    temperature: Temperature = Temperature.WARM

    notes: str = ""
    payment_conditions: Optional[str] = None
    engineering: Optional[EngineeringData] = None

    project_start_date: Optional[date] = None
    project_deadline: Optional[date] = None


class OpportunityCreate(OpportunityBase):
    status: OpportunityStatus = OpportunityStatus.PROSPECTING
    # ADMIN may register on behalf of an executive; otherwise the caller owns it
    executive_id: Optional[UUID] = None


class OpportunityUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    company_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    cnpj: Optional[str] = Field(default=None, max_length=32)
    contact_name: Optional[str] = Field(default=None, max_length=200)
    contact_email: Optional[EmailStr] = None

    project_type: Optional[ProjectType] = None
    estimated_value: Optional[Decimal] = Field(default=None, ge=0, max_digits=14, decimal_places=2)
    status: Optional[OpportunityStatus] = None
    temperature: Optional[Temperature] = None

    notes: Optional[str] = None
    payment_conditions: Optional[str] = None
    engineering: Optional[EngineeringData] = None

    project_start_date: Optional[date] = None
    project_deadline: Optional[date] = None


class OpportunityOut(OpportunityBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    executive_id: UUID
    status: OpportunityStatus
    is_archived: bool

    created_at: datetime
    updated_at: datetime
