# backend/app/schemas/auth.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


def _normalize_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    v = " ".join(value.strip().split())
    return v or None


class BankInfo(BaseModel):
    bank: str = Field(..., min_length=1, max_length=120)
    agency: str = Field(..., min_length=1, max_length=20)
    account: str = Field(..., min_length=1, max_length=40)
    pix_key: Optional[str] = Field(default=None, max_length=120)


class PjDetails(BaseModel):
    """Contractor company data used to pay out commissions."""

    cnpj: str = Field(..., min_length=14, max_length=18)
    legal_name: str = Field(..., min_length=1, max_length=255)  # razão social
    fantasy_name: Optional[str] = Field(default=None, max_length=255)
    address: str = Field(..., max_length=255)
    city: str = Field(..., max_length=120)
    state: str = Field(..., min_length=2, max_length=2)
    bank_info: BankInfo


class MagicCodeRequest(BaseModel):
    email: EmailStr


class MagicCodeVerify(BaseModel):
    email: EmailStr
    code: str = Field(min_length=4, max_length=64)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class ProfileUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, max_length=200)
    phone: Optional[str] = Field(default=None, max_length=32)
    location: Optional[str] = Field(default=None, max_length=120)
    pj_details: Optional[PjDetails] = None

    @field_validator("name", "phone", "location")
    @classmethod
    def validate_text(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_text(v)


class MeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: EmailStr
    name: str
    role: str
    is_active: bool
    leader_id: Optional[UUID] = None

    phone: Optional[str] = None
    location: Optional[str] = None
    pj_details: Optional[PjDetails] = None
