# app/schemas/users.py
from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.core.roles import UserRole
from app.schemas.auth import PjDetails


class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=200)
    role: UserRole = UserRole.EXECUTIVE
    leader_id: Optional[UUID] = None
    phone: Optional[str] = Field(default=None, max_length=32)
    location: Optional[str] = Field(default=None, max_length=120)


class UserUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    role: Optional[UserRole] = None
    leader_id: Optional[UUID] = None
    is_active: Optional[bool] = None
    phone: Optional[str] = Field(default=None, max_length=32)
    location: Optional[str] = Field(default=None, max_length=120)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: EmailStr
    name: str
    role: str
    leader_id: Optional[UUID] = None
    is_active: bool

    phone: Optional[str] = None
    location: Optional[str] = None
    pj_details: Optional[PjDetails] = None

    created_at: datetime


class UserListOut(BaseModel):
    items: list[UserOut]
    total: int
    limit: int
    offset: int
