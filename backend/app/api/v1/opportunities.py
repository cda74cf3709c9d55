# app/api/v1/opportunities.py
from __future__ import annotations

import enum
import logging
import uuid
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.actor import get_current_actor
from app.api.deps.permissions import forbidden, require_capability
from app.auth.permissions import (
    Actor,
    can_archive_opportunity,
    can_create_opportunity,
    can_edit_opportunity,
    can_see,
    ROLE_ADMIN,
)
from app.core.commission_sync import refresh_ledger
from app.core.pipeline import OpportunityStatus
from app.core.roles import EXECUTIVE_ROLES
from app.crud.opportunities import archive_opportunity, get_opportunity, load_opportunities, save_opportunities
from app.db.session import get_db
from app.models.opportunity import Opportunity
from app.models.user import User
from app.schemas.opportunity import OpportunityCreate, OpportunityOut, OpportunityUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/opportunities", tags=["opportunities"])

NON_NULLABLE_FIELDS = {"company_name", "project_type", "estimated_value", "status", "temperature", "notes"}


def _column_value(value: Any) -> Any:
    return value.value if isinstance(value, enum.Enum) else value


async def _load_visible(db: AsyncSession, actor: Actor, opportunity_id: str) -> Opportunity:
    op = await get_opportunity(db, opportunity_id)
    if op is None or op.is_archived:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Opportunity not found")
    if not can_see(actor, op):
        raise forbidden("You cannot access this opportunity.", role=actor.role)
    return op


async def _resolve_owner(db: AsyncSession, actor: Actor, requested: Optional[uuid.UUID]) -> uuid.UUID:
    if requested is None or str(requested) == actor.id:
        if actor.role not in EXECUTIVE_ROLES and actor.role != ROLE_ADMIN:
            raise forbidden("Only executives can own opportunities.", role=actor.role)
        return uuid.UUID(actor.id)

    if actor.role != ROLE_ADMIN:
        raise forbidden("Only an ADMIN can register opportunities for another executive.", role=actor.role)

    owner = await db.get(User, requested)
    if owner is None or not owner.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Executive not found")
    if owner.role not in EXECUTIVE_ROLES:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="executive_id must reference an EXECUTIVE or EXECUTIVE_LEADER",
        )
    return owner.id


@router.get("", response_model=List[OpportunityOut])
async def list_opportunities(
    status_filter: Optional[OpportunityStatus] = Query(default=None, alias="status"),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """
    Opportunities visible to the caller: the pipeline for ADMIN/ENGINEER and
    the owning executive (plus a leader's network), projects for FINANCE.
    """
    rows = await load_opportunities(db)
    items = [op for op in rows if can_see(actor, op)]
    if status_filter is not None:
        items = [op for op in items if op.status == status_filter.value]
    # newest first, like the pipeline board
    items.sort(key=lambda op: op.created_at, reverse=True)
    return items


@router.post("", response_model=OpportunityOut, status_code=status.HTTP_201_CREATED)
async def create_opportunity(
    payload: OpportunityCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_capability(can_create_opportunity)),
):
    executive_id = await _resolve_owner(db, actor, payload.executive_id)

    data = payload.model_dump(exclude={"executive_id", "engineering"})
    op = Opportunity(
        executive_id=executive_id,
        engineering=payload.engineering.model_dump(mode="json") if payload.engineering else None,
        **{k: _column_value(v) for k, v in data.items()},
    )

    await save_opportunities(db, [op])
    await db.commit()
    logger.info("Opportunity %s registered by %s (status=%s)", op.id, actor.id, op.status)

    # a contract can be registered already signed
    await refresh_ledger(db, force=True)

    await db.refresh(op)
    return op


@router.get("/{opportunity_id}", response_model=OpportunityOut)
async def get_opportunity_detail(
    opportunity_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return await _load_visible(db, actor, opportunity_id)


@router.patch("/{opportunity_id}", response_model=OpportunityOut)
async def update_opportunity(
    opportunity_id: str,
    payload: OpportunityUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    op = await _load_visible(db, actor, opportunity_id)
    if not can_edit_opportunity(actor, op):
        raise forbidden("You cannot edit this opportunity.", role=actor.role)

    data = payload.model_dump(exclude_unset=True, exclude={"engineering"})
    if not data and "engineering" not in payload.model_fields_set:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields provided to update.")

    cleared = sorted(f for f in NON_NULLABLE_FIELDS if f in data and data[f] is None)
    if cleared:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Fields cannot be null: {', '.join(cleared)}",
        )

    previous_status = op.status
    for field, value in data.items():
        setattr(op, field, _column_value(value))
    if "engineering" in payload.model_fields_set:
        op.engineering = payload.engineering.model_dump(mode="json") if payload.engineering else None

    await save_opportunities(db, [op])
    await db.commit()

    if op.status != previous_status:
        logger.info("Opportunity %s moved %s -> %s by %s", op.id, previous_status, op.status, actor.id)

    await refresh_ledger(db, force=True)

    await db.refresh(op)
    return op


@router.delete("/{opportunity_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_opportunity(
    opportunity_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """
    Soft-remove. Persisted commission records are kept.
    """
    op = await _load_visible(db, actor, opportunity_id)
    if not can_archive_opportunity(actor, op):
        raise forbidden("You cannot remove this opportunity.", role=actor.role)

    await archive_opportunity(db, op)
    await db.commit()
    logger.info("Opportunity %s archived by %s", op.id, actor.id)

    await refresh_ledger(db, force=True)
    return None
