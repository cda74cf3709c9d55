# app/api/v1/timesheet.py
from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.actor import get_current_actor
from app.api.deps.permissions import require_capability
from app.auth.permissions import Actor, can_log_hours, can_view_all_timesheets
from app.core.pipeline import is_project
from app.crud.opportunities import get_opportunity
from app.db.session import get_db
from app.models.timesheet_entry import TimesheetEntry
from app.schemas.timesheet import TimesheetEntryCreate, TimesheetEntryOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/timesheet", tags=["timesheet"])


@router.get("", response_model=List[TimesheetEntryOut])
async def list_entries(
    opportunity_id: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """
    Own entries; ADMIN and ENGINEER see the whole team.
    """
    stmt = select(TimesheetEntry)
    if not can_view_all_timesheets(actor):
        stmt = stmt.where(TimesheetEntry.user_id == uuid.UUID(actor.id))
    if opportunity_id is not None:
        stmt = stmt.where(TimesheetEntry.opportunity_id == opportunity_id)
    stmt = stmt.order_by(TimesheetEntry.work_date.desc(), TimesheetEntry.created_at.desc())
    return list((await db.execute(stmt)).scalars().all())


@router.post("", response_model=TimesheetEntryOut, status_code=status.HTTP_201_CREATED)
async def log_hours(
    payload: TimesheetEntryCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_capability(can_log_hours)),
):
    op = await get_opportunity(db, payload.opportunity_id)
    if op is None or op.is_archived:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    if not is_project(op.status):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Hours can only be logged against signed projects",
        )

    entry = TimesheetEntry(
        user_id=uuid.UUID(actor.id),
        opportunity_id=op.id,
        work_date=payload.work_date,
        hours=payload.hours,
        description=payload.description.strip(),
    )
    db.add(entry)
    await db.commit()
    await db.refresh(entry)

    logger.info("%s hour(s) logged on %s by %s", entry.hours, op.id, actor.id)
    return entry
