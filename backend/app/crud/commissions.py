# app/crud/commissions.py
from __future__ import annotations

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.commission_engine import CommissionEntry
from app.models.commission_record import CommissionRecord


async def load_commissions(db: AsyncSession) -> list[CommissionEntry]:
    """
    Commission Store load(): every persisted record, superseded ones included.
    """
    stmt = select(CommissionRecord).order_by(CommissionRecord.created_at.asc(), CommissionRecord.id.asc())
    rows = (await db.execute(stmt)).scalars().all()
    return [CommissionEntry.from_row(r) for r in rows]


async def get_commission(db: AsyncSession, commission_id: str) -> CommissionRecord | None:
    return await db.get(CommissionRecord, commission_id)


def apply_entry(row: CommissionRecord, entry: CommissionEntry) -> CommissionRecord:
    row.opportunity_id = entry.opportunity_id
    row.type = entry.type
    row.amount = entry.amount
    row.status = entry.status
    row.due_date = entry.due_date
    row.invoice_url = entry.invoice_url
    row.paid_at = entry.paid_at
    return row


async def save_commissions(db: AsyncSession, entries: Sequence[CommissionEntry]) -> int:
    """
    Commission Store save(): upsert by deterministic id. Never deletes.
    Returns the number of rows inserted. Caller commits.
    """
    inserted = 0
    for entry in entries:
        row = await db.get(CommissionRecord, entry.id)
        if row is None:
            row = CommissionRecord(id=entry.id)
            db.add(row)
            inserted += 1
        apply_entry(row, entry)
    await db.flush()
    return inserted
