# app/crud/opportunities.py
from __future__ import annotations

from typing import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.opportunity import Opportunity


async def load_opportunities(db: AsyncSession, *, include_archived: bool = False) -> list[Opportunity]:
    """
    Opportunity Store load(): oldest first, so derivation order is stable.
    """
    stmt = select(Opportunity).order_by(Opportunity.created_at.asc(), Opportunity.id.asc())
    if not include_archived:
        stmt = stmt.where(Opportunity.is_archived.is_(False))
    return list((await db.execute(stmt)).scalars().all())


async def get_opportunity(db: AsyncSession, opportunity_id: str) -> Opportunity | None:
    return await db.get(Opportunity, opportunity_id)


async def get_opportunities_by_ids(db: AsyncSession, ids: Iterable[str]) -> dict[str, Opportunity]:
    wanted = set(ids)
    if not wanted:
        return {}
    rows = (await db.execute(select(Opportunity).where(Opportunity.id.in_(wanted)))).scalars().all()
    return {op.id: op for op in rows}


async def save_opportunities(db: AsyncSession, opportunities: Sequence[Opportunity]) -> None:
    """
    Opportunity Store save(): stages new rows and flushes pending changes on
    loaded ones. Caller commits.
    """
    db.add_all(list(opportunities))
    await db.flush()


async def archive_opportunity(db: AsyncSession, opportunity: Opportunity) -> Opportunity:
    """
    Soft-remove only; commission records keep referencing the row.
    """
    opportunity.is_archived = True
    await db.flush()
    return opportunity
