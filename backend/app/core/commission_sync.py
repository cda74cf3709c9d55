# app/core/commission_sync.py
"""
Caller side of the derivation engine: load both stores, derive, persist drift.

Runs after every opportunity mutation (force=True) and on ledger reads /
application startup (persist only when the derived ledger carries ids the
store does not have yet).
"""
from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.commission_engine import (
    CommissionEntry,
    OpportunitySnapshot,
    derive_commissions,
    ledger_drifted,
)
from app.crud.commissions import load_commissions, save_commissions
from app.crud.opportunities import load_opportunities

logger = logging.getLogger(__name__)


async def refresh_ledger(db: AsyncSession, *, force: bool = False) -> list[CommissionEntry]:
    opportunities = await load_opportunities(db)
    persisted = await load_commissions(db)

    derived = derive_commissions(
        [OpportunitySnapshot.from_row(op) for op in opportunities],
        persisted,
    )

    if force or ledger_drifted(derived, persisted):
        inserted = await save_commissions(db, derived)
        await db.commit()
        if inserted:
            logger.info(
                "Commission ledger refreshed: %d new record(s), %d derived, %d previously persisted",
                inserted,
                len(derived),
                len(persisted),
            )

    return derived
