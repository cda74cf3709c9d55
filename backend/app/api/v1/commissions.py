# app/api/v1/commissions.py
from __future__ import annotations

import enum
import logging
from decimal import Decimal
from typing import Iterable

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.permissions import require_capability
from app.auth.permissions import (
    Actor,
    can_manage_users,
    can_settle_commissions,
    can_view_commission,
    can_view_financials,
    can_view_own_commission,
)
from app.core.commission_engine import (
    CommissionEntry,
    CommissionStatus,
    CommissionTransitionError,
    CommissionType,
    PENDING_DUE_DATE,
    mark_paid,
    receive_invoice,
)
from app.core.commission_sync import refresh_ledger
from app.crud.commissions import apply_entry, get_commission, load_commissions
from app.crud.opportunities import get_opportunities_by_ids
from app.db.session import get_db
from app.models.commission_record import CommissionRecord
from app.models.opportunity import Opportunity
from app.schemas.commission import (
    CommissionListOut,
    CommissionOut,
    CommissionSummaryOut,
    InvoiceReceiveIn,
    OpportunityCommissionOut,
    PaymentIn,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/commissions", tags=["commissions"])

ZERO = Decimal("0.00")


class LedgerView(str, enum.Enum):
    TO_PAY = "to_pay"
    PAID = "paid"
    ALL = "all"


# finance-owned states that outlive the opportunity leaving the pipeline
_SETTLED_STATUSES = {CommissionStatus.INVOICE_RECEIVED.value, CommissionStatus.PAID.value}

_VIEW_STATUSES = {
    LedgerView.TO_PAY: {CommissionStatus.AVAILABLE.value, CommissionStatus.INVOICE_RECEIVED.value},
    LedgerView.PAID: {CommissionStatus.PAID.value},
    LedgerView.ALL: {s.value for s in CommissionStatus},
}


def _can_read_ledger(actor: Actor) -> bool:
    return can_view_financials(actor) or can_view_own_commission(actor)


def _due_date_key(entry: CommissionEntry) -> tuple:
    # "TBD" milestones go last
    return (entry.due_date == PENDING_DUE_DATE, entry.due_date, entry.id)


def _sum(entries: Iterable[CommissionEntry]) -> Decimal:
    return sum((e.amount for e in entries), ZERO)


async def _visible_ledger(db: AsyncSession, actor: Actor) -> tuple[list[CommissionEntry], dict[str, Opportunity]]:
    """
    Derived ledger plus settled rows the derivation no longer emits (archived
    or regressed opportunities): finance still owes or already paid those.
    """
    ledger = await refresh_ledger(db)
    derived_ids = {e.id for e in ledger}
    ledger += [
        e
        for e in await load_commissions(db)
        if e.id not in derived_ids and e.status in _SETTLED_STATUSES
    ]
    opportunities = await get_opportunities_by_ids(db, {e.opportunity_id for e in ledger})
    visible = [
        e
        for e in ledger
        if e.opportunity_id in opportunities and can_view_commission(actor, opportunities[e.opportunity_id])
    ]
    return visible, opportunities


def _transition_conflict(e: CommissionTransitionError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={
            "code": "invalid_commission_transition",
            "message": str(e),
            "status": e.current,
        },
    )


async def _load_record(db: AsyncSession, commission_id: str) -> CommissionRecord:
    row = await get_commission(db, commission_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Commission not found")
    return row


@router.get("", response_model=CommissionListOut)
async def list_commissions(
    view: LedgerView = Query(default=LedgerView.TO_PAY),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_capability(_can_read_ledger)),
):
    """
    Current commission ledger (derived over the persisted state), ordered by due date.
    - to_pay: AVAILABLE + INVOICE_RECEIVED
    - paid:   PAID
    - all:    everything, PENDING milestones included
    Invoiced and paid rows of archived or regressed opportunities stay listed.
    FINANCE/ADMIN see every record; executives only their own opportunities.
    """
    visible, _ = await _visible_ledger(db, actor)
    wanted = _VIEW_STATUSES[view]
    items = sorted((e for e in visible if e.status in wanted), key=_due_date_key)
    return CommissionListOut(
        items=[CommissionOut.model_validate(e) for e in items],
        view=view.value,
        total=len(items),
    )


@router.get("/summary", response_model=CommissionSummaryOut)
async def commission_summary(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_capability(_can_read_ledger)),
):
    """
    Totals derived from the current ledger (dashboard + sales history).
    """
    visible, opportunities = await _visible_ledger(db, actor)

    def with_status(*statuses: CommissionStatus) -> list[CommissionEntry]:
        wanted = {s.value for s in statuses}
        return [e for e in visible if e.status in wanted]

    by_opportunity: list[OpportunityCommissionOut] = []
    # includes archived or regressed opportunities that still carry settled rows
    ordered = sorted(
        opportunities.values(),
        key=lambda op: op.created_at,
        reverse=True,
    )
    for op in ordered:
        records = [e for e in visible if e.opportunity_id == op.id]
        if not records:
            continue
        total = _sum(records)
        paid = _sum(e for e in records if e.status == CommissionStatus.PAID.value)
        if total > 0 and paid >= total:
            payment_status = "PAID"
        elif paid > 0:
            payment_status = "PARTIAL"
        else:
            payment_status = "OPEN"
        by_opportunity.append(
            OpportunityCommissionOut(
                opportunity_id=op.id,
                company_name=op.company_name,
                total_commission=total,
                paid_commission=paid,
                payment_status=payment_status,
            )
        )

    return CommissionSummaryOut(
        total_commission=_sum(visible),
        paid_commission=_sum(with_status(CommissionStatus.PAID)),
        available_commission=_sum(with_status(CommissionStatus.AVAILABLE, CommissionStatus.PAID)),
        outstanding_commission=_sum(with_status(CommissionStatus.AVAILABLE, CommissionStatus.INVOICE_RECEIVED)),
        pending_commission=_sum(with_status(CommissionStatus.PENDING)),
        closing_total=_sum(e for e in visible if e.type == CommissionType.CLOSING.value),
        success_fee_total=_sum(e for e in visible if e.type == CommissionType.SUCCESS_FEE.value),
        by_opportunity=by_opportunity,
    )


@router.post("/recalculate", response_model=CommissionListOut)
async def recalculate_commissions(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_capability(can_manage_users)),
):
    """
    ADMIN: force a derivation pass and persist it.
    """
    ledger = await refresh_ledger(db, force=True)
    logger.info("Commission ledger recalculated by %s (%d records)", actor.id, len(ledger))
    items = sorted(ledger, key=_due_date_key)
    return CommissionListOut(
        items=[CommissionOut.model_validate(e) for e in items],
        view=LedgerView.ALL.value,
        total=len(items),
    )


@router.post("/{commission_id}/invoice", response_model=CommissionOut)
async def receive_commission_invoice(
    commission_id: str,
    payload: InvoiceReceiveIn,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_capability(can_settle_commissions)),
):
    """
    AVAILABLE -> INVOICE_RECEIVED
    """
    row = await _load_record(db, commission_id)
    try:
        updated = receive_invoice(CommissionEntry.from_row(row), payload.invoice_url)
    except CommissionTransitionError as e:
        raise _transition_conflict(e)

    apply_entry(row, updated)
    await db.commit()
    await db.refresh(row)
    logger.info("Invoice received for commission %s by %s", row.id, actor.id)
    return row


@router.post("/{commission_id}/pay", response_model=CommissionOut)
async def pay_commission(
    commission_id: str,
    payload: PaymentIn,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_capability(can_settle_commissions)),
):
    """
    INVOICE_RECEIVED -> PAID
    """
    row = await _load_record(db, commission_id)
    try:
        updated = mark_paid(CommissionEntry.from_row(row), payload.paid_at)
    except CommissionTransitionError as e:
        raise _transition_conflict(e)

    apply_entry(row, updated)
    await db.commit()
    await db.refresh(row)
    logger.info("Commission %s paid on %s by %s", row.id, row.paid_at, actor.id)
    return row
