# app/core/commission_engine.py
"""
Commission derivation engine.

Given the current opportunities and the previously persisted commission
records, derive the complete commission ledger:

  - CLOSING      20% of estimated_value, earned at contract signature
  - SUCCESS_FEE  10% of estimated_value, earned at delivery

Record ids are derived from the opportunity id, so a second pass over the same
state produces the same ids and merges with what is already persisted. Once a
record with a given id exists it is carried forward verbatim: its status,
invoice_url and paid_at belong to finance from that point on.

NOTE:
  - The success fee has two identities: "-2-pending" while the contract is
    active and "-2" once delivered. Derivation never migrates one into the
    other; after delivery the pending record is simply not re-emitted.
  - Nothing here deletes records. Callers persist with an upsert, so records
    that are not re-emitted remain in the store.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Optional, Sequence

from app.core.pipeline import OpportunityStatus, status_value

logger = logging.getLogger(__name__)


class CommissionType(str, enum.Enum):
    CLOSING = "CLOSING"
    SUCCESS_FEE = "SUCCESS_FEE"


class CommissionStatus(str, enum.Enum):
    PENDING = "PENDING"                      # milestone not reached
    AVAILABLE = "AVAILABLE"                  # milestone reached, waiting for invoice
    INVOICE_RECEIVED = "INVOICE_RECEIVED"    # invoice in, waiting for payment
    PAID = "PAID"


# Policy constants (not configurable per record)
CLOSING_RATE = Decimal("0.20")
SUCCESS_FEE_RATE = Decimal("0.10")

QUALIFYING_STAGES: frozenset[str] = frozenset(
    {
        OpportunityStatus.CONTRACT_SIGNED.value,
        OpportunityStatus.IN_DEVELOPMENT.value,
        OpportunityStatus.DELIVERED.value,
    }
)

# Defaults applied only when a record is first created
BACKFILL_PAID_AT = date(2023, 11, 1)
SUCCESS_FEE_DUE_DATE = "2023-12-01"
PENDING_DUE_DATE = "TBD"
PLACEHOLDER_INVOICE_URL = "#"

_CENTS = Decimal("0.01")


class CommissionTransitionError(ValueError):
    """Raised when a finance action does not apply to the record's status."""

    def __init__(self, commission_id: str, current: str, action: str) -> None:
        self.commission_id = commission_id
        self.current = current
        self.action = action
        super().__init__(f"Cannot {action} commission {commission_id} in status {current}")


@dataclass(frozen=True)
class OpportunitySnapshot:
    id: Optional[str]
    status: str
    estimated_value: Decimal
    created_at: Any = None

    @classmethod
    def from_row(cls, row: Any) -> "OpportunitySnapshot":
        raw_id = getattr(row, "id", None)
        return cls(
            id=str(raw_id) if raw_id not in (None, "") else None,
            status=status_value(getattr(row, "status", None)),
            estimated_value=_to_decimal(getattr(row, "estimated_value", None)),
            created_at=getattr(row, "created_at", None),
        )


@dataclass(frozen=True)
class CommissionEntry:
    id: str
    opportunity_id: str
    type: str
    amount: Decimal
    status: str
    due_date: str
    invoice_url: Optional[str] = None
    paid_at: Optional[date] = None

    @classmethod
    def from_row(cls, row: Any) -> "CommissionEntry":
        return cls(
            id=str(row.id),
            opportunity_id=str(row.opportunity_id),
            type=status_value(row.type),
            amount=_to_decimal(row.amount),
            status=status_value(row.status),
            due_date=str(row.due_date) if row.due_date is not None else PENDING_DUE_DATE,
            invoice_url=getattr(row, "invoice_url", None),
            paid_at=getattr(row, "paid_at", None),
        )


def _to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Not a decimal amount: {value!r}") from e


def _fee(value: Decimal, rate: Decimal) -> Decimal:
    return (value * rate).quantize(_CENTS, rounding=ROUND_HALF_UP)


def _anchor_date(created_at: Any) -> str:
    if created_at is None:
        return PENDING_DUE_DATE
    if isinstance(created_at, datetime):
        return created_at.date().isoformat()
    if isinstance(created_at, date):
        return created_at.isoformat()
    return str(created_at)


def closing_fee_id(opportunity_id: str) -> str:
    return f"com-{opportunity_id}-1"


def success_fee_id(opportunity_id: str, *, delivered: bool) -> str:
    return f"com-{opportunity_id}-2" if delivered else f"com-{opportunity_id}-2-pending"


def closing_fee_record(op: OpportunitySnapshot) -> CommissionEntry:
    delivered = op.status == OpportunityStatus.DELIVERED.value
    return CommissionEntry(
        id=closing_fee_id(op.id),
        opportunity_id=op.id,
        type=CommissionType.CLOSING.value,
        amount=_fee(op.estimated_value, CLOSING_RATE),
        status=(CommissionStatus.PAID if delivered else CommissionStatus.INVOICE_RECEIVED).value,
        due_date=_anchor_date(op.created_at),
        invoice_url=PLACEHOLDER_INVOICE_URL,
        paid_at=BACKFILL_PAID_AT if delivered else None,
    )


def success_fee_record(op: OpportunitySnapshot) -> CommissionEntry:
    delivered = op.status == OpportunityStatus.DELIVERED.value
    return CommissionEntry(
        id=success_fee_id(op.id, delivered=delivered),
        opportunity_id=op.id,
        type=CommissionType.SUCCESS_FEE.value,
        amount=_fee(op.estimated_value, SUCCESS_FEE_RATE),
        status=(CommissionStatus.AVAILABLE if delivered else CommissionStatus.PENDING).value,
        due_date=SUCCESS_FEE_DUE_DATE if delivered else PENDING_DUE_DATE,
    )


def derive_commissions(
    opportunities: Sequence[OpportunitySnapshot],
    existing_commissions: Sequence[CommissionEntry],
) -> list[CommissionEntry]:
    """
    One derivation pass. Pure: no I/O, inputs are not mutated.

    Opportunities without an id, or with a negative estimated_value, are
    skipped with a warning instead of failing the pass.
    """
    existing: dict[str, CommissionEntry] = {}
    for c in existing_commissions:
        existing.setdefault(c.id, c)

    derived: list[CommissionEntry] = []
    for op in opportunities:
        if op is None or not op.id:
            logger.warning("Skipping opportunity without id during commission derivation")
            continue
        if op.estimated_value < 0:
            logger.warning(
                "Skipping opportunity %s with negative estimated_value=%s",
                op.id,
                op.estimated_value,
            )
            continue
        if op.status not in QUALIFYING_STAGES:
            continue

        closing = existing.get(closing_fee_id(op.id))
        derived.append(closing if closing is not None else closing_fee_record(op))

        delivered = op.status == OpportunityStatus.DELIVERED.value
        success = existing.get(success_fee_id(op.id, delivered=delivered))
        derived.append(success if success is not None else success_fee_record(op))

    return derived


def ledger_drifted(derived: Sequence[CommissionEntry], persisted: Iterable[CommissionEntry]) -> bool:
    """
    True when the derived ledger carries something the store does not have yet.

    Only unknown ids count: the store is additive and keeps superseded
    "-2-pending" rows and rows of archived or regressed opportunities, so it
    is routinely longer than the derived ledger.
    """
    persisted_ids = {c.id for c in persisted}
    return any(c.id not in persisted_ids for c in derived)


# ---------------------------------------------------------
# Finance actions
# ---------------------------------------------------------
def receive_invoice(entry: CommissionEntry, invoice_url: str) -> CommissionEntry:
    if entry.status != CommissionStatus.AVAILABLE.value:
        raise CommissionTransitionError(entry.id, entry.status, "receive invoice for")
    return replace(entry, status=CommissionStatus.INVOICE_RECEIVED.value, invoice_url=invoice_url)


def mark_paid(entry: CommissionEntry, paid_at: Optional[date] = None) -> CommissionEntry:
    if entry.status != CommissionStatus.INVOICE_RECEIVED.value:
        raise CommissionTransitionError(entry.id, entry.status, "pay")
    return replace(
        entry,
        status=CommissionStatus.PAID.value,
        paid_at=paid_at or datetime.now(timezone.utc).date(),
    )
