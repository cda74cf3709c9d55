# tests/test_opportunities_api.py
from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy import select

from app.models.commission_record import CommissionRecord
from conftest import auth_headers, create_opportunity, create_user


async def commission_rows(db, opportunity_id: str) -> dict[str, CommissionRecord]:
    rows = (
        await db.execute(select(CommissionRecord).where(CommissionRecord.opportunity_id == opportunity_id))
    ).scalars().all()
    return {r.id: r for r in rows}


@pytest.mark.asyncio
async def test_executive_registers_signed_contract_and_commissions_are_derived(client, db):
    exec_ = await create_user(db, "ana@example.com", "EXECUTIVE")
    await db.commit()

    r = await client.post(
        "/api/v1/opportunities",
        json={"company_name": "Acme Ltda", "estimated_value": "50000.00", "status": "CONTRACT_SIGNED"},
        headers=auth_headers(exec_),
    )

    assert r.status_code == 201, r.text
    body = r.json()
    assert body["executive_id"] == str(exec_.id)
    assert body["id"].startswith("op-")

    rows = await commission_rows(db, body["id"])
    assert set(rows) == {f"com-{body['id']}-1", f"com-{body['id']}-2-pending"}
    closing = rows[f"com-{body['id']}-1"]
    assert closing.status == "INVOICE_RECEIVED"
    assert closing.amount == Decimal("10000.00")


@pytest.mark.asyncio
async def test_delivery_adds_realized_success_fee_and_keeps_pending_row(client, db):
    exec_ = await create_user(db, "bia@example.com", "EXECUTIVE")
    await db.commit()
    headers = auth_headers(exec_)

    r = await client.post(
        "/api/v1/opportunities",
        json={"company_name": "Beta SA", "estimated_value": "1000", "status": "IN_DEVELOPMENT"},
        headers=headers,
    )
    op_id = r.json()["id"]

    r = await client.patch(f"/api/v1/opportunities/{op_id}", json={"status": "DELIVERED"}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "DELIVERED"

    rows = await commission_rows(db, op_id)
    assert rows[f"com-{op_id}-2"].status == "AVAILABLE"
    # the superseded pending row stays in the store
    assert rows[f"com-{op_id}-2-pending"].status == "PENDING"
    # the closing fee was created before delivery and is carried forward
    assert rows[f"com-{op_id}-1"].status == "INVOICE_RECEIVED"


@pytest.mark.asyncio
async def test_visibility_and_listing(client, db):
    leader = await create_user(db, "lead@example.com", "EXECUTIVE_LEADER")
    mine = await create_user(db, "mine@example.com", "EXECUTIVE", leader_id=leader.id)
    other = await create_user(db, "other@example.com", "EXECUTIVE")
    finance = await create_user(db, "fin@example.com", "FINANCE")

    op_mine = await create_opportunity(db, mine, status="PROPOSAL_SENT")
    op_other = await create_opportunity(db, other, status="DELIVERED")
    await db.commit()

    r = await client.get("/api/v1/opportunities", headers=auth_headers(mine))
    assert [o["id"] for o in r.json()] == [op_mine.id]

    r = await client.get(f"/api/v1/opportunities/{op_other.id}", headers=auth_headers(mine))
    assert r.status_code == 403
    assert r.json()["detail"]["code"] == "rbac_forbidden"

    r = await client.get("/api/v1/opportunities", headers=auth_headers(leader))
    assert [o["id"] for o in r.json()] == [op_mine.id]

    # FINANCE sees projects, not the pipeline
    r = await client.get("/api/v1/opportunities", headers=auth_headers(finance))
    assert [o["id"] for o in r.json()] == [op_other.id]

    r = await client.get("/api/v1/opportunities?status=DELIVERED", headers=auth_headers(mine))
    assert r.json() == []


@pytest.mark.asyncio
async def test_finance_cannot_register_opportunities(client, db):
    finance = await create_user(db, "fin@example.com", "FINANCE")
    await db.commit()

    r = await client.post(
        "/api/v1/opportunities",
        json={"company_name": "Gamma", "estimated_value": "10"},
        headers=auth_headers(finance),
    )

    assert r.status_code == 403
    assert r.json()["detail"]["role"] == "FINANCE"


@pytest.mark.asyncio
async def test_negative_estimated_value_is_rejected(client, db):
    exec_ = await create_user(db, "ana@example.com", "EXECUTIVE")
    await db.commit()

    r = await client.post(
        "/api/v1/opportunities",
        json={"company_name": "Delta", "estimated_value": "-1"},
        headers=auth_headers(exec_),
    )

    assert r.status_code == 422


@pytest.mark.asyncio
async def test_update_rejects_nulls_and_empty_payloads(client, db):
    exec_ = await create_user(db, "ana@example.com", "EXECUTIVE")
    op = await create_opportunity(db, exec_)
    await db.commit()
    headers = auth_headers(exec_)

    r = await client.patch(f"/api/v1/opportunities/{op.id}", json={"company_name": None}, headers=headers)
    assert r.status_code == 422

    r = await client.patch(f"/api/v1/opportunities/{op.id}", json={}, headers=headers)
    assert r.status_code == 400

    r = await client.patch(f"/api/v1/opportunities/{op.id}", json={"unknown": 1}, headers=headers)
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_engineer_records_technical_analysis(client, db):
    exec_ = await create_user(db, "ana@example.com", "EXECUTIVE")
    eng = await create_user(db, "eng@example.com", "ENGINEER")
    op = await create_opportunity(db, exec_, status="TECHNICAL_ANALYSIS")
    await db.commit()

    r = await client.patch(
        f"/api/v1/opportunities/{op.id}",
        json={"engineering": {"technical_scope": "API + app", "approval_status": "APPROVED", "estimated_hours": 320}},
        headers=auth_headers(eng),
    )

    assert r.status_code == 200, r.text
    assert r.json()["engineering"]["approval_status"] == "APPROVED"
    assert r.json()["engineering"]["estimated_hours"] == 320


@pytest.mark.asyncio
async def test_delete_is_a_soft_remove_and_keeps_commissions(client, db):
    exec_ = await create_user(db, "ana@example.com", "EXECUTIVE")
    await db.commit()
    headers = auth_headers(exec_)

    r = await client.post(
        "/api/v1/opportunities",
        json={"company_name": "Epsilon", "estimated_value": "2000", "status": "CONTRACT_SIGNED"},
        headers=headers,
    )
    op_id = r.json()["id"]

    r = await client.delete(f"/api/v1/opportunities/{op_id}", headers=headers)
    assert r.status_code == 204

    r = await client.get(f"/api/v1/opportunities/{op_id}", headers=headers)
    assert r.status_code == 404

    assert len(await commission_rows(db, op_id)) == 2


@pytest.mark.asyncio
async def test_admin_registers_on_behalf_of_an_executive(client, db):
    admin = await create_user(db, "root@example.com", "ADMIN")
    exec_ = await create_user(db, "ana@example.com", "EXECUTIVE")
    finance = await create_user(db, "fin@example.com", "FINANCE")
    await db.commit()

    r = await client.post(
        "/api/v1/opportunities",
        json={"company_name": "Zeta", "estimated_value": "10", "executive_id": str(exec_.id)},
        headers=auth_headers(admin),
    )
    assert r.status_code == 201
    assert r.json()["executive_id"] == str(exec_.id)

    r = await client.post(
        "/api/v1/opportunities",
        json={"company_name": "Eta", "estimated_value": "10", "executive_id": str(finance.id)},
        headers=auth_headers(admin),
    )
    assert r.status_code == 422

    # executives cannot assign ownership to someone else
    r = await client.post(
        "/api/v1/opportunities",
        json={"company_name": "Theta", "estimated_value": "10", "executive_id": str(admin.id)},
        headers=auth_headers(exec_),
    )
    assert r.status_code == 403
