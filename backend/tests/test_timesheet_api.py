# tests/test_timesheet_api.py
from __future__ import annotations

from decimal import Decimal

import pytest

from conftest import auth_headers, create_opportunity, create_user


@pytest.mark.asyncio
async def test_programmer_logs_hours_on_a_project(client, db):
    exec_ = await create_user(db, "ana@example.com", "EXECUTIVE")
    dev = await create_user(db, "dev@example.com", "PROGRAMMER")
    op = await create_opportunity(db, exec_, status="IN_DEVELOPMENT")
    await db.commit()

    r = await client.post(
        "/api/v1/timesheet",
        json={"opportunity_id": op.id, "work_date": "2024-05-06", "hours": "7.5", "description": " checkout flow "},
        headers=auth_headers(dev),
    )

    assert r.status_code == 201, r.text
    body = r.json()
    assert body["user_id"] == str(dev.id)
    assert Decimal(body["hours"]) == Decimal("7.5")
    assert body["description"] == "checkout flow"


@pytest.mark.asyncio
async def test_hours_only_on_signed_projects(client, db):
    exec_ = await create_user(db, "ana@example.com", "EXECUTIVE")
    dev = await create_user(db, "dev@example.com", "PROGRAMMER")
    op = await create_opportunity(db, exec_, status="PROPOSAL_SENT")
    await db.commit()

    r = await client.post(
        "/api/v1/timesheet",
        json={"opportunity_id": op.id, "work_date": "2024-05-06", "hours": "2"},
        headers=auth_headers(dev),
    )
    assert r.status_code == 422

    r = await client.post(
        "/api/v1/timesheet",
        json={"opportunity_id": "op-missing", "work_date": "2024-05-06", "hours": "2"},
        headers=auth_headers(dev),
    )
    assert r.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("hours", ["0", "24.5", "-1"])
async def test_hours_out_of_range(client, db, hours):
    exec_ = await create_user(db, "ana@example.com", "EXECUTIVE")
    dev = await create_user(db, "dev@example.com", "PROGRAMMER")
    op = await create_opportunity(db, exec_, status="IN_DEVELOPMENT")
    await db.commit()

    r = await client.post(
        "/api/v1/timesheet",
        json={"opportunity_id": op.id, "work_date": "2024-05-06", "hours": hours},
        headers=auth_headers(dev),
    )

    assert r.status_code == 422


@pytest.mark.asyncio
async def test_executives_cannot_log_hours(client, db):
    exec_ = await create_user(db, "ana@example.com", "EXECUTIVE")
    op = await create_opportunity(db, exec_, status="IN_DEVELOPMENT")
    await db.commit()

    r = await client.post(
        "/api/v1/timesheet",
        json={"opportunity_id": op.id, "work_date": "2024-05-06", "hours": "1"},
        headers=auth_headers(exec_),
    )

    assert r.status_code == 403


@pytest.mark.asyncio
async def test_listing_scope(client, db):
    exec_ = await create_user(db, "ana@example.com", "EXECUTIVE")
    dev1 = await create_user(db, "dev1@example.com", "PROGRAMMER")
    dev2 = await create_user(db, "dev2@example.com", "PROGRAMMER")
    eng = await create_user(db, "eng@example.com", "ENGINEER")
    op = await create_opportunity(db, exec_, status="IN_DEVELOPMENT")
    await db.commit()

    for dev, day in ((dev1, "2024-05-06"), (dev2, "2024-05-07")):
        r = await client.post(
            "/api/v1/timesheet",
            json={"opportunity_id": op.id, "work_date": day, "hours": "4"},
            headers=auth_headers(dev),
        )
        assert r.status_code == 201

    r = await client.get("/api/v1/timesheet", headers=auth_headers(dev1))
    assert [e["user_id"] for e in r.json()] == [str(dev1.id)]

    r = await client.get("/api/v1/timesheet", headers=auth_headers(eng))
    assert [e["work_date"] for e in r.json()] == ["2024-05-07", "2024-05-06"]
