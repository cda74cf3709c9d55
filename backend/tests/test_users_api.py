# tests/test_users_api.py
from __future__ import annotations

import pytest

from conftest import auth_headers, create_user


@pytest.mark.asyncio
async def test_admin_provisions_users(client, db):
    admin = await create_user(db, "root@example.com", "ADMIN")
    leader = await create_user(db, "lead@example.com", "EXECUTIVE_LEADER")
    await db.commit()
    headers = auth_headers(admin)

    r = await client.post(
        "/api/v1/users",
        json={"email": "New.Exec@Example.com", "name": "New  Exec", "role": "EXECUTIVE", "leader_id": str(leader.id)},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["email"] == "new.exec@example.com"
    assert body["name"] == "New Exec"
    assert body["leader_id"] == str(leader.id)

    r = await client.post(
        "/api/v1/users",
        json={"email": "new.exec@example.com", "name": "Again"},
        headers=headers,
    )
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_leader_must_be_an_executive_leader(client, db):
    admin = await create_user(db, "root@example.com", "ADMIN")
    plain = await create_user(db, "ana@example.com", "EXECUTIVE")
    await db.commit()

    r = await client.post(
        "/api/v1/users",
        json={"email": "x@example.com", "name": "X", "leader_id": str(plain.id)},
        headers=auth_headers(admin),
    )

    assert r.status_code == 422


@pytest.mark.asyncio
async def test_only_admin_manages_users(client, db):
    exec_ = await create_user(db, "ana@example.com", "EXECUTIVE")
    await db.commit()

    r = await client.post(
        "/api/v1/users", json={"email": "x@example.com", "name": "X"}, headers=auth_headers(exec_)
    )
    assert r.status_code == 403

    r = await client.patch(f"/api/v1/users/{exec_.id}", json={"role": "ADMIN"}, headers=auth_headers(exec_))
    assert r.status_code == 403

    r = await client.get("/api/v1/users", headers=auth_headers(exec_))
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_leader_lists_own_team(client, db):
    leader = await create_user(db, "lead@example.com", "EXECUTIVE_LEADER")
    member = await create_user(db, "member@example.com", "EXECUTIVE", leader_id=leader.id)
    await create_user(db, "other@example.com", "EXECUTIVE")
    await db.commit()

    r = await client.get("/api/v1/users", headers=auth_headers(leader))

    assert r.status_code == 200
    assert r.json()["total"] == 2
    assert {u["id"] for u in r.json()["items"]} == {str(leader.id), str(member.id)}


@pytest.mark.asyncio
async def test_admin_updates_role_and_deactivates(client, db):
    admin = await create_user(db, "root@example.com", "ADMIN")
    user = await create_user(db, "ana@example.com", "EXECUTIVE")
    await db.commit()
    headers = auth_headers(admin)

    r = await client.patch(f"/api/v1/users/{user.id}", json={"role": "FINANCE", "is_active": False}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["role"] == "FINANCE"
    assert r.json()["is_active"] is False

    r = await client.get("/api/v1/users?limit=1", headers=headers)
    assert r.json()["total"] == 2
    assert len(r.json()["items"]) == 1

    r = await client.patch(f"/api/v1/users/{admin.id}", json={"role": None}, headers=headers)
    assert r.status_code == 422
