# tests/test_seeding.py
from __future__ import annotations

import pytest
from sqlalchemy import func, select

from app.core.seeding import ensure_master_admin
from app.models.user import User
from conftest import create_user


async def count_users(db) -> int:
    return int(await db.scalar(select(func.count()).select_from(User)) or 0)


@pytest.mark.asyncio
async def test_master_admin_is_created_once(db):
    first = await ensure_master_admin(db, email=" Admin@Example.com ", name="Master  Admin")
    second = await ensure_master_admin(db, email="admin@example.com", name="Someone Else")

    assert first.id == second.id
    assert second.email == "admin@example.com"
    assert second.name == "Master Admin"
    assert second.role == "ADMIN"
    assert await count_users(db) == 1


@pytest.mark.asyncio
async def test_master_admin_privileges_are_restored(db, caplog):
    await create_user(db, "admin@example.com", "EXECUTIVE", is_active=False)
    await db.commit()

    with caplog.at_level("WARNING", logger="app.core.seeding"):
        user = await ensure_master_admin(db, email="admin@example.com", name="Master Admin")

    assert user.role == "ADMIN"
    assert user.is_active is True
    assert "restoring privileges" in caplog.text
    assert await count_users(db) == 1
