# app/crud/users.py
from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.permissions import Actor, ROLE_EXECUTIVE_LEADER
from app.core.roles import normalize_role
from app.models.user import User


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    stmt = select(User).where(func.lower(User.email) == email.strip().lower())
    return (await db.execute(stmt)).scalar_one_or_none()


async def list_network_ids(db: AsyncSession, leader_id: uuid.UUID) -> list[uuid.UUID]:
    """
    Active users led by leader_id (one level deep).
    """
    stmt = select(User.id).where(User.leader_id == leader_id).where(User.is_active.is_(True))
    return list((await db.execute(stmt)).scalars().all())


async def build_actor(db: AsyncSession, user: User) -> Actor:
    network: list[uuid.UUID] = []
    if normalize_role(user.role) == ROLE_EXECUTIVE_LEADER:
        network = await list_network_ids(db, user.id)
    return Actor.build(user_id=user.id, role=user.role, network_ids=network)
