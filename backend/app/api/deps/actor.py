from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.auth import get_current_user
from app.auth.permissions import Actor
from app.crud.users import build_actor
from app.db.session import get_db
from app.models.user import User


async def get_current_actor(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Actor:
    """
    Current user as an Actor (role + led executives) for permission checks.
    """
    return await build_actor(db, user)
