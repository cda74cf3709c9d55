# app/core/seeding.py
from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.roles import UserRole
from app.crud.users import get_user_by_email
from app.models.user import User

logger = logging.getLogger(__name__)


async def ensure_master_admin(db: AsyncSession, *, email: str, name: str) -> User:
    """
    Idempotent bootstrap of the master admin account.

    - missing            -> created as an active ADMIN
    - wrong role/disabled -> restored to an active ADMIN
    - otherwise          -> untouched
    """
    email = User.normalize_email(email)
    user = await get_user_by_email(db, email)

    if user is None:
        user = User(
            email=email,
            name=User.normalize_name(name),
            role=UserRole.ADMIN.value,
            is_active=True,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        logger.info("Master admin %s created", email)
        return user

    if user.role != UserRole.ADMIN.value or not user.is_active:
        logger.warning(
            "Master admin %s found with role=%s active=%s; restoring privileges",
            email,
            user.role,
            user.is_active,
        )
        user.role = UserRole.ADMIN.value
        user.is_active = True
        await db.commit()
        await db.refresh(user)

    return user
