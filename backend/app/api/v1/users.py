# app/api/v1/users.py
from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.permissions import require_capability
from app.auth.permissions import Actor, ROLE_ADMIN, ROLE_EXECUTIVE_LEADER, can_manage_users, can_view_team
from app.crud.users import get_user_by_email
from app.db.session import get_db
from app.models.user import User
from app.schemas.users import UserCreate, UserListOut, UserOut, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


async def _validate_leader(db: AsyncSession, leader_id: UUID | None, *, user_id: UUID | None = None) -> None:
    if leader_id is None:
        return
    if user_id is not None and leader_id == user_id:
        raise HTTPException(status_code=422, detail="A user cannot lead themselves")
    leader = await db.get(User, leader_id)
    if leader is None:
        raise HTTPException(status_code=404, detail="Leader not found")
    if leader.role != ROLE_EXECUTIVE_LEADER:
        raise HTTPException(status_code=422, detail="leader_id must reference an EXECUTIVE_LEADER")


@router.get("", response_model=UserListOut)
async def list_users(
    limit: int = 50,
    offset: int = 0,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_capability(can_view_team)),
):
    """
    ADMIN: every user. EXECUTIVE_LEADER: themselves and the executives they lead.
    """
    limit = max(1, min(limit, 200))
    offset = max(0, offset)

    base = select(User)
    if actor.role != ROLE_ADMIN:
        me = UUID(actor.id)
        base = base.where(or_(User.id == me, User.leader_id == me))

    total = await db.scalar(select(func.count()).select_from(base.subquery()))
    rows = (
        await db.execute(base.order_by(User.created_at.asc(), User.email.asc()).limit(limit).offset(offset))
    ).scalars().all()

    return UserListOut(items=list(rows), total=int(total or 0), limit=limit, offset=offset)


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_capability(can_manage_users)),
):
    email = User.normalize_email(str(payload.email))
    if await get_user_by_email(db, email) is not None:
        raise HTTPException(status_code=409, detail="A user with this email already exists")

    await _validate_leader(db, payload.leader_id)

    user = User(
        email=email,
        name=User.normalize_name(payload.name),
        role=User.normalize_user_role(payload.role.value),
        leader_id=payload.leader_id,
        phone=payload.phone,
        location=payload.location,
        is_active=True,
    )
    db.add(user)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Conflict creating user")

    await db.refresh(user)
    logger.info("User %s (%s) created by %s", user.email, user.role, actor.id)
    return user


@router.patch("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: UUID,
    payload: UserUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_capability(can_manage_users)),
):
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=400, detail="No fields provided to update.")

    if "leader_id" in data:
        await _validate_leader(db, data["leader_id"], user_id=user.id)

    for k, v in data.items():
        if k == "role":
            if v is None:
                raise HTTPException(status_code=422, detail="role cannot be null")
            v = User.normalize_user_role(v.value)
        elif k == "name":
            if v is None:
                raise HTTPException(status_code=422, detail="name cannot be null")
            v = User.normalize_name(v)
        elif k == "is_active" and v is None:
            raise HTTPException(status_code=422, detail="is_active cannot be null")
        setattr(user, k, v)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Conflict updating user")

    await db.refresh(user)
    logger.info("User %s updated by %s (%s)", user.id, actor.id, ", ".join(sorted(data)))
    return user
