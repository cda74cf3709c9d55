from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from app.core.security import create_access_token
from app.db.session import get_db

# Ensure Base + models are registered before create_all
from app.db.base import Base
import app.models  # noqa: F401
from app.models.opportunity import Opportunity
from app.models.user import User


# ---------------------------------------------------------
# Engine: one SQLite file per test
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        future=True,
        echo=False,
        poolclass=NullPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture()
def sessionmaker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# ---------------------------------------------------------
# DB session for assertions / setup
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def db(sessionmaker):
    """
    Session for test setup & assertions ONLY.
    Commit setup data before calling the API.
    """
    async with sessionmaker() as session:
        yield session
        await session.rollback()


# ---------------------------------------------------------
# FastAPI app + dependency override
# ---------------------------------------------------------
@pytest.fixture()
def app(sessionmaker):
    from app.main import app as fastapi_app

    async def _override_get_db():
        async with sessionmaker() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


# ---------------------------------------------------------
# HTTP client
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
    ) as ac:
        yield ac


# ---------------------------------------------------------
# Builders
# ---------------------------------------------------------
async def create_user(db, email: str, role: str = "EXECUTIVE", *, leader_id=None, is_active: bool = True) -> User:
    user = User(
        email=email.lower().strip(),
        name=email.split("@")[0],
        role=role,
        leader_id=leader_id,
        is_active=is_active,
    )
    db.add(user)
    await db.flush()
    return user


_created_offset = 0


async def create_opportunity(
    db,
    executive: User,
    *,
    status: str = "PROSPECTING",
    value: str = "1000.00",
    company_name: str | None = None,
    created_at: datetime | None = None,
) -> Opportunity:
    global _created_offset
    _created_offset += 1
    op = Opportunity(
        executive_id=executive.id,
        company_name=company_name or f"Client {uuid.uuid4().hex[:6]}",
        estimated_value=Decimal(value),
        status=status,
        # strictly increasing, so ordering by created_at is deterministic
        created_at=created_at
        or datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=_created_offset),
    )
    db.add(op)
    await db.flush()
    return op


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(str(user.id), email=user.email)}"}
