from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings
from app.db.base import Base


def _engine_options(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        # single file, no server connections to keep alive
        return {}
    return {
        "pool_pre_ping": True,  # hosted Postgres drops idle connections
        "pool_recycle": 300,
    }


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL_ASYNC_CLEAN,
    echo=False,
    future=True,
    **_engine_options(settings.DATABASE_URL_ASYNC_CLEAN),
)

# expire_on_commit=False: routes read attributes after commit without async lazy loads
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    One AsyncSession per request.
    """
    async with AsyncSessionLocal() as session:
        yield session


async def create_all_tables() -> None:
    """
    Development shortcut (DB_AUTO_CREATE). Staging/production use alembic.
    """
    import app.models  # noqa: F401  # force model registration

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
