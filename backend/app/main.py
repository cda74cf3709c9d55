import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.logging_config import configure_logging
import app.models  # noqa: F401  # force model registration

from app.api.v1.auth import router as auth_router
from app.api.v1.users import router as users_router
from app.api.v1.opportunities import router as opportunities_router
from app.api.v1.commissions import router as commissions_router
from app.api.v1.timesheet import router as timesheet_router
from app.core.commission_sync import refresh_ledger
from app.core.seeding import ensure_master_admin
from app.db.session import AsyncSessionLocal, create_all_tables

configure_logging(settings)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.DB_AUTO_CREATE:
        await create_all_tables()
        logger.info("Database tables ensured (DB_AUTO_CREATE)")

    async with AsyncSessionLocal() as db:
        if settings.SEED_MASTER_ADMIN:
            await ensure_master_admin(db, email=settings.MASTER_ADMIN_EMAIL, name=settings.MASTER_ADMIN_NAME)
        # backfill commissions for contracts signed while the service was down
        await refresh_ledger(db)

    logger.info("Commission CRM started (environment=%s)", settings.ENVIRONMENT)
    yield


def create_application() -> FastAPI:
    app = FastAPI(title="Commission CRM API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def root():
        return {"status": "ok", "service": "commission-crm"}

    # Routers
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(users_router, prefix="/api/v1")
    app.include_router(opportunities_router, prefix="/api/v1")
    app.include_router(commissions_router, prefix="/api/v1")
    app.include_router(timesheet_router, prefix="/api/v1")

    return app


app = create_application()
