from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import os

from propertyhub.api.api_v1.api import api_router as api_v1_router
from propertyhub.core.config import settings
from propertyhub.core.errors import ProcedureError, procedure_error_handler
from propertyhub.core.logging_config import setup_logging, get_logger
from propertyhub.services.scheduler import init_scheduler, shutdown_scheduler
from propertyhub.db import session as db_session
from propertyhub.db.migrations import run_migrations
from propertyhub.db.init_db import ensure_tables_exist

log_level = os.getenv("LOG_LEVEL", "INFO")
log_to_file = os.getenv("LOG_TO_FILE", "true").lower() == "true"
setup_logging(log_level, log_to_file)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Starting up...")

    try:
        await ensure_tables_exist()
        logger.info("📊 Database tables ready")
    except Exception as e:
        logger.warning(f"Table initialisation warning: {e}")

    try:
        async with db_session.SessionLocal() as db:
            result = await run_migrations(db)

            if result.get("columns_added"):
                logger.info(f"📦 Schema updated: {len(result['columns_added'])} column(s) added")
                for col in result["columns_added"]:
                    logger.info(f"   ✅ {col}")

            if result.get("packages_created"):
                logger.info(f"📦 Seeded {result['packages_created']} subscription package(s)")

            if result.get("old_version") != result.get("new_version"):
                logger.info(f"📊 Database version: {result.get('old_version') or 'new'} → {result.get('new_version')}")

    except Exception as e:
        logger.warning(f"Migrations skipped: {e}")

    init_scheduler()
    yield
    logger.info("🛑 Shutting down...")
    shutdown_scheduler()

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    description="Facility and property management: billing, accounting, SARS compliance and CRM",
    lifespan=lifespan
)

if settings.BACKEND_CORS_ORIGINS:
    logger.info(f"CORS enabled for: {settings.BACKEND_CORS_ORIGINS}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.add_exception_handler(ProcedureError, procedure_error_handler)

logger.info(f"Registering API v1 routes under {settings.API_V1_STR}")
app.include_router(api_v1_router, prefix=settings.API_V1_STR)


@app.get("/")
async def root():
    return {"message": settings.PROJECT_NAME}


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000, log_level="info")
