"""FastAPI application entrypoint."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app import models  # noqa: F401  registers tables on Base.metadata
from app.api import api_router
from app.core.config import get_settings
from app.core.errors import register_exception_handlers
from app.core.logging_config import setup_logging
from app.db.base import Base
from app.db.session import engine, get_session
from app.services import system as system_service
from app.services.scheduler import schedule_all_jobs, shutdown_scheduler, start_scheduler

settings = get_settings()
setup_logging(settings.log_level, settings.log_json)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with get_session() as session:
        await system_service.log_info(session, "system", "System service initialized")
        await session.commit()

    if settings.scheduler_enabled:
        schedule_all_jobs()
        start_scheduler()
        logger.info("Background jobs scheduled")

    try:
        yield
    finally:
        shutdown_scheduler()


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(api_router)

# Serve static files (frontend) if static directory exists
static_dir = Path(__file__).parent.parent.parent / "static"
if static_dir.exists() and static_dir.is_dir():
    # include_router before mount so API routes are matched first
    app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")


def run() -> None:
    import uvicorn

    uvicorn.run("app.main:app", host=settings.host, port=settings.port, log_config=None)
