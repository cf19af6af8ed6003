"""VIDA API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map VidaError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup via lifespan context manager

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Error handlers live in api/error_handlers.py; main only wires them
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vida.api.error_handlers import register_error_handlers
from vida.api.routes import (
    auth, directives, emergency, health, hospitals, panic, payments,
    profile, realtime, representatives,
)
from vida.config import get_settings
from vida.infrastructure import database
from vida.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info(f"VIDA API started ({settings.environment})")
    yield
    if database.db_manager:
        await database.db_manager.dispose()
    logger.info("VIDA API shutting down")


app = FastAPI(title="Sistema VIDA API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(profile.router)
app.include_router(representatives.router)
app.include_router(directives.router)
app.include_router(hospitals.router)
app.include_router(panic.router)
app.include_router(emergency.router)
app.include_router(payments.router)
app.include_router(payments.webhook_router)
app.include_router(realtime.router)

register_error_handlers(app)
