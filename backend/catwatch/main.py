"""Catwatch Moderation API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map CatwatchError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Services built on startup and torn down on shutdown via the lifespan

Design Decisions:
    - Lifespan is the composition root: AppServices lives on app.state, no
      module-level service singletons
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from catwatch.api.error_handlers import register_error_handlers
from catwatch.api.routes import health, moderation, users
from catwatch.composition import AppServices
from catwatch.config import get_settings
from catwatch.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    app.state.services = AppServices.build(settings)
    logger.info(
        f"Catwatch API started (ban policy: {settings.ban_policy_mode.value})",
    )
    yield
    await app.state.services.shutdown()
    logger.info("Catwatch API shutting down")


app = FastAPI(
    title="Catwatch Moderation API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(users.router)
app.include_router(moderation.router)

register_error_handlers(app)
