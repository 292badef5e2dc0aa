"""MovR API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map MovRError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database engine opened once on startup and disposed once on shutdown (lifespan)

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from movr.api.error_handlers import register_error_handlers
from movr.api.routes import health, promo_codes, rides, users, vehicles
from movr.config import get_settings
from movr.infrastructure.database import close_db, init_db
from movr.infrastructure.observability import setup_logging
from movr.infrastructure.transaction import RetryPolicy

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    await init_db(
        settings.database_url,
        auto_create_schema=settings.auto_create_schema,
        verbose_logging=settings.db_echo,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        retry_policy=RetryPolicy.from_settings(settings),
    )
    logger.info("MovR API started")
    yield
    await close_db()
    logger.info("MovR API shut down")


app = FastAPI(title="MovR API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(users.router)
app.include_router(vehicles.router)
app.include_router(rides.router)
app.include_router(promo_codes.router)

register_error_handlers(app)
