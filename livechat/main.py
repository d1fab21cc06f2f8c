"""livechat API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map LiveChatError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Components built once on startup via the lifespan and closed on shutdown
      (open streams end, heartbeat stops, pool disposed)

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - create_tables on startup for SQLite deployments; PostgreSQL deployments
      run `alembic upgrade head` and set CREATE_TABLES=false
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from livechat.api.error_handlers import register_error_handlers
from livechat.api.routes import admin, auth, health, messages
from livechat.config import get_settings
from livechat.infrastructure.observability import setup_logging
from livechat.services.container import build_services

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    services = build_services(settings)
    if settings.create_tables:
        await services.db.create_all()
    app.state.services = services
    logger.info("livechat API started")
    yield
    logger.info("livechat API shutting down")
    await services.close()


app = FastAPI(title="livechat API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(messages.router)
app.include_router(admin.router)

register_error_handlers(app)
