"""
Tulisin Backend — FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
Why:   One place wires configuration, the database handle, security
       primitives, middleware, error handling and routes.
How:   `create_app(settings)` returns a configured app; uvicorn serves the
       module-level `app` (uvicorn app.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────┐
    │                    FastAPI App                       │
    │                                                      │
    │  app.state: settings · database · token_codec ·      │
    │             password_hasher                          │
    │                                                      │
    │  Middleware: CORS → Request ID → Logging → RateLimit │
    │                                                      │
    │  Routes ({API_PREFIX}):                              │
    │    /auth/*   /sections/*   /notes/*                  │
    │  Routes (root): /health                              │
    │                                                      │
    │  Exception handlers: app.error_handlers              │
    └──────────────────────────────────────────────────────┘

Lifecycle:
    Build (create_app):
        The Database is constructed and attached here; the pool connects
        lazily, so building an app never touches the network.
    Startup (lifespan):
        1. Configure logging
        2. Validate security-critical configuration
        3. Verify database connectivity (logged, not fatal: /health reports it)
    Shutdown:
        Dispose the connection pool exactly once.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app import __version__
from app.config import Settings, settings as default_settings
from app.database import Database, DatabaseConfig, attach_database
from app.error_handlers import register_exception_handlers
from app.exceptions import AppError
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.rate_limit import RateLimitMiddleware
from app.middleware.request_id import RequestIDMiddleware
from app.routes import auth, health, notes, sections
from app.security import build_password_hasher, build_token_codec

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger once: stdout (captured by Docker), one line
    per record, level from LOG_LEVEL.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-statement / per-request chatter from libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    app_settings: Settings = app.state.settings
    database: Database = app.state.database

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(app_settings.log_level)
    logger.info("=" * 60)
    logger.info("Tulisin Backend %s starting (%s)", __version__, app_settings.environment)

    try:
        app_settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    try:
        await database.test_connection()
        logger.info("Database connection successful")
    except AppError as e:
        logger.error("Database unavailable at startup: %s | %s", e.message, e.context)

    logger.info("API mounted at %s", app_settings.api_prefix)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Tulisin Backend shutting down...")
    await database.close()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    app_settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """
    Assemble the application.

    Args:
        app_settings:  Configuration; defaults to the environment-loaded settings
        database:      Pre-built Database (tests); built from settings otherwise
    """
    app_settings = app_settings or default_settings

    app = FastAPI(
        title="Tulisin API",
        description="Multi-tenant notes backend: accounts, sections and notes.",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Long-lived collaborators ──────────────────────────────────────────
    app.state.settings = app_settings
    attach_database(app, database or Database(DatabaseConfig.from_settings(app_settings)))
    app.state.token_codec = build_token_codec(app_settings)
    app.state.password_hasher = build_password_hasher(app_settings)

    # ── Middleware ────────────────────────────────────────────────────────
    # Last added runs first: CORS → Request ID → Logging → Rate Limit
    if app_settings.rate_limit_enabled:
        app.add_middleware(
            RateLimitMiddleware,
            max_requests=app_settings.rate_limit_requests,
            window_seconds=app_settings.rate_limit_window,
        )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )

    # ── Exception Handlers ────────────────────────────────────────────────
    register_exception_handlers(app, debug=app_settings.is_development)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(auth.router, prefix=app_settings.api_prefix)
    app.include_router(sections.router, prefix=app_settings.api_prefix)
    app.include_router(notes.router, prefix=app_settings.api_prefix)
    app.include_router(health.router)

    return app


app = create_app()
