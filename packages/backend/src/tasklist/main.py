"""FastAPI application factory.

Learn: App factory pattern: create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (logging the config we run
with, precomputing the login dummy digest, disposing the database
pool). Middleware, error handlers and routers are all registered here.

Request flow: RequestId → SecurityHeaders → CORS → router →
(require_path_owner) → body (owner_body) → handler → store.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tasklist import __version__
from tasklist.api import api_router
from tasklist.api.errors import register_error_handlers
from tasklist.config import settings
from tasklist.log_config import configure_logging
from tasklist.middleware.request_id import RequestIdMiddleware
from tasklist.middleware.security import SecurityHeadersMiddleware
from tasklist.services.user_service import warm_login_guard

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` at shutdown.
    """
    logger.info(
        "tasklist.starting",
        version=__version__,
        environment=settings.environment,
        store_backend=settings.store_backend,
        port=settings.port,
    )
    await warm_login_guard()

    yield

    logger.info("tasklist.shutdown")
    if settings.store_backend == "sql":
        from tasklist.db.engine import engine
        await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    configure_logging(settings.log_level, settings.log_json)

    app = FastAPI(
        title="Tasklist",
        description="Personal task management with per-user JWT access",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    register_error_handlers(app)
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: tasklist.main:app)
app = create_app()
