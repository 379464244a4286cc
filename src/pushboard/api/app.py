"""Dashboard API — FastAPI application factory.

The app factory creates a FastAPI instance with:
- CORS middleware (configurable origins)
- Lifespan handler that opens and closes the PostgreSQL pool
- Health endpoint at GET /api/health
- Notification, webhook, subscription and analytics routers
- Optional static file serving for the built frontend
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.staticfiles import StaticFiles

from pushboard import __version__
from pushboard.api.deps import (
    get_config,
    init_config,
    init_store,
    shutdown_store,
    wire_store_dependencies,
)
from pushboard.api.middleware import register_error_handlers
from pushboard.api.routers.analytics import router as analytics_router
from pushboard.api.routers.notifications import router as notifications_router
from pushboard.api.routers.subscriptions import push_config_router
from pushboard.api.routers.subscriptions import router as subscriptions_router
from pushboard.api.routers.webhook import router as webhook_router
from pushboard.config import DashboardConfig

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle for the database pool.

    A database that cannot be reached does not stop the app: store-backed
    endpoints answer 503 until the process is restarted.
    """
    try:
        await init_store()
        wire_store_dependencies(app)
        logger.info("Notification store initialized")
    except Exception:
        logger.warning(
            "Failed to initialize notification store; DB endpoints will be unavailable",
            exc_info=True,
        )

    yield

    await shutdown_store()


def create_app(
    config: DashboardConfig | None = None,
    cors_origins: list[str] | None = None,
    static_dir: str | Path | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Parameters
    ----------
    config:
        Dashboard configuration. Defaults to the installed singleton (or the
        built-in defaults when none was installed).
    cors_origins:
        Allowed CORS origins. Overrides ``config.cors_origins``.
    static_dir:
        Path to the built frontend directory. When set, mounts a
        ``StaticFiles`` handler at ``/`` with ``html=True`` for SPA fallback.
        Falls back to ``config.static_dir`` and then to the
        ``DASHBOARD_STATIC_DIR`` environment variable.
    """
    if config is not None:
        init_config(config)
    config = get_config()

    if cors_origins is None:
        cors_origins = config.cors_origins

    app = FastAPI(
        title="Pushboard Dashboard API",
        version=__version__,
        lifespan=lifespan,
    )
    app.router.redirect_slashes = False

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.include_router(notifications_router)
    app.include_router(webhook_router)
    app.include_router(subscriptions_router)
    app.include_router(push_config_router)
    app.include_router(analytics_router)

    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    # Mount AFTER all API routes so /api/* always takes precedence.
    resolved_static = static_dir or config.static_dir or os.environ.get("DASHBOARD_STATIC_DIR")
    if resolved_static is not None:
        dist_path = Path(resolved_static)
        if dist_path.is_dir():
            app.mount(
                "/",
                StaticFiles(directory=str(dist_path), html=True),
                name="frontend",
            )
            logger.info("Mounted frontend static files from %s", dist_path)
        else:
            logger.warning("static_dir %s does not exist; skipping static mount", dist_path)

    return app
