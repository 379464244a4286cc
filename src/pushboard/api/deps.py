"""Dependency singletons for the dashboard API.

Provides:
- the loaded :class:`DashboardConfig`
- the :class:`Database` pool and the :class:`NotificationStore` built on it
- the clock used by the analytics endpoints

Each router declares its own ``_get_store`` stub; :func:`wire_store_dependencies`
points those stubs at the live store once the pool is up.  Tests override the
stubs directly through ``app.dependency_overrides``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pushboard.analytics import Clock, utc_now
from pushboard.config import DashboardConfig
from pushboard.db import Database
from pushboard.storage import NotificationStore, StoreUnavailableError

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration singleton
# ---------------------------------------------------------------------------

_config: DashboardConfig | None = None


def init_config(config: DashboardConfig | None = None) -> DashboardConfig:
    """Install *config* (or the defaults) as the app-wide configuration."""
    global _config  # noqa: PLW0603
    _config = config or DashboardConfig()
    return _config


def get_config() -> DashboardConfig:
    """FastAPI dependency: provides the DashboardConfig singleton."""
    if _config is None:
        return init_config()
    return _config


# ---------------------------------------------------------------------------
# Database / store singleton
# ---------------------------------------------------------------------------

_database: Database | None = None
_store: NotificationStore | None = None


async def init_store(database: Database | None = None) -> NotificationStore:
    """Provision the database, open the pool and build the store.

    Called once during app startup (in the lifespan handler).
    """
    global _database, _store  # noqa: PLW0603

    db = database or Database.from_env()
    await db.provision()
    pool = await db.connect()

    _database = db
    _store = NotificationStore(pool)
    return _store


async def shutdown_store() -> None:
    """Close the pool. Called during app shutdown."""
    global _database, _store  # noqa: PLW0603
    if _database is not None:
        await _database.close()
        _database = None
    _store = None


def get_store() -> NotificationStore:
    """FastAPI dependency: provides the NotificationStore singleton."""
    if _store is None:
        raise StoreUnavailableError("Notification store not initialized")
    return _store


def get_clock() -> Clock:
    """FastAPI dependency: the clock used for "now" in analytics."""
    return utc_now


def wire_store_dependencies(app: FastAPI) -> None:
    """Override all router-level ``_get_store`` stubs with the singleton."""
    from pushboard.api.routers import analytics, notifications, subscriptions, webhook

    for module in [analytics, notifications, subscriptions, webhook]:
        app.dependency_overrides[module._get_store] = get_store
        logger.debug("Wired store dependency for router: %s", module.__name__)
