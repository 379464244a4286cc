"""Push opt-in endpoints.

- ``POST /api/subscriptions`` — store the browser's PushSubscription as-is
- ``GET  /api/push/config``   — the VAPID public key to subscribe with
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends

from pushboard.api.deps import get_config
from pushboard.api.models import ApiResponse, PushConfig, Subscription
from pushboard.config import DashboardConfig
from pushboard.storage import NotificationStore, StoreUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/subscriptions", tags=["subscriptions"])
push_config_router = APIRouter(prefix="/api/push", tags=["subscriptions"])


def _get_store() -> NotificationStore:
    """Replaced through ``app.dependency_overrides`` once the pool is up."""
    raise StoreUnavailableError("Notification store not initialized")


@router.post("", response_model=Subscription)
async def save_subscription(
    payload: dict[str, Any] = Body(..., description="Opaque PushSubscription JSON"),
    store: NotificationStore = Depends(_get_store),
) -> Subscription:
    """Persist a push subscription without interpreting it."""
    return await store.save_subscription(payload)


@push_config_router.get("/config", response_model=ApiResponse[PushConfig])
async def push_config(
    config: DashboardConfig = Depends(get_config),
) -> ApiResponse[PushConfig]:
    """Return the application server key used by ``pushManager.subscribe``."""
    if config.push.vapid_public_key is None:
        logger.debug("No VAPID public key configured; push opt-in will be unavailable")
    return ApiResponse[PushConfig](
        data=PushConfig(vapid_public_key=config.push.vapid_public_key),
    )
