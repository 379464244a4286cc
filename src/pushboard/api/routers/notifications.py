"""Notification endpoints — raw record listing and delivery/click tracking.

- ``GET  /api/notifications``                 — every record, insertion order
- ``POST /api/notifications/{id}/click``      — mark a record clicked
- ``POST /api/notifications/{id}/delivered``  — mark a record delivered

The list is deliberately unpaginated and unfiltered: the dashboard fetches it
once per render and filters by date range itself.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Path

from pushboard.api.models import ActionResult, Notification
from pushboard.storage import NotificationStore, StoreUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


def _get_store() -> NotificationStore:
    """Replaced through ``app.dependency_overrides`` once the pool is up."""
    raise StoreUnavailableError("Notification store not initialized")


@router.get("", response_model=list[Notification])
async def list_notifications(
    store: NotificationStore = Depends(_get_store),
) -> list[Notification]:
    """Return all notification records for client-side analytics."""
    return await store.get_notifications()


@router.post("/{notification_id}/click", response_model=ActionResult)
async def track_click(
    notification_id: int = Path(..., description="Notification id"),
    store: NotificationStore = Depends(_get_store),
) -> ActionResult:
    """Record that the recipient interacted with a notification."""
    await store.mark_notification_clicked(notification_id)
    return ActionResult()


@router.post("/{notification_id}/delivered", response_model=ActionResult)
async def track_delivery(
    notification_id: int = Path(..., description="Notification id"),
    store: NotificationStore = Depends(_get_store),
) -> ActionResult:
    """Record that a notification reached its recipient."""
    await store.mark_notification_delivered(notification_id)
    return ActionResult()
