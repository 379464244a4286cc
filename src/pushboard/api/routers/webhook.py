"""CRM webhook intake — ``POST /api/webhook``.

Validates the inbound payload, stores it as a notification and reports how
many push subscribers it would fan out to. Push delivery itself is out of
scope; the subscriber count is only logged.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from pushboard.api.models import Notification, WebhookPayload
from pushboard.storage import NotificationStore, StoreUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhook", tags=["webhook"])


def _get_store() -> NotificationStore:
    """Replaced through ``app.dependency_overrides`` once the pool is up."""
    raise StoreUnavailableError("Notification store not initialized")


@router.post("", response_model=Notification)
async def receive_webhook(
    payload: WebhookPayload,
    store: NotificationStore = Depends(_get_store),
) -> Notification:
    """Create a notification from a validated webhook payload.

    Malformed payloads never reach this handler; they are rejected with a
    400 ``VALIDATION_ERROR`` by the request validation handler.
    """
    created = await store.create_notification(payload)

    subscriptions = await store.get_all_subscriptions()
    logger.info(
        "Sending notification %d to %d subscriber(s)",
        created.id,
        len(subscriptions),
    )
    return created
