"""Notification and push-subscription persistence on PostgreSQL.

All queries go through an asyncpg pool. The schema is created by the Alembic
revisions under ``alembic/versions``.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import asyncpg

from pushboard.api.models import Notification, Subscription, WebhookPayload

logger = logging.getLogger(__name__)

_NOTIFICATION_COLUMNS = 'id, title, body, url, metadata, "timestamp", delivered, clicked'


class NotificationNotFoundError(Exception):
    """Raised when an update targets a notification id that does not exist."""

    def __init__(self, notification_id: int) -> None:
        self.notification_id = notification_id
        super().__init__(f"Notification not found: {notification_id}")


class StoreUnavailableError(Exception):
    """Raised when the store is requested before its pool is initialised."""


def _decode_json(value: Any) -> dict[str, Any]:
    """asyncpg hands back JSONB as text unless a codec is registered."""
    if value is None:
        return {}
    if isinstance(value, str):
        return json.loads(value)
    return dict(value)


def _notification_from_row(row: Any) -> Notification:
    return Notification(
        id=row["id"],
        title=row["title"],
        body=row["body"],
        url=row["url"],
        metadata=_decode_json(row["metadata"]),
        timestamp=row["timestamp"],
        delivered=row["delivered"],
        clicked=row["clicked"],
    )


def _subscription_from_row(row: Any) -> Subscription:
    return Subscription(
        id=row["id"],
        subscription=row["subscription"],
        created_at=row["created_at"],
    )


class NotificationStore:
    """CRUD operations over the ``notifications`` and ``subscriptions`` tables."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    # -- notifications ------------------------------------------------------

    async def create_notification(self, payload: WebhookPayload) -> Notification:
        """Insert a notification; a missing timestamp becomes ``now()``."""
        row = await self._pool.fetchrow(
            "INSERT INTO notifications "
            '(title, body, url, metadata, "timestamp", delivered, clicked) '
            "VALUES ($1, $2, $3, $4::jsonb, COALESCE($5, now()), $6, $7) "
            f"RETURNING {_NOTIFICATION_COLUMNS}",
            payload.title,
            payload.body,
            payload.url,
            json.dumps(payload.metadata),
            payload.timestamp,
            payload.delivered,
            payload.clicked,
        )
        created = _notification_from_row(row)
        logger.info("Created notification %d", created.id)
        return created

    async def get_notifications(self) -> list[Notification]:
        """Return every notification in insertion order."""
        rows = await self._pool.fetch(
            f"SELECT {_NOTIFICATION_COLUMNS} FROM notifications ORDER BY id"
        )
        return [_notification_from_row(row) for row in rows]

    async def mark_notification_delivered(self, notification_id: int) -> None:
        updated = await self._pool.fetchval(
            "UPDATE notifications SET delivered = true WHERE id = $1 RETURNING id",
            notification_id,
        )
        if updated is None:
            raise NotificationNotFoundError(notification_id)
        logger.debug("Marked notification %d delivered", notification_id)

    async def mark_notification_clicked(self, notification_id: int) -> None:
        """Flag a click. A clicked notification is delivered, so both flags are set."""
        updated = await self._pool.fetchval(
            "UPDATE notifications SET clicked = true, delivered = true "
            "WHERE id = $1 RETURNING id",
            notification_id,
        )
        if updated is None:
            raise NotificationNotFoundError(notification_id)
        logger.debug("Marked notification %d clicked", notification_id)

    # -- subscriptions ------------------------------------------------------

    async def save_subscription(self, payload: dict[str, Any]) -> Subscription:
        """Store an opaque push subscription payload as JSON text."""
        row = await self._pool.fetchrow(
            "INSERT INTO subscriptions (subscription) VALUES ($1) "
            "RETURNING id, subscription, created_at",
            json.dumps(payload),
        )
        saved = _subscription_from_row(row)
        logger.info("Saved push subscription %d", saved.id)
        return saved

    async def get_all_subscriptions(self) -> list[Subscription]:
        rows = await self._pool.fetch(
            "SELECT id, subscription, created_at FROM subscriptions ORDER BY id"
        )
        return [_subscription_from_row(row) for row in rows]
