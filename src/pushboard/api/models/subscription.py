"""Pydantic models for web push subscriptions."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class Subscription(BaseModel):
    """A stored push subscription.

    ``subscription`` is the browser's PushSubscription object serialized as
    JSON text; the server never interprets it.
    """

    id: int
    subscription: str
    created_at: datetime | None = None


class PushConfig(BaseModel):
    """Settings the browser needs to subscribe to push notifications."""

    vapid_public_key: str | None = None
