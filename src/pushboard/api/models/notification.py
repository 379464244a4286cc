"""Pydantic models for notification records and webhook ingestion.

``Notification`` mirrors the ``notifications`` table. ``WebhookPayload`` is
the validated body of ``POST /api/webhook``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Notification(BaseModel):
    """A single push notification with its delivery/click flags.

    Unknown keys are kept so records fetched over HTTP round-trip any
    passthrough fields the server adds.
    """

    model_config = ConfigDict(extra="allow")

    id: int
    title: str
    body: str = ""
    url: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime | None = None
    delivered: bool = False
    clicked: bool = False


class WebhookPayload(BaseModel):
    """Inbound notification from the CRM webhook.

    ``timestamp`` defaults to the insertion time when omitted. A payload that
    claims a click without delivery is rejected.
    """

    title: str = Field(min_length=1)
    body: str = ""
    url: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime | None = None
    delivered: bool = False
    clicked: bool = False

    @model_validator(mode="after")
    def _clicked_requires_delivered(self) -> WebhookPayload:
        if self.clicked and not self.delivered:
            raise ValueError("a clicked notification must also be delivered")
        return self
