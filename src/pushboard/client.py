"""HTTP client for a running Pushboard API.

Covers the two things a dashboard viewer does against the server: fetch the
notification records to aggregate (one request per render, no retry) and opt
in to push notifications by registering a subscription.

Usage::

    async with DashboardClient("http://localhost:40300") as client:
        report = await client.fetch_report(DateRange.last_days(7))
        print(report.summary)
"""

from __future__ import annotations

import logging
from datetime import tzinfo
from typing import Any

import httpx
from pydantic import ValidationError

from pushboard.analytics import AnalyticsReport, Clock, DateRange, aggregate, utc_now
from pushboard.api.models import Notification, PushConfig, Subscription

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 30.0


class DashboardClientError(Exception):
    """Raised when the API cannot be reached or answers with an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class DashboardClient:
    """Thin async wrapper over the dashboard REST API."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> DashboardClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise DashboardClientError(f"{method} {path} failed: {exc}") from exc

        if response.is_error:
            message = response.text
            try:
                message = response.json()["error"]["message"]
            except (ValueError, KeyError, TypeError):
                pass
            raise DashboardClientError(
                f"{method} {path} returned {response.status_code}: {message}",
                status_code=response.status_code,
            )
        return response.json()

    async def fetch_notifications(self) -> list[Notification]:
        """``GET /api/notifications`` parsed into records."""
        payload = await self._request("GET", "/api/notifications")
        try:
            return [Notification.model_validate(item) for item in payload]
        except (ValidationError, TypeError) as exc:
            raise DashboardClientError(f"Malformed notification list: {exc}") from exc

    async def fetch_report(
        self,
        date_range: DateRange,
        *,
        tz: tzinfo | None = None,
        clock: Clock = utc_now,
    ) -> AnalyticsReport:
        """Fetch all records and aggregate them locally over *date_range*."""
        records = await self.fetch_notifications()
        logger.debug("Fetched %d notification(s) for aggregation", len(records))
        return aggregate(records, date_range, tz=tz, clock=clock)

    async def push_config(self) -> PushConfig:
        payload = await self._request("GET", "/api/push/config")
        return PushConfig.model_validate(payload["data"])

    async def subscribe(self, subscription: dict[str, Any]) -> Subscription:
        """Register a browser PushSubscription (``endpoint``, ``keys``...)."""
        payload = await self._request("POST", "/api/subscriptions", json=subscription)
        return Subscription.model_validate(payload)

    async def track_click(self, notification_id: int) -> None:
        await self._request("POST", f"/api/notifications/{notification_id}/click")
