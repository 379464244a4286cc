"""Analytics endpoints — per-day notification counters and CSV export.

- ``GET /api/analytics``         — buckets, summary totals, engagement breakdown
- ``GET /api/analytics/export``  — the same buckets as a CSV attachment

Both accept ``from``/``to`` (ISO 8601, inclusive) and ``tz`` (IANA zone used to
derive calendar days). Bounds without a UTC offset are read in that zone.
Without a range the last ``default_range_days`` days are used. Records are
re-aggregated on every request; nothing is cached.
"""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from pushboard.analytics import Clock, aggregate, build_export, localize, resolve_range
from pushboard.api.deps import get_clock, get_config
from pushboard.api.models import AnalyticsData, ApiResponse
from pushboard.config import DashboardConfig
from pushboard.storage import NotificationStore, StoreUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


def _get_store() -> NotificationStore:
    """Replaced through ``app.dependency_overrides`` once the pool is up."""
    raise StoreUnavailableError("Notification store not initialized")


class AnalyticsQuery:
    """Shared query parameters for both analytics endpoints."""

    def __init__(
        self,
        start: datetime | None = Query(None, alias="from", description="Range start (inclusive)"),
        end: datetime | None = Query(None, alias="to", description="Range end (inclusive)"),
        tz: str | None = Query(None, description="IANA zone for calendar days"),
    ) -> None:
        self.start = start
        self.end = end
        self.tz = tz


async def _build_report(
    query: AnalyticsQuery,
    store: NotificationStore,
    config: DashboardConfig,
    clock: Clock,
):
    zone_name = query.tz or config.timezone
    zone = config.display_zone(query.tz)
    # Offset-less bounds are wall-clock times in the display zone.
    date_range = resolve_range(
        localize(query.start, zone),
        localize(query.end, zone),
        default_days=config.default_range_days,
        clock=clock,
    )
    records = await store.get_notifications()
    report = aggregate(records, date_range, tz=zone, clock=clock)
    logger.debug(
        "Aggregated %d record(s) into %d bucket(s) for %s..%s",
        report.summary.total,
        len(report.buckets),
        date_range.start.isoformat(),
        date_range.end.isoformat(),
    )
    return report, zone, zone_name


@router.get("", response_model=ApiResponse[AnalyticsData])
async def get_analytics(
    query: AnalyticsQuery = Depends(),
    store: NotificationStore = Depends(_get_store),
    config: DashboardConfig = Depends(get_config),
    clock: Clock = Depends(get_clock),
) -> ApiResponse[AnalyticsData]:
    """Return chart-ready analytics for the requested date range."""
    report, _, zone_name = await _build_report(query, store, config, clock)
    return ApiResponse[AnalyticsData](data=AnalyticsData.from_report(report, timezone=zone_name))


@router.get("/export")
async def export_analytics(
    query: AnalyticsQuery = Depends(),
    store: NotificationStore = Depends(_get_store),
    config: DashboardConfig = Depends(get_config),
    clock: Clock = Depends(get_clock),
) -> Response:
    """Download the daily buckets as ``notification-analytics-<from>-to-<to>.csv``."""
    report, zone, _ = await _build_report(query, store, config, clock)
    export = build_export(report, tz=zone)
    logger.info("Exported %d bucket(s) as %s", len(report.buckets), export.filename)
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": export.content_disposition},
    )
