"""Pydantic models for the analytics endpoint.

Serializable views of :class:`pushboard.analytics.AnalyticsReport`.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from pushboard.analytics import AnalyticsReport


class DateRangeModel(BaseModel):
    start: datetime
    end: datetime


class DailyBucketModel(BaseModel):
    """Counters for one calendar day, labelled ``Mon DD``."""

    date: str
    total: int
    delivered: int
    clicked: int


class SummaryModel(BaseModel):
    total: int
    delivered: int
    clicked: int


class EngagementSlice(BaseModel):
    name: str
    value: int


class EngagementModel(BaseModel):
    """Three-way split of the filtered notifications.

    ``slices`` carries the same values with display names, in chart order.
    """

    undelivered: int
    delivered_not_clicked: int
    clicked: int
    slices: list[EngagementSlice]


class AnalyticsData(BaseModel):
    """Everything the dashboard charts need for one date range."""

    range: DateRangeModel
    timezone: str | None = None
    buckets: list[DailyBucketModel]
    summary: SummaryModel
    engagement: EngagementModel

    @classmethod
    def from_report(cls, report: AnalyticsReport, timezone: str | None = None) -> AnalyticsData:
        engagement = report.engagement
        return cls(
            range=DateRangeModel(start=report.date_range.start, end=report.date_range.end),
            timezone=timezone,
            buckets=[
                DailyBucketModel(
                    date=b.date, total=b.total, delivered=b.delivered, clicked=b.clicked
                )
                for b in report.buckets
            ],
            summary=SummaryModel(
                total=report.summary.total,
                delivered=report.summary.delivered,
                clicked=report.summary.clicked,
            ),
            engagement=EngagementModel(
                undelivered=engagement.undelivered,
                delivered_not_clicked=engagement.delivered_not_clicked,
                clicked=engagement.clicked,
                slices=[
                    EngagementSlice(name=name, value=value)
                    for name, value in engagement.as_slices()
                ],
            ),
        )
