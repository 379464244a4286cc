"""Notification analytics: date-range aggregation and CSV reporting."""

from pushboard.analytics.aggregator import (
    AnalyticsReport,
    Clock,
    DailyBucket,
    DateRange,
    EngagementBreakdown,
    SummaryTotals,
    aggregate,
    filter_records,
    localize,
    parse_zone,
    resolve_range,
    utc_now,
)
from pushboard.analytics.reporter import CsvExport, build_export, export_filename, render_csv

__all__ = [
    "AnalyticsReport",
    "Clock",
    "CsvExport",
    "DailyBucket",
    "DateRange",
    "EngagementBreakdown",
    "SummaryTotals",
    "aggregate",
    "build_export",
    "export_filename",
    "filter_records",
    "localize",
    "parse_zone",
    "render_csv",
    "resolve_range",
    "utc_now",
]
