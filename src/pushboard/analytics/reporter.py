"""CSV export of daily analytics buckets."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import tzinfo

from pushboard.analytics.aggregator import AnalyticsReport, DailyBucket, DateRange

CSV_HEADER = ("Date", "Total", "Delivered", "Clicked")
CSV_MEDIA_TYPE = "text/csv"

_FILENAME_DATE_FORMAT = "%Y-%m-%d"


@dataclass(frozen=True, slots=True)
class CsvExport:
    """A downloadable CSV artifact."""

    filename: str
    content: str
    media_type: str = CSV_MEDIA_TYPE

    @property
    def content_disposition(self) -> str:
        return f'attachment; filename="{self.filename}"'


def render_csv(buckets: Iterable[DailyBucket]) -> str:
    """Render buckets as ``Date,Total,Delivered,Clicked`` rows.

    Rows keep the bucket order and are joined by ``\\n`` with no trailing
    newline. Day labels never contain commas, so fields are not quoted.
    """
    lines = [",".join(CSV_HEADER)]
    for bucket in buckets:
        lines.append(f"{bucket.date},{bucket.total},{bucket.delivered},{bucket.clicked}")
    return "\n".join(lines)


def export_filename(date_range: DateRange, tz: tzinfo | None = None) -> str:
    """File name embedding the range boundaries as ``yyyy-MM-dd`` in *tz*."""
    start = date_range.start.astimezone(tz).strftime(_FILENAME_DATE_FORMAT)
    end = date_range.end.astimezone(tz).strftime(_FILENAME_DATE_FORMAT)
    return f"notification-analytics-{start}-to-{end}.csv"


def build_export(report: AnalyticsReport, tz: tzinfo | None = None) -> CsvExport:
    return CsvExport(
        filename=export_filename(report.date_range, tz),
        content=render_csv(report.buckets),
    )
