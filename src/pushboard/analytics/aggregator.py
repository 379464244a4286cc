"""Notification analytics aggregation.

Filters notification records to a closed date range and folds them into
per-day buckets, summary totals and a three-way engagement breakdown.

Everything here is pure: the only notion of "now" comes from the injected
``clock``, which stands in for records that carry no timestamp.

Example::

    report = aggregate(records, DateRange(start, end), tz=ZoneInfo("Europe/Paris"))
    for bucket in report.buckets:
        print(bucket.date, bucket.total, bucket.delivered, bucket.clicked)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta, tzinfo
from typing import Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# Day label shown on chart axes and in CSV rows, e.g. "Jan 01".
DAY_LABEL_FORMAT = "%b %d"

DEFAULT_RANGE_DAYS = 7


def utc_now() -> datetime:
    """Default clock: the current time in UTC."""
    return datetime.now(tz=UTC)


class NotificationLike(Protocol):
    """The fields of a notification record the aggregator reads."""

    @property
    def timestamp(self) -> datetime | None: ...

    @property
    def delivered(self) -> bool: ...

    @property
    def clicked(self) -> bool: ...


def _as_aware(value: datetime) -> datetime:
    """Attach UTC to a naive datetime; aware datetimes pass through."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@dataclass(frozen=True, slots=True)
class DateRange:
    """Closed interval ``[start, end]`` compared at full timestamp precision."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", _as_aware(self.start))
        object.__setattr__(self, "end", _as_aware(self.end))
        if self.start > self.end:
            raise ValueError(
                f"Date range start {self.start.isoformat()} is after end {self.end.isoformat()}"
            )

    @classmethod
    def last_days(cls, days: int = DEFAULT_RANGE_DAYS, clock: Clock = utc_now) -> DateRange:
        """Range ending now and starting *days* days earlier."""
        if days < 0:
            raise ValueError(f"days must be non-negative, got {days}")
        now = _as_aware(clock())
        return cls(start=now - timedelta(days=days), end=now)

    def contains(self, moment: datetime) -> bool:
        return self.start <= _as_aware(moment) <= self.end


@dataclass(slots=True)
class DailyBucket:
    """Counters for one calendar day."""

    date: str
    total: int = 0
    delivered: int = 0
    clicked: int = 0


@dataclass(frozen=True, slots=True)
class SummaryTotals:
    total: int = 0
    delivered: int = 0
    clicked: int = 0


@dataclass(frozen=True, slots=True)
class EngagementBreakdown:
    """Mutually exclusive split of the filtered set.

    Values are surfaced as computed. A record flagged clicked but not
    delivered makes ``delivered_not_clicked`` negative; the store rejects
    such records at ingestion.
    """

    undelivered: int = 0
    delivered_not_clicked: int = 0
    clicked: int = 0

    @classmethod
    def from_totals(cls, totals: SummaryTotals) -> EngagementBreakdown:
        return cls(
            undelivered=totals.total - totals.delivered,
            delivered_not_clicked=totals.delivered - totals.clicked,
            clicked=totals.clicked,
        )

    def as_slices(self) -> list[tuple[str, int]]:
        """Named slices in display order for pie-style charts."""
        return [
            ("Undelivered", self.undelivered),
            ("Delivered (No Click)", self.delivered_not_clicked),
            ("Clicked", self.clicked),
        ]


@dataclass(frozen=True, slots=True)
class AnalyticsReport:
    """Render-ready aggregation result for one date range."""

    date_range: DateRange
    buckets: list[DailyBucket] = field(default_factory=list)
    summary: SummaryTotals = field(default_factory=SummaryTotals)
    engagement: EngagementBreakdown = field(default_factory=EngagementBreakdown)


def effective_timestamp(record: NotificationLike, now: datetime) -> datetime:
    """Return the record's timestamp, or *now* when it has none."""
    if record.timestamp is None:
        return now
    return _as_aware(record.timestamp)


def day_label(moment: datetime, tz: tzinfo | None = None) -> str:
    """Calendar-day label of *moment* in *tz* (the local zone when None).

    The label carries no year, so the same month and day of different years
    share a label.
    """
    return _as_aware(moment).astimezone(tz).strftime(DAY_LABEL_FORMAT)


def filter_records[R: NotificationLike](
    records: Iterable[R],
    date_range: DateRange,
    *,
    clock: Clock = utc_now,
) -> list[R]:
    """Return the records whose timestamp lies in *date_range*, input order kept."""
    now = _as_aware(clock())
    return [r for r in records if date_range.contains(effective_timestamp(r, now))]


def aggregate(
    records: Sequence[NotificationLike],
    date_range: DateRange,
    *,
    tz: tzinfo | None = None,
    clock: Clock = utc_now,
) -> AnalyticsReport:
    """Aggregate *records* over *date_range* into daily buckets and totals.

    Parameters
    ----------
    records:
        Notification records in store order. Never mutated.
    date_range:
        Inclusive range; records outside it are ignored.
    tz:
        Display zone used to derive each record's calendar day. Defaults to
        the process local zone.
    clock:
        Source of "now" for records without a timestamp. Read once per call.

    Returns
    -------
    AnalyticsReport
        Buckets ordered by first appearance among the filtered records.
        Buckets are keyed by ``Mon DD`` label only: over a range longer than
        a year, the same month and day of different years fall into one
        bucket.
    """
    now = _as_aware(clock())

    buckets: dict[str, DailyBucket] = {}
    total = delivered = clicked = 0
    for record in records:
        moment = effective_timestamp(record, now)
        if not date_range.contains(moment):
            continue

        label = day_label(moment, tz)
        bucket = buckets.get(label)
        if bucket is None:
            bucket = buckets[label] = DailyBucket(date=label)

        bucket.total += 1
        total += 1
        if record.delivered:
            bucket.delivered += 1
            delivered += 1
        if record.clicked:
            bucket.clicked += 1
            clicked += 1

    summary = SummaryTotals(total=total, delivered=delivered, clicked=clicked)
    engagement = EngagementBreakdown.from_totals(summary)
    if engagement.delivered_not_clicked < 0:
        logger.warning(
            "Clicked notifications outnumber delivered ones (delivered=%d, clicked=%d); "
            "engagement breakdown has a negative slice",
            delivered,
            clicked,
        )

    return AnalyticsReport(
        date_range=date_range,
        buckets=list(buckets.values()),
        summary=summary,
        engagement=engagement,
    )


def parse_zone(name: str | None) -> tzinfo | None:
    """Resolve an IANA zone name; None selects the process local zone."""
    if name is None:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown time zone: {name!r}") from exc


def localize(value: datetime | None, zone: tzinfo | None) -> datetime | None:
    """Read a naive range bound as wall-clock time in *zone*.

    Aware values pass through. With no zone the process local zone is used,
    matching how calendar days are labelled.
    """
    if value is None or value.tzinfo is not None:
        return value
    if zone is None:
        return value.astimezone()
    return value.replace(tzinfo=zone)


def resolve_range(
    start: datetime | None,
    end: datetime | None,
    *,
    default_days: int = DEFAULT_RANGE_DAYS,
    clock: Clock = utc_now,
) -> DateRange:
    """Build a range from optional bounds, filling gaps relative to the clock.

    No bounds gives the last *default_days* days; a missing end is "now"; a
    missing start is *default_days* before the end.
    """
    if start is None and end is None:
        return DateRange.last_days(default_days, clock)
    if end is None:
        end = clock()
    if start is None:
        start = end - timedelta(days=default_days)
    return DateRange(start=start, end=end)
