"""Tests for notification analytics aggregation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from pushboard.analytics import (
    DailyBucket,
    DateRange,
    EngagementBreakdown,
    SummaryTotals,
    aggregate,
    filter_records,
    localize,
    parse_zone,
    resolve_range,
)
from pushboard.analytics.aggregator import day_label

pytestmark = pytest.mark.unit

NOW = datetime(2026, 1, 5, 12, 0, tzinfo=UTC)


def _clock() -> datetime:
    return NOW


@dataclass
class Record:
    timestamp: datetime | None
    delivered: bool = False
    clicked: bool = False


def _jan(day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(2026, 1, day, hour, minute, tzinfo=UTC)


@pytest.fixture
def sample_records() -> list[Record]:
    return [
        Record(_jan(1, 10), delivered=True),
        Record(_jan(1, 14), delivered=True, clicked=True),
        Record(_jan(2, 9)),
    ]


@pytest.fixture
def jan_1_to_2() -> DateRange:
    return DateRange(_jan(1), datetime(2026, 1, 2, 23, 59, 59, tzinfo=UTC))


# ---------------------------------------------------------------------------
# DateRange
# ---------------------------------------------------------------------------


class TestDateRange:
    def test_bounds_are_inclusive(self):
        date_range = DateRange(_jan(1), _jan(2))
        assert date_range.contains(_jan(1))
        assert date_range.contains(_jan(2))
        assert not date_range.contains(_jan(2) + timedelta(microseconds=1))

    def test_start_after_end_raises(self):
        with pytest.raises(ValueError, match="is after end"):
            DateRange(_jan(3), _jan(1))

    def test_single_instant_range(self):
        assert DateRange(_jan(1, 10), _jan(1, 10)).contains(_jan(1, 10))

    def test_naive_bounds_are_utc(self):
        date_range = DateRange(datetime(2026, 1, 1), datetime(2026, 1, 2))
        assert date_range.start.tzinfo is UTC
        assert date_range.contains(_jan(1, 12))

    def test_last_days_defaults_to_a_week(self):
        date_range = DateRange.last_days(clock=_clock)
        assert date_range.end == NOW
        assert date_range.start == NOW - timedelta(days=7)

    def test_last_days_rejects_negative(self):
        with pytest.raises(ValueError):
            DateRange.last_days(-1, clock=_clock)


class TestResolveRange:
    def test_no_bounds_uses_default_days(self):
        date_range = resolve_range(None, None, default_days=3, clock=_clock)
        assert date_range == DateRange(NOW - timedelta(days=3), NOW)

    def test_missing_end_is_now(self):
        date_range = resolve_range(_jan(1), None, clock=_clock)
        assert date_range.end == NOW

    def test_missing_start_counts_back_from_end(self):
        date_range = resolve_range(None, _jan(4), default_days=2, clock=_clock)
        assert date_range.start == _jan(2)


class TestParseZone:
    def test_none_is_local_zone(self):
        assert parse_zone(None) is None

    def test_known_zone(self):
        assert parse_zone("Europe/Paris") == ZoneInfo("Europe/Paris")

    def test_unknown_zone_raises_value_error(self):
        with pytest.raises(ValueError, match="Unknown time zone"):
            parse_zone("Nowhere/Special")


class TestLocalize:
    def test_naive_bound_is_wall_clock_in_zone(self):
        ny = ZoneInfo("America/New_York")

        bound = localize(datetime(2026, 1, 1, 0, 0), ny)

        assert bound == datetime(2026, 1, 1, 5, 0, tzinfo=UTC)

    def test_aware_bound_passes_through(self):
        assert localize(_jan(1, 3), ZoneInfo("America/New_York")) == _jan(1, 3)

    def test_none_stays_none(self):
        assert localize(None, UTC) is None


# ---------------------------------------------------------------------------
# filter_records
# ---------------------------------------------------------------------------


class TestFilterRecords:
    def test_keeps_order_and_drops_out_of_range(self, jan_1_to_2):
        inside_late = Record(_jan(2, 20))
        outside = Record(_jan(3, 1))
        inside_early = Record(_jan(1, 1))

        result = filter_records([inside_late, outside, inside_early], jan_1_to_2, clock=_clock)

        assert result == [inside_late, inside_early]

    def test_missing_timestamp_uses_clock(self):
        record = Record(None)
        assert filter_records([record], DateRange(_jan(5), _jan(6)), clock=_clock) == [record]
        assert filter_records([record], DateRange(_jan(1), _jan(2)), clock=_clock) == []


# ---------------------------------------------------------------------------
# aggregate
# ---------------------------------------------------------------------------


class TestAggregate:
    def test_worked_example(self, sample_records, jan_1_to_2):
        report = aggregate(sample_records, jan_1_to_2, tz=UTC, clock=_clock)

        assert report.buckets == [
            DailyBucket(date="Jan 01", total=2, delivered=2, clicked=1),
            DailyBucket(date="Jan 02", total=1, delivered=0, clicked=0),
        ]
        assert report.summary == SummaryTotals(total=3, delivered=2, clicked=1)
        assert report.engagement == EngagementBreakdown(
            undelivered=1, delivered_not_clicked=1, clicked=1
        )
        assert report.date_range == jan_1_to_2

    def test_empty_input(self, jan_1_to_2):
        report = aggregate([], jan_1_to_2, tz=UTC, clock=_clock)

        assert report.buckets == []
        assert report.summary == SummaryTotals()
        assert report.engagement == EngagementBreakdown()

    def test_no_records_in_range(self, jan_1_to_2):
        report = aggregate([Record(_jan(4))], jan_1_to_2, tz=UTC, clock=_clock)

        assert report.buckets == []
        assert report.summary.total == 0

    def test_buckets_follow_first_appearance(self, jan_1_to_2):
        records = [Record(_jan(2, 9)), Record(_jan(1, 9)), Record(_jan(2, 10))]

        report = aggregate(records, jan_1_to_2, tz=UTC, clock=_clock)

        assert [b.date for b in report.buckets] == ["Jan 02", "Jan 01"]
        assert [b.total for b in report.buckets] == [2, 1]

    def test_bucket_totals_sum_to_summary(self, sample_records, jan_1_to_2):
        report = aggregate(sample_records, jan_1_to_2, tz=UTC, clock=_clock)

        assert sum(b.total for b in report.buckets) == report.summary.total
        assert sum(b.delivered for b in report.buckets) == report.summary.delivered
        assert sum(b.clicked for b in report.buckets) == report.summary.clicked

    def test_engagement_partitions_total(self, sample_records, jan_1_to_2):
        report = aggregate(sample_records, jan_1_to_2, tz=UTC, clock=_clock)

        engagement = report.engagement
        assert (
            engagement.undelivered + engagement.delivered_not_clicked + engagement.clicked
            == report.summary.total
        )

    def test_is_idempotent_and_does_not_mutate_input(self, sample_records, jan_1_to_2):
        snapshot = list(sample_records)

        first = aggregate(sample_records, jan_1_to_2, tz=UTC, clock=_clock)
        second = aggregate(sample_records, jan_1_to_2, tz=UTC, clock=_clock)

        assert first == second
        assert sample_records == snapshot

    def test_prefiltering_does_not_change_the_report(self):
        records = [
            Record(_jan(1, 10), delivered=True),
            Record(datetime(2025, 12, 31, 23, 0, tzinfo=UTC), delivered=True),
            Record(None, delivered=True, clicked=True),
            Record(_jan(9, 8)),
            Record(_jan(3, 7)),
        ]
        date_range = DateRange(_jan(1), _jan(5, 23))

        once = filter_records(records, date_range, clock=_clock)

        assert filter_records(once, date_range, clock=_clock) == once
        assert aggregate(once, date_range, tz=UTC, clock=_clock) == aggregate(
            records, date_range, tz=UTC, clock=_clock
        )
        report = aggregate(records, date_range, tz=UTC, clock=_clock)
        assert [bucket.date for bucket in report.buckets] == ["Jan 01", "Jan 05", "Jan 03"]

    def test_missing_timestamp_counts_on_clock_day(self):
        report = aggregate([Record(None)], DateRange(_jan(5), _jan(6)), tz=UTC, clock=_clock)

        assert report.buckets == [DailyBucket(date="Jan 05", total=1)]

    def test_day_follows_display_zone(self, jan_1_to_2):
        # 02:00 UTC on Jan 2 is still Jan 1 in New York.
        records = [Record(_jan(2, 2))]

        utc_report = aggregate(records, jan_1_to_2, tz=UTC, clock=_clock)
        ny_report = aggregate(
            records, jan_1_to_2, tz=ZoneInfo("America/New_York"), clock=_clock
        )

        assert utc_report.buckets[0].date == "Jan 02"
        assert ny_report.buckets[0].date == "Jan 01"

    def test_same_day_of_different_years_shares_a_bucket(self):
        records = [
            Record(datetime(2025, 1, 1, 9, 0, tzinfo=UTC)),
            Record(_jan(1, 9)),
        ]
        two_years = DateRange(datetime(2024, 12, 31, tzinfo=UTC), _jan(2))

        report = aggregate(records, two_years, tz=UTC, clock=_clock)

        assert report.buckets == [DailyBucket(date="Jan 01", total=2)]

    def test_naive_timestamps_are_utc(self, jan_1_to_2):
        report = aggregate([Record(datetime(2026, 1, 1, 23, 30))], jan_1_to_2, tz=UTC)

        assert report.buckets[0].date == "Jan 01"

    def test_clicked_without_delivered_surfaces_negative_slice(self, jan_1_to_2, caplog):
        records = [Record(_jan(1, 10), delivered=False, clicked=True)]

        with caplog.at_level(logging.WARNING, logger="pushboard.analytics.aggregator"):
            report = aggregate(records, jan_1_to_2, tz=UTC, clock=_clock)

        assert report.engagement == EngagementBreakdown(
            undelivered=1, delivered_not_clicked=-1, clicked=1
        )
        assert "negative slice" in caplog.text


class TestEngagementSlices:
    def test_display_order(self):
        breakdown = EngagementBreakdown(undelivered=4, delivered_not_clicked=2, clicked=1)
        assert breakdown.as_slices() == [
            ("Undelivered", 4),
            ("Delivered (No Click)", 2),
            ("Clicked", 1),
        ]


def test_day_label_format():
    assert day_label(datetime(2026, 3, 7, 8, 0, tzinfo=UTC), UTC) == "Mar 07"
