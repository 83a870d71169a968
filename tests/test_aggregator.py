"""
Tests for bucketing, statistics and trend calculation.
"""

from datetime import date, timedelta

import pytest

from conftest import make_daily, make_record

from clusage.aggregation.aggregator import (
    AggregatedData,
    aggregate_by_weekday,
    aggregate_hourly,
    aggregate_usage,
    calculate_daily_summary,
    calculate_stats,
    calculate_trend,
    compare_periods,
    flatten_records,
    format_iso_week,
    get_group_key,
    get_iso_week,
    merge_stats,
    summarize_month,
    summarize_week,
)


class TestIsoWeek:
    """ISO-8601 week numbering around year boundaries."""

    @pytest.mark.parametrize("day,expected", [
        (date(2025, 12, 29), (2026, 1)),
        (date(2026, 1, 1), (2026, 1)),
        (date(2021, 1, 3), (2020, 53)),
        (date(2026, 1, 15), (2026, 3)),
        (date(2024, 12, 30), (2025, 1)),
    ])
    def test_boundary_dates(self, day, expected):
        """Dates near new year fall in the right ISO year."""
        assert get_iso_week(day) == expected

    def test_matches_isocalendar_for_two_years(self):
        """Every day of 2025-2026 agrees with the standard library."""
        day = date(2025, 1, 1)
        while day < date(2027, 1, 1):
            assert get_iso_week(day) == tuple(day.isocalendar())[:2]
            day += timedelta(days=1)

    def test_format(self):
        """Weeks are zero-padded."""
        assert format_iso_week(date(2026, 2, 2)) == "2026-W06"


class TestGroupKeys:
    """Bucket keys per unit."""

    def test_keys(self):
        """Hour, day, week and month keys have their documented shapes."""
        timestamp = make_record("2026-01-15", hour=10).timestamp
        assert get_group_key(timestamp, "hour") == "2026-01-15 10:00"
        assert get_group_key(timestamp, "day") == "2026-01-15"
        assert get_group_key(timestamp, "week") == "2026-W03"
        assert get_group_key(timestamp, "month") == "2026-01"

    def test_unknown_unit(self):
        """An unknown unit is rejected."""
        with pytest.raises(ValueError):
            get_group_key(make_record("2026-01-15").timestamp, "year")

    def test_aggregate_usage_by_day(self, sample_day):
        """Daily aggregation yields one bucket per date."""
        other = make_daily("2026-01-16", make_record("2026-01-16", session=0.1))
        buckets = aggregate_usage([sample_day, other], "day")
        assert set(buckets) == {"2026-01-15", "2026-01-16"}
        assert buckets["2026-01-15"].count == 4
        assert buckets["2026-01-16"].avg_session_utilization == pytest.approx(0.1)

    def test_flatten_keeps_order(self, sample_day):
        """Records are concatenated file by file."""
        other = make_daily("2026-01-16", make_record("2026-01-16"))
        records = flatten_records([sample_day, other])
        assert len(records) == 5
        assert records[-1].date_key == "2026-01-16"


class TestStats:
    """Per-bucket statistics and weighted merging."""

    def test_empty(self):
        """No records gives all zeros."""
        assert calculate_stats([]) == AggregatedData()

    def test_stats(self, sample_day):
        """Averages, peaks and token totals over one day."""
        stats = calculate_stats(sample_day.records)
        assert stats.avg_session_utilization == pytest.approx(0.525)
        assert stats.max_session_utilization == pytest.approx(0.9)
        assert stats.avg_weekly_utilization == pytest.approx(0.3)
        assert stats.total_tokens == 6000
        assert stats.count == 4

    def test_records_without_tokens(self):
        """Records lacking token data contribute no tokens."""
        stats = calculate_stats([make_record("2026-01-15", input_tokens=None)])
        assert stats.total_tokens == 0
        assert stats.count == 1

    def test_merge_weights_by_count(self):
        """Averages are weighted by each bucket's record count."""
        merged = merge_stats([
            AggregatedData(avg_session_utilization=0.2, max_session_utilization=0.2, total_tokens=10, count=1),
            AggregatedData(avg_session_utilization=0.5, max_session_utilization=0.7, total_tokens=30, count=3),
        ])
        assert merged.avg_session_utilization == pytest.approx(0.425)
        assert merged.max_session_utilization == pytest.approx(0.7)
        assert merged.total_tokens == 40
        assert merged.count == 4

    def test_merge_nothing(self):
        """Merging empty buckets yields zeros."""
        assert merge_stats([AggregatedData(), AggregatedData()]) == AggregatedData()


class TestTrend:
    """Percentage change between periods."""

    def test_zero_previous(self):
        """A zero baseline has no percentage, even when current is zero."""
        assert calculate_trend(0, 0).change_percent is None
        assert calculate_trend(10, 0).change_percent is None

    def test_increase_and_decrease(self):
        """Changes are relative to the previous value."""
        assert calculate_trend(150, 100).change_percent == pytest.approx(50)
        assert calculate_trend(50, 100).change_percent == pytest.approx(-50)

    def test_compare_periods(self):
        """Session, weekly and token trends are reported together."""
        trends = compare_periods(
            AggregatedData(avg_session_utilization=0.6, avg_weekly_utilization=0.2, total_tokens=200),
            AggregatedData(avg_session_utilization=0.3, avg_weekly_utilization=0.2, total_tokens=0),
        )
        assert trends.session_utilization.change_percent == pytest.approx(100)
        assert trends.weekly_utilization.change_percent == pytest.approx(0)
        assert trends.tokens.change_percent is None


class TestDailyViews:
    """Hourly buckets and the daily summary."""

    def test_aggregate_hourly(self, sample_day):
        """Records in the same hour share a bucket; output is sorted."""
        hourly = aggregate_hourly(sample_day.records)
        assert [h.hour for h in hourly] == [9, 10, 14]
        ten = hourly[1]
        assert ten.count == 2
        assert ten.avg_session == pytest.approx(0.5)
        assert ten.input_tokens == 2000 and ten.output_tokens == 1000

    def test_aggregate_hourly_empty(self):
        """No records gives no buckets."""
        assert aggregate_hourly([]) == []

    def test_daily_summary(self, sample_day):
        """The summary carries the peak hour and estimated cost."""
        summary = calculate_daily_summary(sample_day.records)
        assert summary.avg_session == pytest.approx(0.525)
        assert summary.max_session == pytest.approx(0.9)
        assert summary.max_session_hour == 14
        assert summary.input_tokens == 4000
        assert summary.output_tokens == 2000
        assert summary.estimated_cost_usd == pytest.approx(0.042)
        assert summary.count == 4

    def test_daily_summary_empty(self):
        """An empty day has no peak hour."""
        assert calculate_daily_summary([]).max_session_hour == -1


class TestPeriodBuckets:
    """Week, month and weekday buckets used by the histogram."""

    def test_summarize_week(self, sample_day):
        """Weeks are labelled by the ISO week of their Monday."""
        week = summarize_week("2026-01-12", "2026-01-18", sample_day.records)
        assert week.week_num == 3
        assert week.week_label == "W03"
        assert week.record_count == 4
        assert week.total_cost_usd == pytest.approx(0.042)

    def test_summarize_month(self):
        """Empty months are zero-filled."""
        month = summarize_month(2026, 1, "Jan", [])
        assert month.record_count == 0
        assert month.avg_session == 0

    def test_aggregate_by_weekday(self, sample_day):
        """Files are keyed Monday=0 with the supplied labels."""
        monday = make_daily("2026-01-12", make_record("2026-01-12", session=0.4))
        names = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
        result = aggregate_by_weekday([monday, sample_day], names)
        assert set(result) == {0, 3}
        assert result[0].day_label == "Mon"
        assert result[0].avg_session == pytest.approx(0.4)
        assert result[3].day_label == "Thu"
        assert result[3].record_count == 4
