#region Imports
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Literal, Optional, Sequence

from clusage.models.pricing import calculate_total_cost
from clusage.models.usage_record import DailyUsageFile, UsageRecord
#endregion


#region Types
AggregationUnit = Literal["hour", "day", "week", "month"]
#endregion


#region Data Classes


@dataclass(frozen=True)
class AggregatedData:
    """
    Statistics over a set of records.

    Attributes:
        avg_session_utilization: Mean session utilization
        max_session_utilization: Peak session utilization
        avg_weekly_utilization: Mean weekly utilization
        max_weekly_utilization: Peak weekly utilization
        total_tokens: Sum of input + output tokens
        count: Number of records, the weight used when merging buckets
    """

    avg_session_utilization: float = 0.0
    max_session_utilization: float = 0.0
    avg_weekly_utilization: float = 0.0
    max_weekly_utilization: float = 0.0
    total_tokens: int = 0
    count: int = 0


@dataclass(frozen=True)
class TrendResult:
    """
    Period-over-period change of one metric.

    ``change_percent`` is None when the previous value is zero.
    """

    change_percent: Optional[float]
    previous_value: float
    current_value: float


@dataclass(frozen=True)
class PeriodTrends:
    session_utilization: TrendResult
    weekly_utilization: TrendResult
    tokens: TrendResult


@dataclass(frozen=True)
class HourlyData:
    """One hour-of-day bucket for the detail and histogram views."""

    hour: int
    avg_session: float = 0.0
    avg_weekly: float = 0.0
    total_tokens: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    count: int = 0


@dataclass(frozen=True)
class DailySummary:
    """
    Summary of one day's records.

    ``max_session_hour`` is -1 when there are no records.
    """

    avg_session: float = 0.0
    max_session: float = 0.0
    max_session_hour: int = -1
    total_tokens: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    estimated_cost_usd: float = 0.0
    count: int = 0
#endregion


#region ISO Weeks


def get_iso_week(day: date) -> tuple[int, int]:
    """
    Get the ISO-8601 (year, week) of a date.

    The date is moved to the Thursday of its own Monday-based week; that
    Thursday's year is the ISO year, and the week number counts whole weeks
    from the Thursday of the week containing January 4th.

    Args:
        day: Calendar date (datetimes are reduced to their date)

    Returns:
        Tuple of (iso_year, iso_week)
    """
    if isinstance(day, datetime):
        day = day.date()

    thursday = day - timedelta(days=day.weekday()) + timedelta(days=3)
    iso_year = thursday.year

    jan4 = date(iso_year, 1, 4)
    jan4_thursday = jan4 - timedelta(days=jan4.weekday()) + timedelta(days=3)

    week = (thursday - jan4_thursday).days // 7 + 1
    return iso_year, week


def format_iso_week(day: date) -> str:
    """Format a date's ISO week as ``YYYY-Www`` (e.g. ``2026-W05``)."""
    year, week = get_iso_week(day)
    return f"{year}-W{week:02d}"
#endregion


#region Grouping


def get_group_key(timestamp: datetime, unit: AggregationUnit) -> str:
    """
    Build the bucket key for a timestamp.

    Day keys use the date portion of the timestamp as recorded. Hour, week and
    month keys use local time.

    Args:
        timestamp: Record timestamp (timezone-aware)
        unit: Bucket unit

    Returns:
        "YYYY-MM-DD HH:00", "YYYY-MM-DD", "YYYY-Www" or "YYYY-MM"
    """
    if unit == "day":
        return timestamp.strftime("%Y-%m-%d")

    local = timestamp.astimezone()
    if unit == "hour":
        return local.strftime("%Y-%m-%d %H:00")
    if unit == "week":
        return format_iso_week(local.date())
    if unit == "month":
        return local.strftime("%Y-%m")
    raise ValueError(f"Unknown aggregation unit: {unit}")


def group_by_unit(records: Iterable[UsageRecord], unit: AggregationUnit) -> dict[str, list[UsageRecord]]:
    """Group records into buckets keyed by :func:`get_group_key`."""
    groups: dict[str, list[UsageRecord]] = defaultdict(list)
    for record in records:
        groups[get_group_key(record.timestamp, unit)].append(record)
    return dict(groups)


def flatten_records(data: Iterable[DailyUsageFile]) -> list[UsageRecord]:
    """Concatenate the records of several daily files in order."""
    records: list[UsageRecord] = []
    for daily in data:
        records.extend(daily.records)
    return records
#endregion


#region Statistics


def calculate_stats(records: Sequence[UsageRecord]) -> AggregatedData:
    """
    Calculate statistics for a group of records.

    Args:
        records: Records in one bucket

    Returns:
        AggregatedData (all zero for empty input)
    """
    if not records:
        return AggregatedData()

    sum_session = 0.0
    max_session = 0.0
    sum_weekly = 0.0
    max_weekly = 0.0
    total_tokens = 0

    for record in records:
        sum_session += record.session.utilization
        max_session = max(max_session, record.session.utilization)
        sum_weekly += record.weekly.utilization
        max_weekly = max(max_weekly, record.weekly.utilization)
        if record.tokens is not None:
            total_tokens += record.tokens.billed_tokens

    return AggregatedData(
        avg_session_utilization=sum_session / len(records),
        max_session_utilization=max_session,
        avg_weekly_utilization=sum_weekly / len(records),
        max_weekly_utilization=max_weekly,
        total_tokens=total_tokens,
        count=len(records),
    )


def merge_stats(buckets: Iterable[AggregatedData]) -> AggregatedData:
    """
    Merge several buckets into one, weighting averages by record count.

    Args:
        buckets: Per-bucket statistics

    Returns:
        Combined AggregatedData (all zero when total count is 0)
    """
    total_count = 0
    session_sum = 0.0
    weekly_sum = 0.0
    max_session = 0.0
    max_weekly = 0.0
    total_tokens = 0

    for bucket in buckets:
        total_count += bucket.count
        session_sum += bucket.avg_session_utilization * bucket.count
        weekly_sum += bucket.avg_weekly_utilization * bucket.count
        max_session = max(max_session, bucket.max_session_utilization)
        max_weekly = max(max_weekly, bucket.max_weekly_utilization)
        total_tokens += bucket.total_tokens

    if total_count == 0:
        return AggregatedData()

    return AggregatedData(
        avg_session_utilization=session_sum / total_count,
        max_session_utilization=max_session,
        avg_weekly_utilization=weekly_sum / total_count,
        max_weekly_utilization=max_weekly,
        total_tokens=total_tokens,
        count=total_count,
    )


def calculate_trend(current: float, previous: float) -> TrendResult:
    """
    Calculate the percentage change from previous to current.

    A zero previous value has no meaningful trend, so change_percent is None
    (even when current is zero as well).
    """
    if previous == 0:
        return TrendResult(change_percent=None, previous_value=previous, current_value=current)
    return TrendResult(
        change_percent=(current - previous) / previous * 100,
        previous_value=previous,
        current_value=current,
    )


def compare_periods(current: AggregatedData, previous: AggregatedData) -> PeriodTrends:
    return PeriodTrends(
        session_utilization=calculate_trend(current.avg_session_utilization, previous.avg_session_utilization),
        weekly_utilization=calculate_trend(current.avg_weekly_utilization, previous.avg_weekly_utilization),
        tokens=calculate_trend(current.total_tokens, previous.total_tokens),
    )


def aggregate_usage(data: Iterable[DailyUsageFile], unit: AggregationUnit) -> dict[str, AggregatedData]:
    """
    Aggregate daily files into per-bucket statistics.

    Args:
        data: Daily files as returned by the history reader
        unit: Bucket unit

    Returns:
        Mapping of bucket key to AggregatedData
    """
    groups = group_by_unit(flatten_records(data), unit)
    return {key: calculate_stats(records) for key, records in groups.items()}


def _hour_of_key(key: str) -> int:
    # "YYYY-MM-DD HH:00"
    return int(key[-5:-3])


def _token_split(records: Iterable[UsageRecord]) -> tuple[int, int]:
    input_tokens = 0
    output_tokens = 0
    for record in records:
        input_tokens += record.input_tokens
        output_tokens += record.output_tokens
    return input_tokens, output_tokens


def aggregate_hourly(records: Sequence[UsageRecord]) -> list[HourlyData]:
    """
    Aggregate one day's records by local hour.

    Returns:
        HourlyData list sorted by hour (empty for no records)
    """
    hourly = []
    for key, group in group_by_unit(records, "hour").items():
        stats = calculate_stats(group)
        input_tokens, output_tokens = _token_split(group)
        hourly.append(HourlyData(
            hour=_hour_of_key(key),
            avg_session=stats.avg_session_utilization,
            avg_weekly=stats.avg_weekly_utilization,
            total_tokens=stats.total_tokens,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            count=stats.count,
        ))
    hourly.sort(key=lambda h: h.hour)
    return hourly


def calculate_daily_summary(records: Sequence[UsageRecord]) -> DailySummary:
    """
    Summarise one day's records for the detail view.

    The peak hour is the hour whose maximum session utilization is highest.
    """
    if not records:
        return DailySummary()

    stats = calculate_stats(records)
    input_tokens, output_tokens = _token_split(records)

    max_session = 0.0
    max_session_hour = -1
    for key, group in group_by_unit(records, "hour").items():
        group_max = calculate_stats(group).max_session_utilization
        if group_max > max_session:
            max_session = group_max
            max_session_hour = _hour_of_key(key)

    return DailySummary(
        avg_session=stats.avg_session_utilization,
        max_session=max_session,
        max_session_hour=max_session_hour,
        total_tokens=stats.total_tokens,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        estimated_cost_usd=calculate_total_cost(records).total_cost_usd,
        count=stats.count,
    )
#endregion


#region Period Buckets


@dataclass(frozen=True)
class WeeklyData:
    """One Monday-to-Sunday bucket for the histogram view."""

    week_num: int
    week_label: str
    start_date: str
    end_date: str
    avg_session: float = 0.0
    avg_weekly: float = 0.0
    total_tokens: int = 0
    total_cost_usd: float = 0.0
    record_count: int = 0


@dataclass(frozen=True)
class MonthlyData:
    """One calendar-month bucket for the histogram view."""

    year: int
    month: int
    month_label: str
    avg_session: float = 0.0
    avg_weekly: float = 0.0
    total_tokens: int = 0
    total_cost_usd: float = 0.0
    record_count: int = 0


@dataclass(frozen=True)
class WeekdayData:
    """Records of one weekday (Monday=0) within a week."""

    day_of_week: int
    day_label: str
    avg_session: float = 0.0
    avg_weekly: float = 0.0
    total_tokens: int = 0
    record_count: int = 0


def summarize_week(start_date: str, end_date: str, records: Sequence[UsageRecord]) -> WeeklyData:
    """
    Build a week bucket labelled by the ISO week of its first day.

    Args:
        start_date: Monday of the week (YYYY-MM-DD)
        end_date: Sunday of the week (YYYY-MM-DD)
        records: Records read for that range
    """
    _, week = get_iso_week(date.fromisoformat(start_date))
    stats = calculate_stats(records)
    return WeeklyData(
        week_num=week,
        week_label=f"W{week:02d}",
        start_date=start_date,
        end_date=end_date,
        avg_session=stats.avg_session_utilization,
        avg_weekly=stats.avg_weekly_utilization,
        total_tokens=stats.total_tokens,
        total_cost_usd=calculate_total_cost(records).total_cost_usd,
        record_count=stats.count,
    )


def summarize_month(year: int, month: int, month_label: str, records: Sequence[UsageRecord]) -> MonthlyData:
    stats = calculate_stats(records)
    return MonthlyData(
        year=year,
        month=month,
        month_label=month_label,
        avg_session=stats.avg_session_utilization,
        avg_weekly=stats.avg_weekly_utilization,
        total_tokens=stats.total_tokens,
        total_cost_usd=calculate_total_cost(records).total_cost_usd,
        record_count=stats.count,
    )


def aggregate_by_weekday(data: Iterable[DailyUsageFile], day_names: Sequence[str]) -> dict[int, WeekdayData]:
    """
    Merge daily files by weekday, weighting averages by record count.

    Args:
        data: Daily files, at most one per weekday in practice
        day_names: Seven labels, Monday first

    Returns:
        Mapping of weekday (Monday=0) to WeekdayData, only for days present
    """
    buckets: dict[int, list[AggregatedData]] = defaultdict(list)
    for daily in data:
        buckets[date.fromisoformat(daily.date).weekday()].append(calculate_stats(daily.records))

    result = {}
    for weekday, stats in buckets.items():
        merged = merge_stats(stats)
        result[weekday] = WeekdayData(
            day_of_week=weekday,
            day_label=day_names[weekday] if weekday < len(day_names) else str(weekday),
            avg_session=merged.avg_session_utilization,
            avg_weekly=merged.avg_weekly_utilization,
            total_tokens=merged.total_tokens,
            record_count=merged.count,
        )
    return result
#endregion
