"""
Calendar arithmetic and date ranges shared by the views and the report command.

All dates are local calendar dates. Functions that depend on "today" take it
as an argument so callers (and tests) control the clock.
"""

#region Imports
import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Literal, Optional, Sequence

from clusage.aggregation.aggregator import calculate_stats, calculate_trend, compare_periods, flatten_records, TrendResult
from clusage.models.pricing import calculate_total_cost
from clusage.models.usage_record import DailyUsageFile
#endregion


#region Constants
GRID_ROWS = 6
GRID_COLUMNS = 7

CompareMode = Literal["week", "month"]
#endregion


#region Data Classes


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of YYYY-MM-DD date keys."""

    start_date: str
    end_date: str


@dataclass(frozen=True)
class ComparisonRanges:
    current: DateRange
    previous: DateRange


@dataclass(frozen=True)
class PeriodSnapshot:
    """Headline figures for one side of a period comparison."""

    avg_session: float
    avg_weekly: float
    total_tokens: int
    total_cost_usd: float
    record_count: int
    period: Optional[DateRange] = None


@dataclass(frozen=True)
class PeriodComparison:
    current: PeriodSnapshot
    previous: PeriodSnapshot
    session_trend: TrendResult
    weekly_trend: TrendResult
    tokens_trend: TrendResult
    cost_trend: TrendResult
#endregion


#region Calendar


def _check_month(month: int) -> None:
    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1..12, got {month}")


def get_month_days(year: int, month: int) -> int:
    """Number of days in a month (28-31)."""
    _check_month(month)
    return calendar.monthrange(year, month)[1]


def get_first_weekday(year: int, month: int) -> int:
    """Weekday of the 1st with Sunday=0 ... Saturday=6."""
    _check_month(month)
    return (date(year, month, 1).weekday() + 1) % 7


def build_calendar_grid(year: int, month: int) -> list[list[Optional[int]]]:
    """
    Build a 6x7 month grid with Sunday-first columns.

    Cells before the 1st and after the last day are None.

    Raises:
        ValueError: If month is outside 1-12
    """
    first = get_first_weekday(year, month)
    total = get_month_days(year, month)

    grid: list[list[Optional[int]]] = []
    day = 1
    for week in range(GRID_ROWS):
        row: list[Optional[int]] = []
        for column in range(GRID_COLUMNS):
            if (week == 0 and column < first) or day > total:
                row.append(None)
            else:
                row.append(day)
                day += 1
        grid.append(row)
    return grid


def format_date_key(year: int, month: int, day: int) -> str:
    return f"{year:04d}-{month:02d}-{day:02d}"


def parse_date_key(key: str) -> date:
    """
    Parse a YYYY-MM-DD key.

    Raises:
        ValueError: If the key is not a valid date
    """
    return date.fromisoformat(key)


def is_today(year: int, month: int, day: int, today: date) -> bool:
    return (today.year, today.month, today.day) == (year, month, day)


def get_month_range(year: int, month: int) -> DateRange:
    """First and last day of a month."""
    return DateRange(
        start_date=format_date_key(year, month, 1),
        end_date=format_date_key(year, month, get_month_days(year, month)),
    )


def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    """Move (year, month) by a number of months, crossing year boundaries."""
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1
#endregion


#region Period Ranges


def get_week_date_range(offset: int, today: date) -> DateRange:
    """
    Monday-to-Sunday range of a week relative to today.

    Args:
        offset: 0 for this week, -1 for last week, ...
        today: Reference date
    """
    monday = today - timedelta(days=today.weekday()) + timedelta(weeks=offset)
    sunday = monday + timedelta(days=6)
    return DateRange(monday.isoformat(), sunday.isoformat())


def get_month_date_range(offset: int, today: date) -> DateRange:
    """
    Whole-month range relative to today's month.

    Args:
        offset: 0 for this month, -1 for last month, ...
        today: Reference date
    """
    year, month = shift_month(today.year, today.month, offset)
    return get_month_range(year, month)


def calculate_comparison_date_ranges(mode: CompareMode, today: date) -> ComparisonRanges:
    """
    Ranges compared by the compare view and ``clusage history --compare``.

    Week mode compares this ISO week with last week (Monday to Sunday). Month
    mode compares the 1st through today with the same day span of the previous
    month, capped at that month's last day.
    """
    if mode == "week":
        return ComparisonRanges(
            current=get_week_date_range(0, today),
            previous=get_week_date_range(-1, today),
        )
    if mode != "month":
        raise ValueError(f"Unknown comparison mode: {mode}")

    prev_year, prev_month = shift_month(today.year, today.month, -1)
    prev_end_day = min(today.day, get_month_days(prev_year, prev_month))
    return ComparisonRanges(
        current=DateRange(format_date_key(today.year, today.month, 1), today.isoformat()),
        previous=DateRange(
            format_date_key(prev_year, prev_month, 1),
            format_date_key(prev_year, prev_month, prev_end_day),
        ),
    )


def calculate_period_comparison(
    current_data: Sequence[DailyUsageFile],
    previous_data: Sequence[DailyUsageFile],
    current_period: Optional[DateRange] = None,
    previous_period: Optional[DateRange] = None,
) -> PeriodComparison:
    """
    Compare two periods of daily files.

    Returns:
        PeriodComparison with session, weekly, token and cost trends
    """
    current_records = flatten_records(current_data)
    previous_records = flatten_records(previous_data)

    current_stats = calculate_stats(current_records)
    previous_stats = calculate_stats(previous_records)
    current_cost = calculate_total_cost(current_records).total_cost_usd
    previous_cost = calculate_total_cost(previous_records).total_cost_usd

    trends = compare_periods(current_stats, previous_stats)
    return PeriodComparison(
        current=PeriodSnapshot(
            avg_session=current_stats.avg_session_utilization,
            avg_weekly=current_stats.avg_weekly_utilization,
            total_tokens=current_stats.total_tokens,
            total_cost_usd=current_cost,
            record_count=current_stats.count,
            period=current_period,
        ),
        previous=PeriodSnapshot(
            avg_session=previous_stats.avg_session_utilization,
            avg_weekly=previous_stats.avg_weekly_utilization,
            total_tokens=previous_stats.total_tokens,
            total_cost_usd=previous_cost,
            record_count=previous_stats.count,
            period=previous_period,
        ),
        session_trend=trends.session_utilization,
        weekly_trend=trends.weekly_utilization,
        tokens_trend=trends.tokens,
        cost_trend=calculate_trend(current_cost, previous_cost),
    )
#endregion
