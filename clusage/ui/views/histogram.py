"""
Vertical bar charts of session utilization.

Normal mode shows one series: the hours of one day, the last N weeks or the
last N months (N between 1 and 12). Comparison mode overlays a previous
period on the current one:

    hourly   today vs yesterday, by hour
    daily    this week vs last week, by weekday
    weekly   the last N weeks vs the N weeks before them
    monthly  the last N months vs the N months before them

In the overlay, cells filled by both periods use ``▓▓``, cells filled only by
the current period ``██`` and cells filled only by the previous one ``░░``.
"""

#region Imports
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Literal, Optional, Sequence, Union

from clusage.aggregation.aggregator import (
    HourlyData,
    MonthlyData,
    TrendResult,
    WeeklyData,
    aggregate_by_weekday,
    aggregate_hourly,
    calculate_trend,
    flatten_records,
    summarize_month,
    summarize_week,
)
from clusage.aggregation.periods import get_month_date_range, get_week_date_range, parse_date_key
from clusage.ui.keyboard import KeyEvent
from clusage.ui.renderer import colorize, pad
from clusage.ui.views.base import HistoryLoad, LoadingView, header_line, is_plain_key
from clusage.ui.views.context import ViewContext
from clusage.visualization.usage_bars import clamp_utilization, create_progress_bar, format_percent
#endregion


#region Constants
HISTOGRAM_HEIGHT = 6
BAR_WIDTH = 4
MIN_RANGE = 1
MAX_RANGE = 12
DEFAULT_WEEK_COUNT = 4
DEFAULT_MONTH_COUNT = 6
HEADER_WIDTH = 56
SEPARATOR_WIDTH = 52
PROGRESS_BAR_WIDTH = 20
WARNING_LEVEL = 0.8

Y_LABELS = ("100%", " 80%", " 60%", " 40%", " 20%", "  0%")

HistogramMode = Literal["hourly", "weekly", "monthly"]
OverlayMode = Literal["hourly", "daily", "weekly", "monthly"]

_MODE_KEYS: dict[str, HistogramMode] = {"1": "hourly", "2": "weekly", "3": "monthly"}
_OVERLAY_KEYS: dict[str, OverlayMode] = {"1": "hourly", "2": "daily", "3": "weekly", "4": "monthly"}
#endregion


#region Data Classes


@dataclass
class HistogramBar:
    """One bar of the normal chart."""

    label: str
    value: float
    data: Union[HourlyData, WeeklyData, MonthlyData]
    is_selected: bool = False


@dataclass
class CompareBar:
    """One bar of the overlay chart; either side may be missing."""

    label: str
    current_value: float
    previous_value: float
    current_data: Optional[Any] = None
    previous_data: Optional[Any] = None
    is_selected: bool = False


@dataclass(frozen=True)
class BarChange:
    label: str
    change: float


@dataclass(frozen=True)
class CompareSummary:
    """
    Rolling summary of an overlay chart.

    Attributes:
        current_avg: Mean of the current values
        previous_avg: Mean of the previous values
        change_percent: Change of the means (100 when the previous mean is 0)
        max_increase: Bar with the largest rise, if any rose
        max_decrease: Bar with the largest fall, if any fell
    """

    current_avg: float = 0.0
    previous_avg: float = 0.0
    change_percent: float = 0.0
    max_increase: Optional[BarChange] = None
    max_decrease: Optional[BarChange] = None
#endregion


#region Functions


def bar_height(value: float) -> int:
    """Number of filled rows for a utilization value."""
    return round(clamp_utilization(value) * HISTOGRAM_HEIGHT)


def change_percent_from(current: float, previous: float) -> float:
    """
    Percent change where a rise from zero counts as +100%.

    Unlike :func:`calculate_trend` this always returns a number, since the
    summary ranks bars against each other.
    """
    if previous > 0:
        return (current - previous) / previous * 100
    return 100.0 if current > previous else 0.0


def calculate_compare_summary(bars: Sequence[CompareBar]) -> CompareSummary:
    """
    Summarise an overlay chart.

    Args:
        bars: Overlay bars

    Returns:
        CompareSummary (all zero for no bars)
    """
    if not bars:
        return CompareSummary()

    current_avg = sum(bar.current_value for bar in bars) / len(bars)
    previous_avg = sum(bar.previous_value for bar in bars) / len(bars)

    max_increase: Optional[BarChange] = None
    max_decrease: Optional[BarChange] = None
    for bar in bars:
        delta = bar.current_value - bar.previous_value
        percent = change_percent_from(bar.current_value, bar.previous_value)
        if delta > 0 and (max_increase is None or percent > max_increase.change):
            max_increase = BarChange(bar.label, percent)
        elif delta < 0 and (max_decrease is None or percent < max_decrease.change):
            max_decrease = BarChange(bar.label, percent)

    return CompareSummary(
        current_avg=current_avg,
        previous_avg=previous_avg,
        change_percent=change_percent_from(current_avg, previous_avg),
        max_increase=max_increase,
        max_decrease=max_decrease,
    )


def _check_range(count: int) -> None:
    if not MIN_RANGE <= count <= MAX_RANGE:
        raise ValueError(f"range must be between {MIN_RANGE} and {MAX_RANGE}, got {count}")


def _signed_change(change: float) -> str:
    arrow = "↑" if change >= 0 else "↓"
    return colorize(f"{arrow} {abs(change):.1f}%", "green" if change >= 0 else "red")
#endregion


#region Histogram View


class HistogramView(LoadingView):
    """
    Bar-chart screen with an optional comparison overlay.

    Args:
        context: Shared viewer collaborators
        initial_date: Day for the hourly chart (default: today)
        on_back: Called on Tab
        on_exit: Called on ``q``/Escape
    """

    def __init__(
        self,
        context: ViewContext,
        initial_date: Optional[str] = None,
        on_back: Optional[Callable[[], None]] = None,
        on_exit: Optional[Callable[[], None]] = None,
    ):
        super().__init__(context=context)
        self.on_back = on_back
        self.on_exit = on_exit

        self.mode: HistogramMode = "hourly"
        self.selected_index = 0
        self.current_date = initial_date or context.today().isoformat()
        self.week_count = DEFAULT_WEEK_COUNT
        self.month_count = DEFAULT_MONTH_COUNT
        self.bars: list[HistogramBar] = []

        self.is_compare_mode = False
        self.compare_mode: OverlayMode = "hourly"
        self.compare_bars: list[CompareBar] = []
        self.compare_summary: Optional[CompareSummary] = None
        self.is_loading = True

    # Mode changes

    def set_mode(self, mode: HistogramMode):
        self.mode = mode
        self.selected_index = 0
        return self.load_histogram_data()

    def toggle_compare_mode(self):
        """Enter the overlay in the matching sub-mode, or return to the normal chart."""
        self.is_compare_mode = not self.is_compare_mode
        self.selected_index = 0
        if self.is_compare_mode:
            self.compare_mode = self.mode
            return self.load_compare_data()
        return self.load_histogram_data()

    def set_compare_mode(self, mode: OverlayMode):
        self.compare_mode = mode
        self.selected_index = 0
        return self.load_compare_data()

    def set_week_count(self, count: int) -> None:
        """
        Raises:
            ValueError: If count is outside 1-12
        """
        _check_range(count)
        self.week_count = count

    def set_month_count(self, count: int) -> None:
        """
        Raises:
            ValueError: If count is outside 1-12
        """
        _check_range(count)
        self.month_count = count

    def shift_date(self, days: int):
        """Move the hourly chart to another day."""
        day = parse_date_key(self.current_date) + timedelta(days=days)
        self.current_date = day.isoformat()
        return self.load_histogram_data()

    # Loading

    def load_histogram_data(self):
        mode = self.mode
        current_date = self.current_date
        week_count = self.week_count
        month_count = self.month_count

        async def _load(load: HistoryLoad) -> None:
            if mode == "hourly":
                bars = await self._fetch_hourly_bars(load, current_date)
            elif mode == "weekly":
                bars = await self._fetch_weekly_bars(load, week_count)
            else:
                bars = await self._fetch_monthly_bars(load, month_count)
            self.bars = bars
            self.set_read_warning(load.errors)
            self.selected_index = min(self.selected_index, max(0, len(bars) - 1))
            self.update_selected_bar()

        return self.start_load(_load)

    def load_compare_data(self):
        mode = self.compare_mode
        week_count = self.week_count
        month_count = self.month_count

        async def _load(load: HistoryLoad) -> None:
            if mode == "hourly":
                bars = await self._fetch_compare_hourly_bars(load)
            elif mode == "daily":
                bars = await self._fetch_compare_daily_bars(load)
            elif mode == "weekly":
                bars = await self._fetch_compare_weekly_bars(load, week_count)
            else:
                bars = await self._fetch_compare_monthly_bars(load, month_count)
            self.compare_bars = bars
            self.set_read_warning(load.errors)
            self.selected_index = min(self.selected_index, max(0, len(bars) - 1))
            self.update_selected_bar()
            self.compare_summary = calculate_compare_summary(bars)

        return self.start_load(_load)

    def update_selected_bar(self) -> None:
        for index, bar in enumerate(self.bars):
            bar.is_selected = index == self.selected_index
        for index, bar in enumerate(self.compare_bars):
            bar.is_selected = index == self.selected_index

    def _month_label(self, month: int) -> str:
        names = self.context.t("histogram.month_names").split(",")
        if len(names) == 12:
            return names[month - 1]
        return f"{month}{self.context.t('histogram.month_label')}"

    async def _read_records(self, load: HistoryLoad, start_date: str, end_date: str):
        result = await load.read(start_date, end_date)
        return flatten_records(result.data)

    async def _fetch_hourly_bars(self, load: HistoryLoad, date_key: str) -> list[HistogramBar]:
        records = await self._read_records(load, date_key, date_key)
        return [
            HistogramBar(label=f"{hourly.hour:02d}", value=hourly.avg_session, data=hourly)
            for hourly in aggregate_hourly(records)
        ]

    async def _fetch_weekly_bars(self, load: HistoryLoad, count: int) -> list[HistogramBar]:
        today = self.context.today()
        bars = []
        for offset in range(-(count - 1), 1):
            week = get_week_date_range(offset, today)
            records = await self._read_records(load, week.start_date, week.end_date)
            data = summarize_week(week.start_date, week.end_date, records)
            bars.append(HistogramBar(label=data.week_label, value=data.avg_session, data=data))
        return bars

    async def _fetch_monthly_bars(self, load: HistoryLoad, count: int) -> list[HistogramBar]:
        today = self.context.today()
        bars = []
        for offset in range(-(count - 1), 1):
            month_range = get_month_date_range(offset, today)
            records = await self._read_records(load, month_range.start_date, month_range.end_date)
            start = parse_date_key(month_range.start_date)
            data = summarize_month(start.year, start.month, self._month_label(start.month), records)
            bars.append(HistogramBar(label=data.month_label, value=data.avg_session, data=data))
        return bars

    async def _fetch_compare_hourly_bars(self, load: HistoryLoad) -> list[CompareBar]:
        today = self.context.today()
        yesterday = today - timedelta(days=1)
        today_records = await self._read_records(load, today.isoformat(), today.isoformat())
        yesterday_records = await self._read_records(load, yesterday.isoformat(), yesterday.isoformat())

        current = {hourly.hour: hourly for hourly in aggregate_hourly(today_records)}
        previous = {hourly.hour: hourly for hourly in aggregate_hourly(yesterday_records)}
        bars = []
        for hour in sorted(set(current) | set(previous)):
            now, before = current.get(hour), previous.get(hour)
            bars.append(CompareBar(
                label=f"{hour:02d}",
                current_value=now.avg_session if now else 0.0,
                previous_value=before.avg_session if before else 0.0,
                current_data=now,
                previous_data=before,
            ))
        return bars

    async def _fetch_compare_daily_bars(self, load: HistoryLoad) -> list[CompareBar]:
        today = self.context.today()
        this_week = get_week_date_range(0, today)
        last_week = get_week_date_range(-1, today)
        this_result = await load.read(this_week.start_date, this_week.end_date)
        last_result = await load.read(last_week.start_date, last_week.end_date)

        day_names = self.context.t("histogram.day_names").split(",")
        current = aggregate_by_weekday(this_result.data, day_names)
        previous = aggregate_by_weekday(last_result.data, day_names)
        bars = []
        for weekday in range(7):
            now, before = current.get(weekday), previous.get(weekday)
            bars.append(CompareBar(
                label=day_names[weekday] if weekday < len(day_names) else str(weekday),
                current_value=now.avg_session if now else 0.0,
                previous_value=before.avg_session if before else 0.0,
                current_data=now,
                previous_data=before,
            ))
        return bars

    async def _fetch_compare_weekly_bars(self, load: HistoryLoad, count: int) -> list[CompareBar]:
        today = self.context.today()
        bars = []
        for i in range(count - 1, -1, -1):
            current_range = get_week_date_range(-i, today)
            previous_range = get_week_date_range(-i - count, today)
            current_records = await self._read_records(load, current_range.start_date, current_range.end_date)
            previous_records = await self._read_records(load, previous_range.start_date, previous_range.end_date)
            now = summarize_week(current_range.start_date, current_range.end_date, current_records)
            before = summarize_week(previous_range.start_date, previous_range.end_date, previous_records)
            bars.append(CompareBar(now.week_label, now.avg_session, before.avg_session, now, before))
        return bars

    async def _fetch_compare_monthly_bars(self, load: HistoryLoad, count: int) -> list[CompareBar]:
        today = self.context.today()
        bars = []
        for i in range(count - 1, -1, -1):
            current_range = get_month_date_range(-i, today)
            previous_range = get_month_date_range(-i - count, today)
            current_records = await self._read_records(load, current_range.start_date, current_range.end_date)
            previous_records = await self._read_records(load, previous_range.start_date, previous_range.end_date)
            current_start = parse_date_key(current_range.start_date)
            previous_start = parse_date_key(previous_range.start_date)
            now = summarize_month(
                current_start.year, current_start.month, self._month_label(current_start.month), current_records,
            )
            before = summarize_month(
                previous_start.year, previous_start.month, self._month_label(previous_start.month), previous_records,
            )
            bars.append(CompareBar(now.month_label, now.avg_session, before.avg_session, now, before))
        return bars

    # Rendering: normal chart

    @staticmethod
    def _axis_lines(labels: Sequence[tuple[str, bool]]) -> list[str]:
        axis = f"       └{'─' * (len(labels) * BAR_WIDTH + 2)}"
        label_line = "       "
        for label, selected in labels:
            text = pad(label, BAR_WIDTH)
            label_line += colorize(text, "cyan", "bold") if selected else text
        return [axis, label_line]

    def render_histogram_bars(self) -> list[str]:
        if not self.bars:
            return [f"  {colorize(self.context.t('histogram.no_data'), 'dim')}"]

        lines = []
        for row in range(HISTOGRAM_HEIGHT):
            level = HISTOGRAM_HEIGHT - row
            line = f"  {Y_LABELS[row]}│"
            for bar in self.bars:
                if level <= bar_height(bar.value):
                    glyph = "██" if bar.is_selected else "▓▓"
                    if bar.value >= WARNING_LEVEL and bar.is_selected:
                        line += colorize(glyph, "yellow", "bold")
                    elif bar.value >= WARNING_LEVEL:
                        line += colorize(glyph, "yellow")
                    elif bar.is_selected:
                        line += colorize(glyph, "cyan")
                    else:
                        line += colorize(glyph, "green")
                else:
                    line += "  "
                line += "  "
            lines.append(line)

        lines.extend(self._axis_lines([(bar.label, bar.is_selected) for bar in self.bars]))
        return lines

    def _format_trend_line(self, trend: TrendResult, period_label: str) -> str:
        label = self.context.t("histogram.vs_last", period=period_label)
        change = trend.change_percent
        if change is None:
            return f"{label}: {colorize('-', 'dim')}"
        if change == 0:
            return f"{label}: {colorize('→ 0%', 'dim')}"
        return f"{label}: {_signed_change(change)}"

    def _usage_lines(self, avg_session: float, avg_weekly: float, total_tokens: int) -> list[str]:
        t = self.context.t
        return [
            f"  {t('histogram.avg_session')}: {create_progress_bar(avg_session, PROGRESS_BAR_WIDTH)} {format_percent(avg_session)}",
            f"  {t('histogram.avg_weekly')}: {create_progress_bar(avg_weekly, PROGRESS_BAR_WIDTH)} {format_percent(avg_weekly)}",
            f"  {t('histogram.total_tokens')}: {total_tokens:,}",
        ]

    def render_selected_detail(self) -> list[str]:
        if not 0 <= self.selected_index < len(self.bars):
            return []

        t = self.context.t
        data = self.bars[self.selected_index].data
        previous = self.bars[self.selected_index - 1].data if self.selected_index > 0 else None
        lines = ["", colorize("  " + "─" * SEPARATOR_WIDTH, "dim")]

        if isinstance(data, HourlyData):
            # No trend for hours: adjacent hours are not a meaningful baseline
            lines.append(colorize(f"  {data.hour}:00 {t('histogram.hour_label')}", "yellow", "bold"))
            lines.append("")
            lines.extend(self._usage_lines(data.avg_session, data.avg_weekly, data.total_tokens))
            return lines

        if isinstance(data, WeeklyData):
            title = f"{data.week_label} ({data.start_date} ~ {data.end_date})"
            period_label = t("histogram.week_label")
        else:
            title = t("histogram.year_format", year=data.year, month=data.month_label)
            period_label = t("histogram.month_label")

        lines.append(colorize(f"  {title}", "yellow", "bold"))
        lines.append("")
        lines.extend(self._usage_lines(data.avg_session, data.avg_weekly, data.total_tokens))
        lines.append(f"  {t('histogram.estimated_cost')}: {self.context.format_money(data.total_cost_usd)}")
        if previous is not None and type(previous) is type(data):
            trend = calculate_trend(data.avg_session, previous.avg_session)
            lines.append(f"  {self._format_trend_line(trend, period_label)}")
        return lines

    def _mode_selector(self, modes: Sequence[str], active: str, keys: str) -> str:
        t = self.context.t
        labels = []
        for mode in modes:
            label = t(f"histogram.mode_{mode}")
            labels.append(colorize(f"[{label}]", "cyan", "bold") if mode == active else label)
        return f"  {t('histogram.key_mode')}: {'  '.join(labels)}  ← {keys}"

    def render(self) -> list[str]:
        if self.is_compare_mode:
            return self.render_compare()

        t = self.context.t
        lines = [
            header_line(t("histogram.title"), f"[Tab {t('histogram.key_back')}]", HEADER_WIDTH),
            "",
            self._mode_selector(("hourly", "weekly", "monthly"), self.mode, "1, 2, 3"),
        ]
        if self.mode == "hourly":
            range_label = self.current_date
        elif self.mode == "weekly":
            range_label = t("histogram.recent_weeks", count=self.week_count)
        else:
            range_label = t("histogram.recent_months", count=self.month_count)
        lines.append(f"  [◀ {range_label} ▶]")
        lines.append("")

        status = self.render_status()
        if status:
            return lines + status

        lines.extend(self.render_histogram_bars())
        lines.extend(self.render_selected_detail())
        lines.extend(self.render_warning())
        return lines

    # Rendering: overlay

    def get_compare_period_labels(self) -> tuple[str, str]:
        """(current, previous) labels for the active overlay mode."""
        t = self.context.t
        if self.compare_mode == "hourly":
            return t("histogram.today"), t("histogram.yesterday")
        if self.compare_mode == "monthly":
            return t("compare.this_month"), t("compare.last_month")
        return t("histogram.this_week"), t("histogram.last_week")

    def render_compare_legend(self) -> str:
        t = self.context.t
        current, previous = self.get_compare_period_labels()
        return (
            f"  {colorize('░░', 'dim')} {t('histogram.legend_previous', period=previous)}"
            f"  {colorize('██', 'green')} {t('histogram.legend_current', period=current)}"
        )

    def render_compare_histogram_bars(self) -> list[str]:
        if not self.compare_bars:
            return [f"  {colorize(self.context.t('histogram.no_compare_data'), 'dim')}"]

        lines = [self.render_compare_legend(), ""]
        for row in range(HISTOGRAM_HEIGHT):
            level = HISTOGRAM_HEIGHT - row
            line = f"  {Y_LABELS[row]}│"
            for bar in self.compare_bars:
                current_in = level <= bar_height(bar.current_value)
                previous_in = level <= bar_height(bar.previous_value)
                if current_in and previous_in:
                    glyph, color = "▓▓", "yellow"
                elif current_in:
                    glyph, color = "██", "green"
                elif previous_in:
                    glyph, color = "░░", "dim"
                else:
                    glyph, color = "  ", None

                if color is None:
                    line += glyph
                elif bar.is_selected:
                    line += colorize(glyph, "cyan", "bold")
                else:
                    line += colorize(glyph, color)
                line += "  "
            lines.append(line)

        lines.extend(self._axis_lines([(bar.label, bar.is_selected) for bar in self.compare_bars]))
        return lines

    def render_compare_summary(self) -> list[str]:
        summary = self.compare_summary
        if summary is None:
            return []

        t = self.context.t
        lines = ["", colorize("  " + "─" * SEPARATOR_WIDTH, "dim"), ""]
        lines.append("  " + t(
            "histogram.compare_avg_change",
            previous=round(summary.previous_avg * 100),
            current=round(summary.current_avg * 100),
            change=_signed_change(summary.change_percent),
        ))
        if summary.max_increase:
            text = f"{t('histogram.max_increase')}: {summary.max_increase.label} (+{summary.max_increase.change:.1f}%)"
            lines.append(f"  {colorize(text, 'green')}")
        if summary.max_decrease:
            text = f"{t('histogram.max_decrease')}: {summary.max_decrease.label} ({summary.max_decrease.change:.1f}%)"
            lines.append(f"  {colorize(text, 'red')}")
        return lines

    def render_compare_selected_detail(self) -> list[str]:
        if not 0 <= self.selected_index < len(self.compare_bars):
            return []

        t = self.context.t
        bar = self.compare_bars[self.selected_index]
        current_label, previous_label = self.get_compare_period_labels()
        lines = [
            "",
            colorize("  " + "─" * SEPARATOR_WIDTH, "dim"),
            colorize(f"  {bar.label}", "yellow", "bold"),
            "",
            f"  {previous_label}: {create_progress_bar(bar.previous_value, PROGRESS_BAR_WIDTH)} {format_percent(bar.previous_value)}",
            f"  {current_label}: {create_progress_bar(bar.current_value, PROGRESS_BAR_WIDTH)} {format_percent(bar.current_value)}",
        ]
        if bar.previous_value > 0:
            change = (bar.current_value - bar.previous_value) / bar.previous_value * 100
            lines.append(f"  {t('compare.change')}: {_signed_change(change)}")
        elif bar.current_value > 0:
            lines.append(f"  {t('compare.change')}: {colorize(t('histogram.new_data'), 'green')}")
        return lines

    def render_compare(self) -> list[str]:
        t = self.context.t
        lines = [
            header_line(t("histogram.compare_mode"), f"[c: {t('histogram.exit_compare')}]", HEADER_WIDTH),
            "",
            self._mode_selector(("hourly", "daily", "weekly", "monthly"), self.compare_mode, "1, 2, 3, 4"),
            "",
        ]

        status = self.render_status()
        if status:
            return lines + status

        lines.extend(self.render_compare_histogram_bars())
        lines.extend(self.render_compare_summary())
        lines.extend(self.render_compare_selected_detail())
        lines.extend(self.render_warning())
        return lines

    # Keys

    def _move_selection(self, step: int, count: int) -> None:
        target = self.selected_index + step
        if 0 <= target < count:
            self.selected_index = target
            self.update_selected_bar()
            self.mark_dirty()

    def _change_range(self, delta: int, mode: str) -> None:
        # Up widens the range, down narrows it
        if mode == "weekly":
            count = self.week_count - delta
            if MIN_RANGE <= count <= MAX_RANGE:
                self.set_week_count(count)
                self._reload()
        elif mode == "monthly":
            count = self.month_count - delta
            if MIN_RANGE <= count <= MAX_RANGE:
                self.set_month_count(count)
                self._reload()
        elif mode == "hourly" and not self.is_compare_mode:
            self.shift_date(delta)

    def _reload(self):
        return self.load_compare_data() if self.is_compare_mode else self.load_histogram_data()

    def handle_key(self, event: KeyEvent) -> bool:
        if not is_plain_key(event):
            return False

        name = event.name
        if name == "c":
            self.toggle_compare_mode()
            return True

        if self.is_compare_mode:
            if name in _OVERLAY_KEYS:
                if self.compare_mode != _OVERLAY_KEYS[name]:
                    self.set_compare_mode(_OVERLAY_KEYS[name])
                return True
            active, bar_count = self.compare_mode, len(self.compare_bars)
        else:
            if name in _MODE_KEYS:
                if self.mode != _MODE_KEYS[name]:
                    self.set_mode(_MODE_KEYS[name])
                return True
            active, bar_count = self.mode, len(self.bars)

        if name == "left":
            self._move_selection(-1, bar_count)
            return True
        if name == "right":
            self._move_selection(1, bar_count)
            return True
        if name == "up":
            self._change_range(-1, active)
            return True
        if name == "down":
            self._change_range(1, active)
            return True
        if name == "tab":
            if self.on_back:
                self.on_back()
            return True
        if name in ("escape", "q"):
            if self.on_exit:
                self.on_exit()
            return True
        return False
#endregion
