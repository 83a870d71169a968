"""This week against last week, or this month against last month."""

#region Imports
from typing import Callable, Optional

from clusage.aggregation.aggregator import TrendResult
from clusage.aggregation.periods import (
    CompareMode,
    PeriodComparison,
    calculate_comparison_date_ranges,
    calculate_period_comparison,
)
from clusage.ui.keyboard import KeyEvent
from clusage.ui.renderer import colorize, pad
from clusage.ui.views.base import HistoryLoad, LoadingView, header_line, is_plain_key
from clusage.ui.views.context import ViewContext
from clusage.visualization.usage_bars import create_progress_bar, format_percent
#endregion


#region Constants
HEADER_WIDTH = 56
SEPARATOR_WIDTH = 52
PROGRESS_BAR_WIDTH = 25
LABEL_WIDTH = 12
VALUE_WIDTH = 12
#endregion


#region Compare View


class CompareView(LoadingView):
    """
    Period comparison table with four trend rows and two session bars.

    Week mode compares Monday-to-Sunday weeks. Month mode compares the 1st
    through today with the same days of the previous month.

    Args:
        context: Shared viewer collaborators
        on_back: Called on ``q``/Escape
        mode: Initial mode, "week" or "month"
    """

    def __init__(self, context: ViewContext, on_back: Optional[Callable[[], None]] = None, mode: CompareMode = "week"):
        super().__init__(context=context)
        self.on_back = on_back
        self.mode: CompareMode = mode
        self.result: Optional[PeriodComparison] = None
        self.labels = ("", "")
        self.is_loading = True

    def _period_labels(self, mode: CompareMode) -> tuple[str, str]:
        t = self.context.t
        if mode == "week":
            return t("compare.this_week"), t("compare.last_week")
        return t("compare.this_month"), t("compare.last_month")

    def load_compare_data(self):
        """Read both periods for the current mode and compute the trends."""
        mode = self.mode

        async def _load(load: HistoryLoad) -> None:
            ranges = calculate_comparison_date_ranges(mode, self.context.today())
            current = await load.read(ranges.current.start_date, ranges.current.end_date)
            previous = await load.read(ranges.previous.start_date, ranges.previous.end_date)
            self.result = calculate_period_comparison(current.data, previous.data, ranges.current, ranges.previous)
            self.labels = self._period_labels(mode)
            self.set_read_warning(load.errors)

        return self.start_load(_load)

    def toggle_mode(self):
        self.mode = "month" if self.mode == "week" else "week"
        return self.load_compare_data()

    # Rendering

    def format_trend(self, trend: TrendResult) -> str:
        t = self.context.t
        change = trend.change_percent
        if change is None:
            return colorize(t("compare.not_available"), "dim")
        if change > 0:
            return colorize(f"{t('compare.increase')} {abs(change):.1f}%", "green")
        if change < 0:
            return colorize(f"{t('compare.decrease')} {abs(change):.1f}%", "red")
        return colorize(t("compare.no_change"), "dim")

    @staticmethod
    def render_row(label: str, previous: str, current: str, trend: str) -> str:
        return f"  {pad(label, LABEL_WIDTH)}{pad(previous, VALUE_WIDTH, 'right')}{pad(current, VALUE_WIDTH, 'right')}   {trend}"

    def render(self) -> list[str]:
        t = self.context.t
        lines = [header_line(t("compare.title"), f"[ESC {t('compare.key_back')}]", HEADER_WIDTH), ""]

        status = self.render_status()
        if status:
            lines.extend(status)
            if self.error:
                lines.extend(["", f"  {t('compare.key_back')}: ESC"])
            return lines

        if self.result is None:
            lines.append(colorize(f"  {t('compare.no_data')}", "dim"))
            return lines

        current, previous = self.result.current, self.result.previous
        current_label, previous_label = self.labels
        separator = colorize("  " + "─" * SEPARATOR_WIDTH, "dim")
        money = self.context.format_money

        lines.append(f"  [{current_label}] vs [{previous_label}]        ← Tab {t('compare.key_toggle')}")
        lines.append("")
        lines.append(colorize(self.render_row(t("compare.metric"), previous_label, current_label, t("compare.change")), "yellow"))
        lines.append(separator)
        lines.append(self.render_row(
            t("compare.avg_session"), format_percent(previous.avg_session), format_percent(current.avg_session),
            self.format_trend(self.result.session_trend),
        ))
        lines.append(self.render_row(
            t("compare.avg_weekly"), format_percent(previous.avg_weekly), format_percent(current.avg_weekly),
            self.format_trend(self.result.weekly_trend),
        ))
        lines.append(self.render_row(
            t("compare.total_tokens"), f"{previous.total_tokens:,}", f"{current.total_tokens:,}",
            self.format_trend(self.result.tokens_trend),
        ))
        lines.append(self.render_row(
            t("compare.estimated_cost"), money(previous.total_cost_usd), money(current.total_cost_usd),
            self.format_trend(self.result.cost_trend),
        ))
        lines.append("")

        lines.append(colorize(f"  {t('compare.trend_graph')}", "yellow"))
        lines.append(separator)
        lines.append(f"  {previous_label}: {create_progress_bar(previous.avg_session, PROGRESS_BAR_WIDTH)} {format_percent(previous.avg_session)}")
        lines.append(f"  {current_label}: {create_progress_bar(current.avg_session, PROGRESS_BAR_WIDTH)} {format_percent(current.avg_session)}")
        lines.extend(self.render_warning())
        lines.append("")
        lines.append(colorize(f"  {t('compare.key_nav')}", "dim"))
        return lines

    def handle_key(self, event: KeyEvent) -> bool:
        if not is_plain_key(event):
            return False
        if event.name in ("escape", "q"):
            if self.on_back:
                self.on_back()
            return True
        if event.name == "tab":
            self.toggle_mode()
            return True
        return False
#endregion
