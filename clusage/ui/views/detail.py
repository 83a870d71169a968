"""Hour-by-hour breakdown of a single day."""

#region Imports
from typing import Callable, Optional

from clusage.aggregation.aggregator import HourlyData, aggregate_hourly, calculate_daily_summary
from clusage.models.usage_record import DailyUsageFile
from clusage.ui.component import SelectableList
from clusage.ui.keyboard import KeyEvent
from clusage.ui.renderer import colorize, pad
from clusage.ui.views.base import header_line, is_plain_key
from clusage.ui.views.context import ViewContext
from clusage.visualization.usage_bars import create_progress_bar, format_percent
#endregion


#region Detail View


class DetailView(SelectableList[HourlyData]):
    """
    Scrollable list of hourly buckets plus a daily summary.

    Args:
        context: Shared viewer collaborators
        date_key: Day shown (YYYY-MM-DD)
        daily: That day's records (an empty file when nothing was stored)
        on_back: Called on ``q``/Escape
    """

    HEADER_WIDTH = 50
    SEPARATOR_WIDTH = 45

    def __init__(
        self,
        context: ViewContext,
        date_key: str,
        daily: DailyUsageFile,
        on_back: Optional[Callable[[], None]] = None,
    ):
        super().__init__()
        self.context = context
        self.date_key = date_key
        self.on_back = on_back

        now = context.now()
        self.is_today = date_key == now.date().isoformat()
        self.current_hour = now.hour

        self.set_items(aggregate_hourly(daily.records))
        self.summary = calculate_daily_summary(daily.records)

    @staticmethod
    def format_hour(hour: int) -> str:
        return f"{hour:02d}:00"

    def render_item(self, item: HourlyData, selected: bool) -> str:
        line = f"{self.format_hour(item.hour)} {create_progress_bar(item.avg_session, 8)} {pad(format_percent(item.avg_session), 4, 'right')}"
        if self.is_today and item.hour == self.current_hour:
            line += colorize(f" ← {self.context.t('detail.current_hour')}", "green")
        return colorize(line, "reverse") if selected else line

    def render(self) -> list[str]:
        t = self.context.t
        separator = colorize("─" * self.SEPARATOR_WIDTH, "dim")
        lines = [
            header_line(t("detail.title", date=self.date_key), f"[ESC {t('detail.key_back')}]", self.HEADER_WIDTH),
            "",
        ]

        if not self.items:
            lines.append(colorize(t("detail.no_data"), "dim"))
            return lines

        lines.append(colorize(t("detail.hourly_usage"), "yellow"))
        lines.append(separator)
        lines.extend(super().render())
        if len(self.items) > self.visible_count:
            lines.append(colorize(f"[{self.selected_index + 1}/{len(self.items)}]", "dim"))

        summary = self.summary
        peak_hour = t("detail.at_hour", hour=summary.max_session_hour) if summary.max_session_hour >= 0 else ""
        lines.extend([
            "",
            separator,
            colorize(t("detail.summary"), "yellow"),
            separator,
            f"{t('detail.avg_usage')}: {format_percent(summary.avg_session)}",
            f"{t('detail.max_usage')}: {format_percent(summary.max_session)} {peak_hour}".rstrip(),
            f"{t('detail.total_tokens')}: {summary.total_tokens:,}"
            f" ({t('detail.input_tokens')}: {summary.input_tokens:,} / {t('detail.output_tokens')}: {summary.output_tokens:,})",
            f"{t('detail.estimated_cost')}: {self.context.format_money(summary.estimated_cost_usd)}",
        ])
        return lines

    def handle_key(self, event: KeyEvent) -> bool:
        if is_plain_key(event) and event.name in ("escape", "q"):
            if self.on_back:
                self.on_back()
            return True
        return super().handle_key(event)
#endregion
