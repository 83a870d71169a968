"""
Month calendar: the first screen of the history viewer.

Days with stored snapshots are shown normally, days without are dimmed and
today is underlined. Below the grid an info panel summarises the selected
day. Month data is read once per ``YYYY-MM`` and kept for the lifetime of the
view.
"""

#region Imports
import asyncio
from dataclasses import dataclass
from typing import Callable, Optional

from clusage.aggregation.aggregator import AggregatedData, calculate_stats
from clusage.aggregation.periods import (
    build_calendar_grid,
    format_date_key,
    get_month_range,
    is_today,
    shift_month,
)
from clusage.models.usage_record import DailyUsageFile
from clusage.storage.reader import HistoryReadError
from clusage.ui.keyboard import KeyEvent
from clusage.ui.component import Grid
from clusage.ui.renderer import colorize, frame_lines, pad
from clusage.ui.views.base import HistoryLoad, LoadingView, is_plain_key
from clusage.ui.views.context import ViewContext
from clusage.visualization.usage_bars import create_progress_bar, format_percent
#endregion


#region Data Classes


@dataclass(frozen=True)
class CalendarCell:
    """One grid position; ``day`` is None outside the month."""

    day: Optional[int]
    is_today: bool = False
    has_data: bool = False


@dataclass(frozen=True)
class MonthData:
    files: tuple[DailyUsageFile, ...]
    data_dates: frozenset[str]
    errors: tuple[HistoryReadError, ...] = ()
#endregion


#region Calendar View


class CalendarView(LoadingView, Grid[CalendarCell]):
    """
    6x7 month grid with Sunday-first columns.

    Args:
        context: Shared viewer collaborators
        on_select: Called with the selected date key on Enter
        on_compare: Called on ``c``
        on_histogram: Called with the selected date key (or None) on Tab
        on_exit: Called on ``q``/Escape
    """

    BOX_WIDTH = 32

    def __init__(
        self,
        context: ViewContext,
        on_select: Optional[Callable[[str], None]] = None,
        on_compare: Optional[Callable[[], None]] = None,
        on_histogram: Optional[Callable[[Optional[str]], None]] = None,
        on_exit: Optional[Callable[[], None]] = None,
    ):
        super().__init__(context=context)
        self.on_select = on_select
        self.on_compare = on_compare
        self.on_histogram = on_histogram
        self.on_exit = on_exit

        today = context.today()
        self.year = today.year
        self.month = today.month
        self.data_dates: frozenset[str] = frozenset()
        self.selected_stats: Optional[AggregatedData] = None
        self.data_cache: dict[str, MonthData] = {}

        self.rebuild_grid()
        self.move_to_today()

    # Grid construction

    def _build_cells(self) -> list[list[CalendarCell]]:
        today = self.context.today()
        return [
            [
                CalendarCell(
                    day=day,
                    is_today=day is not None and is_today(self.year, self.month, day, today),
                    has_data=day is not None and format_date_key(self.year, self.month, day) in self.data_dates,
                )
                for day in row
            ]
            for row in build_calendar_grid(self.year, self.month)
        ]

    def rebuild_grid(self) -> None:
        """Rebuild the cells for the current month and select its first day."""
        self.set_items(self._build_cells())
        self.move_to_first_valid_day()

    def _refresh_cells(self) -> None:
        # Same month, new data: keep the selection where it is
        self.set_items(self._build_cells())

    def _select_first(self, predicate: Callable[[CalendarCell], bool]) -> bool:
        for row_index, row in enumerate(self.items):
            for col_index, cell in enumerate(row):
                if predicate(cell):
                    self.selected_row = row_index
                    self.selected_col = col_index
                    self.mark_dirty()
                    return True
        return False

    def move_to_first_valid_day(self) -> None:
        self._select_first(lambda cell: cell.day is not None)

    def move_to_today(self) -> None:
        """Select today if it is in the displayed month."""
        if self._select_first(lambda cell: cell.is_today):
            self.update_selected_stats()

    # Month navigation

    def set_month(self, year: int, month: int) -> None:
        """
        Show another month without reading it.

        Cached data for that month is applied; otherwise every day is shown
        without data until :meth:`load_month_data` runs.

        Raises:
            ValueError: If month is outside 1-12
        """
        if not 1 <= month <= 12:
            raise ValueError(f"month must be between 1 and 12, got {month}")
        self.year = year
        self.month = month
        cached = self.data_cache.get(self.get_cache_key(year, month))
        self.data_dates = cached.data_dates if cached else frozenset()
        self.set_read_warning(cached.errors if cached else ())
        self.rebuild_grid()
        self.update_selected_stats()

    def prev_month(self) -> Optional[asyncio.Task]:
        year, month = shift_month(self.year, self.month, -1)
        self.set_month(year, month)
        return self.load_month_data(year, month)

    def next_month(self) -> Optional[asyncio.Task]:
        year, month = shift_month(self.year, self.month, 1)
        self.set_month(year, month)
        return self.load_month_data(year, month)

    def get_year_month(self) -> tuple[int, int]:
        return self.year, self.month

    # Data

    @staticmethod
    def get_cache_key(year: int, month: int) -> str:
        return f"{year}-{month:02d}"

    def get_selected_date_key(self) -> Optional[str]:
        cell = self.get_selected_item()
        if cell is None or cell.day is None:
            return None
        return format_date_key(self.year, self.month, cell.day)

    def get_day_data(self, date_key: str) -> Optional[DailyUsageFile]:
        """Cached file for a day of the displayed month, if one was read."""
        cached = self.data_cache.get(self.get_cache_key(self.year, self.month))
        if cached is None:
            return None
        for daily in cached.files:
            if daily.date == date_key:
                return daily
        return None

    def load_month_data(self, year: int, month: int) -> Optional[asyncio.Task]:
        """
        Make a month's data available, reading it only on a cache miss.

        Returns:
            The load task, or None when the month was already cached
        """
        cache_key = self.get_cache_key(year, month)
        if cache_key in self.data_cache:
            self.error = None
            self._apply_month(year, month, self.data_cache[cache_key])
            return None

        async def _load(load: HistoryLoad) -> None:
            month_range = get_month_range(year, month)
            try:
                result = await load.read(month_range.start_date, month_range.end_date)
            except Exception:
                self._apply_month(year, month, MonthData((), frozenset()))
                raise
            month_data = MonthData(
                files=tuple(result.data),
                data_dates=frozenset(daily.date for daily in result.data if daily.records),
                errors=tuple(load.errors),
            )
            self.data_cache[cache_key] = month_data
            self._apply_month(year, month, month_data)

        return self.start_load(_load)

    def _apply_month(self, year: int, month: int, month_data: MonthData) -> None:
        if (year, month) != self.get_year_month():
            # The user already moved on; the cache entry is enough
            return
        self.data_dates = month_data.data_dates
        self.set_read_warning(month_data.errors)
        self._refresh_cells()
        self.update_selected_stats()

    def update_selected_stats(self) -> None:
        date_key = self.get_selected_date_key()
        daily = self.get_day_data(date_key) if date_key else None
        self.selected_stats = calculate_stats(daily.records) if daily and daily.records else None
        self.mark_dirty()

    # Rendering

    def _month_title(self) -> str:
        t = self.context.t
        names = t("calendar.month_names").split(",")
        name = names[self.month - 1] if len(names) == 12 else str(self.month)
        return t("calendar.month_year", year=self.year, month=self.month, month_name=name)

    def _render_cell(self, cell: CalendarCell, selected: bool) -> str:
        if cell.day is None:
            return "    "
        text = pad(str(cell.day), 3, "right")
        if selected:
            text = colorize(text, "reverse")
        elif cell.is_today:
            text = colorize(text, "underline", "bold")
        elif not cell.has_data:
            text = colorize(text, "dim")
        return text + " "

    def render(self) -> list[str]:
        t = self.context.t
        lines = [
            colorize(pad(f"  ◀  {self._month_title()}  ▶  ", self.BOX_WIDTH, "center"), "bold", "cyan"),
        ]

        weekdays = t("calendar.weekdays").split(",")
        grid = [colorize(" ".join(pad(w, 3, "center") for w in weekdays), "dim")]
        for row_index, row in enumerate(self.items):
            grid.append("".join(
                self._render_cell(cell, (row_index, col_index) == self.get_selected_position())
                for col_index, cell in enumerate(row)
            ))
        lines.extend(frame_lines(grid, self.BOX_WIDTH, style=self.context.box_style))

        if self.is_loading:
            lines.append(colorize(t("common.loading"), "dim"))
        elif self.error:
            lines.append(colorize(f"{t('common.load_error')}: {self.error}", "red"))
        else:
            lines.append("")

        cell = self.get_selected_item()
        if cell is not None and cell.day is not None:
            lines.append(colorize(f"[{t('calendar.selected', day=cell.day)}]", "yellow"))
            stats = self.selected_stats
            if stats is not None:
                session_bar = create_progress_bar(stats.avg_session_utilization, 8)
                weekly_bar = create_progress_bar(stats.avg_weekly_utilization, 8)
                lines.append(
                    f"{t('calendar.session_label')}: {session_bar} {format_percent(stats.avg_session_utilization)}"
                    f" | {t('calendar.weekly_label')}: {weekly_bar} {format_percent(stats.avg_weekly_utilization)}"
                )
                tokens = f"{stats.total_tokens:,}"
                lines.append(f"{t('calendar.records', count=stats.count)} | {t('calendar.tokens', count=tokens)}")
            else:
                lines.append(colorize(t("calendar.no_data"), "dim"))

        if self.warning:
            lines.append(colorize(f"⚠ {self.warning}", "yellow"))
        return lines

    # Movement that skips the blank cells before the 1st and after the last day

    def _restore(self, row: int, col: int) -> bool:
        self.selected_row = row
        self.selected_col = col
        return False

    def _after_move(self) -> bool:
        self.mark_dirty()
        self.update_selected_stats()
        return True

    def move_right(self) -> bool:
        row, col = self.get_selected_position()
        if not super().move_right():
            return False
        if self.get_selected_item().day is None:
            cells = self.items[self.selected_row]
            while self.selected_col < len(cells) - 1:
                self.selected_col += 1
                if cells[self.selected_col].day is not None:
                    return self._after_move()
            return self._restore(row, col)
        return self._after_move()

    def move_left(self) -> bool:
        row, col = self.get_selected_position()
        if not super().move_left():
            return False
        if self.get_selected_item().day is None:
            cells = self.items[self.selected_row]
            while self.selected_col > 0:
                self.selected_col -= 1
                if cells[self.selected_col].day is not None:
                    return self._after_move()
            return self._restore(row, col)
        return self._after_move()

    def move_down(self) -> bool:
        row, col = self.get_selected_position()
        if not super().move_down():
            return False
        if self.get_selected_item().day is None:
            # Trailing blanks: take the nearest day to the left
            cells = self.items[self.selected_row]
            for candidate in range(self.selected_col, -1, -1):
                if cells[candidate].day is not None:
                    self.selected_col = candidate
                    return self._after_move()
            return self._restore(row, col)
        return self._after_move()

    def move_up(self) -> bool:
        row, col = self.get_selected_position()
        if not super().move_up():
            return False
        if self.get_selected_item().day is None:
            # Leading blanks: take the nearest day to the right
            cells = self.items[self.selected_row]
            for candidate in range(self.selected_col, len(cells)):
                if cells[candidate].day is not None:
                    self.selected_col = candidate
                    return self._after_move()
            return self._restore(row, col)
        return self._after_move()

    # Keys

    def handle_key(self, event: KeyEvent) -> bool:
        if not is_plain_key(event):
            return False

        name = event.name
        if name in ("[", "pageup"):
            self.prev_month()
            return True
        if name in ("]", "pagedown"):
            self.next_month()
            return True
        if name == "return":
            date_key = self.get_selected_date_key()
            if date_key and self.on_select:
                self.on_select(date_key)
            return True
        if name == "c":
            if self.on_compare:
                self.on_compare()
            return True
        if name == "tab":
            if self.on_histogram:
                self.on_histogram(self.get_selected_date_key())
            return True
        if name in ("escape", "q"):
            if self.on_exit:
                self.on_exit()
            return True
        return super().handle_key(event)

    def destroy(self) -> None:
        self.data_cache.clear()
        super().destroy()
#endregion
