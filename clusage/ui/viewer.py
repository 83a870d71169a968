"""
Interactive history viewer: wires the four screens into a TerminalApp.

    Calendar --Enter--> Detail
             --c------> Compare
             --Tab----> Histogram

Every screen returns to the calendar with Escape/``q`` (Tab from the
histogram); ``q`` on the calendar or the histogram ends the run.
"""

#region Imports
import asyncio
from typing import Callable, Optional

from clusage.models.usage_record import DailyUsageFile
from clusage.ui.app import TerminalApp
from clusage.ui.keyboard import RawKeyboard, format_key_help
from clusage.ui.renderer import ScreenRenderer, colorize
from clusage.ui.views import CalendarView, CompareView, DetailView, HistogramView, ViewContext
from clusage.utils.logger import get_logger
#endregion


#region Constants
logger = get_logger(__name__)
#endregion


#region Footers


def _footer(t: Callable[..., str], bindings: list[tuple[str, str]]) -> str:
    return format_key_help([(colorize(key, "cyan"), t(message)) for key, message in bindings])


def calendar_footer(t: Callable[..., str]) -> str:
    return _footer(t, [
        ("←→↑↓", "calendar.key_nav"),
        ("[/]", "calendar.key_month"),
        ("Enter", "calendar.key_detail"),
        ("c", "calendar.key_compare"),
        ("Tab", "calendar.key_histogram"),
        ("q", "calendar.key_exit"),
    ])


def compare_footer(t: Callable[..., str]) -> str:
    return _footer(t, [("Tab", "compare.key_toggle"), ("ESC/q", "compare.key_back")])


def detail_footer(t: Callable[..., str]) -> str:
    return _footer(t, [("↑↓", "detail.key_scroll"), ("ESC/q", "detail.key_back")])


def histogram_footer(t: Callable[..., str]) -> str:
    return _footer(t, [
        ("1-3", "histogram.key_mode"),
        ("←→", "histogram.key_move"),
        ("↑↓", "histogram.key_range"),
        ("c", "histogram.key_compare"),
        ("Tab", "histogram.key_back"),
        ("q", "histogram.key_exit"),
    ])
#endregion


#region Viewer


async def create_history_viewer_app(
    use_alt_screen: bool = True,
    context: Optional[ViewContext] = None,
    renderer: Optional[ScreenRenderer] = None,
    keyboard: Optional[RawKeyboard] = None,
) -> None:
    """
    Run the history viewer until the user exits.

    The current month is read before the first paint, so the calendar opens
    with its data already in place.

    Args:
        use_alt_screen: Draw on the alternate screen
        context: View collaborators (default: the user's data and settings)
        renderer: Renderer override, for tests
        keyboard: Keyboard override, for tests

    Raises:
        TerminalNotInteractiveError: If stdin is not a terminal
    """
    context = context or ViewContext.default()
    t = context.t
    app = TerminalApp(use_alt_screen=use_alt_screen, renderer=renderer, keyboard=keyboard)
    calendar: CalendarView

    def open_detail(date_key: str) -> None:
        daily = calendar.get_day_data(date_key) or DailyUsageFile.empty(date_key)
        app.push(DetailView(context, date_key, daily, on_back=app.pop), footer=detail_footer(t))

    def open_compare() -> None:
        view = CompareView(context, on_back=app.pop)
        view.load_compare_data()
        app.push(view, footer=compare_footer(t))

    def open_histogram(date_key: Optional[str]) -> None:
        view = HistogramView(context, initial_date=date_key, on_back=app.pop, on_exit=app.exit)
        view.load_histogram_data()
        app.push(view, footer=histogram_footer(t))

    calendar = CalendarView(
        context,
        on_select=open_detail,
        on_compare=open_compare,
        on_histogram=open_histogram,
        on_exit=app.exit,
    )

    initial_load = calendar.load_month_data(calendar.year, calendar.month)
    if initial_load is not None:
        await initial_load

    app.push(calendar, footer=calendar_footer(t))
    logger.info("History viewer started (locale=%s)", context.translator.get_locale())
    await app.run()
    logger.info("History viewer closed")


def run_history_viewer(use_alt_screen: bool = True) -> None:
    """Blocking entry point for the CLI."""
    asyncio.run(create_history_viewer_app(use_alt_screen=use_alt_screen))
#endregion
