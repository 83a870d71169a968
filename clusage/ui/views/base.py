"""Shared behaviour for screens that load history in the background."""

#region Imports
import asyncio
from typing import Awaitable, Callable, Optional, Sequence

from clusage.storage.reader import HistoryReadError, HistoryReadResult
from clusage.ui.component import Component
from clusage.ui.keyboard import KeyEvent
from clusage.ui.renderer import colorize, visible_width
from clusage.ui.views.context import ViewContext
from clusage.utils.logger import get_logger
#endregion


#region Constants
logger = get_logger(__name__)
#endregion


#region Functions


def header_line(title: str, hint: str, width: int) -> str:
    """Title on the left, key hint on the right, ``width`` columns overall."""
    gap = max(1, width - visible_width(title) - visible_width(hint) - 6)
    return colorize(f"  📊 {title}{' ' * gap}{hint}", "bold", "cyan")


def is_plain_key(event: KeyEvent) -> bool:
    """True unless Ctrl or Alt is held (Ctrl+C must not trigger the ``c`` binding)."""
    return not event.ctrl and not event.meta
#endregion


#region Loading View


class HistoryLoad:
    """
    The reads made by one load and the per-day errors they reported.

    Each load gets its own instance, so overlapping loads never see each
    other's errors.
    """

    def __init__(self, context: ViewContext):
        self.context = context
        self.errors: list[HistoryReadError] = []

    async def read(self, start_date: str, end_date: str) -> HistoryReadResult:
        result = await self.context.reader.read(start_date, end_date)
        self.errors.extend(result.errors)
        return result


class LoadingView(Component):
    """
    A screen whose data arrives from an asynchronous history read.

    :meth:`start_load` sets ``is_loading`` and marks the view dirty before the
    read begins; the completion clears it and marks dirty again, so a paint
    sees either the old state or the new one. Loads are not cancelled: when a
    second load starts before the first finishes, whichever completes last
    wins.

    Exceptions from a load become ``error`` (rendered inline by the view).
    Per-day parse failures collected by a load's :class:`HistoryLoad` become
    ``warning`` when that load applies its data, so the warning always
    describes the data on screen.
    """

    def __init__(self, context: ViewContext, **kwargs):
        super().__init__(**kwargs)
        self.context = context
        self.is_loading = False
        self.error: Optional[str] = None
        self.warning: Optional[str] = None
        self._load_task: Optional[asyncio.Task] = None

    def start_load(self, loader: Callable[[HistoryLoad], Awaitable[None]]) -> asyncio.Task:
        """
        Run a loader coroutine on the current event loop.

        Args:
            loader: Coroutine function that reads through the given
                :class:`HistoryLoad` and then assigns view state

        Returns:
            The scheduled task (tests await it)

        Raises:
            RuntimeError: If no event loop is running
        """
        self.is_loading = True
        self.error = None
        self.mark_dirty()
        task = asyncio.get_running_loop().create_task(self._run_load(loader))
        self._load_task = task
        return task

    async def _run_load(self, loader: Callable[[HistoryLoad], Awaitable[None]]) -> None:
        try:
            await loader(HistoryLoad(self.context))
        except Exception as exc:
            logger.warning("%s failed to load history: %s", type(self).__name__, exc)
            self.error = str(exc) or type(exc).__name__
            self.warning = None
        finally:
            self.is_loading = False
            self.mark_dirty()

    def set_read_warning(self, errors: Sequence[HistoryReadError]) -> None:
        """Show the per-day errors behind the data just applied, or clear the warning."""
        if not errors:
            self.warning = None
            return
        dates = ", ".join(sorted({error.date for error in errors}))
        self.warning = self.context.t("common.read_warning", count=len(errors), dates=dates)

    def render_status(self) -> list[str]:
        """
        Lines for the loading or error state, if the view is in one.

        Returns:
            Lines to show instead of data, or an empty list
        """
        t = self.context.t
        if self.is_loading:
            return [colorize(f"  {t('common.loading')}", "dim")]
        if self.error:
            return [colorize(f"  {t('common.load_error')}: {self.error}", "red")]
        return []

    def render_warning(self) -> list[str]:
        if not self.warning:
            return []
        return ["", colorize(f"  ⚠ {self.warning}", "yellow")]
#endregion
