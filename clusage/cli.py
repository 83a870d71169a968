"""
clusage CLI - Command-line interface using typer.

Run without a command to open the interactive history viewer.
"""
#region Imports
import sys
from enum import Enum
from typing import Optional

import typer
from rich.console import Console

from clusage import __version__
from clusage.commands import config_cmd, history
from clusage.config.user_config import Settings
from clusage.errors import ClusageError
from clusage.i18n import Translator, resolve_locale
from clusage.ui.viewer import run_history_viewer
from clusage.utils.logger import configure_logging, get_logger
#endregion


#region Constants
logger = get_logger(__name__)


class CompareChoice(str, Enum):
    week = "week"
    month = "month"


app = typer.Typer(
    name="clusage",
    help="Terminal history viewer for Claude usage snapshots",
    add_completion=False,
    no_args_is_help=False,
)

console = Console()
error_console = Console(stderr=True)
#endregion


#region Commands


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"clusage {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def default_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit",
    ),
):
    """
    Terminal history viewer for Claude usage snapshots.

    Run without a command to open the interactive viewer.
    """
    if ctx.invoked_subcommand is None:
        run_history_viewer()


@app.command(name="viewer")
def viewer_command(
    no_alt_screen: bool = typer.Option(False, "--no-alt-screen", help="Draw in the normal screen buffer"),
):
    """Open the interactive calendar, detail, compare and histogram views."""
    run_history_viewer(use_alt_screen=not no_alt_screen)


@app.command(name="history")
def history_command(
    today: bool = typer.Option(False, "--today", help="Hourly report for today"),
    week: bool = typer.Option(False, "--week", help="Daily report for the last 7 days (default)"),
    month: bool = typer.Option(False, "--month", help="Daily report for the last 30 days"),
    cost: bool = typer.Option(False, "--cost", help="Append the estimated API cost"),
    compare: Optional[CompareChoice] = typer.Option(None, "--compare", help="Compare this week or month with the previous one"),
    interactive: bool = typer.Option(False, "--interactive", "-i", help="Open the interactive viewer instead"),
):
    """Print a usage-history report."""
    if interactive:
        run_history_viewer()
        return

    period: history.HistoryPeriod = history.DEFAULT_PERIOD
    if today:
        period = "today"
    elif month:
        period = "month"
    elif week:
        period = "week"

    history.run(console, period=period, show_cost=cost, compare=compare.value if compare else None)


@app.command(name="config")
def config_command(
    action: str = typer.Argument("show", help="Action: show, get, set, reset"),
    key: Optional[str] = typer.Argument(None, help="Setting name for get/set"),
    value: Optional[str] = typer.Argument(None, help="New value for set"),
):
    """Show or change settings."""
    if not config_cmd.run(console, action, key, value):
        raise typer.Exit(code=1)
#endregion


#region Entry Point


def main() -> None:
    """
    Main CLI entry point.

    Usage:
        clusage                     Open the interactive history viewer
        clusage history --month     Print the last 30 days
        clusage config set language en

    Exit:
        Press q or ESC in the viewer, Ctrl+C anywhere
    """
    configure_logging()
    try:
        app()
    except KeyboardInterrupt:
        sys.exit(0)
    except ClusageError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        translator = Translator(resolve_locale(Settings()))
        error_console.print(f"[red]{translator.t('error.prefix')}: {exc}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
#endregion
