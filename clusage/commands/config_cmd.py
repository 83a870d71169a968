"""
Configuration management command.

Shows the effective settings and changes one key at a time.
"""
#region Imports
from typing import Optional

from rich.console import Console
from rich.table import Table

from clusage.config.defaults import get_default_settings
from clusage.config.user_config import Settings, coerce_setting, save_config
from clusage.i18n import Translator, resolve_locale
#endregion


#region Constants
ACTIONS = ("show", "get", "set", "reset")

# Case-insensitive choices are normalised before validation
_UPPER_KEYS = ("currency",)
_LOWER_KEYS = ("language", "graphStyle", "boxStyle")
#endregion


#region Functions


def _normalise(key: str, raw: str) -> str:
    if key in _UPPER_KEYS:
        return raw.upper()
    if key in _LOWER_KEYS:
        return raw.lower()
    return raw


def run(
    console: Console,
    action: str,
    key: Optional[str] = None,
    value: Optional[str] = None,
    settings: Optional[Settings] = None,
    translator: Optional[Translator] = None,
) -> bool:
    """
    Handle configuration commands.

    Args:
        console: Rich console for output
        action: show, get KEY, set KEY VALUE or reset
        key: Setting name for get/set
        value: New value for set
        settings: Settings to read and write (default: the user's file)
        translator: Message lookup

    Returns:
        True on success, False if the arguments were rejected
    """
    settings = settings or Settings()
    translator = translator or Translator(resolve_locale(settings))
    t = translator.t

    if action == "show":
        _show_config(console, settings, translator)
        return True

    if action == "reset":
        save_config({}, settings.path)
        console.print(f"[green]✓ {t('config.reset_done')}[/green]")
        return True

    defaults = get_default_settings()
    if action in ("get", "set"):
        if not key or key not in defaults:
            console.print(f"[red]{t('config.invalid_key', key=key or '')}[/red]")
            console.print(f"[dim]{t('config.valid_keys', keys=', '.join(defaults))}[/dim]")
            return False

    if action == "get":
        console.print(f"{key}: {settings.get_setting(key)}")
        return True

    if action == "set":
        if value is None:
            console.print(f"[red]{t('config.value_required', key=key)}[/red]")
            console.print(f"[yellow]{t('config.usage')}[/yellow]")
            return False
        try:
            parsed = coerce_setting(key, _normalise(key, value))
            settings.update_setting(key, parsed)
            settings.save()
        except ValueError:
            console.print(f"[red]{t('config.invalid_value', key=key, value=value)}[/red]")
            console.print(f"[dim]{t('config.default_value', value=defaults[key])}[/dim]")
            return False
        console.print(f"[green]✓ {t('config.updated', key=key, value=parsed)}[/green]")
        return True

    console.print(f"[red]{t('config.unknown_action', action=action)}[/red]")
    console.print(f"[yellow]{t('config.usage')}[/yellow]")
    return False


def _show_config(console: Console, settings: Settings, translator: Translator) -> None:
    """Display all effective settings next to their defaults."""
    t = translator.t
    defaults = get_default_settings()

    console.print(f"\n[bold cyan]{t('config.title')}[/bold cyan] [dim]({settings.path})[/dim]\n")

    table = Table(show_header=True, box=None, padding=(0, 2))
    table.add_column(t("config.col_setting"), style="cyan")
    table.add_column(t("config.col_value"))
    table.add_column(t("config.col_default"), style="dim")

    for key, current in settings.all_settings().items():
        default = defaults.get(key)
        shown = f"[bold]{current}*[/bold]" if current != default else str(current)
        table.add_row(key, shown, str(default))

    console.print(table)
    console.print()
    console.print(f"[dim]{t('config.custom_marker')}[/dim]")
    console.print(f"[dim]{t('config.usage')}[/dim]")
#endregion
