#region Imports
from rich.text import Text

from clusage.config.settings import WARNING_THRESHOLD
#endregion


#region Constants
FILLED_BLOCK = "█"
EMPTY_BLOCK = "░"
DEFAULT_BAR_WIDTH = 8
WARNING_ICON = "⚠️ "

GREEN = "green"
YELLOW = "bright_yellow"
RED = "red"
DIM = "grey50"
#endregion


#region Functions


def clamp_utilization(value: float) -> float:
    """Clamp a utilization fraction into [0, 1]."""
    return max(0.0, min(1.0, value))


def create_progress_bar(utilization: float, width: int = DEFAULT_BAR_WIDTH) -> str:
    """
    Render a utilization fraction as a fixed-width block bar.

    Args:
        utilization: Fraction 0.0-1.0 (clamped)
        width: Number of cells

    Returns:
        String of ``round(u * width)`` filled cells followed by empty cells
    """
    filled = round(clamp_utilization(utilization) * width)
    return FILLED_BLOCK * filled + EMPTY_BLOCK * (width - filled)


def create_usage_bar(utilization: float, width: int = DEFAULT_BAR_WIDTH) -> Text:
    """Progress bar as rich Text, yellow at or above the warning threshold."""
    filled = round(clamp_utilization(utilization) * width)
    color = YELLOW if utilization >= WARNING_THRESHOLD else GREEN
    bar = Text()
    bar.append(FILLED_BLOCK * filled, style=color)
    bar.append(EMPTY_BLOCK * (width - filled), style=DIM)
    return bar


def get_warning_icon(utilization: float) -> str:
    """Return a warning marker when utilization is at or above 80%."""
    return WARNING_ICON if utilization >= WARNING_THRESHOLD else ""


def format_percent(value: float) -> str:
    """Format a fraction as a whole percentage (e.g. "45%")."""
    return f"{round(value * 100)}%"


def format_token_count(tokens: int) -> str:
    """
    Format token counts compactly.

    Returns:
        "1.5M", "125K" or the plain number below 1,000
    """
    if tokens >= 1_000_000:
        return f"{tokens / 1_000_000:.1f}M"
    if tokens >= 1_000:
        return f"{round(tokens / 1_000)}K"
    return str(tokens)


def format_change_percent(change_percent) -> str:
    """Format a trend as "+12.5%", "-3.0%" or "-" when undefined."""
    if change_percent is None:
        return "-"
    sign = "+" if change_percent >= 0 else ""
    return f"{sign}{change_percent:.1f}%"


def trend_arrow(change_percent) -> str:
    if change_percent is None or change_percent == 0:
        return "→"
    return "↑" if change_percent > 0 else "↓"
#endregion
