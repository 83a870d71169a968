#region Imports
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from clusage.aggregation.aggregator import AggregationUnit
from clusage.config.settings import WARNING_THRESHOLD
from clusage.visualization.usage_bars import (
    EMPTY_BLOCK,
    FILLED_BLOCK,
    clamp_utilization,
    format_percent,
    get_warning_icon,
)
#endregion


#region Constants
DEFAULT_GRAPH_WIDTH = 50
DEFAULT_GRAPH_HEIGHT = 10
Y_LABEL_WIDTH = 5
#endregion


#region Data Classes


@dataclass(frozen=True)
class GraphPoint:
    label: str
    value: float
#endregion


#region Functions


def format_bucket_label(key: str, unit: AggregationUnit) -> str:
    """
    Short label for a bucket key.

    Args:
        key: Key produced by ``group_by_unit``
        unit: Unit the key was grouped by

    Returns:
        "HH:00" for hours, "MM-DD" for days, the key itself otherwise
    """
    if unit == "hour":
        return key[-5:]
    if unit == "day":
        return datetime.strptime(key, "%Y-%m-%d").strftime("%m-%d")
    return key


def _bar_axis(label_width: int, bar_width: int) -> str:
    axis = " " * (label_width + 1)
    position = 0
    previous_label = ""
    for fraction, label in ((0, "0%"), (0.25, "25%"), (0.5, "50%"), (0.75, "75%"), (1.0, "100%")):
        target = round(fraction * bar_width)
        axis += " " * max(0, target - position - len(previous_label))
        axis += label
        position = target + len(label)
        previous_label = label
    return axis


def create_bar_graph(points: Sequence[GraphPoint], width: int = DEFAULT_GRAPH_WIDTH, empty_text: str = "-") -> str:
    """
    Horizontal bar per point with its percentage and warning marker.

    Args:
        points: Points in display order
        width: Bar cells at 100%
        empty_text: Returned when there are no points

    Returns:
        Multi-line graph ending with a 0-100% axis
    """
    if not points:
        return empty_text

    label_width = max(len(point.label) for point in points)
    lines = []
    for point in points:
        filled = round(clamp_utilization(point.value) * width)
        bar = FILLED_BLOCK * filled + EMPTY_BLOCK * (width - filled)
        lines.append(f"{point.label.ljust(label_width)} {bar} {format_percent(point.value)}{get_warning_icon(point.value)}")
    lines.append(_bar_axis(label_width, width))
    return "\n".join(lines)


def create_line_graph(points: Sequence[GraphPoint], height: int = DEFAULT_GRAPH_HEIGHT, empty_text: str = "-") -> str:
    """
    One column per point, ``*`` markers joined by ``/`` and ``\\``.

    Points at or above the warning threshold are marked ``!`` and the rows
    above the threshold get a ``!`` axis.
    """
    if not points:
        return empty_text
    if len(points) == 1:
        point = points[0]
        return f"{point.label}: {format_percent(point.value)}{get_warning_icon(point.value)}"

    grid = [[" "] * len(points) for _ in range(height)]
    warning_row = int((1 - WARNING_THRESHOLD) * (height - 1))

    rows = []
    for column, point in enumerate(points):
        value = clamp_utilization(point.value)
        row = round((1 - value) * (height - 1))
        rows.append(row)
        grid[row][column] = "!" if value >= WARNING_THRESHOLD else "*"

    for column in range(len(rows) - 1):
        current, following = rows[column], rows[column + 1]
        if current > following:
            for row in range(current - 1, following, -1):
                if grid[row][column] == " ":
                    grid[row][column] = "/"
        elif current < following:
            for row in range(current + 1, following):
                if grid[row][column + 1] == " ":
                    grid[row][column + 1] = "\\"

    y_labels = {
        0: "100%",
        round((height - 1) * 0.25): " 75%",
        round((height - 1) * 0.5): " 50%",
        round((height - 1) * 0.75): " 25%",
        height - 1: "  0%",
    }
    lines = []
    for row in range(height):
        y_label = y_labels.get(row, "").ljust(Y_LABEL_WIDTH)
        prefix = "!" if row <= warning_row else "|"
        lines.append(f"{y_label}{prefix}{''.join(grid[row])}")

    lines.append(" " * Y_LABEL_WIDTH + "+" + "-" * len(points))
    lines.append(" " * (Y_LABEL_WIDTH + 1) + " ".join(point.label for point in points)[: len(points)])
    return "\n".join(lines)
#endregion
