"""
Tests for usage bars, number formatting and the text graphs.
"""

import pytest

from clusage.visualization.graph import GraphPoint, create_bar_graph, create_line_graph, format_bucket_label
from clusage.visualization.usage_bars import (
    create_progress_bar,
    create_usage_bar,
    format_change_percent,
    format_percent,
    format_token_count,
    get_warning_icon,
    trend_arrow,
)


class TestUsageBars:
    """Block bars and warning markers."""

    @pytest.mark.parametrize("value,expected", [
        (0.5, "████░░░░"),
        (0.0, "░░░░░░░░"),
        (1.7, "████████"),
        (-0.3, "░░░░░░░░"),
    ])
    def test_progress_bar(self, value, expected):
        """Utilization is clamped and rounded to whole cells."""
        assert create_progress_bar(value, 8) == expected

    def test_usage_bar_colours(self):
        """Bars turn yellow at the warning threshold."""
        calm = create_usage_bar(0.5, 4)
        busy = create_usage_bar(0.85, 4)
        assert calm.plain == "██░░"
        assert calm.spans[0].style == "green"
        assert busy.spans[0].style == "bright_yellow"

    def test_warning_icon(self):
        """80% and above carries a marker."""
        assert get_warning_icon(0.8)
        assert get_warning_icon(0.79) == ""


class TestFormatting:
    """Percentages, token counts and trends."""

    def test_percent(self):
        """Fractions become whole percentages."""
        assert format_percent(0.45) == "45%"
        assert format_percent(1.0) == "100%"

    @pytest.mark.parametrize("tokens,expected", [
        (999, "999"),
        (125_000, "125K"),
        (1_500_000, "1.5M"),
    ])
    def test_token_count(self, tokens, expected):
        """Large counts are abbreviated."""
        assert format_token_count(tokens) == expected

    def test_change_percent(self):
        """Changes are signed with one decimal."""
        assert format_change_percent(None) == "-"
        assert format_change_percent(12.5) == "+12.5%"
        assert format_change_percent(-3) == "-3.0%"

    def test_trend_arrow(self):
        """Arrows follow the sign; undefined is flat."""
        assert trend_arrow(5) == "↑"
        assert trend_arrow(-5) == "↓"
        assert trend_arrow(0) == "→"
        assert trend_arrow(None) == "→"


class TestGraphs:
    """Bar and line graphs for the batch report."""

    def test_bucket_labels(self):
        """Hour and day keys are shortened; others pass through."""
        assert format_bucket_label("2026-01-15 10:00", "hour") == "10:00"
        assert format_bucket_label("2026-01-15", "day") == "01-15"
        assert format_bucket_label("2026-W03", "week") == "2026-W03"

    def test_bar_graph(self):
        """One aligned row per point plus an axis."""
        lines = create_bar_graph([GraphPoint("a", 0.5), GraphPoint("bb", 0.9)], width=10).split("\n")
        assert lines[0] == "a  █████░░░░░ 50%"
        assert lines[1].startswith("bb █████████░ 90%")
        assert get_warning_icon(0.9) in lines[1]
        assert "0%" in lines[2] and "100%" in lines[2]

    def test_empty_graphs(self):
        """No points gives the empty text."""
        assert create_bar_graph([], empty_text="none") == "none"
        assert create_line_graph([], empty_text="none") == "none"

    def test_single_point_line_graph(self):
        """A single point is shown as text."""
        assert create_line_graph([GraphPoint("01-15", 0.5)]) == "01-15: 50%"

    def test_line_graph(self):
        """Points are plotted top-down and joined; high values are flagged."""
        lines = create_line_graph([GraphPoint("a", 0.0), GraphPoint("b", 1.0)], height=5).split("\n")
        assert len(lines) == 7
        assert lines[0] == "100% ! !"
        assert lines[1] == " 75% |/ "
        assert lines[4] == "  0% |* "
        assert lines[5] == "     +--"
