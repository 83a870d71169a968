"""
Tests for the batch commands and the typer command-line wiring.
"""

import io
import json
from unittest.mock import patch

import pytest
from rich.console import Console
from typer.testing import CliRunner

from conftest import TODAY, FakeReader, make_daily, make_record

from clusage import __version__
from clusage.cli import app, main
from clusage.commands import config_cmd, history
from clusage.config.user_config import Settings
from clusage.errors import ClusageError
from clusage.i18n import Translator


runner = CliRunner()


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=120, color_system=None)


def printed(console):
    return console.file.getvalue()


def settings_with(tmp_path, **values):
    return Settings(tmp_path / "settings.json", values=values)


class TestHistoryReport:
    """Tables, graphs and summaries of the batch report."""

    def test_date_ranges(self):
        """Today, 7 and 30 days all end today."""
        assert history.calculate_date_range("today", TODAY).start_date == "2026-01-15"
        assert history.calculate_date_range("week", TODAY).start_date == "2026-01-09"
        assert history.calculate_date_range("month", TODAY).start_date == "2025-12-17"

    def test_week_report(self, console, fake_reader, tmp_path):
        """The weekly report lists days and summarises them."""
        history.run(console, "week", settings=settings_with(tmp_path), reader=fake_reader,
                    translator=Translator("en"), today=TODAY)
        out = printed(console)
        assert fake_reader.calls == [("2026-01-09", "2026-01-15")]
        assert "Usage History (Last 7 days)" in out
        assert "01-15" in out
        assert "Total records: 4" in out
        assert "Peak session utilization: 90%" in out
        assert "Total tokens: 6K" in out
        assert "Estimated API cost" not in out

    def test_today_uses_hours(self, console, fake_reader, tmp_path):
        """The today report buckets by hour."""
        history.run(console, "today", settings=settings_with(tmp_path), reader=fake_reader,
                    translator=Translator("en"), today=TODAY)
        out = printed(console)
        assert "Hourly summary" in out
        assert "09:00" in out and "14:00" in out

    def test_cost_in_krw(self, console, fake_reader, tmp_path):
        """--cost appends the estimate; KRW adds the won total."""
        history.run(console, "week", show_cost=True, settings=settings_with(tmp_path, currency="KRW"),
                    reader=fake_reader, translator=Translator("en"), today=TODAY)
        out = printed(console)
        assert "Estimated API cost" in out
        assert "Total cost: ₩54 ($0.04)" in out

    def test_line_graph_style(self, console, fake_reader, tmp_path):
        """The graph style setting switches to the line graph."""
        history.run(console, "month", settings=settings_with(tmp_path, graphStyle="line"), reader=fake_reader,
                    translator=Translator("en"), today=TODAY)
        assert "+--" in printed(console)

    def test_table_has_usage_bars(self, console, fake_reader, tmp_path):
        """Average session cells carry a usage bar next to the percentage."""
        history.run(console, "week", settings=settings_with(tmp_path, graphStyle="line"), reader=fake_reader,
                    translator=Translator("en"), today=TODAY)
        assert "█████░░░░░" in printed(console)

    def test_locale_is_resolved(self, console, fake_reader, tmp_path):
        """Without a translator the language is picked like every other entry point."""
        settings = settings_with(tmp_path, language="ko")
        with patch("clusage.commands.history.resolve_locale", return_value="en") as resolve:
            history.run(console, "week", settings=settings, reader=fake_reader, today=TODAY)
        resolve.assert_called_once_with(settings)
        assert "Usage History (Last 7 days)" in printed(console)

    def test_no_data(self, console, tmp_path):
        """An empty range prints a hint instead of tables."""
        history.run(console, "week", settings=settings_with(tmp_path), reader=FakeReader(),
                    translator=Translator("en"), today=TODAY)
        out = printed(console)
        assert "No data." in out
        assert "Summary" not in out

    def test_read_errors_are_listed(self, console, sample_day, tmp_path):
        """Unreadable days are reported after the report."""
        reader = FakeReader([sample_day], errors={"2026-01-10": "Invalid schema"})
        history.run(console, "week", settings=settings_with(tmp_path), reader=reader,
                    translator=Translator("en"), today=TODAY)
        assert "Could not read 1 file(s): 2026-01-10" in printed(console)


class TestHistoryCompare:
    """The --compare table."""

    def test_week_compare(self, console, sample_day, tmp_path):
        """Both weeks are read and the change is shown."""
        reader = FakeReader([sample_day, make_daily("2026-01-08", make_record("2026-01-08", session=0.35))])
        history.run(console, compare="week", settings=settings_with(tmp_path), reader=reader,
                    translator=Translator("en"), today=TODAY)
        out = printed(console)
        assert "Usage comparison (This week vs Last week)" in out
        assert "+50.0%" in out
        assert "shown as 0" not in out

    def test_missing_previous_side(self, console, sample_day, tmp_path):
        """A side without data is noted."""
        history.run(console, compare="week", settings=settings_with(tmp_path), reader=FakeReader([sample_day]),
                    translator=Translator("en"), today=TODAY)
        assert "No data for Last week; shown as 0." in printed(console)

    def test_nothing_to_compare(self, console, tmp_path):
        """No data on either side prints the empty notice."""
        history.run(console, compare="month", settings=settings_with(tmp_path), reader=FakeReader(),
                    translator=Translator("en"), today=TODAY)
        assert "No data." in printed(console)


class TestConfigCommand:
    """show, get, set and reset."""

    def test_set_normalises_and_saves(self, console, tmp_path):
        """Values are case-normalised, validated and written."""
        settings = settings_with(tmp_path)
        assert config_cmd.run(console, "set", "currency", "krw", settings=settings, translator=Translator("en"))
        assert "currency set to 'KRW'." in printed(console)
        stored = json.loads((tmp_path / "settings.json").read_text(encoding="utf-8"))
        assert stored["currency"] == "KRW"

    def test_set_number(self, console, tmp_path):
        """Numeric settings are converted from strings."""
        settings = settings_with(tmp_path)
        assert config_cmd.run(console, "set", "cacheTtlSeconds", "90", settings=settings, translator=Translator("en"))
        assert settings.get_setting("cacheTtlSeconds") == 90

    def test_set_invalid_value(self, console, tmp_path):
        """Invalid values are refused with the default shown."""
        settings = settings_with(tmp_path)
        assert not config_cmd.run(console, "set", "cacheTtlSeconds", "abc", settings=settings, translator=Translator("en"))
        out = printed(console)
        assert "Invalid value 'abc' for 'cacheTtlSeconds'" in out
        assert "Default: 30" in out
        assert not (tmp_path / "settings.json").exists()

    def test_set_requires_value(self, console, tmp_path):
        """set without a value fails."""
        assert not config_cmd.run(console, "set", "language", settings=settings_with(tmp_path), translator=Translator("en"))
        assert "A value is required for 'language'." in printed(console)

    def test_unknown_key(self, console, tmp_path):
        """Unknown keys list the valid ones."""
        assert not config_cmd.run(console, "get", "nope", settings=settings_with(tmp_path), translator=Translator("en"))
        out = printed(console)
        assert "Invalid setting key 'nope'" in out
        assert "cacheTtlSeconds" in out

    def test_get(self, console, tmp_path):
        """get prints the effective value."""
        assert config_cmd.run(console, "get", "graphStyle", settings=settings_with(tmp_path, graphStyle="line"))
        assert "graphStyle: line" in printed(console)

    def test_show_marks_changed_values(self, console, tmp_path):
        """Non-default values carry an asterisk."""
        settings = settings_with(tmp_path, boxStyle="single")
        assert config_cmd.run(console, "show", settings=settings, translator=Translator("en"))
        out = printed(console)
        assert "Current settings" in out
        assert "single*" in out
        assert "* marks values changed from the default" in out

    def test_reset(self, console, tmp_path):
        """reset empties the settings file."""
        settings = settings_with(tmp_path, language="en")
        settings.save()
        assert config_cmd.run(console, "reset", settings=settings, translator=Translator("en"))
        assert json.loads((tmp_path / "settings.json").read_text(encoding="utf-8")) == {}
        assert Settings(tmp_path / "settings.json").get_setting("language") == "ko"

    def test_locale_is_resolved(self, console, tmp_path):
        """Messages follow the resolved locale, not only the stored setting."""
        settings = settings_with(tmp_path, language="ko")
        with patch("clusage.commands.config_cmd.resolve_locale", return_value="en") as resolve:
            assert config_cmd.run(console, "set", "currency", "krw", settings=settings)
        resolve.assert_called_once_with(settings)
        assert "currency set to 'KRW'." in printed(console)

    def test_unknown_action(self, console, tmp_path):
        """Unknown actions fail."""
        assert not config_cmd.run(console, "delete", settings=settings_with(tmp_path), translator=Translator("en"))
        assert "Unknown action: delete" in printed(console)


class TestCli:
    """Argument parsing and dispatch."""

    def test_version(self):
        """--version prints and exits."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"clusage {__version__}" in result.stdout

    def test_no_command_opens_viewer(self):
        """Running without a command starts the viewer."""
        with patch("clusage.cli.run_history_viewer") as viewer:
            result = runner.invoke(app, [])
        assert result.exit_code == 0
        viewer.assert_called_once_with()

    def test_viewer_without_alt_screen(self):
        """--no-alt-screen is passed through."""
        with patch("clusage.cli.run_history_viewer") as viewer:
            result = runner.invoke(app, ["viewer", "--no-alt-screen"])
        assert result.exit_code == 0
        viewer.assert_called_once_with(use_alt_screen=False)

    @pytest.mark.parametrize("args,period,cost,compare", [
        ([], "week", False, None),
        (["--today"], "today", False, None),
        (["--month", "--cost"], "month", True, None),
        (["--compare", "month"], "week", False, "month"),
    ])
    def test_history_options(self, args, period, cost, compare):
        """Flags map to the report parameters."""
        with patch("clusage.cli.history.run") as run:
            result = runner.invoke(app, ["history", *args])
        assert result.exit_code == 0
        _, kwargs = run.call_args
        assert kwargs == {"period": period, "show_cost": cost, "compare": compare}

    def test_history_interactive(self):
        """-i opens the viewer instead of printing."""
        with patch("clusage.cli.run_history_viewer") as viewer, patch("clusage.cli.history.run") as run:
            result = runner.invoke(app, ["history", "-i"])
        assert result.exit_code == 0
        viewer.assert_called_once_with()
        run.assert_not_called()

    def test_history_rejects_bad_compare(self):
        """Only week and month can be compared."""
        result = runner.invoke(app, ["history", "--compare", "year"])
        assert result.exit_code != 0

    def test_config_commands(self, tmp_path):
        """config set writes the file; a bad value exits with 1."""
        settings = settings_with(tmp_path, language="en")
        with patch("clusage.commands.config_cmd.Settings", return_value=settings):
            ok = runner.invoke(app, ["config", "set", "graphStyle", "LINE"])
            bad = runner.invoke(app, ["config", "set", "graphStyle", "pie"])
        assert ok.exit_code == 0
        assert "graphStyle set to 'line'." in ok.stdout
        assert bad.exit_code == 1

    def test_main_reports_clusage_errors(self):
        """Errors the user can act on are printed and exit with 1."""
        with patch("clusage.cli.configure_logging"), \
                patch("clusage.cli.app", side_effect=ClusageError("no terminal")), \
                patch("clusage.cli.error_console") as error_console:
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == 1
        message = error_console.print.call_args.args[0]
        assert "no terminal" in message

    def test_main_exits_quietly_on_interrupt(self):
        """Ctrl+C outside the viewer exits with 0."""
        with patch("clusage.cli.configure_logging"), patch("clusage.cli.app", side_effect=KeyboardInterrupt):
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == 0
