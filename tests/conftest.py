"""
Shared fixtures: record builders, a temporary data directory, in-memory
readers and a renderer that writes to a string buffer.
"""

import io
import json
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import pytest
from rich.console import Console

from clusage.config.user_config import Settings
from clusage.i18n import Translator
from clusage.models.usage_record import DailyUsageFile, QuotaWindow, TokenCounts, UsageRecord
from clusage.storage.reader import HistoryReader, HistoryReadError, HistoryReadResult, get_date_range
from clusage.ui.renderer import ScreenRenderer
from clusage.ui.views.context import ViewContext


TODAY = date(2026, 1, 15)  # a Thursday
NOW = datetime(2026, 1, 15, 14, 30)


def make_record(
    day: str,
    hour: int = 10,
    session: float = 0.5,
    weekly: float = 0.3,
    input_tokens: Optional[int] = 1000,
    output_tokens: int = 500,
    model: Optional[str] = "sonnet",
    minute: int = 0,
) -> UsageRecord:
    """Build a record stamped in local time so hour buckets are predictable."""
    year, month, dom = (int(part) for part in day.split("-"))
    tokens = None
    if input_tokens is not None:
        tokens = TokenCounts(input=input_tokens, output=output_tokens)
    return UsageRecord(
        timestamp=datetime(year, month, dom, hour, minute).astimezone(),
        session=QuotaWindow(session),
        weekly=QuotaWindow(weekly),
        model=model,
        tokens=tokens,
    )


def make_daily(day: str, *records: UsageRecord) -> DailyUsageFile:
    return DailyUsageFile(date=day, records=tuple(records))


class FakeReader:
    """
    In-memory stand-in for HistoryReader.

    Args:
        files: Daily files keyed by date
        errors: Per-date read errors to report
        fail_with: Exception raised by every read
    """

    def __init__(self, files=None, errors=None, fail_with: Optional[Exception] = None):
        self.files = {daily.date: daily for daily in (files or [])}
        self.errors = dict(errors or {})
        self.fail_with = fail_with
        self.calls: list[tuple[str, str]] = []

    def read_history_data(self, start_date: str, end_date: str) -> HistoryReadResult:
        self.calls.append((start_date, end_date))
        if self.fail_with is not None:
            raise self.fail_with
        data = []
        errors = []
        for key in get_date_range(start_date, end_date):
            if key in self.files:
                data.append(self.files[key])
            if key in self.errors:
                errors.append(HistoryReadError(key, self.errors[key]))
        return HistoryReadResult(success=not errors, data=data, errors=errors)

    async def read(self, start_date: str, end_date: str) -> HistoryReadResult:
        return self.read_history_data(start_date, end_date)


def make_context(reader=None, language: str = "en", now: datetime = NOW, **settings) -> ViewContext:
    """View context with fixed clock, English messages and in-memory settings."""
    values = {"language": language}
    values.update(settings)
    return ViewContext(
        reader=reader or FakeReader(),
        translator=Translator(language),
        settings=Settings(path=Path("/nonexistent/settings.json"), values=values),
        clock=lambda: now,
    )


@pytest.fixture(autouse=True)
def _isolate_language(monkeypatch):
    monkeypatch.delenv("CLUSAGE_LANG", raising=False)
    monkeypatch.delenv("CLUSAGE_CACHE_TTL", raising=False)


@pytest.fixture
def sample_day() -> DailyUsageFile:
    return make_daily(
        "2026-01-15",
        make_record("2026-01-15", hour=9, session=0.2),
        make_record("2026-01-15", hour=10, session=0.4),
        make_record("2026-01-15", hour=10, session=0.6, minute=30),
        make_record("2026-01-15", hour=14, session=0.9),
    )


@pytest.fixture
def fake_reader(sample_day) -> FakeReader:
    return FakeReader([
        sample_day,
        make_daily("2026-01-03", make_record("2026-01-03", session=0.1)),
    ])


@pytest.fixture
def context(fake_reader) -> ViewContext:
    return make_context(fake_reader)


@pytest.fixture
def data_dir(tmp_path) -> Path:
    daily = tmp_path / "daily"
    daily.mkdir()
    return daily


@pytest.fixture
def write_day(data_dir):
    """Write a daily file (dict or raw text) into the temp data directory."""

    def _write(day: str, content) -> Path:
        path = data_dir / f"{day}.json"
        if isinstance(content, str):
            path.write_text(content, encoding="utf-8")
        else:
            path.write_text(json.dumps(content), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def history_reader(data_dir) -> HistoryReader:
    return HistoryReader(data_dir)


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def renderer(output) -> ScreenRenderer:
    console = Console(file=output, width=80, height=24, force_terminal=True, color_system=None)
    return ScreenRenderer(console)
