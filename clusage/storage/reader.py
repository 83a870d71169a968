"""
Read-only access to the daily snapshot files.

Each day is stored as ``<data>/daily/YYYY-MM-DD.json``::

    {"date": "2026-01-15", "records": [{"timestamp": "...", "session": {...}, ...}]}
"""

#region Imports
import asyncio
import json
from dataclasses import dataclass, field
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Optional

from clusage.config.settings import DAILY_DIR
from clusage.errors import HistoryReadFailure
from clusage.models.usage_record import DailyUsageFile, UsageRecord
from clusage.utils.logger import get_logger
#endregion


#region Constants
logger = get_logger(__name__)
#endregion


#region Data Classes


@dataclass(frozen=True)
class HistoryReadError:
    """A day whose file exists but could not be used."""

    date: str
    reason: str


@dataclass(frozen=True)
class HistoryReadResult:
    """
    Outcome of reading a date range.

    Attributes:
        success: True if no file produced an error
        data: Daily files found, in date order (missing days omitted)
        errors: Per-day parse or schema failures
    """

    success: bool
    data: list[DailyUsageFile] = field(default_factory=list)
    errors: list[HistoryReadError] = field(default_factory=list)
#endregion


#region Functions


def get_date_range(start_date: str, end_date: str) -> list[str]:
    """
    List every date key from start to end inclusive.

    Returns:
        Date keys, empty if either bound is not a valid date
    """
    try:
        start = date.fromisoformat(start_date)
        end = date.fromisoformat(end_date)
    except (TypeError, ValueError):
        return []

    dates = []
    current = start
    while current <= end:
        dates.append(current.isoformat())
        current += timedelta(days=1)
    return dates


def validate_daily_usage_file(data: Any) -> bool:
    """Check the top-level shape of a daily file."""
    return (
        isinstance(data, dict)
        and isinstance(data.get("date"), str)
        and isinstance(data.get("records"), list)
    )


def parse_daily_usage_file(data: dict) -> DailyUsageFile:
    """
    Convert a validated daily file into model objects.

    Raises:
        ValueError: If any record is malformed
    """
    records = tuple(UsageRecord.from_dict(item) for item in data["records"])
    return DailyUsageFile(date=data["date"], records=records)
#endregion


#region Reader


class HistoryReader:
    """
    Reads daily files from a data directory.

    Args:
        daily_dir: Directory holding YYYY-MM-DD.json files
    """

    def __init__(self, daily_dir: Path = DAILY_DIR):
        self.daily_dir = Path(daily_dir)

    def daily_file_path(self, date_key: str) -> Path:
        return self.daily_dir / f"{date_key}.json"

    def _read_day(self, date_key: str) -> tuple[Optional[DailyUsageFile], Optional[HistoryReadError]]:
        path = self.daily_file_path(date_key)
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except FileNotFoundError:
            return None, None
        except PermissionError as exc:
            raise HistoryReadFailure(f"Permission denied: {path}", date=date_key) from exc
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as exc:
            return None, HistoryReadError(date_key, str(exc))

        if not validate_daily_usage_file(raw):
            return None, HistoryReadError(date_key, "Invalid schema")

        try:
            return parse_daily_usage_file(raw), None
        except (ValueError, TypeError) as exc:
            return None, HistoryReadError(date_key, f"Invalid record: {exc}")

    def read_history_data(self, start_date: str, end_date: str) -> HistoryReadResult:
        """
        Read every daily file in an inclusive date range.

        Missing files are skipped. Unparseable files are reported in
        ``errors`` without aborting the rest of the range.

        Args:
            start_date: First day (YYYY-MM-DD)
            end_date: Last day (YYYY-MM-DD)

        Returns:
            HistoryReadResult

        Raises:
            HistoryReadFailure: If a file exists but cannot be opened
        """
        data: list[DailyUsageFile] = []
        errors: list[HistoryReadError] = []

        for date_key in get_date_range(start_date, end_date):
            daily, error = self._read_day(date_key)
            if daily is not None:
                data.append(daily)
            if error is not None:
                logger.warning("Skipping %s: %s", date_key, error.reason)
                errors.append(error)

        return HistoryReadResult(success=not errors, data=data, errors=errors)

    async def read(self, start_date: str, end_date: str) -> HistoryReadResult:
        """Read a range in a worker thread so the event loop stays responsive."""
        return await asyncio.to_thread(self.read_history_data, start_date, end_date)
#endregion
