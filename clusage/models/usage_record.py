#region Imports
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
#endregion


#region Helpers


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware datetime.

    Naive timestamps are taken as UTC.

    Raises:
        ValueError: If the string is not ISO-8601
    """
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be a string, got {type(value).__name__}")
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return int(value)
    return 0


def _float(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    return 0.0
#endregion


#region Data Classes


@dataclass(frozen=True)
class QuotaWindow:
    """
    Utilization of one rate-limit window.

    Attributes:
        utilization: Fraction of the quota consumed (0.0-1.0)
        resets_at: ISO timestamp when the window resets, if known
    """

    utilization: float
    resets_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "QuotaWindow":
        if not isinstance(data, dict):
            return cls(utilization=0.0)
        resets_at = data.get("resets_at")
        return cls(
            utilization=_float(data.get("utilization")),
            resets_at=resets_at if isinstance(resets_at, str) else None,
        )


@dataclass(frozen=True)
class TokenCounts:
    """
    Token breakdown captured with a snapshot.

    Attributes:
        input: Uncached input tokens
        output: Output tokens
        cache_creation: Tokens written to the prompt cache
        cache_read: Tokens read from the prompt cache
    """

    input: int = 0
    output: int = 0
    cache_creation: int = 0
    cache_read: int = 0

    @property
    def cache_tokens(self) -> int:
        return self.cache_creation + self.cache_read

    @property
    def billed_tokens(self) -> int:
        """Input plus output, the figure shown as "tokens" everywhere."""
        return self.input + self.output

    @classmethod
    def from_dict(cls, data: dict) -> "TokenCounts":
        return cls(
            input=_int(data.get("input")),
            output=_int(data.get("output")),
            cache_creation=_int(data.get("cache_creation")),
            cache_read=_int(data.get("cache_read")),
        )


@dataclass(frozen=True)
class LineChanges:
    added: int = 0
    removed: int = 0


@dataclass(frozen=True)
class UsageRecord:
    """
    One usage snapshot as written by the recorder.

    Attributes:
        timestamp: When the snapshot was taken (timezone-aware)
        session: Five-hour session window
        weekly: Seven-day window
        model: Model display name, if known
        cost_usd: Cost reported by the client, if any
        tokens: Token breakdown, if any
        lines: Lines added/removed, if any
    """

    timestamp: datetime
    session: QuotaWindow
    weekly: QuotaWindow
    model: Optional[str] = None
    cost_usd: Optional[float] = None
    tokens: Optional[TokenCounts] = None
    lines: Optional[LineChanges] = None

    @property
    def date_key(self) -> str:
        """
        Date portion of the recorded timestamp, YYYY-MM-DD.

        Uses the timestamp as written (no timezone conversion) so a record
        always lands in the day file it was stored in.
        """
        return self.timestamp.strftime("%Y-%m-%d")

    @property
    def input_tokens(self) -> int:
        return self.tokens.input if self.tokens else 0

    @property
    def output_tokens(self) -> int:
        return self.tokens.output if self.tokens else 0

    @classmethod
    def from_dict(cls, data: dict) -> "UsageRecord":
        """
        Build a record from its JSON object.

        Raises:
            ValueError: If the object has no parseable timestamp
        """
        if not isinstance(data, dict):
            raise ValueError("record must be an object")

        tokens = data.get("tokens")
        lines = data.get("lines")
        cost = data.get("cost_usd")
        model = data.get("model")
        return cls(
            timestamp=parse_timestamp(data.get("timestamp")),
            session=QuotaWindow.from_dict(data.get("session")),
            weekly=QuotaWindow.from_dict(data.get("weekly")),
            model=model if isinstance(model, str) else None,
            cost_usd=float(cost) if isinstance(cost, (int, float)) and not isinstance(cost, bool) else None,
            tokens=TokenCounts.from_dict(tokens) if isinstance(tokens, dict) else None,
            lines=LineChanges(_int(lines.get("added")), _int(lines.get("removed"))) if isinstance(lines, dict) else None,
        )


@dataclass(frozen=True)
class DailyUsageFile:
    """
    One calendar day of snapshots, the unit of on-disk storage.

    Attributes:
        date: Date key in YYYY-MM-DD format
        records: Snapshots in recorded order
    """

    date: str
    records: tuple[UsageRecord, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls, date: str) -> "DailyUsageFile":
        """Placeholder for a day with no stored file."""
        return cls(date=date, records=())
#endregion
