"""
Batch usage-history report.

Prints a per-bucket table, a trend graph and a summary for today, the last 7
days or the last 30 days. ``--cost`` adds the estimated API cost and
``--compare`` replaces the report with a this-vs-last period table.
"""

#region Imports
from datetime import date, timedelta
from typing import Literal, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from clusage.aggregation.aggregator import AggregatedData, AggregationUnit, aggregate_usage, flatten_records, merge_stats
from clusage.aggregation.periods import (
    CompareMode,
    DateRange,
    PeriodComparison,
    calculate_comparison_date_ranges,
    calculate_period_comparison,
)
from clusage.config.user_config import Settings
from clusage.i18n import Translator, resolve_locale
from clusage.models.pricing import calculate_total_cost, format_cost
from clusage.storage.reader import HistoryReader
from clusage.visualization.graph import GraphPoint, create_bar_graph, create_line_graph, format_bucket_label
from clusage.visualization.usage_bars import (
    create_usage_bar,
    format_change_percent,
    format_percent,
    format_token_count,
    get_warning_icon,
    trend_arrow,
)
#endregion


#region Constants
HistoryPeriod = Literal["today", "week", "month"]

DEFAULT_PERIOD: HistoryPeriod = "week"
_PERIOD_DAYS = {"today": 0, "week": 6, "month": 29}
TABLE_BAR_WIDTH = 10
#endregion


#region Functions


def calculate_date_range(period: HistoryPeriod, today: date) -> DateRange:
    """Inclusive range ending today: 1, 7 or 30 days."""
    start = today - timedelta(days=_PERIOD_DAYS[period])
    return DateRange(start.isoformat(), today.isoformat())


def get_aggregation_unit(period: HistoryPeriod) -> AggregationUnit:
    return "hour" if period == "today" else "day"


def to_graph_points(aggregated: dict[str, AggregatedData], unit: AggregationUnit) -> list[GraphPoint]:
    return [
        GraphPoint(format_bucket_label(key, unit), aggregated[key].avg_session_utilization)
        for key in sorted(aggregated)
    ]


def _has_records(data) -> bool:
    return any(daily.records for daily in data)


def _format_trend(change_percent: Optional[float]) -> str:
    arrow = trend_arrow(change_percent)
    text = f"{arrow} {format_change_percent(change_percent)}"
    if change_percent is None or change_percent == 0:
        return f"[dim]{text}[/dim]"
    return f"[green]{text}[/green]" if change_percent > 0 else f"[red]{text}[/red]"


def _print_no_data(console: Console, t: Translator) -> None:
    console.print(f"[yellow]{t('history.no_data')}[/yellow]")
    console.print(f"[dim]{t('history.no_data_hint')}[/dim]")


def _usage_cell(utilization: float) -> Text:
    cell = create_usage_bar(utilization, TABLE_BAR_WIDTH)
    cell.append(f" {format_percent(utilization)}{get_warning_icon(utilization)}")
    return cell


def _history_table(aggregated: dict[str, AggregatedData], unit: AggregationUnit, t: Translator) -> Table:
    title = t("history.hourly_summary") if unit == "hour" else t("history.daily_summary")
    table = Table(title=title, title_style="bold", title_justify="left")
    table.add_column(t("history.col_date"), style="cyan")
    table.add_column(t("history.col_session_avg"), justify="right")
    table.add_column(t("history.col_session_max"), justify="right")
    table.add_column(t("history.col_weekly_avg"), justify="right")
    table.add_column(t("history.col_tokens"), justify="right")

    for key in sorted(aggregated):
        stats = aggregated[key]
        table.add_row(
            format_bucket_label(key, unit),
            _usage_cell(stats.avg_session_utilization),
            format_percent(stats.max_session_utilization) + get_warning_icon(stats.max_session_utilization),
            format_percent(stats.avg_weekly_utilization),
            format_token_count(stats.total_tokens),
        )
    return table


def _print_cost(console: Console, records, settings: Settings, t: Translator) -> None:
    cost = calculate_total_cost(records, include_krw=True, exchange_rate=settings.get_setting("exchangeRate"))
    console.print()
    console.print(f"[bold]{t('history.cost_title')}[/bold]")
    console.print(f"  {t('history.input_cost')}: ${cost.input_cost_usd:.2f}")
    console.print(f"  {t('history.output_cost')}: ${cost.output_cost_usd:.2f}")
    console.print(f"  {t('history.cache_savings')}: ${cost.cache_discount_usd:.2f}")
    total = format_cost(cost, settings.get_setting("currency"))
    console.print(f"  {t('history.total_cost')}: [bold]{total}[/bold]")


def comparison_table(comparison: PeriodComparison, mode: CompareMode, t: Translator) -> Table:
    """Rich table with the four compare rows (session, weekly, tokens, cost)."""
    current_label = t(f"compare.this_{mode}")
    previous_label = t(f"compare.last_{mode}")
    current, previous = comparison.current, comparison.previous

    table = Table(title=t("history.compare_title", current=current_label, previous=previous_label),
                  title_style="bold cyan", title_justify="left")
    table.add_column(t("compare.metric"), style="cyan")
    table.add_column(previous_label, justify="right")
    table.add_column(current_label, justify="right")
    table.add_column(t("compare.change"), justify="right")

    table.add_row(
        t("compare.avg_session"), format_percent(previous.avg_session), format_percent(current.avg_session),
        _format_trend(comparison.session_trend.change_percent),
    )
    table.add_row(
        t("compare.avg_weekly"), format_percent(previous.avg_weekly), format_percent(current.avg_weekly),
        _format_trend(comparison.weekly_trend.change_percent),
    )
    table.add_row(
        t("compare.total_tokens"), format_token_count(previous.total_tokens), format_token_count(current.total_tokens),
        _format_trend(comparison.tokens_trend.change_percent),
    )
    table.add_row(
        t("compare.estimated_cost"), f"${previous.total_cost_usd:.2f}", f"${current.total_cost_usd:.2f}",
        _format_trend(comparison.cost_trend.change_percent),
    )
    return table


def run_compare(
    console: Console,
    mode: CompareMode,
    reader: HistoryReader,
    translator: Translator,
    today: date,
) -> None:
    """
    Print this week/month against the previous one.

    When only one side has records a note says the other side is shown as 0.
    """
    t = translator.t
    ranges = calculate_comparison_date_ranges(mode, today)
    current = reader.read_history_data(ranges.current.start_date, ranges.current.end_date)
    previous = reader.read_history_data(ranges.previous.start_date, ranges.previous.end_date)

    current_empty = not _has_records(current.data)
    previous_empty = not _has_records(previous.data)
    if current_empty and previous_empty:
        _print_no_data(console, translator)
        return

    comparison = calculate_period_comparison(current.data, previous.data, ranges.current, ranges.previous)
    console.print(comparison_table(comparison, mode, translator))

    if current_empty:
        console.print(f"[dim]※ {t('history.missing_side', period=t(f'compare.this_{mode}'))}[/dim]")
    elif previous_empty:
        console.print(f"[dim]※ {t('history.missing_side', period=t(f'compare.last_{mode}'))}[/dim]")


def run(
    console: Console,
    period: HistoryPeriod = DEFAULT_PERIOD,
    show_cost: bool = False,
    compare: Optional[CompareMode] = None,
    settings: Optional[Settings] = None,
    reader: Optional[HistoryReader] = None,
    translator: Optional[Translator] = None,
    today: Optional[date] = None,
) -> None:
    """
    Print the usage-history report.

    Args:
        console: Rich console for output
        period: "today" (hourly buckets), "week" or "month" (daily buckets)
        show_cost: Append the estimated API cost
        compare: "week" or "month" to print a period comparison instead
        settings: Display preferences (graph style, currency)
        reader: History source
        translator: Message lookup
        today: Reference date (default: today)

    Raises:
        HistoryReadFailure: If the history directory cannot be read
    """
    settings = settings or Settings()
    reader = reader or HistoryReader()
    translator = translator or Translator(resolve_locale(settings))
    today = today or date.today()
    t = translator.t

    if compare:
        run_compare(console, compare, reader, translator, today)
        return

    date_range = calculate_date_range(period, today)
    with console.status(f"[bold cyan]{t('common.loading')}", spinner="dots"):
        result = reader.read_history_data(date_range.start_date, date_range.end_date)

    if not _has_records(result.data):
        _print_no_data(console, translator)
        return

    unit = get_aggregation_unit(period)
    aggregated = aggregate_usage(result.data, unit)

    console.print(f"[bold cyan]{t('history.title', period=t(f'history.period_{period}'))}[/bold cyan]\n")
    console.print(_history_table(aggregated, unit, translator))
    console.print()

    console.print(f"[bold]{t('history.trend')}[/bold]")
    points = to_graph_points(aggregated, unit)
    if settings.get_setting("graphStyle") == "line":
        graph = create_line_graph(points, empty_text=t("history.no_data"))
    else:
        graph = create_bar_graph(points, empty_text=t("history.no_data"))
    console.print(graph, highlight=False, markup=False)
    console.print()

    summary = merge_stats(aggregated.values())
    console.print(f"[bold]{t('history.summary')}[/bold]")
    console.print(f"  {t('history.total_records')}: {summary.count:,}")
    console.print(f"  {t('history.avg_session')}: {format_percent(summary.avg_session_utilization)}")
    console.print(f"  {t('history.max_session')}: {format_percent(summary.max_session_utilization)}")
    console.print(f"  {t('history.total_tokens')}: {format_token_count(summary.total_tokens)}")

    if show_cost:
        _print_cost(console, flatten_records(result.data), settings, translator)

    if result.errors:
        dates = ", ".join(error.date for error in result.errors)
        console.print(f"\n[yellow]⚠ {t('common.read_warning', count=len(result.errors), dates=dates)}[/yellow]")
#endregion
