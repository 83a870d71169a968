#region Imports
import math
from dataclasses import dataclass
from typing import Iterable, Optional

from clusage.config.defaults import (
    CACHE_DISCOUNT_RATE,
    DEFAULT_EXCHANGE_RATE,
    DEFAULT_MODEL_PRICING,
    FALLBACK_MODEL_FAMILY,
)
from clusage.models.usage_record import UsageRecord
#endregion


#region Constants
_TOKENS_PER_MTOK = 1_000_000
_PRECISION = 6
#endregion


#region Data Classes


@dataclass(frozen=True)
class ModelPricing:
    """
    Pricing for one model family.

    Attributes:
        input_price: Price per million input tokens (USD)
        output_price: Price per million output tokens (USD)
        family: Model family name (opus, sonnet, haiku)
    """

    input_price: float
    output_price: float
    family: str


@dataclass(frozen=True)
class CostBreakdown:
    """
    Estimated cost of a set of records.

    Attributes:
        input_cost_usd: Input tokens at full rate plus cache tokens at 10%
        output_cost_usd: Output tokens at the output rate
        cache_discount_usd: Amount saved on cache tokens versus full input rate
        total_cost_usd: input_cost_usd + output_cost_usd
        total_cost_krw: Total converted to KRW (floored), when requested
    """

    input_cost_usd: float = 0.0
    output_cost_usd: float = 0.0
    cache_discount_usd: float = 0.0
    total_cost_usd: float = 0.0
    total_cost_krw: Optional[int] = None
#endregion


#region Functions


def get_model_pricing(model_name: Optional[str]) -> ModelPricing:
    """
    Get pricing for a model by family name matching.

    Any name containing "opus", "sonnet" or "haiku" (case-insensitive) uses
    that family's prices. Unknown or missing names are priced as sonnet.

    Args:
        model_name: Model name such as "Opus 4.1" or "claude-haiku-3"

    Returns:
        ModelPricing for the matched family
    """
    family = FALLBACK_MODEL_FAMILY
    if model_name:
        lowered = model_name.lower()
        for candidate in DEFAULT_MODEL_PRICING:
            if candidate in lowered:
                family = candidate
                break

    info = DEFAULT_MODEL_PRICING[family]
    return ModelPricing(
        input_price=info["input_price"],
        output_price=info["output_price"],
        family=family,
    )


def calculate_token_cost(tokens: int, price_per_mtok: float) -> float:
    """Price a token count, rounded to 6 decimal places."""
    return round(tokens / _TOKENS_PER_MTOK * price_per_mtok, _PRECISION)


def calculate_record_cost(record: UsageRecord) -> Optional[CostBreakdown]:
    """
    Estimate the cost of a single record.

    Args:
        record: Usage record

    Returns:
        CostBreakdown, or None if the record carries no token data
    """
    if record.tokens is None:
        return None

    pricing = get_model_pricing(record.model)
    tokens = record.tokens
    cache_tokens = tokens.cache_tokens

    input_base = calculate_token_cost(tokens.input, pricing.input_price)
    cache_cost = calculate_token_cost(cache_tokens, pricing.input_price * (1 - CACHE_DISCOUNT_RATE))
    input_cost = round(input_base + cache_cost, _PRECISION)
    output_cost = calculate_token_cost(tokens.output, pricing.output_price)
    cache_discount = round(
        cache_tokens / _TOKENS_PER_MTOK * pricing.input_price * CACHE_DISCOUNT_RATE,
        _PRECISION,
    )

    return CostBreakdown(
        input_cost_usd=input_cost,
        output_cost_usd=output_cost,
        cache_discount_usd=cache_discount,
        total_cost_usd=round(input_cost + output_cost, _PRECISION),
    )


def convert_to_krw(usd: float, exchange_rate: float = DEFAULT_EXCHANGE_RATE) -> int:
    """Convert USD to whole won, truncating any fraction."""
    return math.floor(usd * exchange_rate)


def calculate_total_cost(
    records: Iterable[UsageRecord],
    include_krw: bool = False,
    exchange_rate: Optional[float] = None,
) -> CostBreakdown:
    """
    Sum per-record costs.

    Each sub-total is rounded to 6 decimals before the grand total is formed.

    Args:
        records: Records to price (records without tokens are skipped)
        include_krw: Also compute the KRW total
        exchange_rate: KRW per USD (default: 1300)

    Returns:
        CostBreakdown for all records
    """
    input_cost = 0.0
    output_cost = 0.0
    cache_discount = 0.0

    for record in records:
        cost = calculate_record_cost(record)
        if cost is None:
            continue
        input_cost += cost.input_cost_usd
        output_cost += cost.output_cost_usd
        cache_discount += cost.cache_discount_usd

    input_cost = round(input_cost, _PRECISION)
    output_cost = round(output_cost, _PRECISION)
    total = round(input_cost + output_cost, _PRECISION)

    krw = None
    if include_krw:
        krw = convert_to_krw(total, exchange_rate if exchange_rate is not None else DEFAULT_EXCHANGE_RATE)

    return CostBreakdown(
        input_cost_usd=input_cost,
        output_cost_usd=output_cost,
        cache_discount_usd=round(cache_discount, _PRECISION),
        total_cost_usd=total,
        total_cost_krw=krw,
    )


def format_cost(cost: CostBreakdown, currency: str = "USD", include_usd: bool = True) -> str:
    """
    Format a total cost for display.

    Args:
        cost: Breakdown whose total is shown
        currency: "USD" or "KRW"
        include_usd: Follow a won amount with the dollar amount

    Returns:
        "$1.23", "₩1,599 ($1.23)" or "₩1,599" when KRW is selected and available
    """
    usd = f"${cost.total_cost_usd:.2f}"
    if currency == "KRW" and cost.total_cost_krw is not None:
        krw = f"₩{cost.total_cost_krw:,}"
        return f"{krw} ({usd})" if include_usd else krw
    return usd
#endregion
