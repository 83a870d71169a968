"""
Default configuration values for clusage.

Used when no settings file exists, when the file fails validation, and when
the user resets a key from ``clusage config``.

All prices are per million tokens (MTok) in USD.
"""

#region Model Pricing Defaults
# Keyed by model family; any model name containing the family matches.
# Unknown models are priced as sonnet.

DEFAULT_MODEL_PRICING = {
    "opus": {
        "input_price": 15.0,
        "output_price": 75.0,
        "display_name": "Opus",
    },
    "sonnet": {
        "input_price": 3.0,
        "output_price": 15.0,
        "display_name": "Sonnet",
    },
    "haiku": {
        "input_price": 0.25,
        "output_price": 1.25,
        "display_name": "Haiku",
    },
}

FALLBACK_MODEL_FAMILY = "sonnet"

# Cache tokens are billed at 10% of the input rate
CACHE_DISCOUNT_RATE = 0.9

DEFAULT_EXCHANGE_RATE = 1300
#endregion


#region Preference Defaults

DEFAULT_SETTINGS = {
    "cacheTtlSeconds": 30,
    "language": "ko",
    "currency": "USD",
    "exchangeRate": DEFAULT_EXCHANGE_RATE,
    "graphStyle": "bar",
    "boxStyle": "round",
    "timezone": "auto",
}

SUPPORTED_LANGUAGES = ("ko", "en")
SUPPORTED_CURRENCIES = ("USD", "KRW")
SUPPORTED_GRAPH_STYLES = ("bar", "line")
SUPPORTED_BOX_STYLES = ("double", "single", "round")
#endregion


#region Functions


def get_default_settings() -> dict:
    """Return a fresh copy of the default settings."""
    return dict(DEFAULT_SETTINGS)
#endregion
