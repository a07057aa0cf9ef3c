"""Module-level tunables.

User-facing configuration (display currency, API keys) lives in the persisted
Settings model; nothing here is read from the environment.
"""

DEFAULT_CURRENCY = "USD"

# Recognized keys in Settings.api_keys
METALS_DEV_KEY = "metals_dev"
ALPHAVANTAGE_KEY = "alphavantage"

# Per-call timeout for provider HTTP requests, in seconds
HTTP_TIMEOUT = 30.0

# Holdings at or below this are treated as zero (floating-point residue)
HOLDINGS_EPSILON = 1e-15

# Events may be dated up to this many days after today (timezone slack)
FUTURE_DATE_TOLERANCE_DAYS = 1

# Charts cover at most 10 years
MAX_CHART_RANGE_DAYS = 3650

# A cached series is trusted for a range when its endpoints are within this
# many days of the requested bounds (weekends and holidays at the edges)
RANGE_CACHE_TOLERANCE_DAYS = 3
