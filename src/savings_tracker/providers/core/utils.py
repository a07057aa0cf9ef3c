"""Shared utilities for price providers."""
import math
from datetime import date

import httpx

from savings_tracker.config import HTTP_TIMEOUT

DATE_FORMAT = "%Y-%m-%d"


def normalize_symbol(symbol: str) -> str:
    """Normalize a ticker/currency symbol (uppercase)."""
    return symbol.strip().upper()


def normalize_crypto_id(symbol: str) -> str:
    """Normalize a CoinGecko coin ID (lowercase)."""
    return symbol.strip().lower()


def parse_date(value: str) -> date:
    """Parse an ISO YYYY-MM-DD string, ignoring any time suffix."""
    return date.fromisoformat(value[:10])


def parse_price(value: object) -> float:
    """Coerce an API price (number or numeric string) to a finite float."""
    price = float(value)  # type: ignore[arg-type]
    if not math.isfinite(price):
        raise ValueError(f"Non-finite price: {value!r}")
    return price


def build_client(**kwargs) -> httpx.AsyncClient:
    """Create an AsyncClient with the per-call timeout every provider uses."""
    kwargs.setdefault("timeout", HTTP_TIMEOUT)
    return httpx.AsyncClient(**kwargs)
