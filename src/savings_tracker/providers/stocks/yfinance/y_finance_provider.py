"""Yahoo Finance price provider for stocks."""
import asyncio
from datetime import date, timedelta

import yfinance as yf

from savings_tracker.errors import PriceNotAvailableError
from savings_tracker.models import AssetType, PricePoint
from savings_tracker.providers.core import (PROVIDER_EXCEPTIONS,
                                            PriceProviderABC,
                                            ProviderErrorMapper)
from savings_tracker.providers.core.utils import normalize_symbol, parse_price

# Window fetched for a single historical date, to step over weekends/holidays
HISTORY_WINDOW_DAYS = 3


class YFinanceProvider(PriceProviderABC):
    """Price provider for stocks via Yahoo Finance.

    Uses the yfinance library (blocking) from worker threads. No API key
    required. Prices are in the listing's native currency.
    """

    name = "Yahoo Finance"
    supported_asset_types = frozenset({AssetType.STOCK})

    def __init__(self) -> None:
        self._errors = ProviderErrorMapper(self.name)

    @staticmethod
    def _extract_price(ticker: yf.Ticker, symbol: str) -> float:
        """Extract the last price from ticker; raises if price unavailable."""
        info = getattr(ticker, "fast_info", None)
        if info and (price := info.get("lastPrice") or info.get("regularMarketPrice")):
            return float(price)
        full = ticker.info
        price = full.get("currentPrice") or full.get("regularMarketPrice")
        if price is None:
            raise ValueError(f"Stock '{symbol}' not found or has no price data")
        return float(price)

    def _fetch_price_sync(self, symbol: str) -> float:
        """Fetch the current price synchronously (run in thread)."""
        try:
            return self._extract_price(yf.Ticker(symbol), symbol)
        except ValueError:
            raise
        except Exception as e:
            raise ValueError(f"Failed to fetch quote for '{symbol}': {e}") from e

    def _fetch_closes_sync(self, symbol: str, start: date, end: date) -> list[PricePoint]:
        """Daily closes for [start, end) synchronously (run in thread)."""
        try:
            df = yf.Ticker(symbol).history(start=start, end=end, interval="1d")
        except Exception as e:
            raise ValueError(f"Failed to fetch history for '{symbol}': {e}") from e
        if df.empty:
            return []
        return [
            PricePoint(date=ts.date(), price=float(row["Close"]))
            for ts, row in df.iterrows()
            if not row.isna().any()
        ]

    async def get_current_price(self, symbol: str, currency: str) -> float:
        sym = normalize_symbol(symbol)
        try:
            price = await asyncio.to_thread(self._fetch_price_sync, sym)
            return parse_price(price)
        except PROVIDER_EXCEPTIONS as exc:
            self._errors.raise_core(exc, sym)

    async def get_historical_price(self, symbol: str, currency: str, on: date) -> float:
        """Close on `on`, or the nearest bar within the following few days."""
        sym = normalize_symbol(symbol)
        try:
            bars = await asyncio.to_thread(
                self._fetch_closes_sync, sym, on, on + timedelta(days=HISTORY_WINDOW_DAYS)
            )
        except PROVIDER_EXCEPTIONS as exc:
            self._errors.raise_core(exc, sym)
        if not bars:
            raise PriceNotAvailableError(sym, "USD", on)
        closest = min(bars, key=lambda p: abs((p.date - on).days))
        return closest.price

    async def get_price_range(
        self, symbol: str, currency: str, start: date, end: date
    ) -> list[PricePoint]:
        sym = normalize_symbol(symbol)
        try:
            bars = await asyncio.to_thread(
                self._fetch_closes_sync, sym, start, end + timedelta(days=1)
            )
        except PROVIDER_EXCEPTIONS as exc:
            self._errors.raise_core(exc, sym)
        return sorted((p for p in bars if start <= p.date <= end), key=lambda p: p.date)
