"""Alpha Vantage price provider for stocks (fallback behind Yahoo Finance)."""
from datetime import date

import httpx

from savings_tracker.errors import ApiError, PriceNotAvailableError
from savings_tracker.models import AssetType, PricePoint
from savings_tracker.providers.core import (PROVIDER_EXCEPTIONS,
                                            PriceProviderABC,
                                            ProviderErrorMapper)
from savings_tracker.providers.core.utils import (DATE_FORMAT, build_client,
                                                  normalize_symbol,
                                                  parse_date, parse_price)
from savings_tracker.providers.stocks.alphavantage.models import (
    AlphaVantageDailyBar, AlphaVantageDailyParams, AlphaVantageGlobalQuote,
    AlphaVantageQuoteParams)


class AlphaVantageProvider(PriceProviderABC):
    """Stock quotes via Alpha Vantage.

    Requires an API key (settings key "alphavantage"). The free tier is
    heavily rate limited; when the limit is hit the API answers 200 with a
    note instead of data, which surfaces here as an ApiError so the price
    service can move on. Prices are in the listing's native currency.
    """

    name = "Alpha Vantage"
    supported_asset_types = frozenset({AssetType.STOCK})

    BASE_URL = "https://www.alphavantage.co"

    def __init__(
        self, api_key: str, transport: httpx.AsyncBaseTransport | None = None
    ) -> None:
        self._api_key = api_key
        self._client = build_client(base_url=self.BASE_URL, transport=transport)
        self._errors = ProviderErrorMapper(self.name)

    async def get_current_price(self, symbol: str, currency: str) -> float:
        sym = normalize_symbol(symbol)
        try:
            params = AlphaVantageQuoteParams(symbol=sym, apikey=self._api_key).model_dump()
            response = await self._client.get("/query", params=params)
            response.raise_for_status()
            raw = response.json().get("Global Quote")
            quote = AlphaVantageGlobalQuote.model_validate(raw) if raw else None
            if quote is not None and quote.price is not None:
                return parse_price(quote.price)
        except PROVIDER_EXCEPTIONS as exc:
            self._errors.raise_core(exc, sym)
        raise ApiError(self.name, f"No quote data for {sym}. API limit may be exceeded.")

    async def get_historical_price(self, symbol: str, currency: str, on: date) -> float:
        sym = normalize_symbol(symbol)
        series = await self._fetch_daily_series(sym)
        bar = series.get(on.strftime(DATE_FORMAT))
        if bar is None:
            raise PriceNotAvailableError(sym, "USD", on)
        try:
            return parse_price(bar.close)
        except PROVIDER_EXCEPTIONS as exc:
            self._errors.raise_core(exc, sym)

    async def get_price_range(
        self, symbol: str, currency: str, start: date, end: date
    ) -> list[PricePoint]:
        sym = normalize_symbol(symbol)
        series = await self._fetch_daily_series(sym)
        try:
            points = [
                PricePoint(date=day, price=parse_price(bar.close))
                for day, bar in ((parse_date(k), v) for k, v in series.items())
                if start <= day <= end
            ]
        except PROVIDER_EXCEPTIONS as exc:
            self._errors.raise_core(exc, sym)
        return sorted(points, key=lambda p: p.date)

    async def _fetch_daily_series(self, sym: str) -> dict[str, AlphaVantageDailyBar]:
        """Fetch the compact daily series (last ~100 trading days) keyed by YYYY-MM-DD."""
        try:
            params = AlphaVantageDailyParams(symbol=sym, apikey=self._api_key).model_dump()
            response = await self._client.get("/query", params=params)
            response.raise_for_status()
            raw = response.json().get("Time Series (Daily)")
            if raw is not None:
                return {
                    day: AlphaVantageDailyBar.model_validate(row) for day, row in raw.items()
                }
        except PROVIDER_EXCEPTIONS as exc:
            self._errors.raise_core(exc, sym)
        raise ApiError(
            self.name, f"No time series data for {sym}. API limit may be exceeded."
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
