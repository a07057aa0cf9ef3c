"""Frankfurter exchange-rate provider (European Central Bank reference rates)."""
from datetime import date

import httpx

from savings_tracker.errors import PriceNotAvailableError
from savings_tracker.models import AssetType, PricePoint
from savings_tracker.providers.core import (PROVIDER_EXCEPTIONS,
                                            PriceProviderABC,
                                            ProviderErrorMapper)
from savings_tracker.providers.core.utils import (DATE_FORMAT, build_client,
                                                  normalize_symbol,
                                                  parse_date, parse_price)
from savings_tracker.utils import day_range


class FrankfurterProvider(PriceProviderABC):
    """Fiat exchange rates via the Frankfurter API.

    Free, no API key. Covers the ~30 currencies the ECB publishes. The
    "price" of a currency symbol is the rate to convert one unit of it into
    the target currency. On non-publishing days the API answers with the
    previous business day's rate.
    """

    name = "Frankfurter"
    supported_asset_types = frozenset({AssetType.FIAT})

    BASE_URL = "https://api.frankfurter.dev/v1"

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._client = build_client(base_url=self.BASE_URL, transport=transport)
        self._errors = ProviderErrorMapper(self.name)

    async def _fetch_rate(self, path: str, base: str, target: str) -> float | None:
        try:
            response = await self._client.get(path, params={"base": base, "symbols": target})
            response.raise_for_status()
            rate = response.json().get("rates", {}).get(target)
            return parse_price(rate) if rate is not None else None
        except PROVIDER_EXCEPTIONS as exc:
            self._errors.raise_core(exc, f"{base}/{target}")

    async def get_current_price(self, symbol: str, currency: str) -> float:
        base, target = normalize_symbol(symbol), normalize_symbol(currency)
        if base == target:
            return 1.0
        rate = await self._fetch_rate("/latest", base, target)
        if rate is None:
            self._errors.raise_core(ValueError(f"No rate found for {base} -> {target}"))
        return rate

    async def get_historical_price(self, symbol: str, currency: str, on: date) -> float:
        base, target = normalize_symbol(symbol), normalize_symbol(currency)
        if base == target:
            return 1.0
        rate = await self._fetch_rate(f"/{on.strftime(DATE_FORMAT)}", base, target)
        if rate is None:
            raise PriceNotAvailableError(base, target, on)
        return rate

    async def get_price_range(
        self, symbol: str, currency: str, start: date, end: date
    ) -> list[PricePoint]:
        """Daily rates for [start, end]; a same-currency pair yields 1.0 every day."""
        base, target = normalize_symbol(symbol), normalize_symbol(currency)
        if base == target:
            return [PricePoint(date=d, price=1.0) for d in day_range(start, end)]
        path = f"/{start.strftime(DATE_FORMAT)}..{end.strftime(DATE_FORMAT)}"
        try:
            response = await self._client.get(path, params={"base": base, "symbols": target})
            response.raise_for_status()
            points = [
                PricePoint(date=parse_date(day), price=parse_price(rates[target]))
                for day, rates in response.json().get("rates", {}).items()
                if target in rates
            ]
        except PROVIDER_EXCEPTIONS as exc:
            self._errors.raise_core(exc, f"{base}/{target}")
        return sorted(points, key=lambda p: p.date)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
