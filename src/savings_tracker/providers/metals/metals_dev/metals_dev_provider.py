"""metals.dev price provider for precious metals."""
from datetime import date
from typing import Any

import httpx

from savings_tracker.errors import ApiError, PriceNotAvailableError
from savings_tracker.models import AssetType, PricePoint
from savings_tracker.providers.core import (PROVIDER_EXCEPTIONS,
                                            PriceProviderABC,
                                            ProviderErrorMapper)
from savings_tracker.providers.core.utils import (DATE_FORMAT, build_client,
                                                  normalize_symbol,
                                                  parse_date, parse_price)
from savings_tracker.providers.metals.metals_dev.models import (
    MetalsDevLatestParams, MetalsDevTimeseriesParams)

METAL_NAMES: dict[str, str] = {
    "XAU": "gold",
    "XAG": "silver",
    "XPT": "platinum",
    "XPD": "palladium",
}


class MetalsDevProvider(PriceProviderABC):
    """Spot prices (USD per troy ounce) for gold, silver, platinum and palladium.

    Requires an API key, stored in settings under "metals_dev".
    """

    name = "metals.dev"
    supported_asset_types = frozenset({AssetType.METAL})

    BASE_URL = "https://api.metals.dev/v1"

    def __init__(
        self, api_key: str, transport: httpx.AsyncBaseTransport | None = None
    ) -> None:
        self._api_key = api_key
        self._client = build_client(base_url=self.BASE_URL, transport=transport)
        self._errors = ProviderErrorMapper(self.name)

    def resolve_metal_name(self, symbol: str) -> str:
        sym = normalize_symbol(symbol)
        try:
            return METAL_NAMES[sym]
        except KeyError:
            raise ApiError(
                self.name, f"Unknown metal symbol: {sym}. Supported: XAU, XAG, XPT, XPD"
            ) from None

    async def get_current_price(self, symbol: str, currency: str) -> float:
        metal = self.resolve_metal_name(symbol)
        try:
            params = MetalsDevLatestParams(api_key=self._api_key).model_dump()
            response = await self._client.get("/latest", params=params)
            response.raise_for_status()
            price = response.json().get("metals", {}).get(metal)
            if price is not None:
                return parse_price(price)
        except PROVIDER_EXCEPTIONS as exc:
            self._errors.raise_core(exc, symbol)
        raise PriceNotAvailableError(normalize_symbol(symbol), "USD", "latest")

    async def get_historical_price(self, symbol: str, currency: str, on: date) -> float:
        points = await self.get_price_range(symbol, currency, on, on)
        if not points:
            raise PriceNotAvailableError(normalize_symbol(symbol), "USD", on)
        return points[0].price

    async def get_price_range(
        self, symbol: str, currency: str, start: date, end: date
    ) -> list[PricePoint]:
        metal = self.resolve_metal_name(symbol)
        try:
            params = MetalsDevTimeseriesParams(
                api_key=self._api_key,
                metal=metal,
                start_date=start.strftime(DATE_FORMAT),
                end_date=end.strftime(DATE_FORMAT),
            ).model_dump()
            response = await self._client.get("/timeseries", params=params)
            response.raise_for_status()
            points = self._parse_timeseries(response.json(), metal)
        except PROVIDER_EXCEPTIONS as exc:
            self._errors.raise_core(exc, symbol)
        return sorted(
            (p for p in points if start <= p.date <= end), key=lambda p: p.date
        )

    @staticmethod
    def _parse_timeseries(data: dict[str, Any], metal: str) -> list[PricePoint]:
        """Accept both response shapes the API has used.

        {"gold": [{"date": ..., "price": ...}]} or
        {"rates": {"YYYY-MM-DD": {"metals": {"gold": ...}}}}.
        """
        if isinstance(data.get(metal), list):
            return [
                PricePoint(date=parse_date(item["date"]), price=parse_price(item["price"]))
                for item in data[metal]
                if item.get("price") is not None
            ]
        points = []
        for day, row in (data.get("rates") or {}).items():
            price = (row.get("metals") or {}).get(metal)
            if price is not None:
                points.append(PricePoint(date=parse_date(day), price=parse_price(price)))
        return points

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
