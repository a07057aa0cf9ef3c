"""CoinGecko price provider for cryptocurrencies."""
import logging
from datetime import date, datetime, time, timedelta, timezone

import httpx

from savings_tracker.errors import PriceNotAvailableError
from savings_tracker.models import AssetType, PricePoint
from savings_tracker.providers.core import (PROVIDER_EXCEPTIONS,
                                            PriceProviderABC,
                                            ProviderErrorMapper)
from savings_tracker.providers.core.utils import (build_client,
                                                  normalize_crypto_id,
                                                  normalize_symbol,
                                                  parse_price)
from savings_tracker.providers.crypto.coingecko.models import (
    CoinGeckoCoinHistoryParams, CoinGeckoHistoryParams, CoinGeckoSearchParams,
    CoinGeckoSimplePriceParams)
from savings_tracker.utils import parse_timestamp_ms

logger = logging.getLogger(__name__)

# Ticker symbol -> CoinGecko coin id for the common coins; anything else is
# resolved through /search once per provider instance.
SYMBOL_TO_ID: dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "SOL": "solana",
    "ADA": "cardano",
    "XRP": "ripple",
    "DOT": "polkadot",
    "DOGE": "dogecoin",
    "LTC": "litecoin",
    "BNB": "binancecoin",
    "AVAX": "avalanche-2",
    "LINK": "chainlink",
    "MATIC": "matic-network",
    "TRX": "tron",
    "XMR": "monero",
    "USDT": "tether",
    "USDC": "usd-coin",
}


def _utc_timestamp(day: date) -> int:
    return int(datetime.combine(day, time.min, tzinfo=timezone.utc).timestamp())


class CoinGeckoProvider(PriceProviderABC):
    """Price provider for cryptocurrencies via the public CoinGecko API.

    Takes ticker symbols ("BTC", "ETH") and maps them to CoinGecko coin ids.
    No API key required. Prices are always returned in USD.
    """

    name = "CoinGecko"
    supported_asset_types = frozenset({AssetType.CRYPTO})

    BASE_URL = "https://api.coingecko.com/api/v3"

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Initialize the CoinGecko provider.

        Args:
            transport: Optional httpx transport (tests inject a MockTransport).
        """
        self._client = build_client(
            base_url=self.BASE_URL,
            headers={"Accept": "application/json"},
            transport=transport,
        )
        self._errors = ProviderErrorMapper(self.name)
        self._resolved: dict[str, str] = {}

    async def resolve_coin_id(self, symbol: str) -> str:
        """Map a ticker symbol to a CoinGecko coin id.

        Known symbols come from SYMBOL_TO_ID; others are looked up via /search
        and remembered for the lifetime of this provider.
        """
        sym = normalize_symbol(symbol)
        if sym in SYMBOL_TO_ID:
            return SYMBOL_TO_ID[sym]
        if sym in self._resolved:
            return self._resolved[sym]
        try:
            params = CoinGeckoSearchParams(query=sym).model_dump()
            response = await self._client.get("/search", params=params)
            response.raise_for_status()
            coins = response.json().get("coins", [])
            coin_id = next(
                (c["id"] for c in coins if str(c.get("symbol", "")).upper() == sym),
                None,
            )
        except PROVIDER_EXCEPTIONS as exc:
            self._errors.raise_core(exc, sym)
        if coin_id is None:
            raise ValueError(f"Unknown crypto symbol: {sym}")
        coin_id = normalize_crypto_id(coin_id)
        logger.debug("Resolved %s to CoinGecko id %s", sym, coin_id)
        self._resolved[sym] = coin_id
        return coin_id

    async def get_current_price(self, symbol: str, currency: str) -> float:
        try:
            coin_id = await self.resolve_coin_id(symbol)
            params = CoinGeckoSimplePriceParams().model_dump() | {"ids": coin_id}
            response = await self._client.get("/simple/price", params=params)
            response.raise_for_status()
            row = response.json().get(coin_id)
            if not row or row.get("usd") is None:
                raise ValueError(f"Coin '{coin_id}' not found")
            return parse_price(row["usd"])
        except PROVIDER_EXCEPTIONS as exc:
            self._errors.raise_core(exc, symbol)

    async def get_historical_price(self, symbol: str, currency: str, on: date) -> float:
        try:
            coin_id = await self.resolve_coin_id(symbol)
            params = CoinGeckoCoinHistoryParams(date=on.strftime("%d-%m-%Y")).model_dump()
            response = await self._client.get(f"/coins/{coin_id}/history", params=params)
            response.raise_for_status()
            usd = (
                response.json()
                .get("market_data", {})
                .get("current_price", {})
                .get("usd")
            )
        except PROVIDER_EXCEPTIONS as exc:
            self._errors.raise_core(exc, symbol)
        if usd is None:
            raise PriceNotAvailableError(normalize_symbol(symbol), "USD", on)
        try:
            return parse_price(usd)
        except PROVIDER_EXCEPTIONS as exc:
            self._errors.raise_core(exc, symbol)

    async def get_price_range(
        self, symbol: str, currency: str, start: date, end: date
    ) -> list[PricePoint]:
        """Fetch daily USD prices; the last sample of each UTC day wins."""
        try:
            coin_id = await self.resolve_coin_id(symbol)
            params = CoinGeckoHistoryParams(
                from_ts=_utc_timestamp(start),
                to_ts=_utc_timestamp(end + timedelta(days=1)),
            ).model_dump(by_alias=True)
            response = await self._client.get(
                f"/coins/{coin_id}/market_chart/range",
                params=params,
            )
            response.raise_for_status()
            by_day: dict[date, float] = {}
            for ts_ms, price in (p[:2] for p in response.json().get("prices", [])):
                day = parse_timestamp_ms(ts_ms)
                if start <= day <= end and price is not None:
                    by_day[day] = parse_price(price)
        except PROVIDER_EXCEPTIONS as exc:
            self._errors.raise_core(exc, symbol)
        return [PricePoint(date=d, price=p) for d, p in sorted(by_day.items())]

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
