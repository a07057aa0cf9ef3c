"""Converts asset amounts into a target currency through the price service."""
from datetime import date

from savings_tracker.models import Asset, AssetType, PriceCache
from savings_tracker.providers.core.utils import normalize_symbol
from savings_tracker.services.price_service import PriceService

# Quote currency of every non-fiat provider
BASE_CURRENCY = "USD"


class CurrencyService:
    """Two-leg conversion: asset -> USD via its provider, then USD -> target.

    Every leg goes through PriceService, so the cache is filled as a side
    effect and repeated conversions for the same day are offline.
    """

    def __init__(self, price_service: PriceService) -> None:
        self._prices = price_service

    async def convert_fiat(
        self,
        cache: PriceCache,
        amount: float,
        from_currency: str,
        to_currency: str,
        on: date,
    ) -> float:
        source, target = normalize_symbol(from_currency), normalize_symbol(to_currency)
        if source == target:
            return amount
        rate = await self._prices.get_price(cache, source, target, on, AssetType.FIAT)
        return amount * rate

    async def convert_asset_to_currency(
        self,
        cache: PriceCache,
        asset: Asset,
        amount: float,
        currency: str,
        on: date,
    ) -> float:
        """Value of `amount` units of asset, in currency, on a date."""
        target = normalize_symbol(currency)
        if asset.asset_type is AssetType.FIAT:
            return await self.convert_fiat(cache, amount, asset.symbol, target, on)

        price_usd = await self._prices.get_price(
            cache, asset.symbol, BASE_CURRENCY, on, asset.asset_type
        )
        value_usd = amount * price_usd
        if target == BASE_CURRENCY:
            return value_usd
        return await self.convert_fiat(cache, value_usd, BASE_CURRENCY, target, on)
