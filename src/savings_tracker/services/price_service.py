"""Price lookups: cache first, then the registered providers in order.

PriceService wraps a PriceProviderRegistry. For each (symbol, currency, date)
it consults the PriceCache, falls back across every provider supporting the
asset type, validates what comes back and writes it into the cache.
"""
import logging
import math
from datetime import date, timedelta

from savings_tracker.config import RANGE_CACHE_TOLERANCE_DAYS
from savings_tracker.errors import ApiError, NoProviderError, SavingsTrackerError
from savings_tracker.models import AssetType, PriceCache, PricePoint
from savings_tracker.providers.core import PriceProviderRegistry
from savings_tracker.providers.core.utils import normalize_symbol
from savings_tracker.utils import today

logger = logging.getLogger(__name__)


def _is_valid_price(price: float) -> bool:
    return math.isfinite(price) and price >= 0


class PriceService:
    """Cached, fallback-aware price lookups over a provider registry.

    The registry is replaced, never mutated, when API keys change; a lookup
    already in flight keeps using the registry it started with.
    """

    def __init__(self, registry: PriceProviderRegistry) -> None:
        self.registry = registry

    def has_provider_for(self, asset_type: AssetType) -> bool:
        return self.registry.has_provider_for(asset_type)

    def provider_names(self, asset_type: AssetType) -> list[str]:
        return self.registry.provider_names(asset_type)

    async def get_price(
        self,
        cache: PriceCache,
        symbol: str,
        currency: str,
        on: date,
        asset_type: AssetType,
    ) -> float:
        """Price of one unit of symbol in the provider's quote currency on a date.

        Past dates are served from the cache forever once fetched; today's
        price is served from the cache only if it was refreshed today. Dates
        in the future are asked for as "current".

        Raises:
            NoProviderError: nothing is registered for asset_type.
            SavingsTrackerError: the last provider's error when all of them fail.
        """
        sym, cur = normalize_symbol(symbol), normalize_symbol(currency)
        current_day = today()

        cached = cache.get_price(sym, cur, on)
        if cached is not None and (
            on < current_day or (on == current_day and cache.is_today_fresh(sym, cur, on))
        ):
            logger.debug("Cache hit %s/%s on %s", sym, cur, on)
            return cached

        providers = self.registry.providers_for(asset_type)
        if not providers:
            raise NoProviderError(str(asset_type))

        last_error: SavingsTrackerError | None = None
        for provider in providers:
            try:
                if on >= current_day:
                    price = await provider.get_current_price(sym, cur)
                else:
                    price = await provider.get_historical_price(sym, cur, on)
                if not _is_valid_price(price):
                    raise ApiError(provider.name, f"Invalid price for {sym}: {price}")
            except SavingsTrackerError as exc:
                logger.warning(
                    "Provider %s failed for %s/%s on %s: %s", provider.name, sym, cur, on, exc
                )
                last_error = exc
                continue

            cache.set_price(sym, cur, on, price)
            if on == current_day:
                cache.mark_updated_today(sym, cur, current_day)
            return price

        raise last_error

    async def get_price_range(
        self,
        cache: PriceCache,
        symbol: str,
        currency: str,
        start: date,
        end: date,
        asset_type: AssetType,
    ) -> list[PricePoint]:
        """Daily prices for [start, end], from the cache when it covers the range.

        A cached series is trusted when it has at least two points and its
        first and last dates are within a few days of start and end (markets
        are closed on weekends and holidays). Otherwise the range is fetched
        with the same fallback order as get_price and cached.
        """
        sym, cur = normalize_symbol(symbol), normalize_symbol(currency)
        tolerance = timedelta(days=RANGE_CACHE_TOLERANCE_DAYS)

        cached = cache.get_price_range(sym, cur, start, end)
        if (
            len(cached) >= 2
            and cached[0].date <= start + tolerance
            and cached[-1].date >= end - tolerance
        ):
            logger.debug("Cache hit %s/%s for %s..%s", sym, cur, start, end)
            return cached

        providers = self.registry.providers_for(asset_type)
        if not providers:
            raise NoProviderError(str(asset_type))

        last_error: SavingsTrackerError | None = None
        for provider in providers:
            try:
                fetched = await provider.get_price_range(sym, cur, start, end)
            except SavingsTrackerError as exc:
                logger.warning(
                    "Provider %s failed for %s/%s range %s..%s: %s",
                    provider.name, sym, cur, start, end, exc,
                )
                last_error = exc
                continue

            points = [p for p in fetched if _is_valid_price(p.price)]
            if len(points) < len(fetched):
                logger.warning(
                    "Dropped %d invalid points from %s for %s/%s",
                    len(fetched) - len(points), provider.name, sym, cur,
                )
            cache.set_prices(sym, cur, points)
            return sorted(points, key=lambda p: p.date)

        raise last_error
