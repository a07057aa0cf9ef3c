"""Ordered registry of price providers, keyed by asset type."""
import logging
from collections.abc import Mapping

from savings_tracker.config import ALPHAVANTAGE_KEY, METALS_DEV_KEY
from savings_tracker.models import AssetType
from savings_tracker.providers.core.price_provider_abc import PriceProviderABC

logger = logging.getLogger(__name__)


class PriceProviderRegistry:
    """Routes price requests to providers by asset type.

    Registration order is priority order: the price service tries
    providers_for(asset_type) front to back until one succeeds.
    """

    def __init__(self, providers: list[PriceProviderABC] | None = None) -> None:
        self._providers: list[PriceProviderABC] = list(providers or [])

    @classmethod
    def with_defaults(cls, api_keys: Mapping[str, str]) -> "PriceProviderRegistry":
        """Create a registry with the default providers wired from api_keys.

        Crypto -> CoinGecko; Fiat -> Frankfurter; Metal -> metals.dev (keyed);
        Stock -> Yahoo Finance, then Alpha Vantage (keyed) as fallback.
        """
        # Imported here: concrete providers depend on the core package
        from savings_tracker.providers.crypto import CoinGeckoProvider
        from savings_tracker.providers.fiat import FrankfurterProvider
        from savings_tracker.providers.metals import MetalsDevProvider
        from savings_tracker.providers.stocks import (AlphaVantageProvider,
                                                      YFinanceProvider)

        registry = cls()
        registry.register(CoinGeckoProvider())
        registry.register(FrankfurterProvider())
        if metals_key := api_keys.get(METALS_DEV_KEY):
            registry.register(MetalsDevProvider(api_key=metals_key))
        registry.register(YFinanceProvider())
        if av_key := api_keys.get(ALPHAVANTAGE_KEY):
            registry.register(AlphaVantageProvider(api_key=av_key))
        logger.debug("Built provider registry: %s", [p.name for p in registry])
        return registry

    def register(self, provider: PriceProviderABC) -> None:
        self._providers.append(provider)

    def providers_for(self, asset_type: AssetType) -> list[PriceProviderABC]:
        """All providers supporting asset_type, in registration order."""
        return [p for p in self._providers if p.supports(asset_type)]

    def provider_for(self, asset_type: AssetType) -> PriceProviderABC | None:
        return next((p for p in self._providers if p.supports(asset_type)), None)

    def has_provider_for(self, asset_type: AssetType) -> bool:
        return self.provider_for(asset_type) is not None

    def provider_names(self, asset_type: AssetType) -> list[str]:
        return [p.name for p in self.providers_for(asset_type)]

    async def aclose(self) -> None:
        """Close every provider, logging (not raising) individual failures."""
        for provider in self._providers:
            try:
                await provider.close()
            except Exception as exc:  # pylint: disable=broad-except
                logger.warning("Error closing provider %s: %s", provider.name, exc)

    def __iter__(self):
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)
