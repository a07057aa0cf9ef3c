"""Price providers for crypto, fiat, precious metals and stocks.

All providers implement PriceProviderABC and are wired together by
PriceProviderRegistry, which the price service iterates for fallback:

- CoinGeckoProvider: cryptocurrencies (no key)
- FrankfurterProvider: fiat exchange rates from the ECB (no key)
- MetalsDevProvider: gold, silver, platinum, palladium (key "metals_dev")
- YFinanceProvider: stocks via Yahoo Finance (no key)
- AlphaVantageProvider: stocks fallback (key "alphavantage")

Example:
    async with CoinGeckoProvider() as provider:
        price = await provider.get_current_price("BTC", "USD")
"""
from savings_tracker.providers.core import (PriceProviderABC,
                                            PriceProviderRegistry,
                                            ProviderErrorMapper)
from savings_tracker.providers.crypto import CoinGeckoProvider
from savings_tracker.providers.fiat import FrankfurterProvider
from savings_tracker.providers.metals import MetalsDevProvider
from savings_tracker.providers.stocks import (AlphaVantageProvider,
                                              YFinanceProvider)

__all__ = [
    "AlphaVantageProvider",
    "CoinGeckoProvider",
    "FrankfurterProvider",
    "MetalsDevProvider",
    "PriceProviderABC",
    "PriceProviderRegistry",
    "ProviderErrorMapper",
    "YFinanceProvider",
]
