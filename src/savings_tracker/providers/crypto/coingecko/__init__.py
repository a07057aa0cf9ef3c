"""CoinGecko crypto provider."""
from savings_tracker.providers.crypto.coingecko.coin_gecko_provider import (
    SYMBOL_TO_ID, CoinGeckoProvider)

__all__ = ["CoinGeckoProvider", "SYMBOL_TO_ID"]
