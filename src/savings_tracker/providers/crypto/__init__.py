"""Cryptocurrency price providers."""
from savings_tracker.providers.crypto.coingecko import CoinGeckoProvider

__all__ = ["CoinGeckoProvider"]
