"""Frankfurter (ECB) fiat provider."""
from savings_tracker.providers.fiat.frankfurter.frankfurter_provider import \
    FrankfurterProvider

__all__ = ["FrankfurterProvider"]
