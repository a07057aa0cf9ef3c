"""Fiat exchange-rate providers."""
from savings_tracker.providers.fiat.frankfurter import FrankfurterProvider

__all__ = ["FrankfurterProvider"]
