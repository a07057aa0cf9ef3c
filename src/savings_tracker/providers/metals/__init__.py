"""Precious metals price providers."""
from savings_tracker.providers.metals.metals_dev import MetalsDevProvider

__all__ = ["MetalsDevProvider"]
