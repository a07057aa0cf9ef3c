"""Persisted domain models. Everything here is serialized into the .svtk file."""
from savings_tracker.models.asset import Asset, AssetType
from savings_tracker.models.event import Event, EventSortOrder, EventType
from savings_tracker.models.portfolio import Portfolio
from savings_tracker.models.price import PriceCache, PriceCacheKey, PricePoint
from savings_tracker.models.settings import Settings, normalize_currency

__all__ = [
    "Asset",
    "AssetType",
    "Event",
    "EventSortOrder",
    "EventType",
    "Portfolio",
    "PriceCache",
    "PriceCacheKey",
    "PricePoint",
    "Settings",
    "normalize_currency",
]
