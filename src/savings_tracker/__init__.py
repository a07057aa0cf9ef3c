"""Encrypted personal savings and portfolio tracker.

Track buys and sells of crypto, fiat, precious metals and stocks; value them
in any display currency with cached prices from public providers; keep the
whole portfolio in a single password-encrypted .svtk file.
"""
from savings_tracker.errors import (ApiError, DecryptionError,
                                    DeserializationError, EncryptionError,
                                    EventNotFoundError, FileIOError,
                                    InvalidFileFormatError, NetworkError,
                                    NoProviderError, PriceNotAvailableError,
                                    SavingsTrackerError, SerializationError,
                                    UnsupportedVersionError, ValidationError)
from savings_tracker.models import (Asset, AssetType, Event, EventSortOrder,
                                    EventType, Portfolio, PriceCache,
                                    PricePoint, Settings)
from savings_tracker.schemas import (ChartDataPoint, ChartEvent,
                                     HoldingSummary, PortfolioSummary)
from savings_tracker.tracker import SavingsTracker

__all__ = [
    "ApiError",
    "Asset",
    "AssetType",
    "ChartDataPoint",
    "ChartEvent",
    "DecryptionError",
    "DeserializationError",
    "EncryptionError",
    "Event",
    "EventNotFoundError",
    "EventSortOrder",
    "EventType",
    "FileIOError",
    "HoldingSummary",
    "InvalidFileFormatError",
    "NetworkError",
    "NoProviderError",
    "Portfolio",
    "PortfolioSummary",
    "PriceCache",
    "PriceNotAvailableError",
    "PricePoint",
    "SavingsTracker",
    "SavingsTrackerError",
    "SerializationError",
    "Settings",
    "UnsupportedVersionError",
    "ValidationError",
]
