"""Core provider abstractions."""
from savings_tracker.providers.core.error_mapper import (PROVIDER_EXCEPTIONS,
                                                        ProviderErrorMapper)
from savings_tracker.providers.core.price_provider_abc import PriceProviderABC
from savings_tracker.providers.core.registry import PriceProviderRegistry

__all__ = [
    "PROVIDER_EXCEPTIONS",
    "PriceProviderABC",
    "PriceProviderRegistry",
    "ProviderErrorMapper",
]
