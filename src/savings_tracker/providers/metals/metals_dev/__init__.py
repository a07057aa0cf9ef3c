"""metals.dev precious metals provider."""
from savings_tracker.providers.metals.metals_dev.metals_dev_provider import (
    METAL_NAMES, MetalsDevProvider)

__all__ = ["METAL_NAMES", "MetalsDevProvider"]
