"""Abstract base class for price providers."""
from abc import ABC, abstractmethod
from datetime import date

from savings_tracker.models import AssetType, PricePoint


class PriceProviderABC(ABC):
    """Base interface for all price providers.

    Each price source (CoinGecko, Frankfurter, metals.dev, Yahoo Finance,
    Alpha Vantage) implements this interface so the price service can iterate
    over them uniformly and fall back from one to the next.

    Non-fiat providers return prices in their native currency (USD); the
    currency service performs the second conversion leg when needed.
    """

    name: str = "provider"
    supported_asset_types: frozenset[AssetType] = frozenset()

    def supports(self, asset_type: AssetType) -> bool:
        return asset_type in self.supported_asset_types

    @abstractmethod
    async def get_current_price(self, symbol: str, currency: str) -> float:
        """Fetch the latest price for a symbol.

        Args:
            symbol: The asset symbol (e.g., "BTC", "EUR", "XAU", "AAPL").
            currency: Target currency requested by the caller.

        Returns:
            The price in the provider's native currency.
        """

    @abstractmethod
    async def get_historical_price(self, symbol: str, currency: str, on: date) -> float:
        """Fetch the price on a specific past date."""

    @abstractmethod
    async def get_price_range(
        self, symbol: str, currency: str, start: date, end: date
    ) -> list[PricePoint]:
        """Fetch daily prices within a date range (inclusive).

        Returns:
            A list of PricePoints ordered by date. Days without data
            (weekends, holidays) are simply absent.
        """

    async def close(self) -> None:
        """Clean up resources (connections, clients).

        Override in subclasses if cleanup is needed.
        """

    async def __aenter__(self) -> "PriceProviderABC":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        """Async context manager exit - calls close()."""
        await self.close()
