"""Maps transport and parsing exceptions raised inside providers to tracker errors."""
import asyncio
from dataclasses import dataclass
from typing import NoReturn

import httpx

from savings_tracker.errors import ApiError, NetworkError, SavingsTrackerError

# Exceptions a provider call may raise that we translate; anything else propagates.
PROVIDER_EXCEPTIONS: tuple[type[Exception], ...] = (
    ValueError,
    KeyError,
    TypeError,
    IndexError,
    TimeoutError,
    asyncio.TimeoutError,
    httpx.HTTPError,
)


@dataclass(frozen=True)
class ProviderErrorMapper:
    """Maps provider exceptions to ApiError / NetworkError.

    Each provider owns one mapper carrying its display name, so every error
    it surfaces names the provider that produced it.
    """

    provider_name: str = "Provider"

    def to_core(self, exc: Exception, symbol: str | None = None) -> SavingsTrackerError:
        """Map a provider exception to a SavingsTrackerError.

        Args:
            exc: The exception raised while talking to the upstream API.
            symbol: Optional symbol to include in the message.

        Returns:
            An ApiError for upstream answers we could not use, a NetworkError
            (query string redacted) for transport failures.
        """
        if isinstance(exc, SavingsTrackerError):
            return exc
        subject = f" for '{symbol}'" if symbol is not None else ""
        if isinstance(exc, httpx.HTTPStatusError):
            status = exc.response.status_code
            if status == 429:
                return ApiError(self.provider_name, f"Rate limited{subject}")
            return ApiError(self.provider_name, f"HTTP {status}{subject}")
        if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError)):
            return NetworkError(f"Request to {self.provider_name} timed out{subject}")
        if isinstance(exc, httpx.HTTPError):
            return NetworkError(f"{self.provider_name}: {exc}")
        if isinstance(exc, (KeyError, TypeError, IndexError)):
            return ApiError(self.provider_name, f"Unexpected response shape{subject}: {exc!r}")
        return ApiError(self.provider_name, str(exc) or f"Invalid response{subject}")

    def raise_core(self, exc: Exception, symbol: str | None = None) -> NoReturn:
        """Map provider exception and raise it. Never returns."""
        mapped = self.to_core(exc, symbol=symbol)
        if mapped is exc:
            raise exc
        raise mapped from exc
