"""User settings, stored inside the encrypted portfolio file."""
from pydantic import BaseModel, Field, field_validator

from savings_tracker.config import DEFAULT_CURRENCY


def normalize_currency(code: str) -> str:
    """Uppercase a currency code; raise ValueError unless it is three ASCII letters."""
    normalized = code.strip().upper()
    if len(normalized) != 3 or not (normalized.isascii() and normalized.isalpha()):
        raise ValueError(
            f"Invalid currency code '{code}': must be exactly 3 ASCII letters (e.g. USD, EUR, PLN)"
        )
    return normalized


class Settings(BaseModel):
    """Display currency plus API keys for providers that need them.

    Recognized api_keys entries: "metals_dev", "alphavantage".
    """

    default_currency: str = DEFAULT_CURRENCY
    api_keys: dict[str, str] = Field(default_factory=dict)

    @field_validator("default_currency")
    @classmethod
    def _check_currency(cls, v: str) -> str:
        return normalize_currency(v)
