"""Models for CoinGecko provider (API params)."""
from pydantic import BaseModel, Field


class CoinGeckoSimplePriceParams(BaseModel):
    """Params for /simple/price. Merge with 'ids' at call site."""

    vs_currencies: str = "usd"


class CoinGeckoCoinHistoryParams(BaseModel):
    """Params for /coins/{id}/history (single-day snapshot)."""

    date: str  # dd-mm-yyyy
    localization: str = "false"


class CoinGeckoHistoryParams(BaseModel):
    """Params for /coins/{id}/market_chart/range."""

    vs_currency: str = "usd"
    from_ts: int = Field(serialization_alias="from")
    to_ts: int = Field(serialization_alias="to")

    model_config = {"populate_by_name": True}


class CoinGeckoSearchParams(BaseModel):
    """Params for /search (symbol -> coin id resolution)."""

    query: str
