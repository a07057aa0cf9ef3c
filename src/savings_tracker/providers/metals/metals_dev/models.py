"""Models for metals.dev provider (API params)."""
from pydantic import BaseModel


class MetalsDevLatestParams(BaseModel):
    """Params for /latest."""

    api_key: str
    currency: str = "USD"
    unit: str = "toz"


class MetalsDevTimeseriesParams(BaseModel):
    """Params for /timeseries (inclusive date range, YYYY-MM-DD)."""

    api_key: str
    currency: str = "USD"
    unit: str = "toz"
    metal: str
    start_date: str
    end_date: str
