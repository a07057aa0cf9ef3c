"""Models for Alpha Vantage provider (API params and response rows)."""
from pydantic import BaseModel, Field


class AlphaVantageQuoteParams(BaseModel):
    """Params for function=GLOBAL_QUOTE."""

    function: str = "GLOBAL_QUOTE"
    symbol: str
    apikey: str


class AlphaVantageDailyParams(BaseModel):
    """Params for function=TIME_SERIES_DAILY (compact: last 100 trading days)."""

    function: str = "TIME_SERIES_DAILY"
    symbol: str
    outputsize: str = "compact"
    apikey: str


class AlphaVantageGlobalQuote(BaseModel):
    """The "Global Quote" object; only the price is used."""

    price: str | None = Field(default=None, alias="05. price")


class AlphaVantageDailyBar(BaseModel):
    """One "Time Series (Daily)" row; only the close is used."""

    close: str = Field(alias="4. close")
