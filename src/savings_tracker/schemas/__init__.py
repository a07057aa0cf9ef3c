"""Pydantic schemas for computed results (charts, analytics). Not persisted."""
from datetime import date

from pydantic import BaseModel, Field

from savings_tracker.models import Asset, EventType


class ChartEvent(BaseModel):
    """Annotation for a buy/sell that happened on a chart day."""

    event_type: EventType
    asset_symbol: str
    amount: float
    value_in_default_currency: float


class ChartDataPoint(BaseModel):
    """Portfolio value for one day, in the display currency."""

    date: date
    portfolio_value: float
    events: list[ChartEvent] = Field(default_factory=list)


class HoldingSummary(BaseModel):
    """Per-asset breakdown inside a PortfolioSummary."""

    asset: Asset
    amount: float
    current_value: float
    total_invested: float = 0.0
    cost_basis_per_unit: float = 0.0  # total_invested / units bought
    gain_loss: float = 0.0  # current_value + returned - invested
    return_pct: float = 0.0
    allocation_pct: float = 0.0


class PortfolioSummary(BaseModel):
    """Portfolio-wide totals at a point in time."""

    as_of_date: date
    currency: str
    total_events: int
    inception_date: date | None = None
    total_value: float
    total_invested: float
    total_returned: float
    total_gain_loss: float  # total_value + total_returned - total_invested
    total_return_pct: float
    holdings: list[HoldingSummary] = Field(default_factory=list)


__all__ = ["ChartDataPoint", "ChartEvent", "HoldingSummary", "PortfolioSummary"]
