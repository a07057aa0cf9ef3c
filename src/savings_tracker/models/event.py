"""Buy/sell events: the log the whole portfolio is replayed from."""
from datetime import date
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from savings_tracker.models.asset import Asset


class EventType(str, Enum):
    BUY = "Buy"
    SELL = "Sell"

    def __str__(self) -> str:
        return self.value


class EventSortOrder(str, Enum):
    """Orderings offered for event listings."""

    DATE_DESC = "DateDesc"
    DATE_ASC = "DateAsc"
    AMOUNT_DESC = "AmountDesc"
    AMOUNT_ASC = "AmountAsc"
    ASSET_ASC = "AssetAsc"
    ASSET_DESC = "AssetDesc"


class Event(BaseModel):
    """A single buy/sell event.

    Events carry no price: the value of an event is looked up for its date
    and cached, so the log stays valid whatever the display currency.
    """

    id: UUID = Field(default_factory=uuid4)
    event_type: EventType
    asset: Asset
    amount: float  # always positive
    date: date
    notes: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def new(
        cls,
        event_type: EventType,
        asset: Asset,
        amount: float,
        on: date,
        notes: str | None = None,
    ) -> "Event":
        """Create an event with a fresh id."""
        return cls(event_type=event_type, asset=asset, amount=amount, date=on, notes=notes)
