"""The persisted portfolio: everything that goes into the .svtk file."""
from pydantic import BaseModel, Field

from savings_tracker.models.event import Event
from savings_tracker.models.price import PriceCache
from savings_tracker.models.settings import Settings


class Portfolio(BaseModel):
    """Events (oldest first), settings, price cache and the undo trash."""

    events: list[Event] = Field(default_factory=list)
    settings: Settings = Field(default_factory=Settings)
    price_cache: PriceCache = Field(default_factory=PriceCache)
    trash: list[Event] = Field(default_factory=list)
