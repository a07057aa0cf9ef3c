"""Local price cache, persisted inside the encrypted portfolio file.

- Historical prices (date < today) are fetched once and never re-fetched.
- Today's price is refreshed at most once per local day.
- Everything cached is available offline.
"""
from bisect import bisect_left, bisect_right
from datetime import date
from typing import Any

from pydantic import BaseModel, Field, field_serializer, field_validator

# (SYMBOL, CURRENCY), e.g. ("BTC", "USD")
PriceCacheKey = tuple[str, str]


def _key(symbol: str, currency: str) -> PriceCacheKey:
    return symbol.strip().upper(), currency.strip().upper()


def _keyed_rows(v: list[Any], value_field: str) -> dict[PriceCacheKey, Any]:
    """Rebuild a tuple-keyed dict from its list-of-records wire form."""
    parsed = {}
    for row in v:
        if not isinstance(row, dict) or not {"symbol", "currency", value_field} <= row.keys():
            raise ValueError(f"Malformed price cache row: {row!r}")
        parsed[(row["symbol"], row["currency"])] = row[value_field]
    return parsed


class PricePoint(BaseModel):
    """A single (date, price) observation."""

    date: date
    price: float


class PriceCache(BaseModel):
    """Per-(symbol, currency) date-sorted price series plus refresh markers.

    Series are strictly ascending by date, never empty, and only hold finite
    non-negative prices (the price service rejects anything else before it
    reaches the cache).
    """

    entries: dict[PriceCacheKey, list[PricePoint]] = Field(default_factory=dict)
    last_updated: dict[PriceCacheKey, date] = Field(default_factory=dict)

    # ---- wire format: tuple keys become explicit records ----

    @field_serializer("entries")
    def _serialize_entries(
        self, entries: dict[PriceCacheKey, list[PricePoint]]
    ) -> list[dict[str, Any]]:
        return [
            {
                "symbol": symbol,
                "currency": currency,
                "points": [{"date": p.date.isoformat(), "price": p.price} for p in points],
            }
            for (symbol, currency), points in entries.items()
        ]

    @field_serializer("last_updated")
    def _serialize_last_updated(
        self, last_updated: dict[PriceCacheKey, date]
    ) -> list[dict[str, str]]:
        return [
            {"symbol": symbol, "currency": currency, "date": d.isoformat()}
            for (symbol, currency), d in last_updated.items()
        ]

    @field_validator("entries", mode="before")
    @classmethod
    def _parse_entries(cls, v: Any) -> Any:
        if isinstance(v, list):
            return _keyed_rows(v, "points")
        return v

    @field_validator("last_updated", mode="before")
    @classmethod
    def _parse_last_updated(cls, v: Any) -> Any:
        if isinstance(v, list):
            return _keyed_rows(v, "date")
        return v

    # ---- lookups ----

    def get_price(self, symbol: str, currency: str, on: date) -> float | None:
        """Exact-date lookup in O(log n); None on miss."""
        points = self.entries.get(_key(symbol, currency))
        if not points:
            return None
        idx = bisect_left(points, on, key=lambda p: p.date)
        if idx < len(points) and points[idx].date == on:
            return points[idx].price
        return None

    def get_price_range(
        self, symbol: str, currency: str, start: date, end: date
    ) -> list[PricePoint]:
        """All cached points with start <= date <= end."""
        points = self.entries.get(_key(symbol, currency))
        if not points:
            return []
        lo = bisect_left(points, start, key=lambda p: p.date)
        hi = bisect_right(points, end, key=lambda p: p.date)
        return points[lo:hi]

    def is_today_fresh(self, symbol: str, currency: str, today: date) -> bool:
        return self.last_updated.get(_key(symbol, currency)) == today

    # ---- mutations ----

    def set_price(self, symbol: str, currency: str, on: date, price: float) -> None:
        """Insert at the sorted position, or overwrite the price for an existing date."""
        points = self.entries.setdefault(_key(symbol, currency), [])
        idx = bisect_left(points, on, key=lambda p: p.date)
        if idx < len(points) and points[idx].date == on:
            points[idx] = PricePoint(date=on, price=price)
        else:
            points.insert(idx, PricePoint(date=on, price=price))

    def set_prices(self, symbol: str, currency: str, points: list[PricePoint]) -> None:
        for point in points:
            self.set_price(symbol, currency, point.date, point.price)

    def mark_updated_today(self, symbol: str, currency: str, today: date) -> None:
        self.last_updated[_key(symbol, currency)] = today

    def prune_before(self, before: date) -> int:
        """Drop every point dated before `before`; return how many were removed."""
        removed = 0
        for key in list(self.entries):
            points = self.entries[key]
            split = bisect_left(points, before, key=lambda p: p.date)
            if split:
                del points[:split]
                removed += split
            if not points:
                del self.entries[key]
        # Refresh markers must point at a live series and not predate the cutoff
        self.last_updated = {
            key: updated
            for key, updated in self.last_updated.items()
            if key in self.entries and updated >= before
        }
        return removed

    def clear(self) -> None:
        self.entries.clear()
        self.last_updated.clear()

    # ---- stats ----

    def total_entries(self) -> int:
        return sum(len(points) for points in self.entries.values())

    def asset_count(self) -> int:
        return len(self.entries)
