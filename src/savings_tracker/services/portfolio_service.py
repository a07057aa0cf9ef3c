"""Event log maintenance: validated inserts, removals, updates and holdings replay."""
import logging
import math
from bisect import bisect_right
from datetime import date, timedelta
from uuid import UUID

from savings_tracker.config import FUTURE_DATE_TOLERANCE_DAYS, HOLDINGS_EPSILON
from savings_tracker.errors import EventNotFoundError, ValidationError
from savings_tracker.models import Asset, Event, EventType, Portfolio
from savings_tracker.utils import today

logger = logging.getLogger(__name__)


def insert_sorted(events: list[Event], event: Event) -> int:
    """Insert keeping ascending date order; equal dates keep insertion order."""
    idx = bisect_right(events, event.date, key=lambda e: e.date)
    events.insert(idx, event)
    return idx


class PortfolioService:
    """Stateless operations over a Portfolio's event log.

    Every mutation either succeeds or leaves portfolio.events exactly as it
    was (same events, same order) and raises.
    """

    def add_event(self, portfolio: Portfolio, event: Event) -> None:
        """Validate and insert an event at its date position.

        Raises:
            ValidationError: non-positive amount, date too far in the future,
                or a Sell larger than the holdings on its date (or one that
                would leave a later Sell uncovered).
        """
        self.validate_event(portfolio, event)
        idx = insert_sorted(portfolio.events, event)
        if event.event_type is EventType.SELL:
            try:
                self.check_consistency(portfolio)
            except ValidationError:
                del portfolio.events[idx]
                raise
        logger.debug(
            "Added %s %s %s on %s", event.event_type, event.amount, event.asset.symbol, event.date
        )

    def remove_event(self, portfolio: Portfolio, event_id: UUID) -> Event:
        """Remove an event by id and return it.

        Removing a Buy re-checks the whole log; if a later Sell would no longer
        be covered the Buy is put back and ValidationError is raised.
        """
        idx = self._index_of(portfolio, event_id)
        removed = portfolio.events.pop(idx)
        if removed.event_type is EventType.BUY:
            try:
                self.check_consistency(portfolio)
            except ValidationError:
                portfolio.events.insert(idx, removed)
                raise
        return removed

    def update_event(
        self,
        portfolio: Portfolio,
        event_id: UUID,
        event_type: EventType,
        asset: Asset,
        amount: float,
        on: date,
    ) -> Event:
        """Replace an event's fields, keeping its id and notes."""
        idx = self._index_of(portfolio, event_id)
        old = portfolio.events.pop(idx)
        updated = old.model_copy(
            update={"event_type": event_type, "asset": asset, "amount": amount, "date": on}
        )
        try:
            self.validate_event(portfolio, updated)
        except ValidationError:
            portfolio.events.insert(idx, old)
            raise

        new_idx = insert_sorted(portfolio.events, updated)
        try:
            self.check_consistency(portfolio)
        except ValidationError:
            del portfolio.events[new_idx]
            portfolio.events.insert(idx, old)
            raise
        return updated

    def set_notes(self, portfolio: Portfolio, event_id: UUID, notes: str | None) -> Event:
        idx = self._index_of(portfolio, event_id)
        portfolio.events[idx] = portfolio.events[idx].model_copy(update={"notes": notes})
        return portfolio.events[idx]

    def get_event(self, portfolio: Portfolio, event_id: UUID) -> Event:
        return portfolio.events[self._index_of(portfolio, event_id)]

    def get_events(self, portfolio: Portfolio) -> list[Event]:
        """All events, newest first (same-day events keep log order)."""
        return sorted(portfolio.events, key=lambda e: e.date, reverse=True)

    def get_holdings(self, portfolio: Portfolio, on: date) -> dict[Asset, float]:
        """Net amount per asset after replaying every event dated on or before `on`.

        Assets whose net amount is at or below HOLDINGS_EPSILON are dropped.
        """
        holdings: dict[Asset, float] = {}
        for event in portfolio.events:
            if event.date > on:
                continue
            delta = event.amount if event.event_type is EventType.BUY else -event.amount
            holdings[event.asset] = holdings.get(event.asset, 0.0) + delta
        return {asset: amount for asset, amount in holdings.items() if amount > HOLDINGS_EPSILON}

    def validate_event(self, portfolio: Portfolio, event: Event) -> None:
        if not (math.isfinite(event.amount) and event.amount > 0):
            raise ValidationError("Event amount must be positive")
        if any(e.id == event.id for e in portfolio.events):
            raise ValidationError(f"Duplicate event id {event.id}")
        latest_allowed = today() + timedelta(days=FUTURE_DATE_TOLERANCE_DAYS)
        if event.date > latest_allowed:
            raise ValidationError(
                f"Event date {event.date} is in the future; prices won't be available"
            )
        if event.event_type is EventType.SELL:
            held = self.get_holdings(portfolio, event.date).get(event.asset, 0.0)
            if held < event.amount:
                raise ValidationError(
                    f"Cannot sell {event.amount} {event.asset.symbol}: "
                    f"only {held} held on {event.date}"
                )

    def check_consistency(self, portfolio: Portfolio) -> None:
        """Replay the whole log; fail on the first Sell not covered by prior holdings."""
        holdings: dict[Asset, float] = {}
        for event in portfolio.events:
            held = holdings.get(event.asset, 0.0)
            if event.event_type is EventType.BUY:
                holdings[event.asset] = held + event.amount
                continue
            if held < event.amount:
                raise ValidationError(
                    f"Removing/updating this event would make the sell of {event.amount} "
                    f"{event.asset.symbol} on {event.date} invalid (only {held:.8f} would be held)"
                )
            holdings[event.asset] = held - event.amount

    @staticmethod
    def _index_of(portfolio: Portfolio, event_id: UUID) -> int:
        for idx, event in enumerate(portfolio.events):
            if event.id == event_id:
                return idx
        raise EventNotFoundError(event_id)
