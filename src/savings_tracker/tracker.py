"""SavingsTracker: the single entry point a host application talks to.

Owns the in-memory Portfolio, the provider registry and the services, and
tracks whether anything changed since the last save (the dirty flag).
"""
import csv
import io
import logging
import math
from collections.abc import AsyncIterator, Callable, Iterable, Mapping
from contextlib import asynccontextmanager
from datetime import date
from pathlib import Path
from uuid import UUID

import pydantic
from pydantic import TypeAdapter

from savings_tracker.errors import (DeserializationError, SerializationError,
                                    ValidationError)
from savings_tracker.models import (Asset, AssetType, Event, EventSortOrder,
                                    EventType, Portfolio, Settings,
                                    normalize_currency)
from savings_tracker.providers.core import PriceProviderRegistry
from savings_tracker.providers.core.utils import normalize_symbol
from savings_tracker.schemas import ChartDataPoint, PortfolioSummary
from savings_tracker.services import (AnalyticsService, ChartService,
                                      CurrencyService, PortfolioService,
                                      PriceService)
from savings_tracker.storage import StorageManager
from savings_tracker.utils import today

logger = logging.getLogger(__name__)

RegistryFactory = Callable[[Mapping[str, str]], PriceProviderRegistry]

CSV_HEADER = ("id", "event_type", "symbol", "name", "asset_type", "amount", "date", "notes")

_EVENT_LIST = TypeAdapter(list[Event])

_SORT_KEYS: dict[EventSortOrder, tuple[Callable[[Event], object], bool]] = {
    EventSortOrder.DATE_DESC: (lambda e: e.date, True),
    EventSortOrder.DATE_ASC: (lambda e: e.date, False),
    EventSortOrder.AMOUNT_DESC: (lambda e: e.amount, True),
    EventSortOrder.AMOUNT_ASC: (lambda e: e.amount, False),
    EventSortOrder.ASSET_DESC: (lambda e: e.asset.symbol, True),
    EventSortOrder.ASSET_ASC: (lambda e: e.asset.symbol, False),
}


class SavingsTracker:
    """Portfolio tracker facade.

    Synchronous methods never touch the network. Async methods may call
    price providers; the prices they fetch land in the persisted cache but
    do not mark the tracker dirty.

    Example:
        tracker = SavingsTracker.create_new()
        tracker.add_event(EventType.BUY, Asset.crypto("BTC", "Bitcoin"), 0.5, date(2025, 1, 15))
        value = await tracker.get_portfolio_value()
        data = tracker.save_to_bytes("correct horse")
    """

    def __init__(
        self,
        portfolio: Portfolio | None = None,
        registry_factory: RegistryFactory | None = None,
    ) -> None:
        """Wire services around a portfolio.

        Args:
            portfolio: Existing portfolio; a new empty one when omitted.
            registry_factory: Builds the provider registry from the API keys
                in settings. Defaults to PriceProviderRegistry.with_defaults.
        """
        self._portfolio = portfolio or Portfolio()
        self._registry_factory = registry_factory or PriceProviderRegistry.with_defaults
        self._retired_registries: list[PriceProviderRegistry] = []
        self._active_lookups = 0
        self._dirty = False

        self._portfolio_service = PortfolioService()
        self._price_service = PriceService(self._build_registry())
        self._currency_service = CurrencyService(self._price_service)
        self._chart_service = ChartService(
            self._portfolio_service, self._currency_service, self._price_service
        )
        self._analytics_service = AnalyticsService(
            self._portfolio_service, self._currency_service
        )

    # ---- lifecycle / persistence ----

    @classmethod
    def create_new(cls, registry_factory: RegistryFactory | None = None) -> "SavingsTracker":
        return cls(Portfolio(), registry_factory)

    @classmethod
    def load_from_bytes(
        cls, data: bytes, password: str, registry_factory: RegistryFactory | None = None
    ) -> "SavingsTracker":
        return cls(StorageManager.load_from_bytes(data, password), registry_factory)

    @classmethod
    def load_from_file(
        cls, path: str | Path, password: str, registry_factory: RegistryFactory | None = None
    ) -> "SavingsTracker":
        return cls(StorageManager.load_from_file(path, password), registry_factory)

    def save_to_bytes(self, password: str) -> bytes:
        data = StorageManager.save_to_bytes(self._portfolio, password)
        self._dirty = False
        return data

    def save_to_file(self, path: str | Path, password: str) -> None:
        StorageManager.save_to_file(self._portfolio, path, password)
        self._dirty = False

    def change_password(
        self, last_saved_bytes: bytes, current_password: str, new_password: str
    ) -> bytes:
        """Re-encrypt under a new password.

        The current password is proven by decrypting last_saved_bytes (the
        most recent save of this portfolio); DecryptionError if it is wrong.
        """
        StorageManager.load_from_bytes(last_saved_bytes, current_password)
        data = StorageManager.save_to_bytes(self._portfolio, new_password)
        self._dirty = False
        logger.info("Portfolio re-encrypted with a new password")
        return data

    def has_unsaved_changes(self) -> bool:
        return self._dirty

    @property
    def portfolio(self) -> Portfolio:
        return self._portfolio

    async def aclose(self) -> None:
        """Close provider HTTP clients, including registries replaced by key changes."""
        await self._close_retired()
        await self._price_service.registry.aclose()

    # ---- events ----

    def add_event(
        self,
        event_type: EventType,
        asset: Asset,
        amount: float,
        on: date,
        notes: str | None = None,
    ) -> UUID:
        event = Event.new(event_type, asset, amount, on, notes)
        self._portfolio_service.add_event(self._portfolio, event)
        self._dirty = True
        return event.id

    def remove_event(self, event_id: UUID) -> None:
        self._portfolio_service.remove_event(self._portfolio, event_id)
        self._dirty = True

    def update_event(
        self,
        event_id: UUID,
        event_type: EventType,
        asset: Asset,
        amount: float,
        on: date,
    ) -> None:
        """Replace type, asset, amount and date of an event; id and notes are kept."""
        self._portfolio_service.update_event(
            self._portfolio, event_id, event_type, asset, amount, on
        )
        self._dirty = True

    def set_event_notes(self, event_id: UUID, notes: str | None) -> None:
        self._portfolio_service.set_notes(self._portfolio, event_id, notes)
        self._dirty = True

    def get_event(self, event_id: UUID) -> Event | None:
        return next((e for e in self._portfolio.events if e.id == event_id), None)

    def get_events(self) -> list[Event]:
        """All events, newest first."""
        return self._portfolio_service.get_events(self._portfolio)

    def get_events_for_asset(self, symbol: str) -> list[Event]:
        sym = normalize_symbol(symbol)
        return [e for e in reversed(self._portfolio.events) if e.asset.symbol == sym]

    def get_events_by_type(self, event_type: EventType) -> list[Event]:
        return [e for e in reversed(self._portfolio.events) if e.event_type is event_type]

    def get_events_in_range(self, start: date, end: date) -> list[Event]:
        return [e for e in reversed(self._portfolio.events) if start <= e.date <= end]

    def get_events_for_asset_type(self, asset_type: AssetType) -> list[Event]:
        return [e for e in self._portfolio.events if e.asset.asset_type is asset_type]

    def get_events_sorted(self, order: EventSortOrder) -> list[Event]:
        """Events in the requested order; equal keys keep log order."""
        key, descending = _SORT_KEYS[order]
        return sorted(self._portfolio.events, key=key, reverse=descending)

    def search_events(self, query: str) -> list[Event]:
        """Case-insensitive substring match on symbol, asset name and notes."""
        q = query.lower()
        return [
            e
            for e in self._portfolio.events
            if q in e.asset.symbol.lower()
            or q in e.asset.name.lower()
            or q in (e.notes or "").lower()
        ]

    def event_count(self) -> int:
        return len(self._portfolio.events)

    def earliest_event_date(self) -> date | None:
        return self._portfolio.events[0].date if self._portfolio.events else None

    def latest_event_date(self) -> date | None:
        return self._portfolio.events[-1].date if self._portfolio.events else None

    def portfolio_age_days(self) -> int | None:
        earliest = self.earliest_event_date()
        return (today() - earliest).days if earliest else None

    # ---- bulk, all-or-nothing ----

    def add_events(self, events: Iterable[Event]) -> list[UUID]:
        """Add every event or none of them."""
        staged = self._portfolio.model_copy(deep=True)
        ids = []
        for event in events:
            self._portfolio_service.add_event(staged, event)
            ids.append(event.id)
        self._portfolio = staged
        if ids:
            self._dirty = True
        logger.info("Added %d events", len(ids))
        return ids

    def remove_events(self, event_ids: Iterable[UUID]) -> None:
        """Remove every listed event or none of them."""
        staged = self._portfolio.model_copy(deep=True)
        count = 0
        for event_id in event_ids:
            self._portfolio_service.remove_event(staged, event_id)
            count += 1
        self._portfolio = staged
        if count:
            self._dirty = True
        logger.info("Removed %d events", count)

    # ---- trash / undo ----

    def remove_event_to_trash(self, event_id: UUID) -> Event:
        removed = self._portfolio_service.remove_event(self._portfolio, event_id)
        self._portfolio.trash.append(removed)
        self._dirty = True
        return removed

    def undo_last_removal(self) -> Event | None:
        """Re-add the most recently trashed event; None when the trash is empty.

        If the event can no longer be added (e.g. a sell that is now
        uncovered) it stays in the trash and ValidationError is raised.
        """
        if not self._portfolio.trash:
            return None
        event = self._portfolio.trash[-1]
        self._portfolio_service.add_event(self._portfolio, event)
        self._portfolio.trash.pop()
        self._dirty = True
        return event

    def get_trash(self) -> list[Event]:
        return list(self._portfolio.trash)

    def clear_trash(self) -> None:
        if self._portfolio.trash:
            self._portfolio.trash.clear()
            self._dirty = True

    # ---- holdings and valuation ----

    def get_holdings(self, on: date) -> dict[Asset, float]:
        return self._portfolio_service.get_holdings(self._portfolio, on)

    def get_current_holdings(self) -> dict[Asset, float]:
        return self.get_holdings(today())

    def get_unique_assets(self) -> list[Asset]:
        """Distinct assets referenced by any event, sorted by symbol."""
        return sorted(dict.fromkeys(e.asset for e in self._portfolio.events), key=lambda a: a.symbol)

    async def get_portfolio_value(self, on: date | None = None) -> float:
        """Total value of holdings on a date (default today) in the display currency."""
        on = on or today()
        currency = self._portfolio.settings.default_currency
        total = 0.0
        async with self._lookup():
            for asset, amount in self.get_holdings(on).items():
                total += await self._currency_service.convert_asset_to_currency(
                    self._portfolio.price_cache, asset, amount, currency, on
                )
        return total

    async def get_asset_price(self, asset: Asset, on: date | None = None) -> float:
        """Price of one unit of asset in the display currency."""
        async with self._lookup():
            return await self._currency_service.convert_asset_to_currency(
                self._portfolio.price_cache,
                asset,
                1.0,
                self._portfolio.settings.default_currency,
                on or today(),
            )

    async def refresh_prices(self) -> dict[Asset, float]:
        """Fetch today's unit price, in the display currency, for every current holding."""
        return {asset: await self.get_asset_price(asset) for asset in self.get_current_holdings()}

    async def generate_portfolio_chart(self, start: date, end: date) -> list[ChartDataPoint]:
        async with self._lookup():
            return await self._chart_service.generate_portfolio_chart(
                self._portfolio, start, end, self._portfolio.settings.default_currency
            )

    async def generate_asset_chart(
        self, symbol: str, start: date, end: date
    ) -> list[ChartDataPoint]:
        async with self._lookup():
            return await self._chart_service.generate_asset_chart(
                self._portfolio, symbol, start, end, self._portfolio.settings.default_currency
            )

    async def get_portfolio_summary(self, on: date | None = None) -> PortfolioSummary:
        async with self._lookup():
            return await self._analytics_service.get_portfolio_summary(
                self._portfolio, on or today(), self._portfolio.settings.default_currency
            )

    @asynccontextmanager
    async def _lookup(self) -> AsyncIterator[None]:
        """Track running price lookups; retired registries close once none remain."""
        self._active_lookups += 1
        try:
            yield
        finally:
            self._active_lookups -= 1
            if not self._active_lookups:
                await self._close_retired()

    async def _close_retired(self) -> None:
        retired, self._retired_registries = self._retired_registries, []
        for registry in retired:
            await registry.aclose()

    # ---- price cache ----

    def cache_total_entries(self) -> int:
        return self._portfolio.price_cache.total_entries()

    def cache_asset_count(self) -> int:
        return self._portfolio.price_cache.asset_count()

    def cache_prune_before(self, before: date) -> int:
        removed = self._portfolio.price_cache.prune_before(before)
        if removed:
            self._dirty = True
        return removed

    def cache_clear(self) -> None:
        self._portfolio.price_cache.clear()
        self._dirty = True

    def get_cached_price(self, symbol: str, currency: str, on: date) -> float | None:
        return self._portfolio.price_cache.get_price(symbol, currency, on)

    def get_cached_pairs(self) -> list[tuple[str, str]]:
        return list(self._portfolio.price_cache.entries)

    def get_last_refreshed(self, symbol: str, currency: str) -> date | None:
        key = (normalize_symbol(symbol), normalize_symbol(currency))
        return self._portfolio.price_cache.last_updated.get(key)

    def set_cached_price(self, symbol: str, currency: str, on: date, price: float) -> None:
        """Insert a price by hand (offline use, historical imports)."""
        if not (math.isfinite(price) and price >= 0):
            raise ValidationError(f"Price must be finite and non-negative, got {price}")
        self._portfolio.price_cache.set_price(symbol, currency, on, price)
        self._dirty = True

    # ---- settings and providers ----

    def get_settings(self) -> Settings:
        """A copy of the current settings; change them through the setters."""
        return self._portfolio.settings.model_copy(deep=True)

    def set_default_currency(self, currency: str) -> None:
        try:
            self._portfolio.settings.default_currency = normalize_currency(currency)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        self._dirty = True

    def set_api_key(self, provider: str, key: str) -> None:
        self._portfolio.settings.api_keys[provider] = key
        self._dirty = True
        self._rebuild_registry()

    def remove_api_key(self, provider: str) -> bool:
        """Drop a key; returns whether one was set."""
        if self._portfolio.settings.api_keys.pop(provider, None) is None:
            return False
        self._dirty = True
        self._rebuild_registry()
        return True

    def is_provider_available(self, asset_type: AssetType) -> bool:
        return self._price_service.has_provider_for(asset_type)

    def get_provider_names(self, asset_type: AssetType) -> list[str]:
        return self._price_service.provider_names(asset_type)

    def _build_registry(self) -> PriceProviderRegistry:
        return self._registry_factory(dict(self._portfolio.settings.api_keys))

    def _rebuild_registry(self) -> None:
        # Lookups already running keep the old registry; it is closed once they finish
        self._retired_registries.append(self._price_service.registry)
        self._price_service.registry = self._build_registry()
        logger.debug("Provider registry rebuilt after API key change")

    # ---- import / export ----

    def export_events_to_json(self) -> str:
        """Pretty-printed JSON array of all events, oldest first."""
        try:
            return _EVENT_LIST.dump_json(self._portfolio.events, indent=2).decode("utf-8")
        except ValueError as e:
            raise SerializationError(f"Failed to serialize events to JSON: {e}") from e

    def export_events_to_csv(self) -> str:
        """CSV with a header row; fields with commas, quotes or newlines are quoted."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for e in self._portfolio.events:
            writer.writerow(
                (
                    e.id,
                    e.event_type.value,
                    e.asset.symbol,
                    e.asset.name,
                    e.asset.asset_type.value,
                    e.amount,
                    e.date.isoformat(),
                    e.notes or "",
                )
            )
        return buffer.getvalue()

    def import_events_from_json(self, text: str | bytes) -> int:
        """Parse a JSON event list and add it all-or-nothing; returns the count."""
        try:
            events = _EVENT_LIST.validate_json(text)
        except pydantic.ValidationError as e:
            raise DeserializationError(f"Invalid event JSON: {e}") from e
        self.add_events(events)
        return len(events)

    def to_json(self) -> str:
        """Unencrypted, pretty-printed snapshot of the whole portfolio (debugging/display)."""
        try:
            return self._portfolio.model_dump_json(indent=2)
        except ValueError as e:
            raise SerializationError(f"Failed to serialize portfolio: {e}") from e
