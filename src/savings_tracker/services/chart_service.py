"""Day-by-day portfolio value series for charting."""
import logging
from collections import defaultdict
from datetime import date

from savings_tracker.config import HOLDINGS_EPSILON, MAX_CHART_RANGE_DAYS
from savings_tracker.errors import SavingsTrackerError, ValidationError
from savings_tracker.models import Asset, AssetType, Event, EventType, Portfolio
from savings_tracker.providers.core.utils import normalize_symbol
from savings_tracker.schemas import ChartDataPoint, ChartEvent
from savings_tracker.services.currency_service import (BASE_CURRENCY,
                                                       CurrencyService)
from savings_tracker.services.portfolio_service import PortfolioService
from savings_tracker.services.price_service import PriceService
from savings_tracker.utils import day_range, today

logger = logging.getLogger(__name__)


def _check_range(start: date, end: date) -> None:
    if start > end:
        raise ValidationError(f"Chart start {start} is after end {end}")
    if (end - start).days > MAX_CHART_RANGE_DAYS:
        raise ValidationError(
            f"Chart range of {(end - start).days} days exceeds {MAX_CHART_RANGE_DAYS} days"
        )


def _events_by_date(events: list[Event], start: date, end: date) -> dict[date, list[Event]]:
    buckets: dict[date, list[Event]] = defaultdict(list)
    for event in events:
        if start <= event.date <= end:
            buckets[event.date].append(event)
    return buckets


class ChartService:
    """Builds one ChartDataPoint per calendar day in the display currency.

    Days without any usable price (weekends, holidays, provider outages)
    repeat the last known value instead of dropping to zero.
    """

    def __init__(
        self,
        portfolio_service: PortfolioService,
        currency_service: CurrencyService,
        price_service: PriceService,
    ) -> None:
        self._portfolio = portfolio_service
        self._currency = currency_service
        self._prices = price_service

    async def generate_portfolio_chart(
        self, portfolio: Portfolio, start: date, end: date, currency: str
    ) -> list[ChartDataPoint]:
        """Total portfolio value for every day in [start, end].

        Raises:
            ValidationError: start > end or the range exceeds ten years.
        """
        _check_range(start, end)
        currency = normalize_symbol(currency)
        holdings = self._portfolio.get_holdings(portfolio, start)
        by_date = _events_by_date(portfolio.events, start, end)

        assets = set(holdings) | {e.asset for events in by_date.values() for e in events}
        await self._warm_cache(portfolio, assets, start, end, currency)

        points: list[ChartDataPoint] = []
        last_known = 0.0
        for day in day_range(start, end):
            # Events dated `start` are already in the opening snapshot
            if day > start and day in by_date:
                for event in by_date[day]:
                    delta = event.amount if event.event_type is EventType.BUY else -event.amount
                    holdings[event.asset] = holdings.get(event.asset, 0.0) + delta
                holdings = {a: amt for a, amt in holdings.items() if amt > HOLDINGS_EPSILON}

            value = 0.0
            priced = False
            for asset, amount in holdings.items():
                converted = await self._try_convert(portfolio, asset, amount, currency, day)
                if converted is not None:
                    value += converted
                    priced = True
            if holdings and not priced:
                value = last_known
            else:
                last_known = value

            points.append(
                ChartDataPoint(
                    date=day,
                    portfolio_value=value,
                    events=await self._annotate(portfolio, by_date.get(day, []), currency, day),
                )
            )
        return points

    async def generate_asset_chart(
        self, portfolio: Portfolio, symbol: str, start: date, end: date, currency: str
    ) -> list[ChartDataPoint]:
        """Value of a single asset's holding for every day in [start, end].

        Raises:
            ValidationError: bad range, or no event references the symbol.
        """
        _check_range(start, end)
        currency = normalize_symbol(currency)
        sym = normalize_symbol(symbol)
        asset = next((e.asset for e in portfolio.events if e.asset.symbol == sym), None)
        if asset is None:
            raise ValidationError(f"Asset {sym} not found in portfolio events")

        held = self._portfolio.get_holdings(portfolio, start).get(asset, 0.0)
        by_date = _events_by_date(
            [e for e in portfolio.events if e.asset.symbol == sym], start, end
        )
        await self._warm_cache(portfolio, {asset}, start, end, currency)

        points: list[ChartDataPoint] = []
        last_known = 0.0
        for day in day_range(start, end):
            if day > start and day in by_date:
                for event in by_date[day]:
                    held += event.amount if event.event_type is EventType.BUY else -event.amount
                if held <= HOLDINGS_EPSILON:
                    held = 0.0

            if held > 0:
                converted = await self._try_convert(portfolio, asset, held, currency, day)
                value = last_known if converted is None else converted
            else:
                value = 0.0
            last_known = value

            points.append(
                ChartDataPoint(
                    date=day,
                    portfolio_value=value,
                    events=await self._annotate(portfolio, by_date.get(day, []), currency, day),
                )
            )
        return points

    async def _try_convert(
        self, portfolio: Portfolio, asset: Asset, amount: float, currency: str, day: date
    ) -> float | None:
        try:
            return await self._currency.convert_asset_to_currency(
                portfolio.price_cache, asset, amount, currency, day
            )
        except SavingsTrackerError as exc:
            logger.debug("No %s value for %s on %s: %s", currency, asset.symbol, day, exc)
            return None

    async def _annotate(
        self, portfolio: Portfolio, events: list[Event], currency: str, day: date
    ) -> list[ChartEvent]:
        annotations = []
        for event in events:
            value = await self._try_convert(portfolio, event.asset, event.amount, currency, day)
            annotations.append(
                ChartEvent(
                    event_type=event.event_type,
                    asset_symbol=event.asset.symbol,
                    amount=event.amount,
                    value_in_default_currency=value or 0.0,
                )
            )
        return annotations

    async def _warm_cache(
        self, portfolio: Portfolio, assets: set[Asset], start: date, end: date, currency: str
    ) -> None:
        """One range fetch per price series the walk will need; best effort.

        Turns the per-day lookups of a long chart into cache hits. Failures
        are logged and the walk falls back to per-day lookups.
        """
        end = min(end, today())
        if start > end:
            return
        pairs: set[tuple[str, str, AssetType]] = set()
        for asset in assets:
            if asset.asset_type is AssetType.FIAT:
                if asset.symbol != currency:
                    pairs.add((asset.symbol, currency, AssetType.FIAT))
                continue
            pairs.add((asset.symbol, BASE_CURRENCY, asset.asset_type))
            if currency != BASE_CURRENCY:
                pairs.add((BASE_CURRENCY, currency, AssetType.FIAT))

        for symbol, quote, asset_type in sorted(pairs):
            try:
                await self._prices.get_price_range(
                    portfolio.price_cache, symbol, quote, start, end, asset_type
                )
            except SavingsTrackerError as exc:
                logger.warning(
                    "Could not prefetch %s/%s for %s..%s: %s", symbol, quote, start, end, exc
                )
