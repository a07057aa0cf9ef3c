"""Portfolio summary: value, invested/returned totals, gains and allocation."""
from collections import defaultdict
from datetime import date

from savings_tracker.models import Asset, EventType, Portfolio
from savings_tracker.providers.core.utils import normalize_symbol
from savings_tracker.schemas import HoldingSummary, PortfolioSummary
from savings_tracker.services.currency_service import CurrencyService
from savings_tracker.services.portfolio_service import PortfolioService


def _pct(part: float, whole: float) -> float:
    return part / whole * 100 if whole > 0 else 0.0


class AnalyticsService:
    """Computes a PortfolioSummary as of a date in a given currency.

    Each event is valued at its own date's price, so total_invested is what
    the buys cost at the time, expressed in today's display currency. Any
    missing price fails the whole summary.
    """

    def __init__(
        self, portfolio_service: PortfolioService, currency_service: CurrencyService
    ) -> None:
        self._portfolio = portfolio_service
        self._currency = currency_service

    async def get_portfolio_summary(
        self, portfolio: Portfolio, on: date, currency: str
    ) -> PortfolioSummary:
        currency = normalize_symbol(currency)
        cache = portfolio.price_cache

        holdings: list[HoldingSummary] = []
        total_value = 0.0
        for asset, amount in self._portfolio.get_holdings(portfolio, on).items():
            value = await self._currency.convert_asset_to_currency(
                cache, asset, amount, currency, on
            )
            total_value += value
            holdings.append(HoldingSummary(asset=asset, amount=amount, current_value=value))

        invested: dict[Asset, float] = defaultdict(float)
        returned: dict[Asset, float] = defaultdict(float)
        units_bought: dict[Asset, float] = defaultdict(float)
        for event in portfolio.events:
            if event.date > on:
                continue
            value = await self._currency.convert_asset_to_currency(
                cache, event.asset, event.amount, currency, event.date
            )
            if event.event_type is EventType.BUY:
                invested[event.asset] += value
                units_bought[event.asset] += event.amount
            else:
                returned[event.asset] += value

        for holding in holdings:
            spent = invested.get(holding.asset, 0.0)
            bought = units_bought.get(holding.asset, 0.0)
            holding.total_invested = spent
            holding.cost_basis_per_unit = spent / bought if bought > 0 else 0.0
            holding.gain_loss = holding.current_value + returned.get(holding.asset, 0.0) - spent
            holding.return_pct = _pct(holding.gain_loss, spent)
            holding.allocation_pct = _pct(holding.current_value, total_value)
        holdings.sort(key=lambda h: h.allocation_pct, reverse=True)

        total_invested = sum(invested.values())
        total_returned = sum(returned.values())
        total_gain_loss = total_value + total_returned - total_invested
        return PortfolioSummary(
            as_of_date=on,
            currency=currency,
            total_events=len(portfolio.events),
            inception_date=min((e.date for e in portfolio.events), default=None),
            total_value=total_value,
            total_invested=total_invested,
            total_returned=total_returned,
            total_gain_loss=total_gain_loss,
            total_return_pct=_pct(total_gain_loss, total_invested),
            holdings=holdings,
        )
