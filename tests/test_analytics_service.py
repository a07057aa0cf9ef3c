"""Tests for AnalyticsService portfolio summaries."""
from datetime import date

import pytest
from fakes import FakeProvider, make_registry

from savings_tracker.errors import PriceNotAvailableError
from savings_tracker.models import Asset, AssetType, Event, EventType, Portfolio
from savings_tracker.services import (AnalyticsService, CurrencyService,
                                      PortfolioService, PriceService)

BTC = Asset.crypto("BTC", "Bitcoin")
EUR = Asset.fiat("EUR", "Euro")
BUY_DAY = date(2025, 1, 15)
AS_OF = date(2025, 1, 16)


def _analytics(*providers: FakeProvider) -> AnalyticsService:
    return AnalyticsService(
        PortfolioService(), CurrencyService(PriceService(make_registry(*providers)))
    )


def _portfolio(*events: Event) -> Portfolio:
    portfolio = Portfolio()
    service = PortfolioService()
    for event in events:
        service.add_event(portfolio, event)
    return portfolio


@pytest.mark.asyncio
async def test_single_buy_summary():
    provider = FakeProvider(
        historical={("BTC", "USD", BUY_DAY): 42_000.0, ("BTC", "USD", AS_OF): 43_500.0}
    )
    portfolio = _portfolio(Event.new(EventType.BUY, BTC, 1.0, BUY_DAY))

    summary = await _analytics(provider).get_portfolio_summary(portfolio, AS_OF, "usd")

    assert summary.currency == "USD"
    assert summary.as_of_date == AS_OF
    assert summary.inception_date == BUY_DAY
    assert summary.total_events == 1
    assert summary.total_value == 43_500.0
    assert summary.total_invested == 42_000.0
    assert summary.total_returned == 0.0
    assert summary.total_gain_loss == 1_500.0
    assert summary.total_return_pct == pytest.approx(1_500.0 / 42_000.0 * 100)

    [holding] = summary.holdings
    assert holding.asset == BTC
    assert holding.current_value == 43_500.0
    assert holding.cost_basis_per_unit == 42_000.0
    assert holding.gain_loss == 1_500.0
    assert holding.allocation_pct == 100.0


@pytest.mark.asyncio
async def test_partial_sell_counts_returned_value():
    sell_day = date(2025, 1, 20)
    provider = FakeProvider(
        historical={
            ("BTC", "USD", BUY_DAY): 100.0,
            ("BTC", "USD", sell_day): 150.0,
            ("BTC", "USD", date(2025, 1, 31)): 200.0,
        }
    )
    portfolio = _portfolio(
        Event.new(EventType.BUY, BTC, 2.0, BUY_DAY),
        Event.new(EventType.SELL, BTC, 1.0, sell_day),
    )

    summary = await _analytics(provider).get_portfolio_summary(
        portfolio, date(2025, 1, 31), "USD"
    )

    assert summary.total_invested == 200.0
    assert summary.total_returned == 150.0
    assert summary.total_value == 200.0
    assert summary.total_gain_loss == 150.0
    assert summary.holdings[0].amount == 1.0
    assert summary.holdings[0].cost_basis_per_unit == 100.0


@pytest.mark.asyncio
async def test_allocation_sorted_and_sums_to_hundred():
    crypto = FakeProvider(historical={("BTC", "USD", BUY_DAY): 300.0})
    fiat = FakeProvider("FX", (AssetType.FIAT,), historical={("EUR", "USD", BUY_DAY): 1.0})
    portfolio = _portfolio(
        Event.new(EventType.BUY, EUR, 100.0, BUY_DAY),
        Event.new(EventType.BUY, BTC, 1.0, BUY_DAY),
    )

    summary = await _analytics(crypto, fiat).get_portfolio_summary(portfolio, BUY_DAY, "USD")

    assert [h.asset.symbol for h in summary.holdings] == ["BTC", "EUR"]
    assert [h.allocation_pct for h in summary.holdings] == [75.0, 25.0]
    assert sum(h.allocation_pct for h in summary.holdings) == pytest.approx(100.0)


@pytest.mark.asyncio
async def test_events_after_as_of_date_are_ignored():
    provider = FakeProvider(historical={("BTC", "USD", BUY_DAY): 10.0})
    portfolio = _portfolio(Event.new(EventType.BUY, BTC, 1.0, AS_OF))

    summary = await _analytics(provider).get_portfolio_summary(portfolio, BUY_DAY, "USD")

    assert summary.holdings == []
    assert summary.total_value == 0.0
    assert summary.total_invested == 0.0
    assert summary.total_return_pct == 0.0
    assert summary.total_events == 1


@pytest.mark.asyncio
async def test_missing_price_fails_the_summary():
    portfolio = _portfolio(Event.new(EventType.BUY, BTC, 1.0, BUY_DAY))
    with pytest.raises(PriceNotAvailableError):
        await _analytics(FakeProvider()).get_portfolio_summary(portfolio, AS_OF, "USD")
