"""Tests for ChartService day-by-day series."""
from datetime import date

import pytest
from fakes import FakeProvider, make_registry

from savings_tracker.errors import ValidationError
from savings_tracker.models import Asset, AssetType, Event, EventType, Portfolio
from savings_tracker.services import (ChartService, CurrencyService,
                                      PortfolioService, PriceService)

BTC = Asset.crypto("BTC", "Bitcoin")
JAN = [date(2025, 1, d) for d in range(1, 6)]


def _chart(*providers: FakeProvider) -> ChartService:
    prices = PriceService(make_registry(*providers))
    return ChartService(PortfolioService(), CurrencyService(prices), prices)


def _portfolio(*events: Event) -> Portfolio:
    portfolio = Portfolio()
    service = PortfolioService()
    for event in events:
        service.add_event(portfolio, event)
    return portfolio


@pytest.fixture
def btc_prices() -> FakeProvider:
    # No quote on Jan 2 or Jan 5
    return FakeProvider(
        historical={
            ("BTC", "USD", JAN[0]): 100.0,
            ("BTC", "USD", JAN[2]): 120.0,
            ("BTC", "USD", JAN[3]): 130.0,
        }
    )


@pytest.mark.asyncio
async def test_one_point_per_day_with_carry_forward(btc_prices):
    portfolio = _portfolio(
        Event.new(EventType.BUY, BTC, 1.0, JAN[0]),
        Event.new(EventType.BUY, BTC, 1.0, JAN[2]),
    )

    points = await _chart(btc_prices).generate_portfolio_chart(
        portfolio, JAN[0], JAN[4], "USD"
    )

    assert [p.date for p in points] == JAN
    assert [p.portfolio_value for p in points] == [100.0, 100.0, 240.0, 260.0, 260.0]


@pytest.mark.asyncio
async def test_events_on_start_are_counted_once_and_annotated(btc_prices):
    portfolio = _portfolio(Event.new(EventType.BUY, BTC, 1.0, JAN[0]))

    points = await _chart(btc_prices).generate_portfolio_chart(
        portfolio, JAN[0], JAN[0], "usd"
    )

    assert len(points) == 1
    assert points[0].portfolio_value == 100.0
    [annotation] = points[0].events
    assert annotation.event_type is EventType.BUY
    assert annotation.asset_symbol == "BTC"
    assert annotation.value_in_default_currency == 100.0


@pytest.mark.asyncio
async def test_range_is_prefetched_once(btc_prices):
    portfolio = _portfolio(Event.new(EventType.BUY, BTC, 1.0, JAN[0]))

    await _chart(btc_prices).generate_portfolio_chart(portfolio, JAN[0], JAN[4], "USD")

    assert btc_prices.calls_of("range") == [("range", "BTC", "USD", JAN[0], JAN[4])]
    # Only the two unquoted days fall through to single lookups
    assert [c[3] for c in btc_prices.calls_of("historical")] == [JAN[1], JAN[4]]


@pytest.mark.asyncio
async def test_sell_reduces_value_and_empty_days_are_zero(btc_prices):
    portfolio = _portfolio(
        Event.new(EventType.BUY, BTC, 1.0, JAN[2]),
        Event.new(EventType.SELL, BTC, 1.0, JAN[3]),
    )

    points = await _chart(btc_prices).generate_portfolio_chart(
        portfolio, JAN[0], JAN[4], "USD"
    )

    assert [p.portfolio_value for p in points] == [0.0, 0.0, 120.0, 0.0, 0.0]
    assert points[3].events[0].event_type is EventType.SELL


@pytest.mark.asyncio
async def test_chart_in_other_currency_converts_through_usd(btc_prices):
    for day in JAN:
        btc_prices.historical[("USD", "PLN", day)] = 4.0
    fiat = FakeProvider("FX", (AssetType.FIAT,), historical=btc_prices.historical)
    portfolio = _portfolio(Event.new(EventType.BUY, BTC, 1.0, JAN[0]))

    points = await _chart(btc_prices, fiat).generate_portfolio_chart(
        portfolio, JAN[0], JAN[0], "PLN"
    )

    assert points[0].portfolio_value == 400.0


@pytest.mark.asyncio
async def test_asset_chart(btc_prices):
    eth = Asset.crypto("ETH")
    btc_prices.historical[("ETH", "USD", JAN[0])] = 10.0
    portfolio = _portfolio(
        Event.new(EventType.BUY, BTC, 2.0, JAN[0]),
        Event.new(EventType.BUY, eth, 5.0, JAN[0]),
    )

    points = await _chart(btc_prices).generate_asset_chart(
        portfolio, "btc", JAN[0], JAN[3], "USD"
    )

    assert [p.portfolio_value for p in points] == [200.0, 200.0, 240.0, 260.0]
    assert all(e.asset_symbol == "BTC" for p in points for e in p.events)


@pytest.mark.asyncio
async def test_asset_chart_unknown_symbol(btc_prices):
    portfolio = _portfolio(Event.new(EventType.BUY, BTC, 1.0, JAN[0]))
    with pytest.raises(ValidationError, match="not found"):
        await _chart(btc_prices).generate_asset_chart(portfolio, "DOGE", JAN[0], JAN[1], "USD")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "start,end",
    [(date(2025, 1, 2), date(2025, 1, 1)), (date(2010, 1, 1), date(2025, 1, 1))],
)
async def test_invalid_ranges(btc_prices, start, end):
    with pytest.raises(ValidationError):
        await _chart(btc_prices).generate_portfolio_chart(Portfolio(), start, end, "USD")


@pytest.mark.asyncio
async def test_empty_portfolio_is_flat_zero():
    points = await _chart(FakeProvider()).generate_portfolio_chart(
        Portfolio(), JAN[0], JAN[2], "USD"
    )
    assert [p.portfolio_value for p in points] == [0.0, 0.0, 0.0]
