"""Tests for PortfolioService validation, ordering and rollback."""
from datetime import date, timedelta
from uuid import uuid4

import pytest

from savings_tracker.errors import EventNotFoundError, ValidationError
from savings_tracker.models import Asset, Event, EventType, Portfolio
from savings_tracker.services import PortfolioService

BTC = Asset.crypto("BTC", "Bitcoin")
ETH = Asset.crypto("ETH", "Ethereum")


@pytest.fixture
def service() -> PortfolioService:
    return PortfolioService()


def _buy(asset: Asset, amount: float, on: date, notes: str | None = None) -> Event:
    return Event.new(EventType.BUY, asset, amount, on, notes)


def _sell(asset: Asset, amount: float, on: date) -> Event:
    return Event.new(EventType.SELL, asset, amount, on)


@pytest.mark.parametrize("amount", [0.0, -1.0, float("nan")])
def test_rejects_non_positive_amounts(service, amount):
    with pytest.raises(ValidationError, match="positive"):
        service.add_event(Portfolio(), _buy(BTC, amount, date(2025, 1, 1)))


def test_future_dates_allow_one_day_of_slack(service):
    portfolio = Portfolio()
    service.add_event(portfolio, _buy(BTC, 1.0, date.today() + timedelta(days=1)))
    with pytest.raises(ValidationError, match="future"):
        service.add_event(portfolio, _buy(BTC, 1.0, date.today() + timedelta(days=2)))


def test_sell_requires_holdings_on_its_date(service):
    portfolio = Portfolio()
    service.add_event(portfolio, _buy(BTC, 1.0, date(2025, 1, 10)))
    with pytest.raises(ValidationError, match="Cannot sell"):
        service.add_event(portfolio, _sell(BTC, 0.5, date(2025, 1, 9)))
    with pytest.raises(ValidationError):
        service.add_event(portfolio, _sell(BTC, 1.5, date(2025, 1, 11)))
    service.add_event(portfolio, _sell(BTC, 1.0, date(2025, 1, 10)))
    assert len(portfolio.events) == 2


def test_back_dated_sell_cannot_uncover_a_later_sell(service):
    portfolio = Portfolio()
    service.add_event(portfolio, _buy(BTC, 1.0, date(2025, 1, 1)))
    service.add_event(portfolio, _sell(BTC, 1.0, date(2025, 3, 1)))
    before = list(portfolio.events)

    with pytest.raises(ValidationError):
        service.add_event(portfolio, _sell(BTC, 0.5, date(2025, 2, 1)))
    assert portfolio.events == before


def test_events_are_date_ordered_and_ties_keep_insertion_order(service):
    portfolio = Portfolio()
    late = _buy(BTC, 1.0, date(2025, 3, 1))
    first_tie = _buy(ETH, 1.0, date(2025, 2, 1))
    second_tie = _buy(BTC, 2.0, date(2025, 2, 1))
    early = _buy(ETH, 3.0, date(2025, 1, 1))
    for event in (late, first_tie, second_tie, early):
        service.add_event(portfolio, event)

    assert portfolio.events == [early, first_tie, second_tie, late]
    assert service.get_events(portfolio) == [late, first_tie, second_tie, early]


def test_removing_covering_buy_is_rejected_and_restored(service):
    portfolio = Portfolio()
    buy = _buy(BTC, 1.0, date(2025, 1, 1))
    service.add_event(portfolio, buy)
    service.add_event(portfolio, _sell(BTC, 0.5, date(2025, 2, 1)))
    before = list(portfolio.events)

    with pytest.raises(ValidationError):
        service.remove_event(portfolio, buy.id)
    assert portfolio.events == before


def test_remove_sell_always_succeeds(service):
    portfolio = Portfolio()
    service.add_event(portfolio, _buy(BTC, 1.0, date(2025, 1, 1)))
    sell = _sell(BTC, 0.5, date(2025, 2, 1))
    service.add_event(portfolio, sell)
    assert service.remove_event(portfolio, sell.id) == sell
    assert len(portfolio.events) == 1


def test_remove_unknown_id(service):
    with pytest.raises(EventNotFoundError):
        service.remove_event(Portfolio(), uuid4())


def test_update_keeps_id_and_notes(service):
    portfolio = Portfolio()
    buy = _buy(BTC, 1.0, date(2025, 1, 1), notes="first buy")
    service.add_event(portfolio, buy)
    service.add_event(portfolio, _buy(ETH, 1.0, date(2025, 1, 5)))

    updated = service.update_event(
        portfolio, buy.id, EventType.BUY, BTC, 2.0, date(2025, 1, 10)
    )

    assert updated.id == buy.id
    assert updated.notes == "first buy"
    assert portfolio.events[-1] == updated


def test_update_rolls_back_when_it_breaks_a_sell(service):
    portfolio = Portfolio()
    buy = _buy(BTC, 1.0, date(2025, 1, 1))
    service.add_event(portfolio, buy)
    service.add_event(portfolio, _sell(BTC, 1.0, date(2025, 2, 1)))
    before = list(portfolio.events)

    with pytest.raises(ValidationError):
        service.update_event(portfolio, buy.id, EventType.BUY, BTC, 0.5, date(2025, 1, 1))
    with pytest.raises(ValidationError):
        service.update_event(portfolio, buy.id, EventType.BUY, BTC, 1.0, date(2025, 3, 1))
    with pytest.raises(ValidationError):
        service.update_event(portfolio, buy.id, EventType.BUY, BTC, -1.0, date(2025, 1, 1))
    assert portfolio.events == before


def test_holdings_at_date_and_epsilon(service):
    portfolio = Portfolio()
    service.add_event(portfolio, _buy(BTC, 1.0, date(2025, 1, 1)))
    service.add_event(portfolio, _buy(ETH, 2.0, date(2025, 1, 5)))
    service.add_event(portfolio, _sell(BTC, 1.0, date(2025, 1, 10)))

    assert service.get_holdings(portfolio, date(2024, 12, 31)) == {}
    assert service.get_holdings(portfolio, date(2025, 1, 5)) == {BTC: 1.0, ETH: 2.0}
    assert service.get_holdings(portfolio, date(2025, 1, 10)) == {ETH: 2.0}


def test_set_notes(service):
    portfolio = Portfolio()
    buy = _buy(BTC, 1.0, date(2025, 1, 1))
    service.add_event(portfolio, buy)
    service.set_notes(portfolio, buy.id, "cold wallet")
    assert service.get_event(portfolio, buy.id).notes == "cold wallet"
    service.set_notes(portfolio, buy.id, None)
    assert service.get_event(portfolio, buy.id).notes is None


def test_duplicate_ids_are_rejected(service):
    portfolio = Portfolio()
    buy = _buy(BTC, 1.0, date(2025, 1, 1))
    service.add_event(portfolio, buy)
    with pytest.raises(ValidationError, match="Duplicate"):
        service.add_event(portfolio, buy)
