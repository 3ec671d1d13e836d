"""Shared fixtures for divfolio tests."""

from datetime import date
from decimal import Decimal

import pytest

from divfolio.core.errors import PriceTransportError
from divfolio.core.models import Holding, PlanFrequency, RecurringPlan
from divfolio.data.client.static_price import StaticPriceSource


class FlakyPriceSource:
    """Price source that fails with a transport error on selected dates."""

    def __init__(self, price: Decimal, failing: set[date]):
        self.price = price
        self.failing = set(failing)

    def get_price(self, symbol, day):
        if day in self.failing:
            raise PriceTransportError(symbol, day, "connection reset")
        return self.price


@pytest.fixture
def flat_price_source():
    """Every symbol costs $100 on every date."""
    source = StaticPriceSource()
    source.set_price("2330", None, Decimal("100"))
    return source


@pytest.fixture
def monthly_plan():
    return RecurringPlan(
        title="月投台积电",
        amount=Decimal("3000"),
        frequency=PlanFrequency.MONTHLY,
        start_date=date(2024, 1, 15),
        end_date=date(2024, 4, 15),
    )


@pytest.fixture
def lot():
    """100 shares bought at $50, $2 dividend paid quarterly."""
    return Holding(
        symbol="2881",
        account_id="bank-a",
        shares=100,
        purchase_date=date(2024, 1, 2),
        dividend_per_share=Decimal("2"),
        frequency=4,
        purchase_price=Decimal("50"),
        name="富邦金",
    )


@pytest.fixture
def flaky_source_factory():
    return FlakyPriceSource
