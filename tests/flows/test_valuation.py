"""Tests for as-of valuation, daily change and account metrics."""

from datetime import date
from decimal import Decimal

import pytest

from divfolio.core.errors import PriceTransportError
from divfolio.core.models import ContributionTransaction, Holding, PlanFrequency, RecurringPlan
from divfolio.core.rules.precision import safe_pct
from divfolio.data.client.static_price import StaticPriceSource
from divfolio.flows.valuation import (
    account_metrics,
    asset_allocation,
    daily_change,
    fetch_daily_change,
    fetch_two_day_prices,
    multi_account_metrics,
    value_as_of,
)

AS_OF = date(2024, 6, 28)


def _holding(symbol, account="bank-a", shares=100, price="50", dps="2", frequency=4):
    return Holding(
        symbol=symbol,
        account_id=account,
        shares=shares,
        purchase_date=date(2024, 1, 2),
        dividend_per_share=Decimal(dps),
        frequency=frequency,
        purchase_price=Decimal(price) if price is not None else None,
    )


def _recurring(symbol="0050", account="bank-b"):
    plan = RecurringPlan(
        title="monthly",
        amount=Decimal("3000"),
        frequency=PlanFrequency.MONTHLY,
        start_date=date(2024, 2, 1),
        transactions=[
            ContributionTransaction(date(2024, 2, 1), Decimal("3000"), 20, Decimal("150"), True),
            ContributionTransaction(date(2024, 3, 2), Decimal("3000"), 20, Decimal("150"), True),
            ContributionTransaction(date(2024, 9, 1), Decimal("3000"), 20, Decimal("150"), False),
        ],
    )
    return Holding(
        symbol=symbol,
        account_id=account,
        shares=0,
        purchase_date=date(2024, 2, 1),
        dividend_per_share=Decimal("1"),
        frequency=2,
        plan=plan,
    )


class TestValueAsOf:
    def test_single_lot_scenario(self, lot):
        metrics = value_as_of([lot], as_of=AS_OF, prices={"2881": Decimal("60")})

        assert metrics.total_value == Decimal("6000")
        assert metrics.total_investment == Decimal("5000")
        assert metrics.annual_dividend == Decimal("800")
        assert metrics.dividend_yield == Decimal("16")
        assert metrics.roi == Decimal("20")
        assert metrics.profit_loss == Decimal("1000")

    def test_fetches_prices_from_source(self, lot):
        source = StaticPriceSource({("2881", AS_OF): Decimal("60")})
        metrics = value_as_of([lot], as_of=AS_OF, price_source=source)

        assert metrics.total_value == Decimal("6000")
        assert source.calls == [("2881", AS_OF)]

    def test_before_purchase_counts_nothing(self, lot):
        source = StaticPriceSource({("2881", None): Decimal("60")})
        metrics = value_as_of([lot], as_of=date(2024, 1, 1), price_source=source)

        assert metrics.total_value == Decimal("0")
        assert metrics.total_investment == Decimal("0")
        assert metrics.dividend_yield == Decimal("0")
        assert metrics.roi == Decimal("0")
        assert source.calls == []

    def test_missing_price_excludes_symbol_value_only(self, lot):
        other = _holding("2330", shares=10, price="500")
        metrics = value_as_of([lot, other], as_of=AS_OF, prices={"2881": Decimal("60")})

        assert metrics.total_value == Decimal("6000")
        assert metrics.total_investment == Decimal("10000")
        assert metrics.missing_prices == ("2330",)

    def test_unknown_cost_lot_has_value_but_no_investment(self):
        holding = _holding("2330", shares=10, price=None)
        metrics = value_as_of([holding], as_of=AS_OF, prices={"2330": Decimal("600")})

        assert metrics.total_value == Decimal("6000")
        assert metrics.total_investment == Decimal("0")

    def test_recurring_counts_executed_up_to_as_of(self):
        holding = _recurring()
        metrics = value_as_of([holding], as_of=date(2024, 2, 15), prices={"0050": Decimal("160")})

        assert metrics.total_value == Decimal("3200")
        assert metrics.total_investment == Decimal("3000")
        assert metrics.regular_value == Decimal("3200")
        assert metrics.normal_value == Decimal("0")
        assert metrics.regular_dividend == Decimal("40")

    def test_partition_conservation(self, lot):
        holdings = [lot, _holding("2330", account="bank-b", shares=10, price="500"), _recurring()]
        prices = {"2881": Decimal("60"), "2330": Decimal("600"), "0050": Decimal("160")}

        whole = value_as_of(holdings, as_of=AS_OF, prices=prices)
        parts = [
            value_as_of([h for h in holdings if h.account_id == account], as_of=AS_OF, prices=prices)
            for account in ("bank-a", "bank-b")
        ]

        assert whole.total_value == sum(p.total_value for p in parts)
        assert whole.total_investment == sum(p.total_investment for p in parts)
        assert whole.annual_dividend == sum(p.annual_dividend for p in parts)

    def test_transport_failure_propagates(self, lot, flaky_source_factory):
        source = flaky_source_factory(Decimal("60"), {AS_OF})
        with pytest.raises(PriceTransportError):
            value_as_of([lot], as_of=AS_OF, price_source=source)


class TestDailyChange:
    def test_only_symbols_with_both_prices_change(self, lot):
        other = _holding("2330", shares=200)
        change = daily_change(
            [lot, other],
            current_prices={"2881": Decimal("60"), "2330": Decimal("110")},
            previous_prices={"2881": Decimal("50")},
            as_of=AS_OF,
        )

        assert change.change == Decimal("1000")
        assert change.percentage == Decimal("20")

    def test_no_previous_prices(self, lot):
        change = daily_change([lot], {"2881": Decimal("60")}, {}, AS_OF)
        assert change.change == Decimal("0")
        assert change.percentage == Decimal("0")

    def test_fetch_uses_previous_calendar_day(self, lot):
        source = StaticPriceSource(
            {
                ("2881", AS_OF): Decimal("55"),
                ("2881", date(2024, 6, 27)): Decimal("50"),
            }
        )
        change = fetch_daily_change([lot], as_of=AS_OF, price_source=source)

        assert change.change == Decimal("500")
        assert change.percentage == Decimal("10")


class TestAccountMetrics:
    def test_single_account_uses_market_yield(self, lot):
        source = StaticPriceSource(
            {
                ("2881", AS_OF): Decimal("60"),
                ("2881", date(2024, 6, 27)): Decimal("60"),
            }
        )
        metrics = account_metrics([lot, _recurring()], "bank-a", as_of=AS_OF, price_source=source)

        assert metrics.total_value == Decimal("6000")
        assert metrics.total_profit_loss == Decimal("1000")
        assert metrics.total_roi == Decimal("20")
        assert metrics.dividend_yield == safe_pct(Decimal("800"), Decimal("6000"))
        assert metrics.stock_count == 1
        assert metrics.normal_count == 1
        assert metrics.regular_count == 0

    def test_multi_account_recomputes_percentages(self, lot):
        holdings = [lot, _recurring()]
        source = StaticPriceSource(
            {
                ("2881", AS_OF): Decimal("60"),
                ("2881", date(2024, 6, 27)): Decimal("50"),
                ("0050", AS_OF): Decimal("160"),
                ("0050", date(2024, 6, 27)): Decimal("160"),
            }
        )
        total = multi_account_metrics(holdings, ["bank-a", "bank-b"], as_of=AS_OF, price_source=source)

        assert total.total_value == Decimal("12400")
        assert total.total_investment == Decimal("11000")
        assert total.total_roi == safe_pct(Decimal("1400"), Decimal("11000"))
        assert total.annual_dividend == Decimal("880")
        assert total.daily_change == Decimal("1000")
        assert total.daily_change_percentage == safe_pct(Decimal("1000"), Decimal("12400"))
        assert total.stock_count == 2
        assert total.regular_count == 1
        assert total.normal_count == 1


class TestSharedPrices:
    def test_one_fetch_serves_every_account_view(self, lot):
        holdings = [lot, _recurring()]
        source = StaticPriceSource(
            {
                ("2881", AS_OF): Decimal("60"),
                ("2881", date(2024, 6, 27)): Decimal("50"),
                ("0050", None): Decimal("160"),
            }
        )
        prices = fetch_two_day_prices(holdings, as_of=AS_OF, price_source=source)
        fetched = len(source.calls)

        single = account_metrics(holdings, "bank-a", as_of=AS_OF, prices=prices)
        total = multi_account_metrics(holdings, ["bank-a", "bank-b"], as_of=AS_OF, prices=prices)

        assert fetched == 4
        assert len(source.calls) == fetched
        assert single.daily_change == Decimal("1000")
        assert total.total_value == Decimal("12400")


class TestAllocation:
    def test_allocation_sorted_by_share(self, lot):
        holdings = [lot, _holding("2330", shares=20, price="500"), _holding("2454", shares=10, price="800")]
        prices = {"2881": Decimal("60"), "2330": Decimal("600"), "2454": Decimal("1000")}
        allocation = asset_allocation(holdings, as_of=AS_OF, prices=prices)

        assert [a.category for a in allocation] == ["半導體", "金融"]
        assert allocation[0].amount == Decimal("22000")
        assert allocation[1].amount == Decimal("6000")
