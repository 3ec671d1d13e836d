"""Tests for weighted lot aggregation."""

from datetime import date
from decimal import Decimal

from divfolio.core.models import ContributionTransaction, Holding, PlanFrequency, RecurringPlan
from divfolio.flows.aggregate import aggregate, aggregate_normal, aggregate_recurring


def _lot(symbol="2330", account="bank-a", shares=100, dps="2", price="50", frequency=4):
    return Holding(
        symbol=symbol,
        account_id=account,
        shares=shares,
        purchase_date=date(2024, 1, 2),
        dividend_per_share=Decimal(dps),
        frequency=frequency,
        purchase_price=Decimal(price) if price is not None else None,
    )


def _recurring(symbol="2330", account="bank-a", dps="2"):
    plan = RecurringPlan(
        title="monthly",
        amount=Decimal("3000"),
        frequency=PlanFrequency.MONTHLY,
        start_date=date(2024, 1, 15),
        transactions=[
            ContributionTransaction(date(2024, 1, 15), Decimal("3000"), 30, Decimal("100"), True),
            ContributionTransaction(date(2024, 2, 14), Decimal("3000"), 30, Decimal("100"), True),
            ContributionTransaction(date(2024, 3, 15), Decimal("3000"), 30, Decimal("100"), False),
        ],
    )
    return Holding(
        symbol=symbol,
        account_id=account,
        shares=999,
        purchase_date=date(2024, 1, 15),
        dividend_per_share=Decimal(dps),
        frequency=4,
        plan=plan,
    )


class TestPartitioning:
    def test_lot_and_plan_in_same_account_stay_separate(self):
        result = aggregate([_recurring(), _lot()])

        assert [(i.symbol, i.account_id, i.is_recurring) for i in result] == [
            ("2330", "bank-a", False),
            ("2330", "bank-a", True),
        ]

    def test_same_symbol_different_accounts(self):
        result = aggregate([_lot(account="bank-b"), _lot(account="bank-a")])
        assert [i.account_id for i in result] == ["bank-a", "bank-b"]

    def test_sorted_by_symbol(self):
        result = aggregate([_lot(symbol="2882"), _lot(symbol="0050"), _lot(symbol="2330")])
        assert [i.symbol for i in result] == ["0050", "2330", "2882"]

    def test_account_filter(self):
        result = aggregate([_lot(account="bank-a"), _lot(account="bank-b")], account_id="bank-b")
        assert len(result) == 1
        assert result[0].account_id == "bank-b"

    def test_convenience_filters(self):
        holdings = [_lot(), _recurring()]
        assert [i.is_recurring for i in aggregate_normal(holdings)] == [False]
        assert [i.is_recurring for i in aggregate_recurring(holdings)] == [True]


class TestWeights:
    def test_weighted_dividend_and_known_cost_only(self):
        result = aggregate([_lot(shares=100, dps="2", price="50"), _lot(shares=300, dps="4", price=None)])

        info = result[0]
        assert info.total_shares == 400
        assert info.weighted_dividend_per_share == Decimal("3.5")
        assert info.weighted_purchase_price == Decimal("50")
        assert len(info.details) == 2

    def test_all_unknown_cost(self):
        info = aggregate([_lot(price=None)])[0]
        assert info.weighted_purchase_price is None
        assert info.total_cost_value() is None

    def test_recurring_uses_executed_transactions(self):
        info = aggregate([_recurring()])[0]

        assert info.total_shares == 60
        assert info.weighted_purchase_price == Decimal("100")
        assert info.total_annual_dividend() == Decimal("480")

    def test_zero_shares_gives_zero_dividend_weight(self):
        info = aggregate([_lot(shares=0)])[0]
        assert info.total_shares == 0
        assert info.weighted_dividend_per_share == Decimal("0")

    def test_split_conserves_shares(self):
        holdings = [_lot(), _lot(shares=50), _recurring()]
        result = aggregate(holdings)
        assert sum(i.total_shares for i in result) == 100 + 50 + 60

    def test_frequency_from_first_constituent(self):
        info = aggregate([_lot(frequency=2), _lot(frequency=4)])[0]
        assert info.frequency == 2
