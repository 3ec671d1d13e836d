"""Tests for the portfolio document schema."""

import json
from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from divfolio.core.errors import InvalidPlanError
from divfolio.core.models import PlanFrequency
from divfolio.schemas.portfolio import HoldingDoc, PortfolioDoc

DOCUMENT = {
    "accounts": [{"id": "bank-a", "name": "A 银行"}],
    "holdings": [
        {
            "symbol": "2881",
            "account_id": "bank-a",
            "name": "富邦金",
            "shares": 100,
            "purchase_date": "2024-01-02",
            "purchase_price": "50",
            "dividend_per_share": 2,
            "frequency": 4,
        },
        {
            "symbol": "0050",
            "account_id": "bank-b",
            "purchase_date": "2024-02-01",
            "dividend_per_share": "1",
            "frequency": 2,
            "plan": {
                "title": "0050 月投",
                "amount": "3000",
                "frequency": "monthly",
                "start_date": "2024-02-01",
                "transactions": [
                    {"date": "2024-03-02", "amount": 3000, "shares": 20, "price": 150, "executed": True},
                    {"date": "2024-02-01", "amount": 3000, "shares": 20, "price": 150, "executed": True},
                ],
            },
        },
    ],
    "prices": [
        {"symbol": "2881", "price": 60},
        {"symbol": "0050", "date": "2024-03-01", "price": "160.5"},
    ],
}


@pytest.fixture
def doc():
    return PortfolioDoc.model_validate(DOCUMENT)


class TestToEntities:
    def test_holdings(self, doc):
        lot, recurring = doc.to_holdings()

        assert lot.purchase_price == Decimal("50")
        assert lot.dividend_per_share == Decimal("2")
        assert not lot.is_recurring
        assert recurring.plan.frequency is PlanFrequency.MONTHLY
        assert recurring.plan.total_shares == 40

    def test_transactions_sorted_by_date(self, doc):
        plan = doc.to_holdings()[1].plan
        assert [t.date for t in plan.transactions] == [date(2024, 2, 1), date(2024, 3, 2)]

    def test_price_table(self, doc):
        assert doc.price_table() == {
            ("2881", None): Decimal("60"),
            ("0050", date(2024, 3, 1)): Decimal("160.5"),
        }

    def test_account_ids_declared(self, doc):
        assert doc.account_ids() == ["bank-a"]
        assert doc.to_accounts()[0].name == "A 银行"

    def test_account_ids_from_holdings(self):
        doc = PortfolioDoc.model_validate({**DOCUMENT, "accounts": []})
        assert doc.account_ids() == ["bank-a", "bank-b"]


class TestValidation:
    def test_unsupported_frequency(self):
        data = {**DOCUMENT["holdings"][0], "frequency": 3}
        with pytest.raises(ValidationError):
            HoldingDoc.model_validate(data)

    def test_negative_shares(self):
        data = {**DOCUMENT["holdings"][0], "shares": -1}
        with pytest.raises(ValidationError):
            HoldingDoc.model_validate(data)

    def test_plan_end_before_start_rejected_on_conversion(self):
        data = json.loads(json.dumps(DOCUMENT["holdings"][1]))
        data["plan"]["end_date"] = "2024-01-01"
        holding = HoldingDoc.model_validate(data)

        with pytest.raises(InvalidPlanError):
            holding.to_entity()


class TestRoundTrip:
    def test_with_holdings_keeps_accounts_and_prices(self, doc):
        holdings = doc.to_holdings()
        updated = doc.with_holdings(holdings)

        assert updated.accounts == doc.accounts
        assert updated.prices == doc.prices
        assert updated.to_holdings()[1].plan.transactions == holdings[1].plan.transactions

    def test_json_dump_is_valid_document(self, doc):
        text = doc.with_holdings(doc.to_holdings()).model_dump_json(exclude_none=True)
        again = PortfolioDoc.model_validate_json(text)
        assert again.to_holdings()[0].purchase_price == Decimal("50")


class TestStepMode:
    def test_unsaved_plan_takes_environment_default(self, monkeypatch):
        monkeypatch.setenv("DIVFOLIO_STEP_MODE", "calendar")
        doc = PortfolioDoc.model_validate(DOCUMENT)
        assert doc.to_holdings()[1].plan.step_mode == "calendar"

    def test_explicit_default_wins_over_environment(self, monkeypatch):
        monkeypatch.setenv("DIVFOLIO_STEP_MODE", "calendar")
        doc = PortfolioDoc.model_validate(DOCUMENT)
        assert doc.to_holdings(default_step_mode="fixed")[1].plan.step_mode == "fixed"

    def test_saved_step_mode_survives_reload(self, monkeypatch, doc):
        saved = doc.with_holdings(doc.to_holdings(default_step_mode="fixed"))
        text = saved.model_dump_json(exclude_none=True)

        monkeypatch.setenv("DIVFOLIO_STEP_MODE", "calendar")
        reloaded = PortfolioDoc.model_validate_json(text)

        assert reloaded.holdings[1].plan.step_mode == "fixed"
        assert reloaded.to_holdings(default_step_mode="calendar")[1].plan.step_mode == "fixed"


class TestIdentifiers:
    def test_ids_stable_across_loads(self, doc):
        text = doc.with_holdings(doc.to_holdings()).model_dump_json(exclude_none=True)

        first = PortfolioDoc.model_validate_json(text).to_holdings()
        second = PortfolioDoc.model_validate_json(text).to_holdings()

        assert [h.id for h in first] == [h.id for h in second]
        assert [t.id for t in first[1].plan.transactions] == [
            t.id for t in second[1].plan.transactions
        ]

    def test_saved_id_used(self):
        data = {**DOCUMENT["holdings"][0], "id": "lot-2881"}
        assert HoldingDoc.model_validate(data).to_entity().id == "lot-2881"
