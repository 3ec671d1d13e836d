"""CLI smoke tests (offline price table, temporary documents)."""

import json
import sys
from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest

from divfolio.cli import goal, range_report, reconcile, trend, value
from divfolio.cli.document import EXIT_FAILED, EXIT_INVALID, EXIT_OK, EXIT_TRANSPORT, exit_code_for
from divfolio.core.errors import PriceTransportError
from divfolio.data.client.static_price import StaticPriceSource

PORTFOLIO = {
    "accounts": [{"id": "bank-a"}, {"id": "bank-b"}],
    "holdings": [
        {
            "symbol": "2881",
            "account_id": "bank-a",
            "shares": 100,
            "purchase_date": "2024-01-02",
            "purchase_price": 50,
            "dividend_per_share": 2,
            "frequency": 4,
        },
        {
            "symbol": "2330",
            "account_id": "bank-b",
            "purchase_date": "2024-01-15",
            "dividend_per_share": 3,
            "frequency": 4,
            "plan": {
                "title": "月投台积电",
                "amount": 3000,
                "frequency": "monthly",
                "start_date": "2024-01-15",
                "end_date": "2024-04-15",
            },
        },
    ],
    "prices": [
        {"symbol": "2881", "price": 60},
        {"symbol": "2330", "price": 100},
    ],
}


@pytest.fixture
def portfolio_file(tmp_path):
    path = tmp_path / "portfolio.json"
    path.write_text(json.dumps(PORTFOLIO, ensure_ascii=False), encoding="utf-8")
    return path


def _run(module, *argv):
    with patch.object(sys, "argv", ["divfolio", *argv]):
        return module.main()


class TestReconcileCli:
    def test_writes_transactions_to_output(self, portfolio_file, tmp_path):
        output = tmp_path / "out.json"
        code = _run(
            reconcile, str(portfolio_file), "--as-of", "2024-04-15", "--offline",
            "--step-mode", "fixed", "--output", str(output),
        )

        assert code == EXIT_OK
        saved = json.loads(output.read_text(encoding="utf-8"))
        transactions = saved["holdings"][1]["plan"]["transactions"]
        assert [t["date"] for t in transactions] == [
            "2024-01-15",
            "2024-02-14",
            "2024-03-15",
            "2024-04-14",
        ]
        assert all(t["shares"] == 30 for t in transactions)
        assert json.loads(portfolio_file.read_text(encoding="utf-8")) == PORTFOLIO

    def test_dry_run_leaves_document(self, portfolio_file):
        code = _run(reconcile, str(portfolio_file), "--as-of", "2024-04-15", "--offline", "--dry-run")

        assert code == EXIT_OK
        assert json.loads(portfolio_file.read_text(encoding="utf-8")) == PORTFOLIO

    def test_missing_document(self, tmp_path):
        assert _run(reconcile, str(tmp_path / "nope.json"), "--offline") == EXIT_INVALID

    def test_bad_date(self, portfolio_file):
        assert _run(reconcile, str(portfolio_file), "--as-of", "2024-13-01", "--offline") == EXIT_INVALID


class TestReportClis:
    def test_value(self, portfolio_file):
        assert _run(value, str(portfolio_file), "--as-of", "2024-06-28", "--offline") == EXIT_OK

    def test_value_single_account(self, portfolio_file):
        code = _run(value, str(portfolio_file), "--as-of", "2024-06-28", "--offline", "--account", "bank-a")
        assert code == EXIT_OK

    def test_trend(self, portfolio_file):
        code = _run(trend, str(portfolio_file), "--start", "2024-01-01", "--end", "2024-06-30", "--offline")
        assert code == EXIT_OK

    def test_trend_reversed_range(self, portfolio_file):
        code = _run(trend, str(portfolio_file), "--start", "2024-06-30", "--end", "2024-01-01", "--offline")
        assert code == EXIT_INVALID

    def test_range_report(self, portfolio_file):
        code = _run(
            range_report, str(portfolio_file), "--start", "2024-01-01", "--end", "2024-06-30", "--offline"
        )
        assert code == EXIT_OK

    def test_goal_from_target(self):
        assert _run(goal, "0050", "--goal", "1000000", "--years", "10") == EXIT_OK

    def test_goal_needs_amount_or_target(self):
        assert _run(goal, "0050", "--years", "10") == EXIT_INVALID

    def test_goal_rejects_zero_years(self):
        assert _run(goal, "0050", "--amount", "3000", "--years", "0") == EXIT_INVALID


class TestValueCliPrices:
    def test_each_price_key_fetched_once(self, portfolio_file):
        source = StaticPriceSource({("2881", None): Decimal("60")})
        with patch("divfolio.cli.value.resolve_price_source", return_value=source):
            code = _run(value, str(portfolio_file), "--as-of", "2024-06-28")

        assert code == EXIT_OK
        assert sorted(source.calls) == [("2881", date(2024, 6, 27)), ("2881", date(2024, 6, 28))]


class TestExitCodes:
    def test_mapping(self):
        assert exit_code_for(PriceTransportError("2330", date(2024, 1, 1), "timeout")) == EXIT_TRANSPORT
        assert exit_code_for(ValueError("bad")) == EXIT_INVALID
        assert exit_code_for(RuntimeError("boom")) == EXIT_FAILED


class TestReconcileStepMode:
    def test_saved_mode_reused_on_next_run(self, portfolio_file, tmp_path):
        output = tmp_path / "out.json"
        _run(reconcile, str(portfolio_file), "--as-of", "2024-02-20", "--offline",
             "--step-mode", "fixed", "--output", str(output))

        code = _run(reconcile, str(output), "--as-of", "2024-04-15", "--offline", "--step-mode", "calendar")

        assert code == EXIT_OK
        plan = json.loads(output.read_text(encoding="utf-8"))["holdings"][1]["plan"]
        assert plan["step_mode"] == "fixed"
        assert len(plan["transactions"]) == 4
