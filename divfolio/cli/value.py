"""组合估值 CLI。

输出参考日的组合市值、投入、年化股利与殖利率，以及各账户指标和加权持仓明细。

用法：
    python -m divfolio.cli.value portfolio.json
    python -m divfolio.cli.value portfolio.json --as-of 2024-06-30 --offline
    python -m divfolio.cli.value portfolio.json --account bank-a
"""

from __future__ import annotations

import argparse
import sys

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from divfolio.cli.document import (
    EXIT_OK,
    add_common_args,
    exit_code_for,
    load_portfolio,
    parse_day,
    resolve_price_source,
    setup_logging,
)
from divfolio.core.rules.precision import quantize_amount, quantize_pct, quantize_price
from divfolio.flows.aggregate import aggregate
from divfolio.flows.valuation import (
    account_metrics,
    fetch_two_day_prices,
    multi_account_metrics,
    value_as_of,
)

console = Console()


def _parse_args() -> argparse.Namespace:
    """解析命令行参数。"""
    parser = argparse.ArgumentParser(
        prog="python -m divfolio.cli.value",
        description="组合估值：市值 / 投入 / 股利 / 殖利率 / 账户指标",
    )
    add_common_args(parser)
    parser.add_argument("--as-of", help="参考日（YYYY-MM-DD，默认今天）")
    parser.add_argument("--account", help="只显示指定账户")
    return parser.parse_args()


def main() -> int:
    """
    组合估值入口。

    Returns:
        退出码：0=成功；3=价格源不可用；4=参数错误；5=其他失败。
    """
    load_dotenv()
    try:
        args = _parse_args()
        setup_logging(args.debug)
        as_of = parse_day(args.as_of)
        doc = load_portfolio(args.portfolio)
        holdings = doc.to_holdings()
        if args.account:
            holdings = [h for h in holdings if h.account_id == args.account]
        source = resolve_price_source(doc, args.offline)

        # 所有表格共用一次查价
        prices = fetch_two_day_prices(holdings, as_of=as_of, price_source=source)
        metrics = value_as_of(holdings, as_of=as_of, prices=prices[0])
        summary = Table(title=f"组合估值 as_of={as_of}")
        summary.add_column("指标")
        summary.add_column("数值", justify="right")
        summary.add_row("总市值", str(quantize_amount(metrics.total_value)))
        summary.add_row("总投入", str(quantize_amount(metrics.total_investment)))
        summary.add_row("损益", str(quantize_amount(metrics.profit_loss)))
        summary.add_row("年化股利", str(quantize_amount(metrics.annual_dividend)))
        summary.add_row("成本殖利率 %", str(quantize_pct(metrics.dividend_yield)))
        summary.add_row("市值殖利率 %", str(quantize_pct(metrics.market_yield)))
        summary.add_row("ROI %", str(quantize_pct(metrics.roi)))
        if metrics.missing_prices:
            summary.add_row("缺价代号", ", ".join(metrics.missing_prices))
        console.print(summary)

        account_ids = [args.account] if args.account else doc.account_ids()
        accounts = Table(title="账户指标")
        for column in ("账户", "市值", "投入", "ROI %", "股利", "殖利率 %", "当日损益", "涨跌 %", "代号数"):
            accounts.add_column(column, justify="right" if column != "账户" else "left")
        for account_id in account_ids:
            m = account_metrics(holdings, account_id, as_of=as_of, prices=prices)
            accounts.add_row(
                account_id,
                str(quantize_amount(m.total_value)),
                str(quantize_amount(m.total_investment)),
                str(quantize_pct(m.total_roi)),
                str(quantize_amount(m.annual_dividend)),
                str(quantize_pct(m.dividend_yield)),
                str(quantize_amount(m.daily_change)),
                str(quantize_pct(m.daily_change_percentage)),
                str(m.stock_count),
            )
        if len(account_ids) > 1:
            total = multi_account_metrics(holdings, account_ids, as_of=as_of, prices=prices)
            accounts.add_row(
                "[bold]合计[/bold]",
                str(quantize_amount(total.total_value)),
                str(quantize_amount(total.total_investment)),
                str(quantize_pct(total.total_roi)),
                str(quantize_amount(total.annual_dividend)),
                str(quantize_pct(total.dividend_yield)),
                str(quantize_amount(total.daily_change)),
                str(quantize_pct(total.daily_change_percentage)),
                str(total.stock_count),
            )
        console.print(accounts)

        detail = Table(title="加权持仓")
        for column in ("代号", "账户", "类型", "股数", "加权股利", "加权成本", "年化股利"):
            detail.add_column(column)
        for info in aggregate(holdings):
            detail.add_row(
                info.symbol,
                info.account_id,
                "定投" if info.is_recurring else "一般",
                str(info.total_shares),
                str(quantize_amount(info.weighted_dividend_per_share)),
                str(quantize_price(info.weighted_purchase_price))
                if info.weighted_purchase_price is not None
                else "-",
                str(quantize_amount(info.total_annual_dividend())),
            )
        console.print(detail)
        return EXIT_OK

    except Exception as err:  # noqa: BLE001
        return exit_code_for(err)


if __name__ == "__main__":
    sys.exit(main())
