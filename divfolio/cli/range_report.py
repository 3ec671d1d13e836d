"""区间报告 CLI。

输出自定义区间的投入、股利、绩效、行业分布、月度股利、股利成长、即将除息与风险摘要。

用法：
    python -m divfolio.cli.range_report portfolio.json --start 2023-01-01 --end 2024-12-31
    python -m divfolio.cli.range_report portfolio.json --start 2024-01-01 --offline --as-of 2024-12-31

说明：
- 风险指标为启发式估算（持仓数量、静态行业表与 Beta 表），不是历史价格统计量。
"""

from __future__ import annotations

import argparse
import sys

from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
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
from divfolio.core.models.metrics import RangeMetrics
from divfolio.core.rules.precision import quantize_amount, quantize_pct
from divfolio.core.rules.risk import RISK_LEVEL_NAMES, concentration_rating
from divfolio.flows.range_metrics import range_metrics

console = Console()


def _parse_args() -> argparse.Namespace:
    """解析命令行参数。"""
    parser = argparse.ArgumentParser(
        prog="python -m divfolio.cli.range_report",
        description="自定义区间综合报告",
    )
    add_common_args(parser)
    parser.add_argument("--start", required=True, help="开始日期（YYYY-MM-DD）")
    parser.add_argument("--end", help="结束日期（YYYY-MM-DD，默认今天）")
    parser.add_argument("--as-of", help="现价日期（YYYY-MM-DD，默认等于结束日期）")
    return parser.parse_args()


def _render(m: RangeMetrics) -> None:
    summary = Table(title=f"区间概览 {m.start} ~ {m.end}")
    summary.add_column("指标")
    summary.add_column("数值", justify="right")
    summary.add_row("区间投入", str(quantize_amount(m.total_investment)))
    summary.add_row("年化股利", str(quantize_amount(m.annual_dividend)))
    summary.add_row("平均殖利率 %", str(quantize_pct(m.average_yield)))
    summary.add_row("持股数", str(m.stock_count))
    if m.performance is not None:
        p = m.performance
        summary.add_row("总报酬", str(quantize_amount(p.total_return)))
        summary.add_row("报酬率 %", str(quantize_pct(p.total_return_percentage)))
        summary.add_row("时间加权报酬 %", str(quantize_pct(p.time_weighted_return)))
        summary.add_row("平均持有月数", str(quantize_amount(p.average_holding_months)))
        summary.add_row("夏普比率", str(quantize_pct(p.sharpe_ratio)))
    console.print(summary)

    if m.allocation:
        allocation = Table(title="行业分布")
        allocation.add_column("行业")
        allocation.add_column("市值", justify="right")
        allocation.add_column("占比 %", justify="right")
        for a in m.allocation:
            allocation.add_row(a.category, str(quantize_amount(a.amount)), str(quantize_pct(a.percentage)))
        console.print(allocation)

    monthly = Table(title="月度股利")
    for column in ("月份", "合计", "一般", "定投"):
        monthly.add_column(column, justify="right")
    for d in m.monthly_dividends:
        monthly.add_row(
            d.month.strftime("%Y-%m"),
            str(quantize_amount(d.amount)),
            str(quantize_amount(d.normal_dividend)),
            str(quantize_amount(d.regular_dividend)),
        )
    console.print(monthly)

    growth = Table(title="股利成长")
    for column in ("年度", "年化股利", "成长率 %"):
        growth.add_column(column, justify="right")
    for g in m.dividend_growth:
        growth.add_row(str(g.year), str(quantize_amount(g.annual_dividend)), str(quantize_pct(g.growth_rate)))
    console.print(growth)

    if m.upcoming_dividends:
        upcoming = Table(title="即将除息（推估）")
        for column in ("代号", "名称", "除息日", "每股股利"):
            upcoming.add_column(column)
        for u in m.upcoming_dividends:
            upcoming.add_row(u.symbol, u.name, u.ex_dividend_date.isoformat(), str(u.dividend_amount))
        console.print(upcoming)

    if m.risk is not None:
        r = m.risk
        console.print(
            Panel(
                f"风险等级：{RISK_LEVEL_NAMES[r.risk_level]}\n"
                f"波动率：{quantize_pct(r.portfolio_volatility)}%  Beta：{quantize_pct(r.beta)}\n"
                f"最大回撤：{quantize_pct(r.max_drawdown)}%\n"
                f"行业集中度：{quantize_pct(r.sector_concentration)}%（{concentration_rating(r.sector_concentration)}）\n"
                f"前五大占比：{quantize_pct(r.top_holdings_weight)}%",
                title="风险摘要（启发式估算）",
                border_style="blue",
            )
        )


def main() -> int:
    """
    区间报告入口。

    Returns:
        退出码：0=成功；3=价格源不可用；4=参数错误；5=其他失败。
    """
    load_dotenv()
    try:
        args = _parse_args()
        setup_logging(args.debug)
        start = parse_day(args.start)
        end = parse_day(args.end)
        as_of = parse_day(args.as_of, default=end)
        doc = load_portfolio(args.portfolio)
        holdings = doc.to_holdings()
        source = resolve_price_source(doc, args.offline)

        metrics = range_metrics(holdings, start=start, end=end, as_of=as_of, price_source=source)
        _render(metrics)
        return EXIT_OK

    except Exception as err:  # noqa: BLE001
        return exit_code_for(err)


if __name__ == "__main__":
    sys.exit(main())
