"""组合趋势 CLI。

按区间跨度自适应间隔采样，输出每个采样点的市值、投入与股利。

用法：
    python -m divfolio.cli.trend portfolio.json --start 2024-01-01 --end 2024-12-31
    python -m divfolio.cli.trend portfolio.json --start 2024-01-01 --offline
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
from divfolio.core.rules.precision import quantize_amount, quantize_pct
from divfolio.flows.trend import sample

console = Console()


def _parse_args() -> argparse.Namespace:
    """解析命令行参数。"""
    parser = argparse.ArgumentParser(
        prog="python -m divfolio.cli.trend",
        description="组合趋势采样",
    )
    add_common_args(parser)
    parser.add_argument("--start", required=True, help="开始日期（YYYY-MM-DD）")
    parser.add_argument("--end", help="结束日期（YYYY-MM-DD，默认今天）")
    return parser.parse_args()


def main() -> int:
    """
    趋势采样入口。

    Returns:
        退出码：0=成功；3=价格源不可用；4=参数错误；5=其他失败。
    """
    load_dotenv()
    try:
        args = _parse_args()
        setup_logging(args.debug)
        start = parse_day(args.start)
        end = parse_day(args.end)
        doc = load_portfolio(args.portfolio)
        holdings = doc.to_holdings()
        source = resolve_price_source(doc, args.offline)

        points = sample(holdings, start=start, end=end, price_source=source)

        table = Table(title=f"趋势 {start} ~ {end}")
        for column in ("日期", "市值", "投入", "年化股利", "殖利率 %", "一般股利", "定投股利"):
            table.add_column(column, justify="right")
        for p in points:
            table.add_row(
                p.date.isoformat(),
                str(quantize_amount(p.total_value)),
                str(quantize_amount(p.total_investment)),
                str(quantize_amount(p.annual_dividend)),
                str(quantize_pct(p.dividend_yield)),
                str(quantize_amount(p.normal_dividend)),
                str(quantize_amount(p.regular_dividend)),
            )
        console.print(table)
        return EXIT_OK

    except Exception as err:  # noqa: BLE001
        return exit_code_for(err)


if __name__ == "__main__":
    sys.exit(main())
