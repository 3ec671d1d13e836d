"""定投对账 CLI。

为组合文档中的定投计划补建到参考日为止的交易记录，并写回文档。

用法：
    # 对账到今天（远程价格源）
    python -m divfolio.cli.reconcile portfolio.json

    # 对账到指定日期，只用文档内价格表，结果另存
    python -m divfolio.cli.reconcile portfolio.json --as-of 2024-04-15 --offline --output out.json

说明：
- 已有交易不会被修改或删除，重复执行结果不变；
- 缺价或价格源故障的日期本轮跳过，下次对账自动重试；
- 计划的排程口径随文档写回，之后的对账沿用该口径，--step-mode 只作用于尚未保存口径的计划。
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
    save_portfolio,
    setup_logging,
)
from divfolio.core.log import log
from divfolio.flows.scheduler import reconcile_holding

console = Console()


def _parse_args() -> argparse.Namespace:
    """解析命令行参数。"""
    parser = argparse.ArgumentParser(
        prog="python -m divfolio.cli.reconcile",
        description="定投计划对账：补建交易记录并写回组合文档",
    )
    add_common_args(parser)
    parser.add_argument("--as-of", help="参考日（YYYY-MM-DD，默认今天）")
    parser.add_argument(
        "--step-mode",
        choices=["fixed", "calendar"],
        help="新计划的排程口径（文档中已保存口径的计划不受影响；默认读取 DIVFOLIO_STEP_MODE，未设置为 fixed）",
    )
    parser.add_argument("--output", help="输出文件路径（默认覆盖原文件）")
    parser.add_argument("--dry-run", action="store_true", help="只显示结果，不写回文件")
    return parser.parse_args()


def main() -> int:
    """
    定投对账入口。

    Returns:
        退出码：0=成功；3=价格源不可用；4=参数错误；5=其他失败。
    """
    load_dotenv()
    try:
        args = _parse_args()
        setup_logging(args.debug)
        as_of = parse_day(args.as_of)
        doc = load_portfolio(args.portfolio)
        holdings = doc.to_holdings(default_step_mode=args.step_mode)
        source = resolve_price_source(doc, args.offline)

        table = Table(title=f"定投对账 as_of={as_of}")
        table.add_column("代号")
        table.add_column("计划")
        table.add_column("新增", justify="right")
        table.add_column("跳过", justify="right")
        table.add_column("累计股数", justify="right")

        updated = []
        for holding in holdings:
            new_holding, result = reconcile_holding(
                holding, as_of=as_of, price_source=source
            )
            updated.append(new_holding)
            if result is None:
                continue
            skipped = ", ".join(f"{s.day}({s.reason})" for s in result.skipped) or "-"
            table.add_row(
                holding.symbol,
                result.plan.title or "-",
                str(len(result.added)),
                skipped,
                str(result.plan.total_shares),
            )

        console.print(table)
        if args.dry_run:
            log("[Reconcile] dry-run：未写回文件")
            return EXIT_OK

        target = args.output or args.portfolio
        save_portfolio(target, doc.with_holdings(updated))
        log(f"[Reconcile] 已写回：{target}")
        return EXIT_OK

    except Exception as err:  # noqa: BLE001
        return exit_code_for(err)


if __name__ == "__main__":
    sys.exit(main())
