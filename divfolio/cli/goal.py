"""存股目标试算 CLI。

用法：
    # 10 年后累积 100 万，月投 0050 每期需投入多少
    python -m divfolio.cli.goal 0050 --goal 1000000 --years 10

    # 每季投入 30000 于 2330，预测 5 年增长
    python -m divfolio.cli.goal 2330 --amount 30000 --years 5 --per-year 4
"""

from __future__ import annotations

import argparse
import sys
from decimal import Decimal, InvalidOperation

from rich.console import Console
from rich.table import Table

from divfolio.cli.document import EXIT_INVALID, EXIT_OK, exit_code_for
from divfolio.core.log import log
from divfolio.core.rules.goal import growth_projection, historical_return, required_investment
from divfolio.core.rules.precision import HUNDRED, quantize_amount

console = Console()


def _parse_args() -> argparse.Namespace:
    """解析命令行参数。"""
    parser = argparse.ArgumentParser(
        prog="python -m divfolio.cli.goal",
        description="存股目标试算（基于静态历史报酬率）",
    )
    parser.add_argument("symbol", help="股票代号（决定假设报酬率）")
    parser.add_argument("--goal", help="目标金额（给出时计算每期所需投入）")
    parser.add_argument("--amount", help="每期投入金额（未给出 --goal 时必填）")
    parser.add_argument("--years", type=int, required=True, help="投资年数")
    parser.add_argument("--per-year", type=int, default=12, help="每年投入次数（默认 12）")
    return parser.parse_args()


def _decimal(value: str, name: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as err:
        raise ValueError(f"{name} 不是有效数字：{value}") from err


def main() -> int:
    """
    目标试算入口。

    Returns:
        退出码：0=成功；4=参数错误；5=其他失败。
    """
    try:
        args = _parse_args()
        rate = historical_return(args.symbol)
        log(f"[Goal] {args.symbol} 假设年化报酬率 {rate * HUNDRED}%")

        if args.goal:
            amount = required_investment(
                args.symbol, _decimal(args.goal, "goal"), args.years, args.per_year
            )
            console.print(f"每期需投入：[bold]{quantize_amount(amount)}[/bold]")
        elif args.amount:
            amount = _decimal(args.amount, "amount")
        else:
            log("❌ 参数错误：--goal 与 --amount 至少提供一个")
            return EXIT_INVALID

        table = Table(title=f"{args.symbol} 增长预测")
        for column in ("年", "总金额", "本金"):
            table.add_column(column, justify="right")
        for point in growth_projection(args.symbol, amount, args.years, args.per_year):
            if point.year == point.year.to_integral_value():
                table.add_row(
                    str(int(point.year)),
                    str(quantize_amount(point.amount)),
                    str(quantize_amount(point.principal)),
                )
        console.print(table)
        return EXIT_OK

    except Exception as err:  # noqa: BLE001
        return exit_code_for(err)


if __name__ == "__main__":
    sys.exit(main())
