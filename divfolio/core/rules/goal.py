"""
存股目标试算（纯函数）。

口径：
- 年化报酬率来自静态历史报酬表（模拟过去 10 年平均），未收录的代号默认 8%；
- 每期利率 = 年化报酬率 / 每年投入次数；
- 所需每期投入按年金终值公式反推：PMT = FV × r / ((1 + r)^(n·t) - 1)。
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

HISTORICAL_RETURNS: dict[str, Decimal] = {
    "0050": Decimal("0.09"),
    "2330": Decimal("0.15"),
}
DEFAULT_RETURN = Decimal("0.08")


@dataclass(slots=True, frozen=True)
class GrowthPoint:
    """
    增长预测点。

    - year: 时间点（年，可为小数，如 0.25 表示第 1 年第 1 季）；
    - amount: 期末总金额；
    - principal: 其中累计本金。
    """

    year: Decimal
    amount: Decimal
    principal: Decimal


def historical_return(symbol: str) -> Decimal:
    """返回代号的年化历史报酬率（小数形式）。"""
    return HISTORICAL_RETURNS.get(symbol, DEFAULT_RETURN)


def _check_periods(years: int, payments_per_year: int) -> None:
    if years <= 0:
        raise ValueError(f"投资年数必须大于 0：{years}")
    if payments_per_year <= 0:
        raise ValueError(f"每年投入次数必须大于 0：{payments_per_year}")


def required_investment(
    symbol: str,
    goal: Decimal,
    years: int,
    payments_per_year: int,
) -> Decimal:
    """
    计算达到目标金额所需的每期投入。

    Args:
        symbol: 股票代号（决定报酬率）。
        goal: 目标金额。
        years: 投资年数。
        payments_per_year: 每年投入次数（12=月投，4=季投）。

    Returns:
        每期投入金额（未量化）。

    Raises:
        ValueError: years / payments_per_year 非正，或目标金额为负。
    """
    _check_periods(years, payments_per_year)
    if goal < 0:
        raise ValueError(f"目标金额不能为负：{goal}")
    rate = historical_return(symbol) / payments_per_year
    total_payments = years * payments_per_year
    if rate == 0:
        return goal / total_payments
    compound = (1 + rate) ** total_payments
    return goal * rate / (compound - 1)


def growth_projection(
    symbol: str,
    periodic_amount: Decimal,
    years: int,
    payments_per_year: int,
) -> list[GrowthPoint]:
    """
    生成定期投入的增长预测序列（共 years × payments_per_year + 1 个点）。

    说明：
    - 第 0 期金额为 0；
    - 之后每期先按每期利率复利，再加上本期投入；最后一期只复利不投入；
    - principal 为 min(期数, 总期数) × 每期投入。
    """
    _check_periods(years, payments_per_year)
    rate = historical_return(symbol) / payments_per_year
    total_periods = years * payments_per_year

    projection: list[GrowthPoint] = []
    amount = Decimal("0")
    for period in range(total_periods + 1):
        if period > 0:
            amount = amount * (1 + rate)
            if period < total_periods:
                amount += periodic_amount
        projection.append(
            GrowthPoint(
                year=Decimal(period) / payments_per_year,
                amount=amount,
                principal=min(period, total_periods) * periodic_amount,
            )
        )
    return projection
