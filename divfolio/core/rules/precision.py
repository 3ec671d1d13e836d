"""
金额/股数/价格精度工具函数。

统一精度规则：
- 金额：2 位小数；
- 价格：4 位小数；
- 百分比：4 位小数（仅用于展示与比较）；
- 股数：整数，按向下取整。
"""

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def quantize_amount(amount: Decimal) -> Decimal:
    """将金额量化为 2 位小数。"""
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def quantize_price(price: Decimal) -> Decimal:
    """将价格量化为 4 位小数。"""
    return price.quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)


def quantize_pct(pct: Decimal) -> Decimal:
    """将百分比量化为 4 位小数。"""
    return pct.quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)


def floor_shares(amount: Decimal, price: Decimal) -> int:
    """
    计算可买入股数：floor(amount / price)。

    Args:
        amount: 投入金额。
        price: 成交价格（必须 > 0）。

    Returns:
        非负整数股数。

    Raises:
        ValueError: price <= 0。
    """
    if price <= ZERO:
        raise ValueError(f"价格必须大于 0：{price}")
    return int((amount / price).to_integral_value(rounding=ROUND_DOWN))


def safe_pct(numerator: Decimal, denominator: Decimal) -> Decimal:
    """numerator / denominator × 100；分母为 0 时返回 0。"""
    if denominator == ZERO:
        return ZERO
    return numerator / denominator * HUNDRED


def safe_div(numerator: Decimal, denominator: Decimal) -> Decimal:
    """numerator / denominator；分母为 0 时返回 0。"""
    if denominator == ZERO:
        return ZERO
    return numerator / denominator
