"""持仓加权汇总（同一账户同一股票的多笔买入合并展示）。"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from divfolio.core.models.holding import Holding
from divfolio.core.models.weighted import WeightedStockInfo
from divfolio.core.rules.precision import safe_div

GroupKey = tuple[str, str, bool]


def _constituent_shares(holding: Holding) -> int:
    """
    单笔持仓在汇总中贡献的股数。

    一次性买入取 shares；定投的 shares 只是占位，取已执行交易的累计股数。
    """
    if holding.plan is None:
        return holding.shares
    return holding.plan.total_shares


def _constituent_cost(holding: Holding) -> tuple[Decimal, int] | None:
    """
    单笔持仓的 (成本金额, 股数)；成本未知或无股数时返回 None。

    - 一次性买入：purchase_price × shares；
    - 定投：已执行交易金额合计 / 股数合计。
    """
    if holding.plan is None:
        if holding.purchase_price is None or holding.shares == 0:
            return None
        return holding.purchase_price * holding.shares, holding.shares
    shares = holding.plan.total_shares
    if shares == 0:
        return None
    return holding.plan.total_amount, shares


def _build(key: GroupKey, members: list[Holding]) -> WeightedStockInfo:
    symbol, account_id, is_recurring = key
    total_shares = 0
    dividend_weight = Decimal("0")
    cost_total = Decimal("0")
    cost_shares = 0

    for holding in members:
        shares = _constituent_shares(holding)
        total_shares += shares
        dividend_weight += holding.dividend_per_share * shares
        cost = _constituent_cost(holding)
        if cost is not None:
            cost_total += cost[0]
            cost_shares += cost[1]

    weighted_dps = safe_div(dividend_weight, Decimal(total_shares))
    weighted_price = cost_total / cost_shares if cost_shares else None
    name = next((h.name for h in members if h.name), "")

    return WeightedStockInfo(
        symbol=symbol,
        account_id=account_id,
        is_recurring=is_recurring,
        total_shares=total_shares,
        weighted_dividend_per_share=weighted_dps,
        frequency=members[0].frequency,
        weighted_purchase_price=weighted_price,
        name=name,
        details=tuple(members),
    )


def aggregate(
    holdings: Iterable[Holding],
    account_id: str | None = None,
) -> list[WeightedStockInfo]:
    """
    按 (symbol, account_id, is_recurring) 分组汇总持仓。

    口径：
    - account_id 不为空时只汇总该账户；
    - 同一账户同一股票同时有一次性买入与定投时，产生两条记录（不合并）；
    - weighted_dividend_per_share = Σ(dps × 股数) / Σ股数，分母为 0 时为 0；
    - weighted_purchase_price 仅统计已知成本的部分，成本未知的持仓同时排除于分子与分母；
    - 输出按 (symbol, account_id, is_recurring) 排序，details 保持输入顺序。

    Args:
        holdings: 持仓列表。
        account_id: 账户过滤（可选）。

    Returns:
        加权汇总列表。
    """
    groups: dict[GroupKey, list[Holding]] = {}
    for holding in holdings:
        if account_id is not None and holding.account_id != account_id:
            continue
        key = (holding.symbol, holding.account_id, holding.is_recurring)
        groups.setdefault(key, []).append(holding)

    return [_build(key, groups[key]) for key in sorted(groups)]


def aggregate_normal(
    holdings: Iterable[Holding],
    account_id: str | None = None,
) -> list[WeightedStockInfo]:
    """只汇总一次性买入的持仓。"""
    return [info for info in aggregate(holdings, account_id) if not info.is_recurring]


def aggregate_recurring(
    holdings: Iterable[Holding],
    account_id: str | None = None,
) -> list[WeightedStockInfo]:
    """只汇总定投持仓。"""
    return [info for info in aggregate(holdings, account_id) if info.is_recurring]
