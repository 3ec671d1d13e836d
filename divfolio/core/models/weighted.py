from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from divfolio.core.models.holding import Holding


@dataclass(slots=True, frozen=True)
class WeightedStockInfo:
    """
    加权汇总（派生，不落库）。

    按 (symbol, account_id, is_recurring) 分组：
    同一账户同一股票同时有一次性买入与定投时，产生两条记录，不合并。

    - weighted_dividend_per_share: Σ(dps × 股数) / Σ股数，分母为 0 时为 0；
    - weighted_purchase_price: 仅统计已知成本的部分；全部未知时为 None；
    - frequency: 取分组内第一条持仓的发放频率。
    """

    symbol: str
    account_id: str
    is_recurring: bool
    total_shares: int
    weighted_dividend_per_share: Decimal
    frequency: int
    weighted_purchase_price: Decimal | None = None
    name: str = ""
    details: tuple[Holding, ...] = field(default_factory=tuple)

    def total_annual_dividend(self) -> Decimal:
        """总年化股利。"""
        return Decimal(self.total_shares) * self.weighted_dividend_per_share * self.frequency

    def total_cost_value(self) -> Decimal | None:
        """按加权成本计算的持仓价值；成本未知时为 None。"""
        if self.weighted_purchase_price is None:
            return None
        return Decimal(self.total_shares) * self.weighted_purchase_price
