from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from uuid import uuid4

from divfolio.core.errors import InvalidHoldingError
from divfolio.core.models.plan import RecurringPlan

# 股利发放频率（每年次数）：年配/半年配/季配/月配
DIVIDEND_FREQUENCIES = (1, 2, 4, 12)


@dataclass(slots=True, frozen=True)
class Holding:
    """
    持仓（一次性买入 lot 或定投计划的载体）。

    说明：
    - 金额/价格使用 Decimal，股数使用 int；
    - purchase_price 为 None 表示成本未知，不视为零成本；
    - plan 不为空时为定投持仓：shares 只是占位，经济口径全部来自 plan 的已执行交易；
    - 构造时校验参数，非法输入抛 InvalidHoldingError。
    """

    symbol: str
    account_id: str
    shares: int
    purchase_date: date
    dividend_per_share: Decimal = Decimal("0")
    frequency: int = 1
    purchase_price: Decimal | None = None
    name: str = ""
    plan: RecurringPlan | None = None
    id: str = field(default_factory=lambda: uuid4().hex)

    def __post_init__(self) -> None:
        if not self.symbol:
            raise InvalidHoldingError("股票代号不能为空")
        if not self.account_id:
            raise InvalidHoldingError(f"{self.symbol}: 账户不能为空")
        if self.shares < 0:
            raise InvalidHoldingError(f"{self.symbol}: 股数不能为负：{self.shares}")
        if self.dividend_per_share < Decimal("0"):
            raise InvalidHoldingError(
                f"{self.symbol}: 每股股利不能为负：{self.dividend_per_share}"
            )
        if self.frequency not in DIVIDEND_FREQUENCIES:
            raise InvalidHoldingError(
                f"{self.symbol}: 发放频率无效：{self.frequency}（仅支持 1/2/4/12）"
            )
        if self.purchase_price is not None and self.purchase_price <= Decimal("0"):
            raise InvalidHoldingError(
                f"{self.symbol}: 买入价格必须大于 0：{self.purchase_price}"
            )

    @property
    def is_recurring(self) -> bool:
        return self.plan is not None

    @property
    def direct_shares(self) -> int:
        """一次性买入贡献的股数（定投持仓恒为 0）。"""
        return 0 if self.plan is not None else self.shares

    def effective_shares(self, as_of: date) -> int:
        """
        截至 as_of 的有效股数。

        - 一次性买入：purchase_date <= as_of 时计入全部股数；
        - 定投：累计 executed 且 date <= as_of 的交易股数。
        """
        if self.plan is None:
            return self.shares if self.purchase_date <= as_of else 0
        return sum(t.shares for t in self.plan.executed_transactions(as_of))

    def invested_amount(self, as_of: date) -> Decimal:
        """
        截至 as_of 的投入成本。

        - 一次性买入：price × shares；价格未知时贡献 0；
        - 定投：累计已执行交易金额。
        """
        if self.plan is None:
            if self.purchase_date > as_of or self.purchase_price is None:
                return Decimal("0")
            return self.purchase_price * Decimal(self.shares)
        return sum(
            (t.amount for t in self.plan.executed_transactions(as_of)), start=Decimal("0")
        )

    def annual_dividend(self, as_of: date) -> Decimal:
        """年化股利（run-rate）：有效股数 × 每股股利 × 频率。"""
        return Decimal(self.effective_shares(as_of)) * self.dividend_per_share * self.frequency

    def with_plan(self, plan: RecurringPlan) -> Holding:
        """返回替换定投计划后的新持仓。"""
        return replace(self, plan=plan)
