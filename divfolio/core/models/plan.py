from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Literal
from uuid import uuid4

from divfolio.core.errors import InvalidPlanError

# 排程步进口径：fixed 按固定天数，calendar 按日历月/季
StepMode = Literal["fixed", "calendar"]
STEP_MODES: tuple[StepMode, ...] = ("fixed", "calendar")


class PlanFrequency(str, Enum):
    """
    定投频率。

    说明：
    - 继承自 str，便于 JSON/CLI 直接使用字符串值；
    - days: 固定天数步长（7/30/90），为默认排程口径；
    - months: 日历步长（按月/季），仅 step_mode="calendar" 时使用，weekly 为 None。
    """

    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"

    def __str__(self) -> str:
        return self.value

    @property
    def days(self) -> int:
        return _FREQUENCY_DAYS[self]

    @property
    def months(self) -> int | None:
        return _FREQUENCY_MONTHS[self]


_FREQUENCY_DAYS = {
    PlanFrequency.WEEKLY: 7,
    PlanFrequency.MONTHLY: 30,
    PlanFrequency.QUARTERLY: 90,
}

_FREQUENCY_MONTHS = {
    PlanFrequency.WEEKLY: None,
    PlanFrequency.MONTHLY: 1,
    PlanFrequency.QUARTERLY: 3,
}


@dataclass(slots=True, frozen=True)
class ContributionTransaction:
    """
    定投交易记录（不可变）。

    - shares: floor(amount / price)；价格高于每期金额时为 0，交易仍记录且金额计入投入；
    - executed: 创建时按 date <= as_of 判定，之后不再翻转；
    - id 不参与相等比较，同一天由不同对账生成的记录视为相同。
    """

    date: date
    amount: Decimal
    shares: int
    price: Decimal
    executed: bool = False
    id: str = field(default_factory=lambda: uuid4().hex, compare=False)


@dataclass(slots=True, frozen=True)
class RecurringPlan:
    """
    定投计划（不可变，对账返回新实例）。

    不变量：
    - amount > 0；
    - end_date 为空或 >= start_date（结束日早于开始日在构造时拒绝）；
    - transactions 按日期严格递增，每个日期至多一条；
    - step_mode 随计划保存，已有交易的计划始终按同一口径排程。
    """

    title: str
    amount: Decimal
    frequency: PlanFrequency
    start_date: date
    end_date: date | None = None
    is_active: bool = True
    note: str | None = None
    transactions: tuple[ContributionTransaction, ...] = ()
    step_mode: StepMode = "fixed"

    def __post_init__(self) -> None:
        if self.amount <= Decimal("0"):
            raise InvalidPlanError(f"定投金额必须大于 0：{self.amount}")
        if self.end_date is not None and self.end_date < self.start_date:
            raise InvalidPlanError(
                f"结束日期早于开始日期：start={self.start_date} end={self.end_date}"
            )
        if self.step_mode not in STEP_MODES:
            raise InvalidPlanError(f"排程口径无效：{self.step_mode}（仅支持 fixed/calendar）")
        # 允许传入 list，统一转为 tuple
        txs = tuple(self.transactions)
        for prev, cur in zip(txs, txs[1:]):
            if cur.date <= prev.date:
                raise InvalidPlanError(f"交易记录未按日期严格递增：{prev.date} -> {cur.date}")
        object.__setattr__(self, "transactions", txs)

    def executed_transactions(self, as_of: date | None = None) -> list[ContributionTransaction]:
        """已执行且（可选）不晚于 as_of 的交易。"""
        return [
            t for t in self.transactions if t.executed and (as_of is None or t.date <= as_of)
        ]

    @property
    def total_amount(self) -> Decimal:
        """已执行交易的累计投入金额。"""
        return sum((t.amount for t in self.executed_transactions()), start=Decimal("0"))

    @property
    def total_shares(self) -> int:
        """已执行交易的累计股数。"""
        return sum(t.shares for t in self.executed_transactions())

    @property
    def average_cost(self) -> Decimal | None:
        """平均成本；尚无成交股数时为 None。"""
        shares = self.total_shares
        if shares == 0:
            return None
        return self.total_amount / Decimal(shares)

    def transaction_dates(self) -> set[date]:
        return {t.date for t in self.transactions}
