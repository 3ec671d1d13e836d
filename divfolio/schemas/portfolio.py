"""
组合文档 Schema（Pydantic 模型）。

职责：
- 定义 CLI 读写的组合 JSON 文档结构（账户、持仓、定投计划、离线价格表）；
- 在边界处做格式校验，再转换为 core 层的不可变实体；
- 对账后把实体写回文档（交易记录只增不减）。

说明：
- 金额/价格字段解析为 Decimal；JSON 中数字与字符串均可；
- 业务不变量（结束日不早于开始日、交易日期严格递增等）由实体构造时校验；
- 定投计划的 step_mode 随文档保存；未写明时取调用方给出的默认值，再退回 DIVFOLIO_STEP_MODE；
- 持仓与交易的 id 随文档保存，重复加载保持不变。
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from divfolio.core.config import get_step_mode
from divfolio.core.models.account import Account
from divfolio.core.models.holding import Holding
from divfolio.core.models.plan import (
    ContributionTransaction,
    PlanFrequency,
    RecurringPlan,
    StepMode,
)


def _id_kwargs(doc_id: str | None) -> dict[str, str]:
    """文档未保存 id 时交由实体生成。"""
    return {"id": doc_id} if doc_id else {}


class TransactionDoc(BaseModel):
    """定投交易记录。"""

    id: str | None = None
    date: dt.date
    amount: Decimal = Field(..., gt=0)
    shares: int = Field(..., ge=0)
    price: Decimal = Field(..., gt=0)
    executed: bool = False

    def to_entity(self) -> ContributionTransaction:
        return ContributionTransaction(
            date=self.date,
            amount=self.amount,
            shares=self.shares,
            price=self.price,
            executed=self.executed,
            **_id_kwargs(self.id),
        )

    @classmethod
    def from_entity(cls, tx: ContributionTransaction) -> TransactionDoc:
        return cls(
            id=tx.id,
            date=tx.date,
            amount=tx.amount,
            shares=tx.shares,
            price=tx.price,
            executed=tx.executed,
        )


class PlanDoc(BaseModel):
    """定投计划。"""

    title: str = ""
    amount: Decimal = Field(..., gt=0, description="每期投入金额")
    frequency: PlanFrequency = PlanFrequency.MONTHLY
    step_mode: StepMode | None = Field(None, description="排程口径：fixed / calendar")
    start_date: dt.date
    end_date: dt.date | None = None
    is_active: bool = True
    note: str | None = None
    transactions: list[TransactionDoc] = Field(default_factory=list)

    def to_entity(self, default_step_mode: StepMode | None = None) -> RecurringPlan:
        """
        转换为定投计划实体。

        Args:
            default_step_mode: 文档未写明 step_mode 时使用；为空则读取 DIVFOLIO_STEP_MODE。
        """
        return RecurringPlan(
            title=self.title,
            amount=self.amount,
            frequency=self.frequency,
            start_date=self.start_date,
            end_date=self.end_date,
            is_active=self.is_active,
            note=self.note,
            transactions=tuple(
                t.to_entity() for t in sorted(self.transactions, key=lambda t: t.date)
            ),
            step_mode=self.step_mode or default_step_mode or get_step_mode(),
        )

    @classmethod
    def from_entity(cls, plan: RecurringPlan) -> PlanDoc:
        return cls(
            title=plan.title,
            amount=plan.amount,
            frequency=plan.frequency,
            step_mode=plan.step_mode,
            start_date=plan.start_date,
            end_date=plan.end_date,
            is_active=plan.is_active,
            note=plan.note,
            transactions=[TransactionDoc.from_entity(t) for t in plan.transactions],
        )


class HoldingDoc(BaseModel):
    """持仓（一次性买入或定投）。"""

    id: str | None = None
    symbol: str = Field(..., min_length=1, description="股票代号，如 2330、0050")
    account_id: str = Field(..., min_length=1)
    name: str = ""
    shares: int = Field(0, ge=0)
    purchase_date: dt.date
    purchase_price: Decimal | None = Field(None, gt=0, description="买入价格，未知时留空")
    dividend_per_share: Decimal = Field(Decimal("0"), ge=0)
    frequency: Literal[1, 2, 4, 12] = Field(1, description="每年发放次数：1/2/4/12")
    plan: PlanDoc | None = None

    def to_entity(self, default_step_mode: StepMode | None = None) -> Holding:
        return Holding(
            symbol=self.symbol,
            account_id=self.account_id,
            shares=self.shares,
            purchase_date=self.purchase_date,
            dividend_per_share=self.dividend_per_share,
            frequency=self.frequency,
            purchase_price=self.purchase_price,
            name=self.name,
            plan=self.plan.to_entity(default_step_mode) if self.plan is not None else None,
            **_id_kwargs(self.id),
        )

    @classmethod
    def from_entity(cls, holding: Holding) -> HoldingDoc:
        return cls(
            id=holding.id,
            symbol=holding.symbol,
            account_id=holding.account_id,
            name=holding.name,
            shares=holding.shares,
            purchase_date=holding.purchase_date,
            purchase_price=holding.purchase_price,
            dividend_per_share=holding.dividend_per_share,
            frequency=holding.frequency,
            plan=PlanDoc.from_entity(holding.plan) if holding.plan is not None else None,
        )


class AccountDoc(BaseModel):
    """账户（银行/券商）。"""

    id: str = Field(..., min_length=1)
    name: str = ""
    created_date: dt.date | None = None

    def to_entity(self) -> Account:
        return Account(id=self.id, name=self.name or self.id, created_date=self.created_date)


class PriceDoc(BaseModel):
    """离线价格条目；date 为空表示该代号在任意日期的默认价格。"""

    symbol: str = Field(..., min_length=1)
    date: dt.date | None = None
    price: Decimal = Field(..., gt=0)


class PortfolioDoc(BaseModel):
    """组合文档根节点。"""

    accounts: list[AccountDoc] = Field(default_factory=list)
    holdings: list[HoldingDoc] = Field(default_factory=list)
    prices: list[PriceDoc] = Field(default_factory=list)

    def to_holdings(self, default_step_mode: StepMode | None = None) -> list[Holding]:
        """
        转换为持仓实体。

        Args:
            default_step_mode: 未写明 step_mode 的定投计划使用的排程口径。

        Raises:
            InvalidHoldingError / InvalidPlanError: 业务不变量校验失败（均为 ValueError）。
        """
        return [h.to_entity(default_step_mode) for h in self.holdings]

    def to_accounts(self) -> list[Account]:
        return [a.to_entity() for a in self.accounts]

    def account_ids(self) -> list[str]:
        """文档中声明的账户；未声明时取持仓中出现的账户（保持出现顺序）。"""
        if self.accounts:
            return [a.id for a in self.accounts]
        return list(dict.fromkeys(h.account_id for h in self.holdings))

    def price_table(self) -> dict[tuple[str, dt.date | None], Decimal]:
        return {(p.symbol, p.date): p.price for p in self.prices}

    def with_holdings(self, holdings: list[Holding]) -> PortfolioDoc:
        """返回替换持仓后的新文档（账户与价格表保持不变）。"""
        return self.model_copy(update={"holdings": [HoldingDoc.from_entity(h) for h in holdings]})
