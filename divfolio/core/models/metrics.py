"""估值与风险指标值对象（按需计算，无独立生命周期）。"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from divfolio.core.models.holding import Holding


@dataclass(slots=True, frozen=True)
class PortfolioMetrics:
    """
    某一参考日的组合指标。

    口径：
    - total_value: 有效股数 × 当日价格；缺价的股票整体不计入（见 missing_prices）；
    - total_investment: 一次性买入 price×shares + 定投已执行金额；
    - annual_dividend: run-rate 年化股利（当前每股股利 × 频率），不是过去 12 个月实收；
    - dividend_yield: annual_dividend / total_investment × 100（成本殖利率）；
    - market_yield: annual_dividend / total_value × 100（市值殖利率）；
    - roi: (total_value - total_investment) / total_investment × 100。
    """

    as_of: date
    total_value: Decimal
    total_investment: Decimal
    annual_dividend: Decimal
    dividend_yield: Decimal
    roi: Decimal
    market_yield: Decimal = Decimal("0")
    normal_value: Decimal = Decimal("0")
    regular_value: Decimal = Decimal("0")
    normal_dividend: Decimal = Decimal("0")
    regular_dividend: Decimal = Decimal("0")
    missing_prices: tuple[str, ...] = ()

    @property
    def profit_loss(self) -> Decimal:
        return self.total_value - self.total_investment


@dataclass(slots=True, frozen=True)
class DailyChange:
    """当日损益及涨跌幅（百分比）。"""

    change: Decimal
    percentage: Decimal


@dataclass(slots=True, frozen=True)
class AccountMetrics:
    """
    账户（或多账户合计）指标。

    - dividend_yield 以市值为分母（与账户总览一致）；
    - stock_count: 不同股票代号数量；
    - regular_count / normal_count: 定投持仓 / 一般持仓的条数。
    """

    total_value: Decimal
    total_investment: Decimal
    total_profit_loss: Decimal
    total_roi: Decimal
    annual_dividend: Decimal
    dividend_yield: Decimal
    daily_change: Decimal
    daily_change_percentage: Decimal
    stock_count: int
    regular_count: int
    normal_count: int


@dataclass(slots=True, frozen=True)
class AssetAllocation:
    """按行业的市值分布。"""

    category: str
    amount: Decimal
    percentage: Decimal


@dataclass(slots=True, frozen=True)
class RiskMetrics:
    """
    风险/分散度摘要。

    注意：以下数值均为启发式估算（基于持仓数量、静态行业表、静态 Beta 表），
    并非基于历史价格序列的统计量。
    """

    portfolio_volatility: Decimal
    beta: Decimal
    max_drawdown: Decimal
    sector_concentration: Decimal
    top_holdings_weight: Decimal
    risk_level: int = 0


@dataclass(slots=True, frozen=True)
class TrendPoint:
    """趋势采样点（一次完整的 as-of 估值）。"""

    date: date
    total_value: Decimal
    total_investment: Decimal
    annual_dividend: Decimal
    dividend_yield: Decimal
    normal_dividend: Decimal
    regular_dividend: Decimal
    normal_value: Decimal
    regular_value: Decimal


@dataclass(slots=True, frozen=True)
class MonthlyDividend:
    """某月预计发放的股利（一般/定投拆分）。"""

    month: date
    amount: Decimal
    normal_dividend: Decimal
    regular_dividend: Decimal


@dataclass(slots=True, frozen=True)
class DividendGrowth:
    """
    年度股利成长。

    growth_rate: 相对上一年的百分比；上一年为 0 时记为 -100（无法计算）。
    """

    year: int
    annual_dividend: Decimal
    growth_rate: Decimal


@dataclass(slots=True, frozen=True)
class UpcomingDividend:
    """即将到来的除息（按频率推估的日期）。"""

    symbol: str
    name: str
    ex_dividend_date: date
    dividend_amount: Decimal


@dataclass(slots=True, frozen=True)
class PerformanceMetrics:
    """区间绩效（time_weighted_return / sharpe_ratio 为简化估算）。"""

    total_return: Decimal
    total_return_percentage: Decimal
    time_weighted_return: Decimal
    average_holding_months: Decimal
    sharpe_ratio: Decimal


@dataclass(slots=True)
class RangeMetrics:
    """自定义日期区间的综合指标。"""

    start: date
    end: date
    total_investment: Decimal = Decimal("0")
    annual_dividend: Decimal = Decimal("0")
    average_yield: Decimal = Decimal("0")
    stock_count: int = 0
    trend: list[TrendPoint] = field(default_factory=list)
    top_performers: list[Holding] = field(default_factory=list)
    upcoming_dividends: list[UpcomingDividend] = field(default_factory=list)
    performance: PerformanceMetrics | None = None
    allocation: list[AssetAllocation] = field(default_factory=list)
    monthly_dividends: list[MonthlyDividend] = field(default_factory=list)
    dividend_growth: list[DividendGrowth] = field(default_factory=list)
    risk: RiskMetrics | None = None
