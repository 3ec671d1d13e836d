from .account import Account
from .holding import DIVIDEND_FREQUENCIES, Holding
from .metrics import (
    AccountMetrics,
    AssetAllocation,
    DailyChange,
    DividendGrowth,
    MonthlyDividend,
    PerformanceMetrics,
    PortfolioMetrics,
    RangeMetrics,
    RiskMetrics,
    TrendPoint,
    UpcomingDividend,
)
from .plan import ContributionTransaction, PlanFrequency, RecurringPlan, StepMode
from .schedule import ReconcileResult, SkippedDate, SkipReason
from .weighted import WeightedStockInfo

"""
领域模型聚合导出。

说明：
- 仅做名称聚合，不引入额外逻辑，便于上层模块统一引用；
- 各子模块仍可直接导入。
"""

__all__ = [
    # 账户与持仓
    "Account",
    "Holding",
    "DIVIDEND_FREQUENCIES",
    # 定投
    "RecurringPlan",
    "PlanFrequency",
    "ContributionTransaction",
    "ReconcileResult",
    "SkippedDate",
    "SkipReason",
    "StepMode",
    # 加权汇总
    "WeightedStockInfo",
    # 指标
    "PortfolioMetrics",
    "DailyChange",
    "AccountMetrics",
    "AssetAllocation",
    "RiskMetrics",
    "TrendPoint",
    "MonthlyDividend",
    "DividendGrowth",
    "UpcomingDividend",
    "PerformanceMetrics",
    "RangeMetrics",
]
