"""
启发式风险估算（默认 RiskEstimator 实现）。

重要：本模块的波动率 / Beta / 最大回撤均为基于持仓数量、静态行业表与静态 Beta 表的
经验估算，不是由历史价格序列计算的统计量。调用方依赖这些数值的现有口径，
如需更高精度，应新增一个 RiskEstimator 实现替换，而不是修改本实现。
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from divfolio.core.models.holding import Holding
from divfolio.core.models.metrics import AssetAllocation, RiskMetrics
from divfolio.core.protocols import BetaLookup, SectorLookup
from divfolio.core.rules.schedule import months_between

BASE_VOLATILITY = Decimal("10")
BASE_MAX_DRAWDOWN = Decimal("15")
# 成本未知时用于 Beta 加权的假定价格
DEFAULT_WEIGHT_PRICE = Decimal("100")
HIGH_VOLATILITY_SECTORS = frozenset({"半導體", "生技醫療", "網路科技"})
TOP_HOLDINGS_N = 5


class HeuristicRiskEstimator:
    """
    启发式风险估算。

    - volatility = 10 × (持仓条数 > 10 ? 0.8 : 1.2) × (含高波动行业 ? 1.2 : 0.9)
    - beta = Σ beta × shares × (成本或 100) / Σ 权重；无权重时为 1.0
    - max_drawdown = 15 × 分散系数（代号数 >10: 0.7，>5: 0.85，否则 1.0）
                       × 时间系数（月数 >36: 1.2，>12: 1.0，否则 0.8）
    - sector_concentration = 最大行业占比
    - top_holdings_weight = 前五大分布占比之和（基于行业分布）
    """

    def __init__(self, sector_lookup: SectorLookup, beta_lookup: BetaLookup) -> None:
        self.sector_lookup = sector_lookup
        self.beta_lookup = beta_lookup

    def estimate(
        self,
        holdings: list[Holding],
        allocation: list[AssetAllocation],
        start: date,
        end: date,
    ) -> RiskMetrics:
        volatility = self.volatility(holdings)
        beta = self.beta(holdings)
        drawdown = self.max_drawdown(holdings, start, end)
        concentration = allocation[0].percentage if allocation else Decimal("0")
        top_weight = sum(
            (a.percentage for a in allocation[:TOP_HOLDINGS_N]), start=Decimal("0")
        )
        return RiskMetrics(
            portfolio_volatility=volatility,
            beta=beta,
            max_drawdown=drawdown,
            sector_concentration=concentration,
            top_holdings_weight=top_weight,
            risk_level=risk_level(volatility, beta, concentration),
        )

    def volatility(self, holdings: list[Holding]) -> Decimal:
        count_factor = Decimal("0.8") if len(holdings) > 10 else Decimal("1.2")
        has_high_vol = any(
            self.sector_lookup.sector(h.symbol) in HIGH_VOLATILITY_SECTORS for h in holdings
        )
        sector_factor = Decimal("1.2") if has_high_vol else Decimal("0.9")
        return BASE_VOLATILITY * count_factor * sector_factor

    def beta(self, holdings: list[Holding]) -> Decimal:
        total_weight = Decimal("0")
        weighted = Decimal("0")
        for h in holdings:
            weight = Decimal(h.shares) * (h.purchase_price or DEFAULT_WEIGHT_PRICE)
            total_weight += weight
            weighted += self.beta_lookup.beta(h.symbol) * weight
        if total_weight == 0:
            return Decimal("1.0")
        return weighted / total_weight

    def max_drawdown(self, holdings: list[Holding], start: date, end: date) -> Decimal:
        symbol_count = len({h.symbol for h in holdings})
        if symbol_count > 10:
            diversification = Decimal("0.7")
        elif symbol_count > 5:
            diversification = Decimal("0.85")
        else:
            diversification = Decimal("1.0")

        months = max(1, months_between(start, end))
        if months > 36:
            time_factor = Decimal("1.2")
        elif months > 12:
            time_factor = Decimal("1.0")
        else:
            time_factor = Decimal("0.8")
        return BASE_MAX_DRAWDOWN * diversification * time_factor


def risk_level(volatility: Decimal, beta: Decimal, concentration: Decimal) -> int:
    """
    综合风险等级 0..4（0=低风险，4=高风险）。

    三项评分取整数平均：波动率/6、Beta 分档、行业集中度/20。
    """
    volatility_score = int(volatility / 6)
    if beta < Decimal("0.8"):
        beta_score = 0
    elif beta < Decimal("1.0"):
        beta_score = 1
    elif beta < Decimal("1.2"):
        beta_score = 2
    elif beta < Decimal("1.4"):
        beta_score = 3
    else:
        beta_score = 4
    concentration_score = int(concentration / 20)
    combined = (volatility_score + beta_score + concentration_score) // 3
    return min(4, max(0, combined))


def concentration_rating(concentration: Decimal) -> str:
    """行业集中度评级。"""
    if concentration > 60:
        return "高度集中"
    if concentration > 40:
        return "中度集中"
    if concentration > 20:
        return "适度分散"
    return "高度分散"


RISK_LEVEL_NAMES = ("低风险", "中低风险", "中等风险", "中高风险", "高风险")
