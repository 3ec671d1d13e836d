from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Protocol

from divfolio.core.models.holding import Holding
from divfolio.core.models.metrics import AssetAllocation, RiskMetrics

# ============================================================================
# 外部数据协议
# ============================================================================


class PriceSource(Protocol):
    """
    价格源协议（外部能力，可能是远程服务）。

    约定：
    - "当日无价格"返回 None，不抛异常；
    - 网络/服务故障抛出 PriceTransportError，由调用方决定重试或降级。
    """

    def get_price(self, symbol: str, day: date) -> Decimal | None:
        """
        读取指定股票在给定日期的收盘价。

        Returns:
            Decimal 价格；无数据返回 None。

        Raises:
            PriceTransportError: 传输失败。
        """


class SectorLookup(Protocol):
    """股票代号 → 行业分类（静态注入表）。"""

    def sector(self, symbol: str) -> str:
        """未知代号返回默认分类（"其他"）。"""


class BetaLookup(Protocol):
    """股票代号 → Beta 参考值（静态注入表）。"""

    def beta(self, symbol: str) -> Decimal:
        """未知代号返回 1.0。"""


# ============================================================================
# 领域策略协议
# ============================================================================


class RiskEstimator(Protocol):
    """
    风险估算策略。

    ValuationEngine 只依赖本协议；默认实现为启发式估算，
    未来可替换为基于历史价格序列的统计实现而不改动调用方。
    """

    def estimate(
        self,
        holdings: list[Holding],
        allocation: list[AssetAllocation],
        start: date,
        end: date,
    ) -> RiskMetrics:
        """
        Args:
            holdings: 参与评估的持仓（已按区间筛选）。
            allocation: 按行业的市值分布（百分比降序）。
            start / end: 评估区间。
        """
