"""
依赖容器模块。

职责：
- 集中管理依赖对象的创建逻辑，通过 @register 注册到依赖注入容器；
- 本模块在 divfolio/flows/__init__.py 中自动导入，确保注册表在任何 Flow 使用前被填充。

使用方式：
    # 1. 在 Flow 函数中自动注入
    @dependency
    def value_as_of(holdings, *, as_of, price_source=None):
        ...

    # 2. 在 CLI 中直接调用工厂函数
    source = get_price_source()

    # 3. 测试时手动传入
    value_as_of(holdings, as_of=day, price_source=StaticPriceSource({...}))
"""

from __future__ import annotations

from divfolio.core.dependency import register
from divfolio.core.protocols import BetaLookup, PriceSource, RiskEstimator, SectorLookup
from divfolio.core.rules.risk import HeuristicRiskEstimator
from divfolio.data.client.finmind import FinmindPriceSource
from divfolio.data.lookup import StaticBetaLookup, StaticSectorLookup


@register("price_source")
def get_price_source() -> PriceSource:
    """
    获取默认价格源（FinMind 远程接口）。

    注册名：price_source
    """
    return FinmindPriceSource()


@register("sector_lookup")
def get_sector_lookup() -> SectorLookup:
    """
    获取行业分类表。

    注册名：sector_lookup
    """
    return StaticSectorLookup()


@register("beta_lookup")
def get_beta_lookup() -> BetaLookup:
    """
    获取 Beta 参考表。

    注册名：beta_lookup
    """
    return StaticBetaLookup()


@register("risk_estimator")
def get_risk_estimator() -> RiskEstimator:
    """
    获取风险估算策略（默认启发式实现）。

    注册名：risk_estimator
    """
    return HeuristicRiskEstimator(get_sector_lookup(), get_beta_lookup())
