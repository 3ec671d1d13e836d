"""
自定义日期区间的综合指标。

区间口径：
- "区间内持仓"：purchase_date 落在 [start, end] 的持仓；
- 区间内股数：一次性买入取 shares，定投取 [start, end] 内已执行交易的股数；
- 区间内成本：一次性买入 shares × 成本（未知按 0），定投取 [start, end] 内已执行交易金额；
- 现价：as_of（默认 end）当日的价格；as_of 只决定现价，投入与股利均按区间口径计算。
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from datetime import date
from decimal import Decimal

from divfolio.core.dependency import dependency
from divfolio.core.log import log
from divfolio.core.models.holding import Holding
from divfolio.core.models.metrics import (
    AssetAllocation,
    DividendGrowth,
    MonthlyDividend,
    PerformanceMetrics,
    RangeMetrics,
    RiskMetrics,
    UpcomingDividend,
)
from divfolio.core.models.plan import ContributionTransaction
from divfolio.core.protocols import PriceSource, RiskEstimator, SectorLookup
from divfolio.core.rules.dividend import next_ex_dividend_date, pays_in_month
from divfolio.core.rules.precision import HUNDRED, ZERO, safe_pct
from divfolio.core.rules.schedule import add_months, end_of_month, months_between
from divfolio.flows.prices import fetch_prices
from divfolio.flows.trend import sample
from divfolio.flows.valuation import allocation_from_values

RISK_FREE_RATE = Decimal("2")
# 简化的时间加权折扣系数
TIME_WEIGHT_FACTOR = Decimal("0.9")
UPCOMING_WINDOW_MONTHS = 3


def _executed_between(
    holding: Holding, start: date | None, end: date
) -> list[ContributionTransaction]:
    if holding.plan is None:
        return []
    return [
        t
        for t in holding.plan.transactions
        if t.executed and t.date <= end and (start is None or t.date >= start)
    ]


def range_shares(holding: Holding, start: date, end: date) -> int:
    """区间内股数（定投只计区间内已执行交易）。"""
    return holding.direct_shares + sum(t.shares for t in _executed_between(holding, start, end))


def range_cost(holding: Holding, start: date, end: date) -> Decimal:
    """区间内投入成本。"""
    lot_cost = Decimal(holding.direct_shares) * (holding.purchase_price or ZERO)
    return lot_cost + sum((t.amount for t in _executed_between(holding, start, end)), start=ZERO)


def holdings_in_range(holdings: Iterable[Holding], start: date, end: date) -> list[Holding]:
    return [h for h in holdings if start <= h.purchase_date <= end]


def top_performers(holdings: list[Holding], start: date, end: date) -> list[Holding]:
    """
    按区间年化股利（区间内股数 × 每股股利 × 频率）对代号降序排序。

    同一代号多笔持仓合并计分，每个代号返回第一笔持仓作为代表。
    """
    scores: dict[str, Decimal] = {}
    first: dict[str, Holding] = {}
    for h in holdings:
        score = Decimal(range_shares(h, start, end)) * h.dividend_per_share * h.frequency
        scores[h.symbol] = scores.get(h.symbol, ZERO) + score
        first.setdefault(h.symbol, h)
    ranked = sorted(scores, key=lambda s: (-scores[s], s))
    return [first[s] for s in ranked]


def upcoming_dividends(holdings: Iterable[Holding], end: date) -> list[UpcomingDividend]:
    """
    end 之后 3 个月内的推估除息日（purchase_date <= end 的持仓，每个代号一条）。
    """
    horizon = add_months(end, UPCOMING_WINDOW_MONTHS)
    seen: set[str] = set()
    items: list[UpcomingDividend] = []
    for h in holdings:
        if h.purchase_date > end or h.symbol in seen:
            continue
        ex_date = next_ex_dividend_date(h.frequency, end)
        if ex_date is None or ex_date > horizon:
            continue
        seen.add(h.symbol)
        items.append(
            UpcomingDividend(
                symbol=h.symbol,
                name=h.name,
                ex_dividend_date=ex_date,
                dividend_amount=h.dividend_per_share,
            )
        )
    items.sort(key=lambda u: (u.ex_dividend_date, u.symbol))
    return items


def monthly_dividends(holdings: Iterable[Holding], start: date, end: date) -> list[MonthlyDividend]:
    """
    区间内逐月预计股利（按频率对应的发放月份）。

    - 月份数 = max(1, 完整月数)，从 start 起逐月；
    - 一般持股：purchase_date <= 当月月底则计入 shares × 每股股利；
    - 定投：[start, 当月月底] 内已执行交易股数 × 每股股利。
    """
    eligible = [h for h in holdings if h.purchase_date <= end]
    months = max(1, months_between(start, end))
    result: list[MonthlyDividend] = []
    for i in range(months):
        month = add_months(start, i)
        month_end = end_of_month(month)
        normal = ZERO
        regular = ZERO
        for h in eligible:
            if not pays_in_month(h.frequency, month.month):
                continue
            if h.purchase_date <= month_end:
                normal += Decimal(h.direct_shares) * h.dividend_per_share
            shares = sum(t.shares for t in _executed_between(h, start, month_end))
            regular += Decimal(shares) * h.dividend_per_share
        result.append(
            MonthlyDividend(
                month=month,
                amount=normal + regular,
                normal_dividend=normal,
                regular_dividend=regular,
            )
        )
    return result


def dividend_growth(holdings: Iterable[Holding], start: date, end: date) -> list[DividendGrowth]:
    """
    年度股利成长（以各年 12/31 的持股计算年化股利）。

    - 起讫同一年：输出一条，成长率为 0；
    - 上一年股利为 0：成长率记为 -100（无法计算）。
    """
    eligible = [h for h in holdings if h.purchase_date <= end]
    last_year = max(start.year, end.year)

    yearly: dict[int, Decimal] = {}
    for year in range(start.year, last_year + 1):
        year_end = date(year, 12, 31)
        total = ZERO
        for h in eligible:
            if h.purchase_date > year_end:
                continue
            shares = h.direct_shares + sum(t.shares for t in _executed_between(h, None, year_end))
            total += Decimal(shares) * h.dividend_per_share * h.frequency
        yearly[year] = total

    if start.year >= end.year:
        return [DividendGrowth(year=start.year, annual_dividend=yearly[start.year], growth_rate=ZERO)]

    growth: list[DividendGrowth] = []
    for year in range(start.year + 1, end.year + 1):
        current = yearly[year]
        previous = yearly[year - 1]
        rate = (current / previous - 1) * HUNDRED if previous > 0 else -HUNDRED
        growth.append(DividendGrowth(year=year, annual_dividend=current, growth_rate=rate))
    return growth


def performance(
    holdings: list[Holding],
    start: date,
    end: date,
    as_of: date,
    prices: Mapping[str, Decimal | None],
    volatility: Decimal,
) -> PerformanceMetrics:
    """
    区间绩效（holdings 为区间内持仓）。

    - total_return = 区间内市值 - 区间内成本（缺价代号不计市值）；
    - time_weighted_return：各持仓 (现价 - 成本价) / 成本价 × 0.9 的平均 × 100，成本未知时以现价代替；
    - average_holding_months：max(买入日, start) 到 min(as_of, end) 的完整月数平均（不足按 0）；
    - sharpe_ratio = (报酬率% - 2) / 波动率，波动率为 0 时为 0。
    """
    market_value = ZERO
    cost = ZERO
    twr_sum = ZERO
    for h in holdings:
        cost += range_cost(h, start, end)
        price = prices.get(h.symbol)
        if price is None:
            continue
        market_value += Decimal(range_shares(h, start, end)) * price
        basis = h.purchase_price or price
        twr_sum += (price - basis) / basis * TIME_WEIGHT_FACTOR

    count = max(1, len(holdings))
    ending = min(as_of, end)
    months = [max(0, months_between(max(h.purchase_date, start), ending)) for h in holdings]

    total_return = market_value - cost
    return_pct = safe_pct(total_return, cost)
    sharpe = (return_pct - RISK_FREE_RATE) / volatility if volatility > 0 else ZERO
    return PerformanceMetrics(
        total_return=total_return,
        total_return_percentage=return_pct,
        time_weighted_return=twr_sum / count * HUNDRED,
        average_holding_months=Decimal(sum(months)) / count,
        sharpe_ratio=sharpe,
    )


def range_allocation(
    holdings: list[Holding],
    start: date,
    end: date,
    prices: Mapping[str, Decimal | None],
    sector_lookup: SectorLookup,
) -> list[AssetAllocation]:
    """区间内持仓按现价的行业分布。"""
    values: dict[str, Decimal] = {}
    for h in holdings:
        price = prices.get(h.symbol)
        if price is None:
            continue
        values[h.symbol] = values.get(h.symbol, ZERO) + Decimal(range_shares(h, start, end)) * price
    return allocation_from_values(values, sector_lookup)


@dependency
def risk_summary(
    holdings: list[Holding],
    *,
    start: date,
    end: date,
    as_of: date | None = None,
    prices: Mapping[str, Decimal | None] | None = None,
    price_source: PriceSource | None = None,
    sector_lookup: SectorLookup | None = None,
    risk_estimator: RiskEstimator | None = None,
) -> RiskMetrics:
    """
    区间风险摘要，与 range_metrics(...).risk 同口径。

    - 行业分布按区间内股数 × as_of（默认 end）价格计算；
    - 具体估算由 risk_estimator 决定（默认启发式实现，非统计量）。
    """
    if end < start:
        raise ValueError(f"结束日期早于开始日期：start={start} end={end}")
    in_range = holdings_in_range(holdings, start, end)
    if prices is None:
        symbols = list(dict.fromkeys(h.symbol for h in in_range))
        prices = fetch_prices(symbols, as_of or end, price_source=price_source)
    allocation = range_allocation(in_range, start, end, prices, sector_lookup)
    return risk_estimator.estimate(in_range, allocation, start, end)


@dependency
def range_metrics(
    holdings: list[Holding],
    *,
    start: date,
    end: date,
    as_of: date | None = None,
    price_source: PriceSource | None = None,
    sector_lookup: SectorLookup | None = None,
    risk_estimator: RiskEstimator | None = None,
    cancel: threading.Event | None = None,
) -> RangeMetrics:
    """
    计算 [start, end] 区间的综合指标。

    Args:
        holdings: 全部持仓（函数内部按区间筛选）。
        start / end: 区间（含两端）。
        as_of: 现价日期，默认 end。
        price_source / sector_lookup / risk_estimator: 自动注入。
        cancel: 协作式取消信号。

    Returns:
        RangeMetrics。

    Raises:
        ValueError: end 早于 start。
        PriceTransportError: 查价传输失败。
    """
    if end < start:
        raise ValueError(f"结束日期早于开始日期：start={start} end={end}")
    day = as_of or end
    in_range = holdings_in_range(holdings, start, end)

    trend = sample(holdings, start=start, end=end, price_source=price_source, cancel=cancel)
    symbols = list(dict.fromkeys(h.symbol for h in in_range))
    prices = fetch_prices(symbols, day, price_source=price_source, cancel=cancel)

    total_investment = sum((range_cost(h, start, end) for h in in_range), start=ZERO)
    annual_dividend = sum((h.annual_dividend(end) for h in in_range), start=ZERO)

    allocation = range_allocation(in_range, start, end, prices, sector_lookup)
    risk = risk_estimator.estimate(in_range, allocation, start, end)

    log(f"[RangeMetrics] {start}..{end}: holdings={len(in_range)} symbols={len(symbols)}")
    return RangeMetrics(
        start=start,
        end=end,
        total_investment=total_investment,
        annual_dividend=annual_dividend,
        average_yield=safe_pct(annual_dividend, total_investment),
        stock_count=len(symbols),
        trend=trend,
        top_performers=top_performers(in_range, start, end),
        upcoming_dividends=upcoming_dividends(holdings, end),
        performance=performance(in_range, start, end, day, prices, risk.portfolio_volatility),
        allocation=allocation,
        monthly_dividends=monthly_dividends(holdings, start, end),
        dividend_growth=dividend_growth(holdings, start, end),
        risk=risk,
    )
