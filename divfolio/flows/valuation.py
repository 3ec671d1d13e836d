"""
估值引擎：任意参考日的组合市值、投入、股利与行业分布。

口径（所有函数一致）：
- 一次性买入：purchase_date <= as_of 才计入；
- 定投：仅计入 executed 且 date <= as_of 的交易；
- 某代号缺价时，其市值整体不计入（不补 0），投入与股利不受影响；
- 传输失败向上抛出 PriceTransportError，不做静默降级。
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from datetime import date, timedelta
from decimal import Decimal

from divfolio.core.dependency import dependency
from divfolio.core.models.holding import Holding
from divfolio.core.models.metrics import (
    AccountMetrics,
    AssetAllocation,
    DailyChange,
    PortfolioMetrics,
)
from divfolio.core.protocols import PriceSource, SectorLookup
from divfolio.core.rules.precision import ZERO, safe_pct
from divfolio.flows.prices import fetch_price_table, fetch_prices

Prices = Mapping[str, Decimal | None]
# (当日价格, 前一日价格)
TwoDayPrices = tuple[Prices, Prices]


def held_symbols(holdings: Iterable[Holding], as_of: date) -> list[str]:
    """as_of 时有有效股数的代号（去重、保持首次出现顺序）。"""
    symbols = (h.symbol for h in holdings if h.effective_shares(as_of) > 0)
    return list(dict.fromkeys(symbols))


def compute_metrics(
    holdings: Iterable[Holding],
    as_of: date,
    prices: Prices,
) -> PortfolioMetrics:
    """
    用已知价格计算 as_of 的组合指标（纯计算，不查价）。

    Args:
        holdings: 持仓列表。
        as_of: 参考日。
        prices: symbol -> 价格；缺失或 None 视为缺价。

    Returns:
        PortfolioMetrics。
    """
    normal_value = ZERO
    regular_value = ZERO
    normal_dividend = ZERO
    regular_dividend = ZERO
    investment = ZERO
    missing: list[str] = []

    for holding in holdings:
        shares = holding.effective_shares(as_of)
        investment += holding.invested_amount(as_of)
        dividend = holding.annual_dividend(as_of)
        if holding.is_recurring:
            regular_dividend += dividend
        else:
            normal_dividend += dividend

        if shares == 0:
            continue
        price = prices.get(holding.symbol)
        if price is None:
            if holding.symbol not in missing:
                missing.append(holding.symbol)
            continue
        if holding.is_recurring:
            regular_value += price * shares
        else:
            normal_value += price * shares

    total_value = normal_value + regular_value
    annual_dividend = normal_dividend + regular_dividend
    return PortfolioMetrics(
        as_of=as_of,
        total_value=total_value,
        total_investment=investment,
        annual_dividend=annual_dividend,
        dividend_yield=safe_pct(annual_dividend, investment),
        roi=safe_pct(total_value - investment, investment),
        market_yield=safe_pct(annual_dividend, total_value),
        normal_value=normal_value,
        regular_value=regular_value,
        normal_dividend=normal_dividend,
        regular_dividend=regular_dividend,
        missing_prices=tuple(sorted(missing)),
    )


@dependency
def value_as_of(
    holdings: list[Holding],
    *,
    as_of: date,
    prices: Prices | None = None,
    price_source: PriceSource | None = None,
    cancel: threading.Event | None = None,
) -> PortfolioMetrics:
    """
    计算 as_of 的组合估值。

    说明：
    - prices 为 None 时，按 as_of 并发查询持有代号的价格；
    - 已给出 prices 时不访问价格源（离线估值 / 测试）。

    Raises:
        PriceTransportError: 查价传输失败。
        OperationCancelled: 调用方取消。
    """
    if prices is None:
        prices = fetch_prices(
            held_symbols(holdings, as_of), as_of, price_source=price_source, cancel=cancel
        )
    return compute_metrics(holdings, as_of, prices)


def daily_change(
    holdings: Iterable[Holding],
    current_prices: Prices,
    previous_prices: Prices,
    as_of: date,
) -> DailyChange:
    """
    当日损益及涨跌幅。

    口径：
    - change = Σ (当日价 - 前日价) × 有效股数，仅统计两日都有价格的代号；
    - 分母 = Σ 有效股数 × 前日价（前日缺价按 0 计）；
    - percentage = change / 分母 × 100，分母为 0 时为 0。
    """
    change = ZERO
    previous_total = ZERO
    for holding in holdings:
        shares = holding.effective_shares(as_of)
        previous = previous_prices.get(holding.symbol)
        current = current_prices.get(holding.symbol)
        if previous is not None and current is not None:
            change += (current - previous) * shares
        previous_total += (previous or ZERO) * shares
    return DailyChange(change=change, percentage=safe_pct(change, previous_total))


@dependency
def fetch_two_day_prices(
    holdings: list[Holding],
    *,
    as_of: date,
    price_source: PriceSource | None = None,
    cancel: threading.Event | None = None,
) -> tuple[dict[str, Decimal | None], dict[str, Decimal | None]]:
    """
    一次 fan-out 同时查询 as_of 与前一日（日历日）的价格。

    结果可直接传给 value_as_of（当日部分）/ account_metrics / multi_account_metrics。
    """
    previous_day = as_of - timedelta(days=1)
    symbols = held_symbols(holdings, as_of)
    table = fetch_price_table(
        [(s, d) for s in symbols for d in (as_of, previous_day)],
        price_source=price_source,
        cancel=cancel,
    )
    current = {s: table.get((s, as_of)) for s in symbols}
    previous = {s: table.get((s, previous_day)) for s in symbols}
    return current, previous


@dependency
def fetch_daily_change(
    holdings: list[Holding],
    *,
    as_of: date,
    price_source: PriceSource | None = None,
    cancel: threading.Event | None = None,
) -> DailyChange:
    """查询 as_of 与前一日（日历日）的价格后计算当日损益。"""
    current, previous = fetch_two_day_prices(
        holdings, as_of=as_of, price_source=price_source, cancel=cancel
    )
    return daily_change(holdings, current, previous, as_of)


def _account_metrics_from_prices(
    holdings: list[Holding],
    as_of: date,
    current: Prices,
    previous: Prices,
) -> AccountMetrics:
    metrics = compute_metrics(holdings, as_of, current)
    change = daily_change(holdings, current, previous, as_of)
    return AccountMetrics(
        total_value=metrics.total_value,
        total_investment=metrics.total_investment,
        total_profit_loss=metrics.profit_loss,
        total_roi=metrics.roi,
        annual_dividend=metrics.annual_dividend,
        dividend_yield=metrics.market_yield,
        daily_change=change.change,
        daily_change_percentage=change.percentage,
        stock_count=len({h.symbol for h in holdings}),
        regular_count=sum(1 for h in holdings if h.is_recurring),
        normal_count=sum(1 for h in holdings if not h.is_recurring),
    )


@dependency
def account_metrics(
    holdings: list[Holding],
    account_id: str,
    *,
    as_of: date,
    prices: TwoDayPrices | None = None,
    price_source: PriceSource | None = None,
    cancel: threading.Event | None = None,
) -> AccountMetrics:
    """
    单一账户的汇总指标。

    口径：
    - 殖利率以市值为分母（账户总览口径），ROI 以投入为分母；
    - stock_count 为不同代号数量，regular_count / normal_count 为持仓条数；
    - prices 为 (当日, 前一日) 价格；已给出时不访问价格源。
    """
    account_holdings = [h for h in holdings if h.account_id == account_id]
    if prices is None:
        prices = fetch_two_day_prices(
            account_holdings, as_of=as_of, price_source=price_source, cancel=cancel
        )
    current, previous = prices
    return _account_metrics_from_prices(account_holdings, as_of, current, previous)


@dependency
def multi_account_metrics(
    holdings: list[Holding],
    account_ids: Iterable[str],
    *,
    as_of: date,
    prices: TwoDayPrices | None = None,
    price_source: PriceSource | None = None,
    cancel: threading.Event | None = None,
) -> AccountMetrics:
    """
    多账户合计指标。

    口径：
    - 金额与计数为各账户之和（同一代号在不同账户各计一次）；
    - ROI / 殖利率 / 当日涨跌幅在合计值上重新计算，其中涨跌幅以合计市值为分母；
    - prices 为 (当日, 前一日) 价格；已给出时不访问价格源。
    """
    ids = list(dict.fromkeys(account_ids))
    selected = [h for h in holdings if h.account_id in ids]
    if prices is None:
        prices = fetch_two_day_prices(selected, as_of=as_of, price_source=price_source, cancel=cancel)
    current, previous = prices

    total_value = ZERO
    total_investment = ZERO
    annual_dividend = ZERO
    change = ZERO
    stock_count = regular_count = normal_count = 0
    for account_id in ids:
        per_account = [h for h in selected if h.account_id == account_id]
        m = _account_metrics_from_prices(per_account, as_of, current, previous)
        total_value += m.total_value
        total_investment += m.total_investment
        annual_dividend += m.annual_dividend
        change += m.daily_change
        stock_count += m.stock_count
        regular_count += m.regular_count
        normal_count += m.normal_count

    profit_loss = total_value - total_investment
    return AccountMetrics(
        total_value=total_value,
        total_investment=total_investment,
        total_profit_loss=profit_loss,
        total_roi=safe_pct(profit_loss, total_investment),
        annual_dividend=annual_dividend,
        dividend_yield=safe_pct(annual_dividend, total_value),
        daily_change=change,
        daily_change_percentage=safe_pct(change, total_value),
        stock_count=stock_count,
        regular_count=regular_count,
        normal_count=normal_count,
    )


def allocation_from_values(
    values: Mapping[str, Decimal],
    sector_lookup: SectorLookup,
) -> list[AssetAllocation]:
    """
    symbol -> 市值 汇总为行业分布，按占比降序（同占比按行业名排序）。
    """
    amounts: dict[str, Decimal] = {}
    for symbol, value in values.items():
        sector = sector_lookup.sector(symbol)
        amounts[sector] = amounts.get(sector, ZERO) + value
    total = sum(amounts.values(), start=ZERO)
    allocation = [
        AssetAllocation(category=sector, amount=amount, percentage=safe_pct(amount, total))
        for sector, amount in amounts.items()
    ]
    allocation.sort(key=lambda a: (-a.percentage, a.category))
    return allocation


def symbol_values(
    holdings: Iterable[Holding],
    as_of: date,
    prices: Prices,
) -> dict[str, Decimal]:
    """按代号汇总 as_of 的市值（缺价代号不出现）。"""
    values: dict[str, Decimal] = {}
    for holding in holdings:
        price = prices.get(holding.symbol)
        shares = holding.effective_shares(as_of)
        if price is None or shares == 0:
            continue
        values[holding.symbol] = values.get(holding.symbol, ZERO) + price * shares
    return values


@dependency
def asset_allocation(
    holdings: list[Holding],
    *,
    as_of: date,
    prices: Prices | None = None,
    price_source: PriceSource | None = None,
    sector_lookup: SectorLookup | None = None,
) -> list[AssetAllocation]:
    """as_of 的行业市值分布（百分比降序）。"""
    if prices is None:
        prices = fetch_prices(held_symbols(holdings, as_of), as_of, price_source=price_source)
    return allocation_from_values(symbol_values(holdings, as_of, prices), sector_lookup)

