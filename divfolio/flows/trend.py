"""趋势采样：在 [start, end] 区间内按自适应间隔做多次 as-of 估值。"""

from __future__ import annotations

import threading
from datetime import date

from divfolio.core.dependency import dependency
from divfolio.core.log import log
from divfolio.core.models.holding import Holding
from divfolio.core.models.metrics import TrendPoint
from divfolio.core.protocols import PriceSource
from divfolio.core.rules.schedule import add_months, months_between
from divfolio.flows.prices import fetch_price_table
from divfolio.flows.valuation import compute_metrics, held_symbols


def choose_interval(start: date, end: date) -> int:
    """
    按区间跨度选择采样间隔（月）。

    跨度 = max(1, 完整月数)：<=3 → 1；<=12 → 2；<=36 → 6；其余 → 12。
    """
    span = max(1, months_between(start, end))
    if span <= 3:
        return 1
    if span <= 12:
        return 2
    if span <= 36:
        return 6
    return 12


def sample_dates(start: date, end: date) -> list[date]:
    """
    生成采样日期：start、start + k×间隔（严格早于 end），最后一个点恰为 end。

    Raises:
        ValueError: end 早于 start。
    """
    if end < start:
        raise ValueError(f"结束日期早于开始日期：start={start} end={end}")
    interval = choose_interval(start, end)
    dates: list[date] = []
    k = 0
    current = start
    while current < end:
        dates.append(current)
        k += 1
        current = add_months(start, interval * k)
    dates.append(end)
    return dates


@dependency
def sample(
    holdings: list[Holding],
    *,
    start: date,
    end: date,
    price_source: PriceSource | None = None,
    cancel: threading.Event | None = None,
) -> list[TrendPoint]:
    """
    生成趋势序列。

    口径：
    - 每个采样点都是一次完整的 as-of 估值（市值、投入、股利、殖利率及一般/定投拆分）；
    - 全部 (symbol, 采样日) 的价格在一次并发 fan-out 中查询；
    - 缺价代号在该点的市值中排除，与 value_as_of 一致。

    Raises:
        ValueError: end 早于 start。
        PriceTransportError: 查价传输失败。
        OperationCancelled: 调用方取消。
    """
    dates = sample_dates(start, end)
    keys = [(symbol, day) for day in dates for symbol in held_symbols(holdings, day)]
    table = fetch_price_table(keys, price_source=price_source, cancel=cancel)
    log(f"[Trend] {start}..{end}: points={len(dates)} lookups={len(table)}")

    points: list[TrendPoint] = []
    for day in dates:
        prices = {symbol: price for (symbol, d), price in table.items() if d == day}
        m = compute_metrics(holdings, day, prices)
        points.append(
            TrendPoint(
                date=day,
                total_value=m.total_value,
                total_investment=m.total_investment,
                annual_dividend=m.annual_dividend,
                dividend_yield=m.dividend_yield,
                normal_dividend=m.normal_dividend,
                regular_dividend=m.regular_dividend,
                normal_value=m.normal_value,
                regular_value=m.regular_value,
            )
        )
    return points
