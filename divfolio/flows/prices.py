"""价格并发抓取（估值与趋势共用的 fan-out）。"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date
from decimal import Decimal

from divfolio.core.config import get_price_workers
from divfolio.core.dependency import dependency
from divfolio.core.errors import OperationCancelled
from divfolio.core.protocols import PriceSource

logger = logging.getLogger(__name__)

PriceKey = tuple[str, date]


def _lookup(
    price_source: PriceSource,
    symbol: str,
    day: date,
    cancel: threading.Event | None,
) -> Decimal | None:
    if cancel is not None and cancel.is_set():
        raise OperationCancelled()
    return price_source.get_price(symbol, day)


@dependency
def fetch_price_table(
    keys: Iterable[PriceKey],
    *,
    price_source: PriceSource | None = None,
    max_workers: int | None = None,
    cancel: threading.Event | None = None,
) -> dict[PriceKey, Decimal | None]:
    """
    并发查询一组 (symbol, day) 的价格。

    口径：
    - 相同键只查询一次；
    - 无价格的键值为 None（是否排除由调用方决定）；
    - 任一查询抛出 PriceTransportError 时，取消尚未开始的查询并向上抛出；
    - cancel 被设置后，尚未开始的查询不再发起，抛出 OperationCancelled。

    Args:
        keys: (symbol, day) 序列。
        price_source: 价格源（自动注入）。
        max_workers: 并发线程数，默认读取 DIVFOLIO_PRICE_WORKERS。
        cancel: 协作式取消信号。

    Returns:
        (symbol, day) -> 价格 的字典。

    Raises:
        PriceTransportError: 价格源传输失败。
        OperationCancelled: 调用方取消。
    """
    unique = list(dict.fromkeys(keys))
    if not unique:
        return {}
    if cancel is not None and cancel.is_set():
        raise OperationCancelled()

    workers = min(max_workers or get_price_workers(), len(unique))
    logger.debug("fetch_price_table keys=%d workers=%d", len(unique), workers)

    table: dict[PriceKey, Decimal | None] = {}
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {
            pool.submit(_lookup, price_source, symbol, day, cancel): (symbol, day)
            for symbol, day in unique
        }
        try:
            for future in as_completed(futures):
                table[futures[future]] = future.result()
                if cancel is not None and cancel.is_set():
                    raise OperationCancelled()
        except BaseException:
            for future in futures:
                future.cancel()
            raise
    return table


def fetch_prices(
    symbols: Iterable[str],
    day: date,
    *,
    price_source: PriceSource | None = None,
    max_workers: int | None = None,
    cancel: threading.Event | None = None,
) -> dict[str, Decimal | None]:
    """按同一日期并发查询多个代号的价格，返回 symbol -> 价格。"""
    table = fetch_price_table(
        [(symbol, day) for symbol in symbols],
        price_source=price_source,
        max_workers=max_workers,
        cancel=cancel,
    )
    return {symbol: price for (symbol, _), price in table.items()}
