from __future__ import annotations

from datetime import date
from decimal import Decimal


class StaticPriceSource:
    """
    内存价格表（PriceSource 实现）。

    用途：
    - 离线估值：CLI 从组合文档读取价格表；
    - 测试：替代远程价格源。

    查找口径：先按 (symbol, day) 精确匹配，其次使用该代号的默认价格（day=None 的条目），都没有返回 None。
    """

    def __init__(self, prices: dict[tuple[str, date | None], Decimal] | None = None) -> None:
        self._prices: dict[tuple[str, date | None], Decimal] = dict(prices or {})
        self.calls: list[tuple[str, date]] = []

    def set_price(self, symbol: str, day: date | None, price: Decimal) -> None:
        """设置价格；day 为 None 表示该代号在任意日期的默认价格。"""
        self._prices[(symbol, day)] = price

    def get_price(self, symbol: str, day: date) -> Decimal | None:
        self.calls.append((symbol, day))
        price = self._prices.get((symbol, day))
        if price is None:
            price = self._prices.get((symbol, None))
        return price
