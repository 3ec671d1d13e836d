"""
错误分类。

三类失败：
- 数据缺失（价格/行业缺失）：不抛异常，由调用方按规则排除或使用默认值；
- 传输失败（网络/HTTP 错误）：抛出 PriceTransportError，调用方可决定是否重试；
- 非法输入（负股数、结束日早于开始日等）：在构造实体时抛出 ValueError 子类。
"""

from __future__ import annotations

from datetime import date
from typing import Any


class InvalidHoldingError(ValueError):
    """持仓参数非法（构造时校验失败）。"""


class InvalidPlanError(ValueError):
    """定投计划参数非法（构造时校验失败）。"""


class PriceTransportError(RuntimeError):
    """
    价格源传输失败（区别于"当日无价格"）。

    - symbol / day: 失败的查询键；
    - reason: 底层错误描述。
    """

    def __init__(self, symbol: str, day: date, reason: str) -> None:
        super().__init__(f"价格查询失败：symbol={symbol} day={day} reason={reason}")
        self.symbol = symbol
        self.day = day
        self.reason = reason


class OperationCancelled(RuntimeError):
    """
    长耗时计算被调用方取消。

    partial: 已完成的部分结果（仅定投对账会携带，其余为 None）。
    """

    def __init__(self, message: str = "操作已取消", partial: Any = None) -> None:
        super().__init__(message)
        self.partial = partial
