"""
简单日志输出（面向人的进度信息）。

说明：
- log() 只用于 CLI / Flow 的进度与结果提示，不作为错误通道；
- 诊断信息使用 logging.getLogger(__name__)，由入口决定级别。
"""

from __future__ import annotations

import sys


def log(msg: str) -> None:
    """输出一行进度信息到 stderr。"""
    print(msg, file=sys.stderr, flush=True)
