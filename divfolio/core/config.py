from __future__ import annotations

import os

from divfolio.core.models.plan import StepMode


def get_finmind_base_url() -> str:
    """
    返回 FinMind 数据接口地址。

    Returns:
        URL 字符串；默认 `https://api.finmindtrade.com/api/v4/data`（可由 `FINMIND_BASE_URL` 覆盖）。
    """
    return os.getenv("FINMIND_BASE_URL", "https://api.finmindtrade.com/api/v4/data")


def get_finmind_token() -> str | None:
    """
    返回 FinMind API Token。

    说明：从环境变量 `FINMIND_TOKEN` 读取；未配置时匿名访问（有较低的频率限制）。
    """
    return os.getenv("FINMIND_TOKEN") or None


def get_price_timeout() -> float:
    """单次价格请求超时秒数（`PRICE_TIMEOUT`，默认 5）。"""
    return float(os.getenv("PRICE_TIMEOUT", "5"))


def get_price_retries() -> int:
    """价格请求最大重试次数，不含首次（`PRICE_RETRIES`，默认 2）。"""
    return int(os.getenv("PRICE_RETRIES", "2"))


def get_price_workers() -> int:
    """
    并发抓价线程数。

    Returns:
        >= 1 的整数（`DIVFOLIO_PRICE_WORKERS`，默认 8）。
    """
    return max(1, int(os.getenv("DIVFOLIO_PRICE_WORKERS", "8")))


def get_step_mode() -> StepMode:
    """
    返回定投排程步进口径："fixed" 或 "calendar"。

    - 未设置时默认 "fixed"（固定天数步进）；
    - 其它取值视为配置错误。
    """
    value = os.getenv("DIVFOLIO_STEP_MODE", "fixed").lower()
    if value not in ("fixed", "calendar"):
        raise ValueError(f"DIVFOLIO_STEP_MODE 取值无效：{value}（仅支持 fixed/calendar）")
    return value  # type: ignore[return-value]
