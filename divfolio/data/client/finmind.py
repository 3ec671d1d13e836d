from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from time import sleep

import httpx

from divfolio.core.config import (
    get_finmind_base_url,
    get_finmind_token,
    get_price_retries,
    get_price_timeout,
)
from divfolio.core.errors import PriceTransportError
from divfolio.core.log import log

logger = logging.getLogger(__name__)

# 台股日收盘价数据集
DATASET = "TaiwanStockPrice"


class FinmindPriceSource:
    """
    FinMind 台股收盘价客户端（PriceSource 实现）。

    职责：
    - 按 (symbol, day) 查询当日收盘价；
    - 仅负责 HTTP 请求与响应解析，不做缓存与落库。

    失败口径：
    - 当日无数据（非交易日、停牌、尚未公布）：返回 None；
    - 5xx / 429 / 网络异常：指数退避重试，用尽后抛 PriceTransportError；
    - 其它非 200 状态或响应结构异常：直接抛 PriceTransportError（重试无意义）。
    """

    def __init__(
        self,
        *,
        timeout: float | None = None,
        retries: int | None = None,
        base_url: str | None = None,
        token: str | None = None,
        backoff_base: float = 0.2,
        client: httpx.Client | None = None,
    ) -> None:
        """
        初始化 FinMind 客户端。

        Args:
            timeout: 单次请求超时时间（秒），默认读取 PRICE_TIMEOUT。
            retries: 最大重试次数（>=0），不包含初次请求，默认读取 PRICE_RETRIES。
            base_url: 接口地址，默认读取 FINMIND_BASE_URL。
            token: API Token，默认读取 FINMIND_TOKEN。
            backoff_base: 重试指数退避基础间隔（秒），实际等待约为 base * 2^attempt。
            client: 外部注入的 httpx.Client（测试或连接复用），未传入时每次请求新建。
        """
        self.timeout = timeout if timeout is not None else get_price_timeout()
        self.retries = retries if retries is not None else get_price_retries()
        if self.retries < 0:
            raise ValueError("retries 必须 >= 0")
        self.base_url = base_url or get_finmind_base_url()
        self.token = token if token is not None else get_finmind_token()
        self.backoff_base = backoff_base
        self._client = client

    def get_price(self, symbol: str, day: date) -> Decimal | None:
        """
        获取指定股票在 day 的收盘价。

        Returns:
            收盘价（Decimal，> 0）；当日无数据返回 None。

        Raises:
            PriceTransportError: 传输失败或响应结构异常。
        """
        params = self._build_params(symbol, day)
        attempt = 0
        while True:
            try:
                payload = self._fetch_json(params)
                break
            except (httpx.TransportError, httpx.HTTPStatusError) as err:
                logger.debug("FinMind 请求失败 symbol=%s day=%s attempt=%d err=%s", symbol, day, attempt, err)
                if attempt >= self.retries:
                    log(f"[Client:FinMind] 获取价格失败：symbol={symbol} day={day} err={err}")
                    raise PriceTransportError(symbol, day, str(err)) from err
                attempt += 1
                sleep(self.backoff_base * (2**attempt))

        if payload is None:
            raise PriceTransportError(symbol, day, "响应不是合法 JSON")
        return self._parse_close(payload, symbol, day)

    def _build_params(self, symbol: str, day: date) -> dict[str, str]:
        params = {
            "dataset": DATASET,
            "data_id": symbol,
            "start_date": day.isoformat(),
            "end_date": day.isoformat(),
        }
        if self.token:
            params["token"] = self.token
        return params

    def _fetch_json(self, params: dict[str, str]) -> dict | None:
        """
        发起 HTTP GET 并返回 JSON。

        行为说明：
        - 5xx/429：调用 `raise_for_status()` 抛出 HTTPStatusError，交由外层重试；
        - 其它非 200（如 400/402 token 无效或额度用尽）：直接抛 PriceTransportError，不重试；
        - 200：返回解析后的 JSON；解析失败返回 None。
        """
        if self._client is not None:
            resp = self._client.get(self.base_url, params=params, timeout=self.timeout)
        else:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.get(self.base_url, params=params)

        if resp.status_code >= 500 or resp.status_code == 429:
            resp.raise_for_status()
        if resp.status_code != 200:
            raise PriceTransportError(
                params["data_id"],
                date.fromisoformat(params["start_date"]),
                f"HTTP {resp.status_code}",
            )
        try:
            return resp.json()
        except ValueError as err:
            logger.debug("FinMind JSON 解析失败 err=%s", err)
            return None

    def _parse_close(self, raw: dict, symbol: str, day: date) -> Decimal | None:
        """
        从 FinMind 响应中解析收盘价。
        """
        # 典型返回结构（示意）：
        # {
        #   "msg": "success",
        #   "status": 200,
        #   "data": [ {"date": "2024-01-15", "stock_id": "2330", "close": 580.0, ...} ]
        # }
        if not isinstance(raw, dict):
            raise PriceTransportError(symbol, day, "响应不是 JSON 对象")
        status = raw.get("status")
        if status is not None and status != 200:
            raise PriceTransportError(symbol, day, f"status={status} msg={raw.get('msg')}")
        items = raw.get("data")
        if not isinstance(items, list):
            raise PriceTransportError(symbol, day, "响应缺少 data 列表")

        day_str = day.isoformat()
        for item in items:
            if not isinstance(item, dict) or item.get("date") != day_str:
                continue
            close = item.get("close")
            if close is None:
                return None
            try:
                price = Decimal(str(close))
            except InvalidOperation as err:
                raise PriceTransportError(symbol, day, f"close 无法解析：{close!r}") from err
            return price if price > 0 else None
        return None
