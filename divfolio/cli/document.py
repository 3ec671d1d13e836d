"""CLI 共用：组合文档读写、日期参数解析、价格源选择与退出码。"""

from __future__ import annotations

import argparse
import logging
from datetime import date
from pathlib import Path

from divfolio.core.errors import PriceTransportError
from divfolio.core.log import log
from divfolio.core.protocols import PriceSource
from divfolio.data.client.static_price import StaticPriceSource
from divfolio.schemas.portfolio import PortfolioDoc

EXIT_OK = 0
EXIT_TRANSPORT = 3
EXIT_INVALID = 4
EXIT_FAILED = 5


def add_common_args(parser: argparse.ArgumentParser) -> None:
    """组合文档路径、离线价格与调试开关。"""
    parser.add_argument("portfolio", help="组合文档路径（JSON）")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="只使用文档内的 prices 价格表，不访问远程价格源",
    )
    parser.add_argument("--debug", action="store_true", help="启用调试日志")


def setup_logging(debug: bool) -> None:
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s - %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)


def parse_day(value: str | None, default: date | None = None) -> date:
    """
    解析 YYYY-MM-DD；未提供时返回 default（默认今天）。

    Raises:
        ValueError: 格式错误。
    """
    if not value:
        return default or date.today()
    return date.fromisoformat(value)


def load_portfolio(path: str) -> PortfolioDoc:
    """
    读取并校验组合文档。

    Raises:
        ValueError: 文件不存在或格式校验失败（pydantic.ValidationError 亦为 ValueError）。
    """
    file = Path(path)
    if not file.exists():
        raise ValueError(f"组合文档不存在：{path}")
    return PortfolioDoc.model_validate_json(file.read_text(encoding="utf-8"))


def save_portfolio(path: str, doc: PortfolioDoc) -> None:
    Path(path).write_text(
        doc.model_dump_json(indent=2, exclude_none=True) + "\n", encoding="utf-8"
    )


def resolve_price_source(doc: PortfolioDoc, offline: bool) -> PriceSource | None:
    """离线模式返回文档价格表；否则返回 None，由依赖注入提供远程价格源。"""
    if offline:
        return StaticPriceSource(doc.price_table())
    return None


def exit_code_for(err: Exception) -> int:
    """
    异常 → 退出码：传输失败 3；参数/数据非法 4；其他 5。
    """
    if isinstance(err, PriceTransportError):
        log(f"❌ 价格源不可用：{err}")
        return EXIT_TRANSPORT
    if isinstance(err, ValueError):
        log(f"❌ 参数错误：{err}")
        return EXIT_INVALID
    log(f"❌ 执行失败：{err}")
    return EXIT_FAILED
