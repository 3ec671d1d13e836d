"""
静态行业表 / Beta 表（SectorLookup / BetaLookup 默认实现）。

说明：表内容为注入数据，不做行业分类推断；未收录代号使用默认值。
"""

from __future__ import annotations

from decimal import Decimal

DEFAULT_SECTOR = "其他"
DEFAULT_BETA = Decimal("1.0")

DEFAULT_SECTORS: dict[str, str] = {
    "2330": "半導體",
    "2317": "電子",
    "2454": "半導體",
    "2412": "通訊網路",
    "2308": "電子",
    "2881": "金融",
    "2882": "金融",
    "2891": "金融",
    "1301": "傳產",
    "1303": "傳產",
}

DEFAULT_BETAS: dict[str, Decimal] = {
    "2330": Decimal("1.1"),
    "2317": Decimal("1.2"),
    "2881": Decimal("0.9"),
    "2882": Decimal("0.85"),
    "1301": Decimal("0.8"),
    "2412": Decimal("0.7"),
}


class StaticSectorLookup:
    """股票代号 → 行业（静态表）。"""

    def __init__(self, table: dict[str, str] | None = None, default: str = DEFAULT_SECTOR) -> None:
        self.table = dict(DEFAULT_SECTORS if table is None else table)
        self.default = default

    def sector(self, symbol: str) -> str:
        return self.table.get(symbol, self.default)


class StaticBetaLookup:
    """股票代号 → Beta（静态表）。"""

    def __init__(
        self,
        table: dict[str, Decimal] | None = None,
        default: Decimal = DEFAULT_BETA,
    ) -> None:
        self.table = dict(DEFAULT_BETAS if table is None else table)
        self.default = default

    def beta(self, symbol: str) -> Decimal:
        return self.table.get(symbol, self.default)
