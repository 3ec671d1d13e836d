from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(slots=True, frozen=True)
class Account:
    """证券账户（券商/银行），持仓按 account_id 归属。"""

    id: str
    name: str
    created_date: date | None = None
