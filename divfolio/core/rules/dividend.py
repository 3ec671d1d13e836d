"""
股利日历规则（按发放频率推估，不依赖真实除息公告）。

口径：
- 发放月份：年配 6 月；半年配 6/12 月；季配 3/6/9/12 月；月配每月；
- 除息日一律推估为当月 15 日。
"""

from __future__ import annotations

from datetime import date

from divfolio.core.rules.schedule import add_months

EX_DIVIDEND_DAY = 15

PAYMENT_MONTHS: dict[int, tuple[int, ...]] = {
    1: (6,),
    2: (6, 12),
    4: (3, 6, 9, 12),
    12: tuple(range(1, 13)),
}


def pays_in_month(frequency: int, month: int) -> bool:
    """给定发放频率，判断某月份（1..12）是否发放股利。"""
    return month in PAYMENT_MONTHS.get(frequency, ())


def next_ex_dividend_date(frequency: int, ref: date) -> date | None:
    """
    推估 ref 之后的下一个除息日。

    规则：
    - 年配：当年 6/15；ref 已在 6 月或之后则为次年 6/15；
    - 半年配 / 季配：ref 所在月份之后的第一个发放月（严格大于当月）的 15 日，跨年则取次年首个发放月；
    - 月配：当月 15 日；ref 日 >= 15 时顺延到下月 15 日。

    Returns:
        推估日期；频率不受支持时返回 None。
    """
    if frequency == 1:
        year = ref.year + (1 if ref.month >= 6 else 0)
        return date(year, 6, EX_DIVIDEND_DAY)
    if frequency in (2, 4):
        months = PAYMENT_MONTHS[frequency]
        for month in months:
            if ref.month < month:
                return date(ref.year, month, EX_DIVIDEND_DAY)
        return date(ref.year + 1, months[0], EX_DIVIDEND_DAY)
    if frequency == 12:
        base = date(ref.year, ref.month, EX_DIVIDEND_DAY)
        return add_months(base, 1) if ref.day >= EX_DIVIDEND_DAY else base
    return None
