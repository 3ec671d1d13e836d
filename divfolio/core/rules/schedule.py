"""
定投排程与日历运算（纯函数，不做 IO）。

排程口径：
- fixed（默认）：按频率固定天数步进（weekly=7 / monthly=30 / quarterly=90）；
  长期计划会相对日历月/季产生漂移（例如月投每年约少 5 天），下游交易日期与总额依赖此口径；
- calendar：按日历单位步进（1 周 / 1 个月 / 3 个月），月末按当月最后一天截断，
  且始终以开始日的"日"为锚点（1/31 → 2/29 → 3/31）；
- 口径保存在计划上（RecurringPlan.step_mode），同一计划不混用两种口径。
"""

from __future__ import annotations

from calendar import monthrange
from datetime import date, timedelta

from divfolio.core.models.plan import PlanFrequency, RecurringPlan, StepMode


def add_months(day: date, months: int) -> date:
    """
    日期加 N 个月；若目标月无该日，顺延到月末最后一天。

    示例：2024-01-31 + 1 → 2024-02-29。
    """
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    _, last_day = monthrange(year, month)
    return date(year, month, min(day.day, last_day))


def months_between(start: date, end: date) -> int:
    """
    两个日期之间完整经过的月数（不足一月不计，end < start 时为负或 0）。

    示例：2024-01-15 → 2024-03-14 为 1；→ 2024-03-15 为 2。
    """
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if months > 0 and end.day < start.day and add_months(start, months) > end:
        months -= 1
    return months


def end_of_month(day: date) -> date:
    """当月最后一天。"""
    _, last_day = monthrange(day.year, day.month)
    return date(day.year, day.month, last_day)


def step_date(
    start: date,
    index: int,
    frequency: PlanFrequency,
    step_mode: StepMode = "fixed",
) -> date:
    """
    返回第 index 期（从 0 开始）的排程日期。

    calendar 模式始终从 start 推算，避免逐期截断累积（1/31 → 2/29 → 3/31）。
    """
    if step_mode == "calendar" and frequency.months is not None:
        return add_months(start, frequency.months * index)
    days = 7 if step_mode == "calendar" else frequency.days
    return start + timedelta(days=days * index)


def contribution_dates(plan: RecurringPlan, as_of: date) -> list[date]:
    """
    生成定投候选日期序列。

    步进口径取 plan.step_mode。

    上界：
    - 设置了 end_date：生成到 end_date（可能晚于 as_of，产生未执行的排程）；
    - 未设置：视为持续中，生成到 as_of。

    Args:
        plan: 定投计划。
        as_of: 参考日（"现在"）。

    Returns:
        升序日期列表；start_date 晚于上界时为空。
    """
    upper = plan.end_date if plan.end_date is not None else as_of
    dates: list[date] = []
    index = 0
    current = plan.start_date
    while current <= upper:
        dates.append(current)
        index += 1
        current = step_date(plan.start_date, index, plan.frequency, plan.step_mode)
    return dates
