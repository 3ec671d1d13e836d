from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Literal

from divfolio.core.models.plan import ContributionTransaction, RecurringPlan, StepMode

SkipReason = Literal["price_unavailable", "transport_error"]


@dataclass(slots=True, frozen=True)
class SkippedDate:
    """本轮对账跳过的排程日（下次对账会重试）。"""

    day: date
    reason: SkipReason
    detail: str | None = None


@dataclass(slots=True)
class ReconcileResult:
    """
    定投对账结果。

    - plan: 对账后的新计划（交易为旧交易的超集）；
    - added: 本轮新增的交易；
    - skipped: 本轮因缺价或传输失败跳过的日期。
    """

    plan: RecurringPlan
    added: list[ContributionTransaction] = field(default_factory=list)
    skipped: list[SkippedDate] = field(default_factory=list)
