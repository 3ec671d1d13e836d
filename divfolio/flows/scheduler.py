"""定投对账：把计划定义展开为交易记录（幂等、只增不减）。"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import replace
from datetime import date

from divfolio.core.dependency import dependency
from divfolio.core.errors import OperationCancelled, PriceTransportError
from divfolio.core.log import log
from divfolio.core.models.holding import Holding
from divfolio.core.models.plan import ContributionTransaction, RecurringPlan
from divfolio.core.models.schedule import ReconcileResult, SkippedDate
from divfolio.core.protocols import PriceSource
from divfolio.core.rules.precision import floor_shares
from divfolio.core.rules.schedule import contribution_dates

logger = logging.getLogger(__name__)


def _merge(plan: RecurringPlan, added: list[ContributionTransaction]) -> RecurringPlan:
    if not added:
        return plan
    merged = sorted([*plan.transactions, *added], key=lambda t: t.date)
    return replace(plan, transactions=tuple(merged))


@dependency
def reconcile_plan(
    plan: RecurringPlan,
    *,
    symbol: str,
    as_of: date,
    price_source: PriceSource | None = None,
    cancel: threading.Event | None = None,
) -> ReconcileResult:
    """
    将定投计划对账到 as_of：为尚无交易的排程日补建交易。

    口径：
    - 非启用计划原样返回，不评估任何日期；
    - 候选日期：从 start_date 起按频率与 plan.step_mode 步进，上界为 end_date（已设置）或 as_of；
    - 已有交易的日期跳过，不重算、不覆盖（幂等）；
    - 价格为 None：本轮跳过该日（skipped reason=price_unavailable），下次对账重试；
    - 价格源传输失败：同样跳过（reason=transport_error），不中断其余日期；
    - 股数 = floor(每期金额 / 价格)，executed = (日期 <= as_of)，创建后不再翻转；
    - 返回的新计划交易按日期重新排序，且为旧交易的超集。

    Args:
        plan: 定投计划。
        symbol: 计划所属股票代号（用于查价）。
        as_of: 参考日。
        price_source: 价格源（自动注入）。
        cancel: 协作式取消信号，在日期之间检查。

    Returns:
        ReconcileResult（新计划、新增交易、跳过日期）。

    Raises:
        OperationCancelled: 被取消；partial 携带已完成部分的 ReconcileResult，可安全保存。
    """
    if not plan.is_active:
        return ReconcileResult(plan=plan)

    existing = plan.transaction_dates()
    added: list[ContributionTransaction] = []
    skipped: list[SkippedDate] = []

    for day in contribution_dates(plan, as_of):
        if day in existing:
            continue
        if cancel is not None and cancel.is_set():
            partial = ReconcileResult(plan=_merge(plan, added), added=added, skipped=skipped)
            raise OperationCancelled("定投对账已取消", partial=partial)

        try:
            price = price_source.get_price(symbol, day)
        except PriceTransportError as err:
            logger.debug("reconcile skip symbol=%s day=%s err=%s", symbol, day, err)
            skipped.append(SkippedDate(day=day, reason="transport_error", detail=err.reason))
            continue

        if price is None or price <= 0:
            skipped.append(SkippedDate(day=day, reason="price_unavailable"))
            continue

        added.append(
            ContributionTransaction(
                date=day,
                amount=plan.amount,
                shares=floor_shares(plan.amount, price),
                price=price,
                executed=day <= as_of,
            )
        )

    if added or skipped:
        log(
            f"[Reconcile] {symbol} {plan.title}: added={len(added)} skipped={len(skipped)}"
        )
    return ReconcileResult(plan=_merge(plan, added), added=added, skipped=skipped)


@dependency
def reconcile_holding(
    holding: Holding,
    *,
    as_of: date,
    price_source: PriceSource | None = None,
    cancel: threading.Event | None = None,
) -> tuple[Holding, ReconcileResult | None]:
    """
    对定投持仓执行对账，返回 (新持仓, 对账结果)。

    一次性买入持仓原样返回，结果为 None。
    """
    if holding.plan is None:
        return holding, None
    result = reconcile_plan(
        holding.plan,
        symbol=holding.symbol,
        as_of=as_of,
        price_source=price_source,
        cancel=cancel,
    )
    if result.plan is holding.plan:
        return holding, result
    return holding.with_plan(result.plan), result


@dependency
def reconcile_all(
    holdings: Iterable[Holding],
    *,
    as_of: date,
    price_source: PriceSource | None = None,
    cancel: threading.Event | None = None,
) -> list[Holding]:
    """
    依次对账所有定投持仓，返回新的持仓列表（顺序不变）。

    说明：同一计划由单一调用方串行对账；不同持仓之间无共享状态。
    """
    updated: list[Holding] = []
    for holding in holdings:
        new_holding, _ = reconcile_holding(
            holding,
            as_of=as_of,
            price_source=price_source,
            cancel=cancel,
        )
        updated.append(new_holding)
    return updated
