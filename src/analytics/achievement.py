from __future__ import annotations

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional

from src.models.targets import DailyAllocationRecord, MonthlyTargetRecord, SalesJournalRecord
from src.schemas.targets import BranchProgress, DailyProgress
from src.shared.time import days_elapsed, days_in_month, month_bounds

ZERO = Decimal("0")
CENTS = Decimal("0.01")


def ratio_percent(part: Decimal, whole: Decimal) -> float:
    if not whole:
        return 0.0
    return float(part / whole * 100)


def percent_of(part: Decimal, whole: Decimal) -> float:
    return round(ratio_percent(part, whole), 2)


def sum_sales_by_date(journals: Iterable[SalesJournalRecord]) -> Dict[date, Decimal]:
    totals: Dict[date, Decimal] = defaultdict(lambda: ZERO)
    for journal in journals:
        if journal.counts_as_sales:
            totals[journal.journal_date] += journal.total_sales
    return dict(totals)


def sum_sales_by_branch(journals: Iterable[SalesJournalRecord]) -> Dict[str, Decimal]:
    totals: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for journal in journals:
        if journal.counts_as_sales:
            totals[journal.branch_id] += journal.total_sales
    return dict(totals)


def aggregate_progress(
    target: MonthlyTargetRecord,
    allocations: Iterable[DailyAllocationRecord],
    sales_by_date: Mapping[date, Decimal],
    today: Optional[date] = None,
    branch_name: Optional[str] = None,
) -> BranchProgress:
    today = today or date.today()
    _, month_end = month_bounds(target.year_month)
    total_days = days_in_month(target.year_month)
    elapsed = days_elapsed(target.year_month, today)
    last_active = min(today, month_end)

    daily: List[DailyProgress] = []
    cumulative_target = ZERO
    cumulative_achieved = ZERO
    expected_to_date = ZERO
    for allocation in sorted(allocations, key=lambda row: row.target_date):
        day_target = allocation.daily_target
        cumulative_target += day_target
        if allocation.target_date > last_active:
            daily.append(
                DailyProgress(
                    target_date=allocation.target_date,
                    target_amount=day_target,
                    cumulative_target=cumulative_target,
                    is_holiday=allocation.is_holiday,
                    is_active=False,
                )
            )
            continue

        achieved = sales_by_date.get(allocation.target_date, ZERO)
        cumulative_achieved += achieved
        expected_to_date = cumulative_target
        daily.append(
            DailyProgress(
                target_date=allocation.target_date,
                target_amount=day_target,
                achieved_amount=achieved,
                variance=achieved - day_target,
                achievement_percent=percent_of(achieved, day_target),
                cumulative_target=cumulative_target,
                cumulative_achieved=cumulative_achieved,
                cumulative_percent=percent_of(cumulative_achieved, cumulative_target),
                is_holiday=allocation.is_holiday,
                is_active=True,
            )
        )

    target_amount = Decimal(target.target_amount)
    return BranchProgress(
        branch_id=target.branch_id,
        branch_name=branch_name,
        year_month=target.year_month,
        monthly_target_id=target.id,
        status=target.status,
        target_amount=target_amount,
        achieved_amount=cumulative_achieved,
        achievement_percent=percent_of(cumulative_achieved, target_amount),
        remaining_amount=max(target_amount - cumulative_achieved, ZERO),
        daily_target_average=(target_amount / total_days).quantize(CENTS),
        expected_to_date=expected_to_date,
        pace_percent=percent_of(cumulative_achieved, expected_to_date),
        days_elapsed=elapsed,
        days_in_month=total_days,
        daily_progress=daily,
    )
