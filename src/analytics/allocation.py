from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Hashable, Iterable, List, Mapping, Sequence, TypeVar

from src.analytics.holidays import resolve_holiday
from src.analytics.weights import normalize_weights, weekday_index
from src.core.errors import InvalidProfileError, TargetNotEditableError, ValidationError
from src.models.targets import (
    DailyAllocationRecord,
    HolidayRangeRecord,
    MonthlyTargetRecord,
    WeightProfileRecord,
)
from src.shared.time import month_dates

FROZEN_STATUSES = frozenset({"locked", "archived"})
CURRENCY_UNIT = Decimal("1")

K = TypeVar("K", bound=Hashable)


def round_currency(value: Decimal) -> Decimal:
    return value.quantize(CURRENCY_UNIT, rounding=ROUND_HALF_UP)


def ensure_editable(target: MonthlyTargetRecord) -> None:
    if target.status in FROZEN_STATUSES:
        raise TargetNotEditableError(target.id, target.status)


def generate_allocations(
    target: MonthlyTargetRecord,
    profile: WeightProfileRecord,
    holidays: Sequence[HolidayRangeRecord],
    existing: Iterable[DailyAllocationRecord] = (),
) -> List[DailyAllocationRecord]:
    """Distribute a monthly target over every calendar day of its month.

    Weekday weights are normalized to 100, holiday days are scaled by the
    strongest covering multiplier, and the adjusted weights are normalized
    again over the days being regenerated. Manual overrides in ``existing``
    keep their amounts; only the remainder is spread over the other days.
    The last regenerated day absorbs the rounding drift so the rows sum to
    the target amount exactly.

    Nothing is written here: callers persist the returned rows, so any
    failure leaves stored allocations untouched.
    """
    ensure_editable(target)
    weekday_weights = normalize_weights(profile.weekday_weights(), profile_id=profile.id)
    days = month_dates(target.year_month)
    day_set = set(days)

    existing_by_date: Dict[date, DailyAllocationRecord] = {}
    for row in existing:
        if row.target_date in day_set:
            existing_by_date[row.target_date] = row
    overrides = {
        day: row for day, row in existing_by_date.items() if row.kind == "manual_override"
    }
    override_total = sum((row.daily_target for row in overrides.values()), Decimal("0"))
    remaining = Decimal(target.target_amount) - override_total
    if remaining < 0:
        raise ValidationError(
            "Manual overrides exceed the monthly target amount",
            field="dailyTarget",
            targetId=target.id,
            overrideTotal=str(override_total),
            targetAmount=str(target.target_amount),
        )

    pool = [day for day in days if day not in overrides]
    adjusted: Dict[date, float] = {}
    holiday_names: Dict[date, str] = {}
    for day in pool:
        weight = weekday_weights[weekday_index(day)]
        match = resolve_holiday(day, holidays, target.branch_id)
        if match is not None:
            multiplier, holiday = match
            weight *= multiplier
            holiday_names[day] = holiday.name
        adjusted[day] = weight

    total_weight = sum(adjusted.values())
    if pool and total_weight <= 0 and remaining > 0:
        raise InvalidProfileError(
            "Every day left to allocate has zero weight after holiday adjustments",
            profile_id=profile.id,
        )
    final_weights = {
        day: (weight / total_weight * 100 if total_weight > 0 else 0.0)
        for day, weight in adjusted.items()
    }

    amounts = {
        day: round_currency(remaining * Decimal(str(weight)) / Decimal("100"))
        for day, weight in final_weights.items()
    }
    drift = remaining - sum(amounts.values(), Decimal("0"))
    if drift and pool:
        absorb_drift(pool, amounts, final_weights, drift)

    rows: List[DailyAllocationRecord] = []
    for day in days:
        if day in overrides:
            rows.append(overrides[day])
            continue
        previous = existing_by_date.get(day)
        rows.append(
            DailyAllocationRecord(
                id=previous.id if previous else None,
                monthly_target_id=target.id,
                target_date=day,
                daily_target=amounts[day],
                weight_percent=final_weights[day],
                is_holiday=day in holiday_names,
                holiday_name=holiday_names.get(day),
                is_manual_override=False,
                override_reason=None,
            )
        )
    return rows


def absorb_drift(
    pool: Sequence[K],
    amounts: Dict[K, Decimal],
    weights: Mapping[K, float],
    drift: Decimal,
) -> None:
    # Prefer the last weighted entry; a zero-weight entry never picks up drift.
    for key in reversed(pool):
        if weights[key] > 0 and amounts[key] + drift >= 0:
            amounts[key] += drift
            return
    raise ValidationError("Rounding drift could not be reconciled", field="dailyTarget", drift=str(drift))
