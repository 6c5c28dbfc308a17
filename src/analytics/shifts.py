from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Mapping

from src.analytics.allocation import absorb_drift, round_currency
from src.core.errors import ValidationError
from src.models.targets import SHIFT_TYPES, DailyAllocationRecord, ShiftAllocationRecord, ShiftType


def normalize_shift_weights(weights: Mapping[str, float]) -> Dict[ShiftType, float]:
    """Scale morning/evening/night weights to percentages summing to 100."""
    unknown = sorted(set(weights) - set(SHIFT_TYPES))
    if unknown:
        raise ValidationError("Unknown shift type", field="shiftWeights", shifts=unknown)
    values = {shift: float(weights.get(shift, 0)) for shift in SHIFT_TYPES}
    if any(value < 0 for value in values.values()):
        raise ValidationError("Shift weights must not be negative", field="shiftWeights")
    total = sum(values.values())
    if total <= 0:
        raise ValidationError("At least one shift needs a positive weight", field="shiftWeights")
    return {shift: value / total * 100 for shift, value in values.items()}


def split_allocation(
    allocation: DailyAllocationRecord, weights: Mapping[ShiftType, float]
) -> List[ShiftAllocationRecord]:
    """Split one day's target across shifts; the parts always add up to the day."""
    amounts: Dict[ShiftType, Decimal] = {
        shift: round_currency(allocation.daily_target * Decimal(str(weights[shift])) / Decimal("100"))
        for shift in SHIFT_TYPES
    }
    drift = allocation.daily_target - sum(amounts.values(), Decimal("0"))
    if drift != 0:
        absorb_drift(list(SHIFT_TYPES), amounts, weights, drift)
    return [
        ShiftAllocationRecord(
            daily_allocation_id=allocation.id,
            target_date=allocation.target_date,
            shift_type=shift,
            shift_target=amounts[shift],
            shift_weight_percent=round(weights[shift], 4),
        )
        for shift in SHIFT_TYPES
    ]


def split_allocations(
    allocations: List[DailyAllocationRecord], weights: Mapping[str, float]
) -> List[ShiftAllocationRecord]:
    normalized = normalize_shift_weights(weights)
    rows: List[ShiftAllocationRecord] = []
    for allocation in allocations:
        rows.extend(split_allocation(allocation, normalized))
    return rows
