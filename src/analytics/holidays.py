from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional, Tuple

from src.models.targets import HolidayRangeRecord


def holidays_for_date(
    day: date,
    ranges: Iterable[HolidayRangeRecord],
    branch_id: Optional[str] = None,
) -> List[HolidayRangeRecord]:
    return [
        holiday
        for holiday in ranges
        if holiday.is_active and holiday.covers(day) and holiday.applies_to(branch_id)
    ]


def resolve_holiday(
    day: date,
    ranges: Iterable[HolidayRangeRecord],
    branch_id: Optional[str] = None,
) -> Optional[Tuple[float, HolidayRangeRecord]]:
    """Pick the strongest range covering the day; the earliest listed wins a tie."""
    best: Optional[HolidayRangeRecord] = None
    for holiday in holidays_for_date(day, ranges, branch_id):
        if best is None or holiday.weight_multiplier > best.weight_multiplier:
            best = holiday
    if best is None:
        return None
    return float(best.weight_multiplier), best


def multiplier_for_date(
    day: date,
    ranges: Iterable[HolidayRangeRecord],
    branch_id: Optional[str] = None,
) -> Optional[float]:
    match = resolve_holiday(day, ranges, branch_id)
    return match[0] if match else None
