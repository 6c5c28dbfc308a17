from __future__ import annotations

import calendar
import re
from datetime import date, timedelta
from typing import List, Optional, Tuple

from src.core.errors import ValidationError

YEAR_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


def parse_year_month(value: str) -> Tuple[int, int]:
    match = YEAR_MONTH_PATTERN.match(value or "")
    if not match:
        raise ValidationError("yearMonth must use the YYYY-MM format", field="yearMonth", value=value)
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValidationError("yearMonth has an invalid month", field="yearMonth", value=value)
    return year, month


def format_year_month(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def month_bounds(year_month: str) -> Tuple[date, date]:
    year, month = parse_year_month(year_month)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def month_dates(year_month: str) -> List[date]:
    start, end = month_bounds(year_month)
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


def days_in_month(year_month: str) -> int:
    year, month = parse_year_month(year_month)
    return calendar.monthrange(year, month)[1]


def days_elapsed(year_month: str, today: Optional[date] = None) -> int:
    """Count the days of the month up to and including today (0 for future months)."""
    today = today or date.today()
    start, end = month_bounds(year_month)
    if today < start:
        return 0
    if today > end:
        return (end - start).days + 1
    return (today - start).days + 1


def current_year_month(today: Optional[date] = None) -> str:
    today = today or date.today()
    return format_year_month(today.year, today.month)
