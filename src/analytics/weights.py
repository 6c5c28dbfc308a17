from __future__ import annotations

from datetime import date
from typing import List, Optional, Sequence

from src.core.errors import InvalidProfileError, ValidationError


def weekday_index(day: date) -> int:
    """Index into Sunday-first weight lists (Sunday=0 .. Saturday=6)."""
    return (day.weekday() + 1) % 7


def normalize_weights(weights: Sequence[float], profile_id: Optional[int] = None) -> List[float]:
    values = [float(weight) for weight in weights]
    if len(values) != 7:
        raise ValidationError("A weight profile needs exactly seven weekday weights", field="weights")
    if any(value < 0 for value in values):
        raise InvalidProfileError("Weekday weights must not be negative", profile_id=profile_id)
    total = sum(values)
    if total <= 0:
        raise InvalidProfileError(profile_id=profile_id)
    return [value / total * 100 for value in values]
