from __future__ import annotations

import logging
from datetime import date
from typing import List

from src.core.errors import NotFoundError, ValidationError
from src.models.targets import HolidayRangeRecord
from src.repositories.holidays_repository import HolidaysRepository
from src.schemas.targets import HolidayRange, HolidayRangeCreateRequest, HolidayRangeUpdateRequest

logger = logging.getLogger(__name__)


def to_holiday_schema(record: HolidayRangeRecord) -> HolidayRange:
    return HolidayRange(**record.model_dump())


def validate_holiday_range(start_date: date, end_date: date, weight_multiplier: float) -> None:
    if start_date > end_date:
        raise ValidationError(
            "Holiday start date must not be after its end date",
            field="startDate",
            startDate=start_date.isoformat(),
            endDate=end_date.isoformat(),
        )
    if weight_multiplier < 0:
        raise ValidationError("Weight multiplier must not be negative", field="weightMultiplier")


class HolidaysService:
    def __init__(self, repository: HolidaysRepository) -> None:
        self.repository = repository

    def list_holidays(self, start: date, end: date, include_inactive: bool = False) -> List[HolidayRange]:
        validate_holiday_range(start, end, 1.0)
        records = self.repository.list_holidays_in_range(start, end, include_inactive=include_inactive)
        return [to_holiday_schema(record) for record in records]

    def create_holiday(self, request: HolidayRangeCreateRequest) -> HolidayRange:
        validate_holiday_range(request.start_date, request.end_date, request.weight_multiplier)
        created = self.repository.create_holiday(request.model_dump(mode="json"))
        logger.info(
            "Created holiday %s (%s to %s, x%s)",
            created.name,
            created.start_date,
            created.end_date,
            created.weight_multiplier,
        )
        return to_holiday_schema(created)

    def update_holiday(self, holiday_id: int, request: HolidayRangeUpdateRequest) -> HolidayRange:
        current = self.repository.get_holiday(holiday_id)
        if current is None:
            raise NotFoundError("Holiday not found", details={"holidayId": holiday_id})
        changes = request.model_dump(exclude_unset=True)
        merged = current.model_copy(update=changes)
        validate_holiday_range(merged.start_date, merged.end_date, merged.weight_multiplier)
        if not changes:
            return to_holiday_schema(current)
        updated = self.repository.update_holiday(holiday_id, request.model_dump(mode="json", exclude_unset=True))
        if updated is None:
            raise NotFoundError("Holiday not found", details={"holidayId": holiday_id})
        return to_holiday_schema(updated)
