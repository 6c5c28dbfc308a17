from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_holidays_service, get_profiles_service
from src.core.errors import BadRequestError
from src.schemas.targets import (
    HolidayRange,
    HolidayRangeCreateRequest,
    HolidayRangeUpdateRequest,
    WeightProfile,
    WeightProfileCreateRequest,
    WeightProfileUpdateRequest,
)
from src.services.holidays_service import HolidaysService
from src.services.profiles_service import ProfilesService
from src.shared.response import ResponseEnvelope, build_meta
from src.shared.time import current_year_month, month_bounds


router = APIRouter(prefix="/targets", tags=["target-calendar"])


@router.get("/profiles")
def list_weight_profiles(
    active_only: bool = Query(default=False, alias="activeOnly"),
    service: ProfilesService = Depends(get_profiles_service),
) -> ResponseEnvelope[List[WeightProfile]]:
    data = service.list_profiles(active_only=active_only)
    return ResponseEnvelope(data=data, meta=build_meta(source="target_weight_profiles"))


@router.post("/profiles")
def create_weight_profile(
    payload: WeightProfileCreateRequest,
    service: ProfilesService = Depends(get_profiles_service),
) -> ResponseEnvelope[WeightProfile]:
    data = service.create_profile(payload)
    return ResponseEnvelope(data=data, meta=build_meta(source="target_weight_profiles"))


@router.patch("/profiles/{profile_id}")
def update_weight_profile(
    profile_id: int,
    payload: WeightProfileUpdateRequest,
    service: ProfilesService = Depends(get_profiles_service),
) -> ResponseEnvelope[WeightProfile]:
    data = service.update_profile(profile_id, payload)
    return ResponseEnvelope(data=data, meta=build_meta(source="target_weight_profiles"))


@router.get("/holidays")
def list_holiday_ranges(
    year_month: Optional[str] = Query(default=None, alias="yearMonth", pattern=r"^\d{4}-\d{2}$"),
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    include_inactive: bool = Query(default=False, alias="includeInactive"),
    service: HolidaysService = Depends(get_holidays_service),
) -> ResponseEnvelope[List[HolidayRange]]:
    if start_date is None and end_date is None:
        window = year_month or current_year_month()
        start_date, end_date = month_bounds(window)
    elif start_date is None or end_date is None:
        raise BadRequestError("startDate and endDate must be provided together")
    else:
        window = f"{start_date.isoformat()}..{end_date.isoformat()}"
    data = service.list_holidays(start_date, end_date, include_inactive=include_inactive)
    return ResponseEnvelope(data=data, meta=build_meta(source="seasons_holidays", time_window=window))


@router.post("/holidays")
def create_holiday_range(
    payload: HolidayRangeCreateRequest,
    service: HolidaysService = Depends(get_holidays_service),
) -> ResponseEnvelope[HolidayRange]:
    data = service.create_holiday(payload)
    return ResponseEnvelope(data=data, meta=build_meta(source="seasons_holidays"))


@router.patch("/holidays/{holiday_id}")
def update_holiday_range(
    holiday_id: int,
    payload: HolidayRangeUpdateRequest,
    service: HolidaysService = Depends(get_holidays_service),
) -> ResponseEnvelope[HolidayRange]:
    data = service.update_holiday(holiday_id, payload)
    return ResponseEnvelope(data=data, meta=build_meta(source="seasons_holidays"))
