from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_targets_service
from src.schemas.targets import (
    AllocationOverrideRequest,
    AllocationSet,
    BulkCreateTargetsRequest,
    BulkOperationResult,
    CopyTargetsRequest,
    DailyAllocation,
    MonthlyTarget,
    MonthlyTargetCreateRequest,
    MonthlyTargetUpdateRequest,
    ShiftAllocationSet,
    TargetStatusChangeRequest,
)
from src.services.targets_service import TargetsService
from src.shared.response import ResponseEnvelope, build_meta


router = APIRouter(prefix="/targets", tags=["targets"])

YEAR_MONTH_PATTERN = r"^\d{4}-\d{2}$"


@router.get("/monthly")
def list_monthly_targets(
    year_month: str = Query(alias="yearMonth", pattern=YEAR_MONTH_PATTERN),
    service: TargetsService = Depends(get_targets_service),
) -> ResponseEnvelope[List[MonthlyTarget]]:
    data = service.list_targets(year_month)
    return ResponseEnvelope(data=data, meta=build_meta(source="branch_monthly_targets", time_window=year_month))


@router.post("/monthly")
def create_monthly_target(
    payload: MonthlyTargetCreateRequest,
    service: TargetsService = Depends(get_targets_service),
) -> ResponseEnvelope[MonthlyTarget]:
    data = service.create_target(payload)
    return ResponseEnvelope(data=data, meta=build_meta(source="branch_monthly_targets", time_window=payload.year_month))


@router.get("/monthly/{target_id}")
def get_monthly_target(
    target_id: int,
    service: TargetsService = Depends(get_targets_service),
) -> ResponseEnvelope[MonthlyTarget]:
    data = service.get_target(target_id)
    return ResponseEnvelope(data=data, meta=build_meta(source="branch_monthly_targets", time_window=data.year_month))


@router.patch("/monthly/{target_id}")
def update_monthly_target(
    target_id: int,
    payload: MonthlyTargetUpdateRequest,
    service: TargetsService = Depends(get_targets_service),
) -> ResponseEnvelope[MonthlyTarget]:
    data = service.update_target(target_id, payload)
    return ResponseEnvelope(data=data, meta=build_meta(source="branch_monthly_targets", time_window=data.year_month))


@router.post("/monthly/{target_id}/status")
def change_monthly_target_status(
    target_id: int,
    payload: TargetStatusChangeRequest,
    service: TargetsService = Depends(get_targets_service),
) -> ResponseEnvelope[MonthlyTarget]:
    data = service.change_status(target_id, payload.status)
    return ResponseEnvelope(data=data, meta=build_meta(source="branch_monthly_targets", time_window=data.year_month))


@router.delete("/monthly/{target_id}")
def delete_monthly_target(
    target_id: int,
    service: TargetsService = Depends(get_targets_service),
) -> ResponseEnvelope[dict]:
    service.delete_target(target_id)
    return ResponseEnvelope(data={"id": target_id, "deleted": True}, meta=build_meta(source="branch_monthly_targets"))


@router.post("/monthly/{target_id}/generate-allocations")
def generate_monthly_allocations(
    target_id: int,
    service: TargetsService = Depends(get_targets_service),
) -> ResponseEnvelope[AllocationSet]:
    data = service.generate_allocations(target_id)
    return ResponseEnvelope(data=data, meta=build_meta(source="target_daily_allocations", time_window=data.year_month))


@router.get("/monthly/{target_id}/shift-allocations")
def list_monthly_shift_allocations(
    target_id: int,
    morning_weight: Optional[float] = Query(default=None, alias="morningWeight", ge=0),
    evening_weight: Optional[float] = Query(default=None, alias="eveningWeight", ge=0),
    night_weight: Optional[float] = Query(default=None, alias="nightWeight", ge=0),
    service: TargetsService = Depends(get_targets_service),
) -> ResponseEnvelope[ShiftAllocationSet]:
    data = service.shift_allocations(target_id, morning=morning_weight, evening=evening_weight, night=night_weight)
    meta = build_meta(
        source="target_daily_allocations",
        time_window=data.year_month,
        data_status="preview" if data.is_preview else None,
    )
    return ResponseEnvelope(data=data, meta=meta)


@router.get("/monthly/{target_id}/allocations")
def list_monthly_allocations(
    target_id: int,
    service: TargetsService = Depends(get_targets_service),
) -> ResponseEnvelope[AllocationSet]:
    data = service.list_allocations(target_id)
    return ResponseEnvelope(data=data, meta=build_meta(source="target_daily_allocations", time_window=data.year_month))


@router.patch("/allocations/{allocation_id}")
def override_allocation(
    allocation_id: int,
    payload: AllocationOverrideRequest,
    service: TargetsService = Depends(get_targets_service),
) -> ResponseEnvelope[DailyAllocation]:
    data = service.set_override(allocation_id, payload.daily_target, payload.override_reason)
    return ResponseEnvelope(data=data, meta=build_meta(source="target_daily_allocations"))


@router.delete("/allocations/{allocation_id}/override")
def clear_allocation_override(
    allocation_id: int,
    service: TargetsService = Depends(get_targets_service),
) -> ResponseEnvelope[DailyAllocation]:
    data = service.clear_override(allocation_id)
    return ResponseEnvelope(data=data, meta=build_meta(source="target_daily_allocations"))


@router.post("/bulk")
def bulk_create_targets(
    payload: BulkCreateTargetsRequest,
    service: TargetsService = Depends(get_targets_service),
) -> ResponseEnvelope[BulkOperationResult]:
    data = service.bulk_create_targets(payload)
    status = "partial" if data.skipped or data.warnings else "complete"
    return ResponseEnvelope(
        data=data,
        meta=build_meta(source="branch_monthly_targets", time_window=payload.year_month, data_status=status),
    )


@router.post("/copy")
def copy_targets_from_month(
    payload: CopyTargetsRequest,
    service: TargetsService = Depends(get_targets_service),
) -> ResponseEnvelope[BulkOperationResult]:
    data = service.copy_from_month(payload)
    status = "partial" if data.skipped or data.warnings else "complete"
    return ResponseEnvelope(
        data=data,
        meta=build_meta(source="branch_monthly_targets", time_window=payload.dest_month, data_status=status),
    )
