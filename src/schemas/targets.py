from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import Field

from src.models.targets import AllocationKind, HolidayType, ShiftType, TargetStatus
from src.shared.base import BaseRequest, BaseSchema

AlertTier = Literal["critical", "warning", "on_track", "exceeding"]
LeaderboardMetric = Literal["achieved_amount", "achievement_percent"]
TieMode = Literal["sequential", "competition"]


class WeightProfile(BaseSchema):
    id: Optional[int] = None
    name: str
    description: Optional[str] = None
    is_default: bool
    is_active: bool
    sunday_weight: float
    monday_weight: float
    tuesday_weight: float
    wednesday_weight: float
    thursday_weight: float
    friday_weight: float
    saturday_weight: float
    normalized_weights: List[float] = Field(default_factory=list)


class WeightProfileCreateRequest(BaseRequest):
    name: str = Field(min_length=1, max_length=120)
    description: Optional[str] = Field(default=None, max_length=2000)
    is_default: bool = False
    is_active: bool = True
    sunday_weight: float = Field(default=100.0, ge=0)
    monday_weight: float = Field(default=100.0, ge=0)
    tuesday_weight: float = Field(default=100.0, ge=0)
    wednesday_weight: float = Field(default=100.0, ge=0)
    thursday_weight: float = Field(default=130.0, ge=0)
    friday_weight: float = Field(default=130.0, ge=0)
    saturday_weight: float = Field(default=100.0, ge=0)


class WeightProfileUpdateRequest(BaseRequest):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = Field(default=None, max_length=2000)
    is_default: Optional[bool] = None
    is_active: Optional[bool] = None
    sunday_weight: Optional[float] = Field(default=None, ge=0)
    monday_weight: Optional[float] = Field(default=None, ge=0)
    tuesday_weight: Optional[float] = Field(default=None, ge=0)
    wednesday_weight: Optional[float] = Field(default=None, ge=0)
    thursday_weight: Optional[float] = Field(default=None, ge=0)
    friday_weight: Optional[float] = Field(default=None, ge=0)
    saturday_weight: Optional[float] = Field(default=None, ge=0)


class HolidayRange(BaseSchema):
    id: Optional[int] = None
    name: str
    type: HolidayType
    category: Optional[str] = None
    start_date: date
    end_date: date
    weight_multiplier: float
    applicable_branches: Optional[List[str]] = None
    color: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True


class HolidayRangeCreateRequest(BaseRequest):
    name: str = Field(min_length=1, max_length=120)
    type: HolidayType = "custom"
    category: Optional[str] = None
    start_date: date
    end_date: date
    weight_multiplier: float = 1.0
    applicable_branches: Optional[List[str]] = None
    color: Optional[str] = Field(default="#f59e0b", max_length=16)
    description: Optional[str] = Field(default=None, max_length=2000)
    is_active: bool = True


class HolidayRangeUpdateRequest(BaseRequest):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    type: Optional[HolidayType] = None
    category: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    weight_multiplier: Optional[float] = None
    applicable_branches: Optional[List[str]] = None
    color: Optional[str] = Field(default=None, max_length=16)
    description: Optional[str] = Field(default=None, max_length=2000)
    is_active: Optional[bool] = None


class MonthlyTarget(BaseSchema):
    id: int
    branch_id: str
    year_month: str
    target_amount: Decimal
    profile_id: Optional[int] = None
    status: TargetStatus
    notes: Optional[str] = None


class MonthlyTargetCreateRequest(BaseRequest):
    branch_id: str = Field(min_length=1)
    year_month: str = Field(pattern=r"^\d{4}-\d{2}$")
    target_amount: Decimal
    profile_id: Optional[int] = None
    notes: Optional[str] = Field(default=None, max_length=2000)
    generate_allocations: bool = False


class MonthlyTargetUpdateRequest(BaseRequest):
    target_amount: Optional[Decimal] = None
    profile_id: Optional[int] = None
    notes: Optional[str] = Field(default=None, max_length=2000)


class TargetStatusChangeRequest(BaseRequest):
    status: TargetStatus


class DailyAllocation(BaseSchema):
    id: Optional[int] = None
    monthly_target_id: int
    target_date: date
    daily_target: Decimal
    weight_percent: float
    is_holiday: bool
    holiday_name: Optional[str] = None
    kind: AllocationKind
    is_manual_override: bool
    override_reason: Optional[str] = None


class AllocationSet(BaseSchema):
    monthly_target_id: int
    year_month: str
    target_amount: Decimal
    allocated_total: Decimal
    override_total: Decimal
    override_count: int
    allocations: List[DailyAllocation]


class ShiftAllocation(BaseSchema):
    daily_allocation_id: Optional[int] = None
    target_date: date
    shift_type: ShiftType
    shift_target: Decimal
    shift_weight_percent: float


class ShiftAllocationSet(BaseSchema):
    monthly_target_id: int
    year_month: str
    is_preview: bool
    shift_weights: Dict[ShiftType, float]
    shift_totals: Dict[ShiftType, Decimal]
    allocations: List[ShiftAllocation]


class AllocationOverrideRequest(BaseRequest):
    daily_target: Decimal
    override_reason: Optional[str] = Field(default=None, max_length=500)


class BulkCreateTargetsRequest(BaseRequest):
    year_month: str = Field(pattern=r"^\d{4}-\d{2}$")
    branch_ids: List[str] = Field(min_length=1)
    target_amount: Optional[Decimal] = None
    amounts_by_branch: Dict[str, Decimal] = Field(default_factory=dict)
    profile_id: Optional[int] = None
    notes: Optional[str] = Field(default=None, max_length=2000)
    generate_allocations: bool = False


class CopyTargetsRequest(BaseRequest):
    source_month: str = Field(pattern=r"^\d{4}-\d{2}$")
    dest_month: str = Field(pattern=r"^\d{4}-\d{2}$")
    adjustment_percent: float = 0.0
    generate_allocations: bool = False


class BulkSkipItem(BaseSchema):
    branch_id: str
    code: str
    reason: str


class BulkOperationResult(BaseSchema):
    year_month: str
    created_count: int
    skipped_count: int
    created: List[MonthlyTarget]
    skipped: List[BulkSkipItem]
    warnings: List[BulkSkipItem] = Field(default_factory=list)


class DailyProgress(BaseSchema):
    target_date: date
    target_amount: Decimal
    achieved_amount: Optional[Decimal] = None
    variance: Optional[Decimal] = None
    achievement_percent: Optional[float] = None
    cumulative_target: Decimal
    cumulative_achieved: Optional[Decimal] = None
    cumulative_percent: Optional[float] = None
    is_holiday: bool = False
    is_active: bool


class BranchProgress(BaseSchema):
    branch_id: str
    branch_name: Optional[str] = None
    year_month: str
    monthly_target_id: int
    status: TargetStatus
    target_amount: Decimal
    achieved_amount: Decimal
    achievement_percent: float
    remaining_amount: Decimal
    daily_target_average: Decimal
    expected_to_date: Decimal
    pace_percent: float
    days_elapsed: int
    days_in_month: int
    daily_progress: List[DailyProgress]


class LeaderboardBranchRow(BaseSchema):
    rank: int
    branch_id: str
    branch_name: str
    target_amount: Decimal
    achieved_amount: Decimal
    achievement_percent: float


class LeaderboardCashierRow(BaseSchema):
    rank: int
    cashier_id: str
    cashier_name: str
    branch_id: str
    achieved_amount: Decimal
    journal_count: int


class LeaderboardResponse(BaseSchema):
    year_month: str
    metric: LeaderboardMetric
    tie_mode: TieMode
    branches: List[LeaderboardBranchRow]
    cashiers: List[LeaderboardCashierRow]


class Alert(BaseSchema):
    branch_id: str
    branch_name: str
    tier: AlertTier
    message: str
    target_amount: Decimal
    achieved_amount: Decimal
    achievement_percent: float
    daily_pace: Decimal
    projected_achievement: Decimal
    projected_percent: float
    days_elapsed: int
    days_remaining: int
    required_daily_pace: Optional[Decimal] = None
