from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel

TargetStatus = Literal["draft", "active", "locked", "archived"]
HolidayType = Literal["religious", "national", "international", "seasonal", "custom"]
AllocationKind = Literal["generated", "manual_override"]
ShiftType = Literal["morning", "evening", "night"]

SHIFT_TYPES: tuple[ShiftType, ...] = ("morning", "evening", "night")

WEEKDAY_FIELDS = (
    "sunday_weight",
    "monday_weight",
    "tuesday_weight",
    "wednesday_weight",
    "thursday_weight",
    "friday_weight",
    "saturday_weight",
)


class BranchRecord(BaseModel):
    id: str
    name: str


class WeightProfileRecord(BaseModel):
    id: Optional[int] = None
    name: str
    description: Optional[str] = None
    is_default: bool = False
    is_active: bool = True
    sunday_weight: float = 100.0
    monday_weight: float = 100.0
    tuesday_weight: float = 100.0
    wednesday_weight: float = 100.0
    thursday_weight: float = 130.0
    friday_weight: float = 130.0
    saturday_weight: float = 100.0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def weekday_weights(self) -> List[float]:
        """Weights ordered Sunday..Saturday."""
        return [float(getattr(self, name)) for name in WEEKDAY_FIELDS]


class HolidayRangeRecord(BaseModel):
    id: Optional[int] = None
    name: str
    type: HolidayType = "custom"
    category: Optional[str] = None
    start_date: date
    end_date: date
    weight_multiplier: float = 1.0
    applicable_branches: Optional[List[str]] = None
    color: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def applies_to(self, branch_id: Optional[str]) -> bool:
        if not self.applicable_branches or branch_id is None:
            return True
        return branch_id in self.applicable_branches


class MonthlyTargetRecord(BaseModel):
    id: int
    branch_id: str
    year_month: str
    target_amount: Decimal
    profile_id: Optional[int] = None
    status: TargetStatus = "draft"
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DailyAllocationRecord(BaseModel):
    id: Optional[int] = None
    monthly_target_id: int
    target_date: date
    daily_target: Decimal
    weight_percent: float
    is_holiday: bool = False
    holiday_name: Optional[str] = None
    is_manual_override: bool = False
    override_reason: Optional[str] = None

    @property
    def kind(self) -> AllocationKind:
        return "manual_override" if self.is_manual_override else "generated"


class ShiftAllocationRecord(BaseModel):
    daily_allocation_id: Optional[int] = None
    target_date: date
    shift_type: ShiftType
    shift_target: Decimal
    shift_weight_percent: float


class SalesJournalRecord(BaseModel):
    id: int
    branch_id: str
    cashier_id: str
    cashier_name: str
    journal_date: date
    total_sales: Decimal = Decimal("0")
    status: str = "draft"

    @property
    def counts_as_sales(self) -> bool:
        return self.status != "rejected"


class CashierSalesTotal(BaseModel):
    cashier_id: str
    cashier_name: str
    branch_id: str
    achieved_amount: Decimal = Decimal("0")
    journal_count: int = 0
