from __future__ import annotations

from typing import Any, Dict, List, Optional

from src.core.supabase import SupabaseClient
from src.models.targets import DailyAllocationRecord, MonthlyTargetRecord, WeightProfileRecord

PROFILE_COLUMNS = (
    "id,name,description,is_default,is_active,sunday_weight,monday_weight,tuesday_weight,"
    "wednesday_weight,thursday_weight,friday_weight,saturday_weight,created_at,updated_at"
)
TARGET_COLUMNS = "id,branch_id,year_month,target_amount,profile_id,status,notes,created_at,updated_at"
ALLOCATION_COLUMNS = (
    "id,monthly_target_id,target_date,daily_target,weight_percent,is_holiday,holiday_name,"
    "is_manual_override,override_reason"
)


class TargetsRepository:
    def __init__(self) -> None:
        self.client = SupabaseClient()

    def list_profiles(self, active_only: bool = False) -> List[WeightProfileRecord]:
        filters: List[tuple[str, str]] = []
        if active_only:
            filters.append(("is_active", "eq.true"))
        rows, _ = self.client.select(
            table="target_weight_profiles",
            select=PROFILE_COLUMNS,
            filters=filters,
            order="is_default.desc,name.asc",
        )
        return [WeightProfileRecord.model_validate(row) for row in rows]

    def get_profile(self, profile_id: int) -> Optional[WeightProfileRecord]:
        rows, _ = self.client.select(
            table="target_weight_profiles",
            select=PROFILE_COLUMNS,
            filters=[("id", f"eq.{profile_id}")],
            limit=1,
        )
        return WeightProfileRecord.model_validate(rows[0]) if rows else None

    def get_default_profile(self) -> Optional[WeightProfileRecord]:
        rows, _ = self.client.select(
            table="target_weight_profiles",
            select=PROFILE_COLUMNS,
            filters=[("is_default", "eq.true"), ("is_active", "eq.true")],
            order="id.asc",
            limit=1,
        )
        return WeightProfileRecord.model_validate(rows[0]) if rows else None

    def create_profile(self, payload: Dict[str, Any]) -> WeightProfileRecord:
        rows = self.client.insert(table="target_weight_profiles", payload=payload)
        return WeightProfileRecord.model_validate(rows[0])

    def update_profile(self, profile_id: int, payload: Dict[str, Any]) -> Optional[WeightProfileRecord]:
        rows = self.client.update(
            table="target_weight_profiles",
            payload=payload,
            filters=[("id", f"eq.{profile_id}")],
        )
        return WeightProfileRecord.model_validate(rows[0]) if rows else None

    def clear_default_profiles(self, keep_profile_id: Optional[int] = None) -> None:
        filters = [("is_default", "eq.true")]
        if keep_profile_id is not None:
            filters.append(("id", f"neq.{keep_profile_id}"))
        self.client.update(table="target_weight_profiles", payload={"is_default": False}, filters=filters)

    def list_targets(self, year_month: str) -> List[MonthlyTargetRecord]:
        rows, _ = self.client.select(
            table="branch_monthly_targets",
            select=TARGET_COLUMNS,
            filters=[("year_month", f"eq.{year_month}")],
            order="branch_id.asc",
        )
        return [MonthlyTargetRecord.model_validate(row) for row in rows]

    def get_target(self, target_id: int) -> Optional[MonthlyTargetRecord]:
        rows, _ = self.client.select(
            table="branch_monthly_targets",
            select=TARGET_COLUMNS,
            filters=[("id", f"eq.{target_id}")],
            limit=1,
        )
        return MonthlyTargetRecord.model_validate(rows[0]) if rows else None

    def find_target(self, branch_id: str, year_month: str) -> Optional[MonthlyTargetRecord]:
        rows, _ = self.client.select(
            table="branch_monthly_targets",
            select=TARGET_COLUMNS,
            filters=[("branch_id", f"eq.{branch_id}"), ("year_month", f"eq.{year_month}")],
            limit=1,
        )
        return MonthlyTargetRecord.model_validate(rows[0]) if rows else None

    def create_target(self, payload: Dict[str, Any]) -> MonthlyTargetRecord:
        rows = self.client.insert(table="branch_monthly_targets", payload=payload)
        return MonthlyTargetRecord.model_validate(rows[0])

    def update_target(self, target_id: int, payload: Dict[str, Any]) -> Optional[MonthlyTargetRecord]:
        rows = self.client.update(
            table="branch_monthly_targets",
            payload=payload,
            filters=[("id", f"eq.{target_id}")],
        )
        return MonthlyTargetRecord.model_validate(rows[0]) if rows else None

    def delete_target(self, target_id: int) -> None:
        # target_daily_allocations cascades on the foreign key.
        self.client.delete(table="branch_monthly_targets", filters=[("id", f"eq.{target_id}")])

    def list_allocations(self, target_id: int) -> List[DailyAllocationRecord]:
        rows, _ = self.client.select(
            table="target_daily_allocations",
            select=ALLOCATION_COLUMNS,
            filters=[("monthly_target_id", f"eq.{target_id}")],
            order="target_date.asc",
        )
        return [DailyAllocationRecord.model_validate(row) for row in rows]

    def get_allocation(self, allocation_id: int) -> Optional[DailyAllocationRecord]:
        rows, _ = self.client.select(
            table="target_daily_allocations",
            select=ALLOCATION_COLUMNS,
            filters=[("id", f"eq.{allocation_id}")],
            limit=1,
        )
        return DailyAllocationRecord.model_validate(rows[0]) if rows else None

    def upsert_allocations(self, rows: List[DailyAllocationRecord]) -> List[DailyAllocationRecord]:
        if not rows:
            return []
        payload = [
            row.model_dump(mode="json", exclude={"id"}) for row in rows
        ]
        saved = self.client.insert(
            table="target_daily_allocations",
            payload=payload,
            upsert=True,
            on_conflict="monthly_target_id,target_date",
        )
        return [DailyAllocationRecord.model_validate(row) for row in saved]

    def update_allocation(self, allocation_id: int, payload: Dict[str, Any]) -> Optional[DailyAllocationRecord]:
        rows = self.client.update(
            table="target_daily_allocations",
            payload=payload,
            filters=[("id", f"eq.{allocation_id}")],
        )
        return DailyAllocationRecord.model_validate(rows[0]) if rows else None
