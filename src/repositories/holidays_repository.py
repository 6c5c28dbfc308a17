from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from src.core.supabase import SupabaseClient
from src.models.targets import HolidayRangeRecord

HOLIDAY_COLUMNS = (
    "id,name,type,category,start_date,end_date,weight_multiplier,applicable_branches,"
    "color,description,is_active"
)

# Older rows were written with the calendar page's own type labels.
LEGACY_TYPE_ALIASES = {"islamic": "religious", "season": "seasonal"}


def _normalize_row(row: Dict[str, Any]) -> Dict[str, Any]:
    holiday_type = str(row.get("type") or "custom").strip().lower()
    row["type"] = LEGACY_TYPE_ALIASES.get(holiday_type, holiday_type)
    branches = row.get("applicable_branches")
    if branches is not None and not isinstance(branches, list):
        row["applicable_branches"] = None
    return row


class HolidaysRepository:
    def __init__(self) -> None:
        self.client = SupabaseClient()

    def list_holidays_in_range(
        self,
        start: date,
        end: date,
        include_inactive: bool = False,
    ) -> List[HolidayRangeRecord]:
        filters: List[tuple[str, str]] = [
            ("start_date", f"lte.{end.isoformat()}"),
            ("end_date", f"gte.{start.isoformat()}"),
        ]
        if not include_inactive:
            filters.append(("is_active", "eq.true"))
        rows, _ = self.client.select(
            table="seasons_holidays",
            select=HOLIDAY_COLUMNS,
            filters=filters,
            order="start_date.asc,id.asc",
        )
        return [HolidayRangeRecord.model_validate(_normalize_row(row)) for row in rows]

    def get_holiday(self, holiday_id: int) -> Optional[HolidayRangeRecord]:
        rows, _ = self.client.select(
            table="seasons_holidays",
            select=HOLIDAY_COLUMNS,
            filters=[("id", f"eq.{holiday_id}")],
            limit=1,
        )
        return HolidayRangeRecord.model_validate(_normalize_row(rows[0])) if rows else None

    def create_holiday(self, payload: Dict[str, Any]) -> HolidayRangeRecord:
        rows = self.client.insert(table="seasons_holidays", payload=payload)
        return HolidayRangeRecord.model_validate(_normalize_row(rows[0]))

    def update_holiday(self, holiday_id: int, payload: Dict[str, Any]) -> Optional[HolidayRangeRecord]:
        rows = self.client.update(
            table="seasons_holidays",
            payload=payload,
            filters=[("id", f"eq.{holiday_id}")],
        )
        return HolidayRangeRecord.model_validate(_normalize_row(rows[0])) if rows else None
