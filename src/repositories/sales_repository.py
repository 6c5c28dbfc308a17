from __future__ import annotations

from datetime import date
from typing import List, Optional

from src.core.supabase import SupabaseClient
from src.models.targets import BranchRecord, SalesJournalRecord

JOURNAL_PAGE_SIZE = 1000


class SalesRepository:
    def __init__(self) -> None:
        self.client = SupabaseClient()

    def list_branches(self) -> List[BranchRecord]:
        rows, _ = self.client.select(table="branches", select="id,name", order="name.asc")
        return [BranchRecord.model_validate(row) for row in rows]

    def list_sales(
        self,
        start: date,
        end: date,
        branch_id: Optional[str] = None,
    ) -> List[SalesJournalRecord]:
        filters: List[tuple[str, str]] = [
            ("journal_date", f"gte.{start.isoformat()}"),
            ("journal_date", f"lte.{end.isoformat()}"),
            ("status", "neq.rejected"),
        ]
        if branch_id:
            filters.append(("branch_id", f"eq.{branch_id}"))

        records: List[SalesJournalRecord] = []
        offset = 0
        while True:
            rows, _ = self.client.select(
                table="cashier_sales_journals",
                select="id,branch_id,cashier_id,cashier_name,journal_date,total_sales,status",
                filters=filters,
                order="journal_date.asc,id.asc",
                limit=JOURNAL_PAGE_SIZE,
                offset=offset,
            )
            records.extend(SalesJournalRecord.model_validate(row) for row in rows)
            if len(rows) < JOURNAL_PAGE_SIZE:
                return records
            offset += JOURNAL_PAGE_SIZE
