from __future__ import annotations

import json
from datetime import date
from decimal import Decimal
from typing import List

import httpx
import pytest

from src.core.supabase import SupabaseClient
from src.models.targets import DailyAllocationRecord
from src.repositories.holidays_repository import HolidaysRepository
from src.repositories.sales_repository import JOURNAL_PAGE_SIZE, SalesRepository
from src.repositories.targets_repository import TargetsRepository


@pytest.fixture()
def captured() -> List[httpx.Request]:
    return []


def _install_transport(monkeypatch: pytest.MonkeyPatch, handler) -> None:
    monkeypatch.setattr(SupabaseClient, "_shared_client", httpx.Client(transport=httpx.MockTransport(handler)))


def test_upsert_allocations_merges_on_target_and_date(
    monkeypatch: pytest.MonkeyPatch, captured: List[httpx.Request]
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        rows = json.loads(request.content)
        return httpx.Response(201, json=[{**row, "id": index} for index, row in enumerate(rows, start=1)])

    _install_transport(monkeypatch, handler)
    repository = TargetsRepository()
    saved = repository.upsert_allocations(
        [
            DailyAllocationRecord(
                id=40,
                monthly_target_id=3,
                target_date=date(2026, 4, 1),
                daily_target=Decimal("9174"),
                weight_percent=3.0581,
            )
        ]
    )

    request = captured[0]
    assert request.method == "POST"
    assert request.url.params["on_conflict"] == "monthly_target_id,target_date"
    assert "resolution=merge-duplicates" in request.headers["Prefer"]
    body = json.loads(request.content)
    assert "id" not in body[0]
    assert body[0]["daily_target"] == "9174"
    assert body[0]["target_date"] == "2026-04-01"
    assert saved[0].daily_target == Decimal("9174")


def test_upsert_without_rows_skips_request(monkeypatch: pytest.MonkeyPatch, captured: List[httpx.Request]) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(201, json=[])

    _install_transport(monkeypatch, handler)
    assert TargetsRepository().upsert_allocations([]) == []
    assert captured == []


def test_list_sales_pages_through_journals(monkeypatch: pytest.MonkeyPatch, captured: List[httpx.Request]) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        offset = int(request.url.params["offset"])
        size = JOURNAL_PAGE_SIZE if offset == 0 else 2
        rows = [
            {
                "id": offset + index,
                "branch_id": "branch-1",
                "cashier_id": "cashier-a",
                "cashier_name": "Cashier A",
                "journal_date": "2026-06-01",
                "total_sales": "10.50",
                "status": "approved",
            }
            for index in range(size)
        ]
        return httpx.Response(200, json=rows)

    _install_transport(monkeypatch, handler)
    journals = SalesRepository().list_sales(date(2026, 6, 1), date(2026, 6, 30), branch_id="branch-1")

    assert len(journals) == JOURNAL_PAGE_SIZE + 2
    assert len(captured) == 2
    params = captured[0].url.params
    assert params.get_list("journal_date") == ["gte.2026-06-01", "lte.2026-06-30"]
    assert params["status"] == "neq.rejected"
    assert params["branch_id"] == "eq.branch-1"


def test_holidays_in_range_overlap_filters(monkeypatch: pytest.MonkeyPatch, captured: List[httpx.Request]) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(
            200,
            json=[
                {
                    "id": 1,
                    "name": "Ramadan",
                    "type": "islamic",
                    "start_date": "2026-02-18",
                    "end_date": "2026-03-19",
                    "weight_multiplier": 1.3,
                    "applicable_branches": None,
                    "is_active": True,
                }
            ],
        )

    _install_transport(monkeypatch, handler)
    holidays = HolidaysRepository().list_holidays_in_range(date(2026, 3, 1), date(2026, 3, 31))

    params = captured[0].url.params
    assert params["start_date"] == "lte.2026-03-31"
    assert params["end_date"] == "gte.2026-03-01"
    assert params["is_active"] == "eq.true"
    assert holidays[0].type == "religious"


def test_update_requires_filters(monkeypatch: pytest.MonkeyPatch) -> None:
    _install_transport(monkeypatch, lambda request: httpx.Response(200, json=[]))
    with pytest.raises(ValueError):
        SupabaseClient().update(table="branch_monthly_targets", payload={"notes": "x"}, filters=[])
