from __future__ import annotations

from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from typing import List, Optional

import pytest

from src.analytics.allocation import generate_allocations
from src.core.errors import NotFoundError
from src.models.targets import (
    BranchRecord,
    DailyAllocationRecord,
    MonthlyTargetRecord,
    SalesJournalRecord,
    WeightProfileRecord,
)
from src.services.performance_service import PerformanceService


class StubTargetsRepository:
    def __init__(self, targets: List[MonthlyTargetRecord]) -> None:
        self.targets = targets

    def list_targets(self, year_month: str) -> List[MonthlyTargetRecord]:
        return [target for target in self.targets if target.year_month == year_month]

    def find_target(self, branch_id: str, year_month: str) -> Optional[MonthlyTargetRecord]:
        return next(
            (target for target in self.targets if target.branch_id == branch_id and target.year_month == year_month),
            None,
        )

    def list_allocations(self, target_id: int) -> List[DailyAllocationRecord]:
        _ = target_id
        return []


class StubSalesRepository:
    def __init__(self, journals: List[SalesJournalRecord]) -> None:
        self.journals = journals
        self.requested_windows: List[tuple[date, date, Optional[str]]] = []

    def list_branches(self) -> List[BranchRecord]:
        return [
            BranchRecord(id="branch-1", name="Downtown"),
            BranchRecord(id="branch-2", name="Harbour"),
            BranchRecord(id="branch-3", name="Airport"),
        ]

    def list_sales(self, start: date, end: date, branch_id: Optional[str] = None) -> List[SalesJournalRecord]:
        self.requested_windows.append((start, end, branch_id))
        return [
            journal
            for journal in self.journals
            if start <= journal.journal_date <= end and (branch_id is None or journal.branch_id == branch_id)
        ]


class PreviewTargetsService:
    def preview_allocations(self, target: MonthlyTargetRecord) -> List[DailyAllocationRecord]:
        flat = WeightProfileRecord(name="Flat", thursday_weight=100, friday_weight=100)
        return generate_allocations(target.model_copy(update={"status": "draft"}), flat, [])


def _target(target_id: int, branch_id: str, amount: str, status: str = "active") -> MonthlyTargetRecord:
    return MonthlyTargetRecord(
        id=target_id, branch_id=branch_id, year_month="2026-06", target_amount=Decimal(amount), status=status
    )


def _journal(journal_id: int, branch_id: str, cashier_id: str, day: int, amount: str, status: str = "approved"):
    return SalesJournalRecord(
        id=journal_id,
        branch_id=branch_id,
        cashier_id=cashier_id,
        cashier_name=cashier_id.replace("-", " ").title(),
        journal_date=date(2026, 6, day),
        total_sales=Decimal(amount),
        status=status,
    )


@pytest.fixture()
def service() -> PerformanceService:
    targets = [
        _target(1, "branch-1", "30000"),
        _target(2, "branch-2", "60000"),
        _target(3, "branch-3", "10000", status="archived"),
    ]
    journals = [
        _journal(1, "branch-1", "cashier-a", 1, "5000"),
        _journal(2, "branch-1", "cashier-b", 5, "3000"),
        _journal(3, "branch-2", "cashier-c", 2, "8000"),
        _journal(4, "branch-2", "cashier-c", 9, "4000", status="rejected"),
        _journal(5, "branch-3", "cashier-d", 3, "9000"),
        _journal(6, "branch-1", "cashier-a", 25, "7000"),
    ]
    performance = PerformanceService(
        targets_repository=StubTargetsRepository(targets),
        sales_repository=StubSalesRepository(journals),
        targets_service=PreviewTargetsService(),
    )
    performance.settings = SimpleNamespace(
        targets_critical_projection_percent=80.0,
        targets_warning_projection_percent=100.0,
        targets_leaderboard_top_n=50,
    )
    return performance


def test_branch_progress_falls_back_to_preview_allocations(service: PerformanceService) -> None:
    progress = service.get_branch_progress("branch-1", "2026-06", today=date(2026, 6, 10))

    assert progress.branch_name == "Downtown"
    assert len(progress.daily_progress) == 30
    assert progress.achieved_amount == Decimal("8000")
    assert progress.expected_to_date == Decimal("10000")
    assert progress.pace_percent == 80.0


def test_branch_progress_without_target_is_not_found(service: PerformanceService) -> None:
    with pytest.raises(NotFoundError):
        service.get_branch_progress("branch-9", "2026-06", today=date(2026, 6, 10))


def test_leaderboard_ranks_live_targets_and_cashiers(service: PerformanceService) -> None:
    leaderboard = service.get_leaderboard("2026-06", today=date(2026, 6, 10))

    assert [row.branch_id for row in leaderboard.branches] == ["branch-1", "branch-2"]
    assert [row.rank for row in leaderboard.branches] == [1, 2]
    assert leaderboard.branches[0].achieved_amount == Decimal("8000")
    # Archived branches drop out of the branch ranking but their cashiers still sold.
    assert [row.cashier_id for row in leaderboard.cashiers] == ["cashier-d", "cashier-c", "cashier-a", "cashier-b"]
    assert leaderboard.cashiers[1].journal_count == 1


def test_leaderboard_by_achievement_percent(service: PerformanceService) -> None:
    leaderboard = service.get_leaderboard("2026-06", metric="achievement_percent", today=date(2026, 6, 10))

    assert [row.branch_id for row in leaderboard.branches] == ["branch-1", "branch-2"]
    assert leaderboard.branches[0].achievement_percent == 26.67
    assert leaderboard.branches[1].achievement_percent == 13.33


def test_leaderboard_respects_top_n(service: PerformanceService) -> None:
    leaderboard = service.get_leaderboard("2026-06", top_n=1, today=date(2026, 6, 10))
    assert len(leaderboard.branches) == 1
    assert len(leaderboard.cashiers) == 1


def test_alerts_sorted_by_severity(service: PerformanceService) -> None:
    alerts = service.get_alerts("2026-06", today=date(2026, 6, 10))

    assert [alert.branch_id for alert in alerts] == ["branch-2", "branch-1"]
    assert alerts[0].tier == "critical"
    assert alerts[0].projected_percent == 40.0
    assert alerts[1].tier == "warning"
    assert alerts[1].projected_percent == 80.0
    assert alerts[1].days_remaining == 20


def test_alerts_skip_months_not_started(service: PerformanceService) -> None:
    assert service.get_alerts("2026-06", today=date(2026, 5, 31)) == []


def test_month_sales_stop_at_today(service: PerformanceService) -> None:
    service.get_alerts("2026-06", today=date(2026, 6, 10))
    assert service.sales_repository.requested_windows[-1] == (date(2026, 6, 1), date(2026, 6, 10), None)


def test_cashier_at_two_branches_gets_a_row_per_branch(service: PerformanceService) -> None:
    service.sales_repository.journals.append(_journal(7, "branch-2", "cashier-a", 4, "2500"))

    leaderboard = service.get_leaderboard("2026-06", today=date(2026, 6, 10))

    assert [(row.cashier_id, row.branch_id) for row in leaderboard.cashiers] == [
        ("cashier-d", "branch-3"),
        ("cashier-c", "branch-2"),
        ("cashier-a", "branch-1"),
        ("cashier-b", "branch-1"),
        ("cashier-a", "branch-2"),
    ]
    assert [row.achieved_amount for row in leaderboard.cashiers if row.cashier_id == "cashier-a"] == [
        Decimal("5000"),
        Decimal("2500"),
    ]
