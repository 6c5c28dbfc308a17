from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from src.analytics.achievement import (
    aggregate_progress,
    percent_of,
    sum_sales_by_branch,
    sum_sales_by_date,
)
from src.analytics.alerts import TIER_SEVERITY, evaluate_alert
from src.analytics.leaderboard import rank_entities
from src.core.config import get_settings
from src.core.errors import NotFoundError
from src.models.targets import CashierSalesTotal, MonthlyTargetRecord, SalesJournalRecord
from src.repositories.sales_repository import SalesRepository
from src.repositories.targets_repository import TargetsRepository
from src.schemas.targets import (
    Alert,
    BranchProgress,
    LeaderboardBranchRow,
    LeaderboardCashierRow,
    LeaderboardResponse,
)
from src.services.targets_service import TargetsService
from src.shared.time import days_elapsed, days_in_month, month_bounds, parse_year_month

ZERO = Decimal("0")


class PerformanceService:
    def __init__(
        self,
        targets_repository: TargetsRepository,
        sales_repository: SalesRepository,
        targets_service: TargetsService,
    ) -> None:
        self.targets_repository = targets_repository
        self.sales_repository = sales_repository
        self.targets_service = targets_service
        self.settings = get_settings()

    def get_branch_progress(
        self,
        branch_id: str,
        year_month: str,
        today: Optional[date] = None,
    ) -> BranchProgress:
        parse_year_month(year_month)
        target = self.targets_repository.find_target(branch_id, year_month)
        if target is None:
            raise NotFoundError(
                "No monthly target for branch",
                details={"branchId": branch_id, "yearMonth": year_month},
            )
        allocations = self.targets_repository.list_allocations(target.id)
        if not allocations:
            allocations = self.targets_service.preview_allocations(target)

        start, end = month_bounds(year_month)
        sales = self.sales_repository.list_sales(start, end, branch_id=branch_id)
        return aggregate_progress(
            target,
            allocations,
            sum_sales_by_date(sales),
            today=today,
            branch_name=self._branch_names().get(branch_id, branch_id),
        )

    def get_leaderboard(
        self,
        year_month: str,
        metric: str = "achieved_amount",
        tie_mode: str = "sequential",
        top_n: Optional[int] = None,
        today: Optional[date] = None,
    ) -> LeaderboardResponse:
        limit = top_n or self.settings.targets_leaderboard_top_n
        targets = self._live_targets(year_month)
        journals = self._month_sales(year_month, today)
        names = self._branch_names()

        achieved_by_branch = sum_sales_by_branch(journals)

        branch_rows = [
            LeaderboardBranchRow(
                rank=0,
                branch_id=target.branch_id,
                branch_name=names.get(target.branch_id, target.branch_id),
                target_amount=target.target_amount,
                achieved_amount=achieved_by_branch.get(target.branch_id, ZERO),
                achievement_percent=percent_of(
                    achieved_by_branch.get(target.branch_id, ZERO), target.target_amount
                ),
            )
            for target in targets
        ]
        ranked_branches = rank_entities(
            branch_rows,
            metric=lambda row: getattr(row, metric),
            entity_id=lambda row: row.branch_id,
            tie_mode=tie_mode,
        )[:limit]

        ranked_cashiers = rank_entities(
            self._cashier_totals(journals).values(),
            metric=lambda total: total.achieved_amount,
            entity_id=lambda total: f"{total.cashier_id}:{total.branch_id}",
            tie_mode=tie_mode,
        )[:limit]

        return LeaderboardResponse(
            year_month=year_month,
            metric=metric,
            tie_mode=tie_mode,
            branches=[row.model_copy(update={"rank": rank}) for rank, row in ranked_branches],
            cashiers=[
                LeaderboardCashierRow(
                    rank=rank,
                    cashier_id=total.cashier_id,
                    cashier_name=total.cashier_name,
                    branch_id=total.branch_id,
                    achieved_amount=total.achieved_amount,
                    journal_count=total.journal_count,
                )
                for rank, total in ranked_cashiers
            ],
        )

    def get_alerts(self, year_month: str, today: Optional[date] = None) -> List[Alert]:
        elapsed = days_elapsed(year_month, today)
        if elapsed == 0:
            return []
        total_days = days_in_month(year_month)
        targets = self._live_targets(year_month)
        journals = self._month_sales(year_month, today)
        names = self._branch_names()
        achieved = sum_sales_by_branch(journals)

        alerts = [
            evaluate_alert(
                branch_id=target.branch_id,
                branch_name=names.get(target.branch_id, target.branch_id),
                target_amount=target.target_amount,
                achieved_amount=achieved.get(target.branch_id, ZERO),
                days_elapsed=elapsed,
                days_in_month=total_days,
                critical_below=self.settings.targets_critical_projection_percent,
                warning_below=self.settings.targets_warning_projection_percent,
            )
            for target in targets
        ]
        return sorted(alerts, key=lambda alert: (TIER_SEVERITY[alert.tier], alert.projected_percent, alert.branch_id))

    def _live_targets(self, year_month: str) -> List[MonthlyTargetRecord]:
        parse_year_month(year_month)
        return [
            target
            for target in self.targets_repository.list_targets(year_month)
            if target.status != "archived"
        ]

    def _month_sales(self, year_month: str, today: Optional[date]) -> List[SalesJournalRecord]:
        start, end = month_bounds(year_month)
        cutoff = min(end, today or date.today())
        if cutoff < start:
            return []
        return self.sales_repository.list_sales(start, cutoff)

    def _branch_names(self) -> Dict[str, str]:
        return {branch.id: branch.name for branch in self.sales_repository.list_branches()}

    @staticmethod
    def _cashier_totals(journals: List[SalesJournalRecord]) -> Dict[Tuple[str, str], CashierSalesTotal]:
        """Totals per cashier and branch; a cashier who worked at two branches gets two rows."""
        totals: Dict[Tuple[str, str], CashierSalesTotal] = {}
        for journal in journals:
            if not journal.counts_as_sales:
                continue
            total = totals.setdefault(
                (journal.cashier_id, journal.branch_id),
                CashierSalesTotal(
                    cashier_id=journal.cashier_id,
                    cashier_name=journal.cashier_name,
                    branch_id=journal.branch_id,
                ),
            )
            total.achieved_amount += journal.total_sales
            total.journal_count += 1
        return totals
