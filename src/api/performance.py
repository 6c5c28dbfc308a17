from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_performance_service
from src.schemas.targets import Alert, BranchProgress, LeaderboardMetric, LeaderboardResponse, TieMode
from src.services.performance_service import PerformanceService
from src.shared.response import ResponseEnvelope, build_meta


router = APIRouter(prefix="/targets", tags=["target-performance"])

YEAR_MONTH_PATTERN = r"^\d{4}-\d{2}$"


@router.get("/performance/{branch_id}")
def branch_performance(
    branch_id: str,
    year_month: str = Query(alias="yearMonth", pattern=YEAR_MONTH_PATTERN),
    service: PerformanceService = Depends(get_performance_service),
) -> ResponseEnvelope[BranchProgress]:
    data = service.get_branch_progress(branch_id, year_month)
    return ResponseEnvelope(
        data=data,
        meta=build_meta(source="cashier_sales_journals", time_window=year_month, data_status="live"),
    )


@router.get("/leaderboard")
def targets_leaderboard(
    year_month: str = Query(alias="yearMonth", pattern=YEAR_MONTH_PATTERN),
    metric: LeaderboardMetric = Query(default="achieved_amount"),
    tie_mode: TieMode = Query(default="sequential", alias="tieMode"),
    top_n: Optional[int] = Query(default=None, alias="topN", ge=1, le=500),
    service: PerformanceService = Depends(get_performance_service),
) -> ResponseEnvelope[LeaderboardResponse]:
    data = service.get_leaderboard(year_month, metric=metric, tie_mode=tie_mode, top_n=top_n)
    return ResponseEnvelope(
        data=data,
        meta=build_meta(source="cashier_sales_journals", time_window=year_month, data_status="live"),
    )


@router.get("/alerts")
def targets_alerts(
    year_month: str = Query(alias="yearMonth", pattern=YEAR_MONTH_PATTERN),
    service: PerformanceService = Depends(get_performance_service),
) -> ResponseEnvelope[List[Alert]]:
    data = service.get_alerts(year_month)
    return ResponseEnvelope(
        data=data,
        meta=build_meta(source="cashier_sales_journals", time_window=year_month, data_status="live"),
    )
