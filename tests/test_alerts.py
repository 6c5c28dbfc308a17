from __future__ import annotations

from decimal import Decimal

import pytest

from src.analytics.alerts import classify_tier, evaluate_alert


def _alert(achieved: str, elapsed: int = 10, target: str = "100000"):
    return evaluate_alert(
        branch_id="branch-1",
        branch_name="Downtown",
        target_amount=Decimal(target),
        achieved_amount=Decimal(achieved),
        days_elapsed=elapsed,
        days_in_month=30,
    )


def test_projection_above_target_is_on_track() -> None:
    alert = _alert("40000")

    assert alert.daily_pace == Decimal("4000.00")
    assert alert.projected_achievement == Decimal("120000.00")
    assert alert.projected_percent == 120.0
    assert alert.achievement_percent == 40.0
    assert alert.days_remaining == 20
    assert alert.required_daily_pace == Decimal("3000.00")
    assert alert.tier == "on_track"
    assert alert.message == "Downtown is on track for 120.0% of target with 20 days remaining."


@pytest.mark.parametrize(
    ("achieved", "tier"),
    [
        ("20000", "critical"),
        ("27000", "warning"),
        ("30000", "warning"),
        ("33400", "on_track"),
        ("100000", "exceeding"),
    ],
)
def test_tiers_follow_projection(achieved: str, tier: str) -> None:
    assert _alert(achieved).tier == tier


def test_exceeding_message_reports_achievement() -> None:
    alert = _alert("110000", elapsed=25)
    assert alert.tier == "exceeding"
    assert "110.0%" in alert.message
    assert alert.required_daily_pace == Decimal("0.00")


def test_last_day_has_no_required_pace() -> None:
    alert = _alert("90000", elapsed=30)
    assert alert.days_remaining == 0
    assert alert.required_daily_pace is None
    assert alert.tier == "warning"


def test_thresholds_are_configurable() -> None:
    assert classify_tier(50.0, 85.0) == "warning"
    assert classify_tier(50.0, 85.0, critical_below=90.0) == "critical"


def test_higher_sales_never_lower_the_tier() -> None:
    order = ["critical", "warning", "on_track", "exceeding"]
    tiers = [_alert(str(amount)).tier for amount in range(0, 120001, 5000)]
    positions = [order.index(tier) for tier in tiers]
    assert positions == sorted(positions)
