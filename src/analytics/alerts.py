from __future__ import annotations

from decimal import Decimal
from typing import Dict

from src.analytics.achievement import percent_of, ratio_percent
from src.schemas.targets import Alert, AlertTier

CENTS = Decimal("0.01")

TIER_SEVERITY: Dict[str, int] = {
    "critical": 0,
    "warning": 1,
    "on_track": 2,
    "exceeding": 3,
}

MESSAGE_TEMPLATES: Dict[str, str] = {
    "exceeding": "{branch} has already reached {percent:.1f}% of its monthly target with {days} days remaining.",
    "critical": "{branch} is projected to close the month at only {percent:.1f}% of target; {days} days remaining.",
    "warning": "{branch} is projected at {percent:.1f}% of target; {days} days remaining to close the gap.",
    "on_track": "{branch} is on track for {percent:.1f}% of target with {days} days remaining.",
}


def classify_tier(
    achievement_percent: float,
    projected_percent: float,
    critical_below: float = 80.0,
    warning_below: float = 100.0,
) -> AlertTier:
    if achievement_percent >= 100:
        return "exceeding"
    if projected_percent < critical_below:
        return "critical"
    if projected_percent < warning_below:
        return "warning"
    return "on_track"


def evaluate_alert(
    branch_id: str,
    branch_name: str,
    target_amount: Decimal,
    achieved_amount: Decimal,
    days_elapsed: int,
    days_in_month: int,
    critical_below: float = 80.0,
    warning_below: float = 100.0,
) -> Alert:
    target_amount = Decimal(target_amount)
    achieved_amount = Decimal(achieved_amount)
    daily_pace = achieved_amount / Decimal(max(days_elapsed, 1))
    projected = daily_pace * Decimal(days_in_month)
    achievement_percent = percent_of(achieved_amount, target_amount)
    projected_percent = percent_of(projected, target_amount)
    days_remaining = max(days_in_month - days_elapsed, 0)

    tier = classify_tier(
        ratio_percent(achieved_amount, target_amount),
        ratio_percent(projected, target_amount),
        critical_below,
        warning_below,
    )
    shown_percent = achievement_percent if tier == "exceeding" else projected_percent
    message = MESSAGE_TEMPLATES[tier].format(branch=branch_name, percent=shown_percent, days=days_remaining)

    required_daily_pace = None
    if days_remaining > 0:
        shortfall = max(target_amount - achieved_amount, Decimal("0"))
        required_daily_pace = (shortfall / Decimal(days_remaining)).quantize(CENTS)

    return Alert(
        branch_id=branch_id,
        branch_name=branch_name,
        tier=tier,
        message=message,
        target_amount=target_amount,
        achieved_amount=achieved_amount,
        achievement_percent=achievement_percent,
        daily_pace=daily_pace.quantize(CENTS),
        projected_achievement=projected.quantize(CENTS),
        projected_percent=projected_percent,
        days_elapsed=days_elapsed,
        days_remaining=days_remaining,
        required_daily_pace=required_daily_pace,
    )
