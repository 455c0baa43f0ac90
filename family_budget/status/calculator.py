"""
Budget Status Calculator

Derives remaining amount, percentages and the three-tier status from an
allocation and its spend. The same tiering is applied to member spending
limits.

Two percentages are produced on purpose:
- percentage_used is clamped to 0-100 for display
- raw_percentage_used is unclamped and drives status and over-limit checks,
  so an overspent budget is still detected after the display value caps
"""

from typing import Optional

from pydantic import BaseModel

from family_budget.models.budget import BudgetStatus


WARNING_THRESHOLD = 50.0
CRITICAL_THRESHOLD = 80.0


class BudgetStatusResult(BaseModel):
    remaining_amount: float
    percentage_used: float
    raw_percentage_used: float
    percentage_remaining: float
    status: BudgetStatus


class SpendingLimitResult(BudgetStatusResult):
    is_over_limit: bool


def usage_percentage(allocated: float, spent: float) -> float:
    """Unclamped spent/allocated in percent. Zero allocation is 0% used."""
    if allocated <= 0:
        return 0.0
    return spent * 100 / allocated


def clamp_percentage(value: float) -> float:
    return min(100.0, max(0.0, value))


def classify_status(raw_percentage: float) -> BudgetStatus:
    """
    Map an unclamped percentage to a tier.

    Each tier includes its lower bound: 50 is warning, 80 is critical.
    """
    if raw_percentage >= CRITICAL_THRESHOLD:
        return BudgetStatus.CRITICAL
    if raw_percentage >= WARNING_THRESHOLD:
        return BudgetStatus.WARNING
    return BudgetStatus.SAFE


def calculate_budget_status(allocated: float, spent: float) -> BudgetStatusResult:
    raw = usage_percentage(allocated, spent)
    return BudgetStatusResult(
        remaining_amount=max(0.0, allocated - spent),
        percentage_used=clamp_percentage(raw),
        raw_percentage_used=raw,
        percentage_remaining=max(0.0, 100 - raw),
        status=classify_status(raw),
    )


def evaluate_spending_limit(monthly_limit: float, spent: float) -> SpendingLimitResult:
    """
    Evaluate a member's monthly spend against their limit.

    is_over_limit is strict (spent > limit) and independent of the tier, so
    a member can be critical without being over.
    """
    result = calculate_budget_status(monthly_limit, spent)
    return SpendingLimitResult(
        **result.model_dump(),
        is_over_limit=spent > monthly_limit,
    )


def is_alert_due(percentage_used: float, threshold: Optional[float], default: float = 80.0) -> bool:
    """Whether a clamped percentage has reached the alert threshold."""
    return percentage_used >= (threshold or default)
