"""Budget status and spending limit evaluation."""

from family_budget.status.calculator import (
    CRITICAL_THRESHOLD,
    WARNING_THRESHOLD,
    BudgetStatusResult,
    SpendingLimitResult,
    calculate_budget_status,
    clamp_percentage,
    classify_status,
    evaluate_spending_limit,
    is_alert_due,
    usage_percentage,
)

__all__ = [
    "CRITICAL_THRESHOLD",
    "WARNING_THRESHOLD",
    "BudgetStatusResult",
    "SpendingLimitResult",
    "calculate_budget_status",
    "clamp_percentage",
    "classify_status",
    "evaluate_spending_limit",
    "is_alert_due",
    "usage_percentage",
]
