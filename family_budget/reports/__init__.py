"""Budget reports package."""

from family_budget.reports.formatting import format_currency
from family_budget.reports.generator import (
    build_budget_detail,
    build_member_breakdown,
    build_member_overview,
    build_personal_budget_views,
    build_spending_limit,
    build_spending_limits,
    generate_report,
)

__all__ = [
    "build_budget_detail",
    "build_member_breakdown",
    "build_member_overview",
    "build_personal_budget_views",
    "build_spending_limit",
    "build_spending_limits",
    "format_currency",
    "generate_report",
]
