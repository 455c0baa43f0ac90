"""Transaction aggregation package."""

from family_budget.aggregation.engine import (
    CategoryMatcher,
    average_amount,
    expenses,
    group_by_category,
    group_by_user,
    latest_transaction_date,
    sum_expenses,
    top_categories,
)

__all__ = [
    "CategoryMatcher",
    "average_amount",
    "expenses",
    "group_by_category",
    "group_by_user",
    "latest_transaction_date",
    "sum_expenses",
    "top_categories",
]
