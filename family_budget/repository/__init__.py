"""Budget persistence with permission and lock enforcement."""

from family_budget.repository.budgets import (
    FAMILY_MEMBERS,
    BudgetRepository,
    family_budgets_collection,
    personal_budgets_collection,
    require_actor,
    validate_input,
)
from family_budget.repository.permissions import (
    can_manage_budgets,
    can_manage_personal_budget,
)

__all__ = [
    "FAMILY_MEMBERS",
    "BudgetRepository",
    "can_manage_budgets",
    "can_manage_personal_budget",
    "family_budgets_collection",
    "personal_budgets_collection",
    "require_actor",
    "validate_input",
]
