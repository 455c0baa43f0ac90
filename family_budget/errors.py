"""
Budget Engine Errors

Every error a caller can act on derives from BudgetError and carries a
message that is safe to show to the user. Storage failures are not wrapped;
they propagate as the storage exceptions themselves.
"""

from typing import Optional

from pydantic import ValidationError

from family_budget.services.storage import NotFoundError


class BudgetError(Exception):
    """Base exception for budget engine errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AuthenticationRequiredError(BudgetError):
    """No caller identity was supplied."""

    def __init__(self, message: str = "You must be signed in to do this"):
        super().__init__(message)


class PermissionDeniedError(BudgetError):
    """The caller lacks manage rights for the target scope."""

    def __init__(self, actor_id: str, family_id: str, action: str):
        self.actor_id = actor_id
        self.family_id = family_id
        self.action = action
        super().__init__(f"You do not have permission to {action}")


class BudgetNotFoundError(BudgetError, NotFoundError):
    """The referenced budget document does not exist."""

    def __init__(self, budget_id: str, scope: Optional[str] = None):
        self.budget_id = budget_id
        self.scope = scope
        where = f" in {scope}" if scope else ""
        super().__init__(f"Budget not found: {budget_id}{where}")


class BudgetLockedError(BudgetError):
    """A mutation was attempted on a locked budget."""

    def __init__(self, budget_id: str):
        self.budget_id = budget_id
        super().__init__("This budget is locked and cannot be changed")


class CrossFamilyAccessError(BudgetError):
    """A personal budget does not belong to the asserted family."""

    def __init__(self, budget_id: str, family_id: str):
        self.budget_id = budget_id
        self.family_id = family_id
        super().__init__("This budget does not belong to your family")


class BudgetValidationError(BudgetError):
    """Input violated the budget model constraints."""

    def __init__(self, error: ValidationError):
        self.errors = error.errors()
        details = "; ".join(
            f"{'.'.join(str(part) for part in item['loc']) or 'input'}: {item['msg']}"
            for item in self.errors
        )
        super().__init__(f"Invalid budget data: {details}")
