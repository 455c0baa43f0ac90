"""
Derived View Models

Everything in this module is computed on request from budgets, members and
transactions. None of it is ever persisted.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from family_budget.models.budget import Budget, BudgetStatus, DocumentModel
from family_budget.models.family import FamilyRole


class AlertType(str, Enum):
    """What an alert is about."""
    MEMBER_LIMIT = "member_limit"
    BUDGET_LIMIT = "budget_limit"


class AlertSeverity(str, Enum):
    """How urgent an alert is."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class BudgetDetail(Budget):
    """A family budget plus its live spend state."""

    spent_amount: float
    remaining_amount: float = Field(..., ge=0)
    percentage_used: float = Field(
        ...,
        ge=0,
        le=100,
        description="Display percentage, clamped to 0-100"
    )
    raw_percentage_used: float = Field(
        ...,
        description="Unclamped spent/allocated ratio in percent"
    )
    percentage_remaining: float = Field(..., ge=0)
    transaction_count: int = Field(..., ge=0)
    average_transaction_amount: float = 0.0
    last_transaction_date: Optional[datetime] = None
    days_since_start: int = 0
    status: BudgetStatus

    @property
    def is_over_budget(self) -> bool:
        return self.spent_amount > self.allocated_amount


class MemberSpendingLimit(DocumentModel):
    """A member's monthly limit evaluated against this month's spend."""

    user_id: str
    member_name: str
    role: FamilyRole
    monthly_limit: float
    current_month_spent: float
    remaining_amount: float = Field(..., ge=0)
    alert_threshold: Optional[float] = None
    alert_enabled: bool = True
    transaction_count: int = 0
    average_transaction_amount: float = 0.0
    last_spent_date: Optional[datetime] = None
    is_over_limit: bool
    percentage_used: float = Field(..., ge=0, le=100)
    raw_percentage_used: float
    status: BudgetStatus


class BudgetReportLine(DocumentModel):
    """One budget row of a report."""

    id: str
    name: str
    category: str
    allocated: float
    spent: float
    remaining: float
    percentage: float
    status: BudgetStatus


class CategoryAmount(DocumentModel):
    category: Optional[str]
    amount: float


class MemberSpendingLine(DocumentModel):
    """One member row of a report."""

    user_id: str
    member_name: str
    total_spent: float
    percentage_of_total: float
    top_categories: list[CategoryAmount] = Field(default_factory=list)


class BudgetAlert(DocumentModel):
    """A generated warning about a member limit or a budget."""

    type: AlertType
    severity: AlertSeverity
    message: str
    affected_user: Optional[str] = None
    affected_budget: Optional[str] = None


class BudgetReport(DocumentModel):
    """
    Consolidated family report for one accounting period.

    total_remaining is the sum of each budget's own clamped remainder, so it
    can exceed total_allocated - total_spent when a budget is overspent.
    """

    family_id: str
    period: str
    generated_at: datetime
    total_allocated: float
    total_spent: float
    total_remaining: float
    overall_percentage_used: float
    budgets: list[BudgetReportLine] = Field(default_factory=list)
    member_spending: list[MemberSpendingLine] = Field(default_factory=list)
    alerts: list[BudgetAlert] = Field(default_factory=list)

    @property
    def high_alerts(self) -> list[BudgetAlert]:
        return [a for a in self.alerts if a.severity == AlertSeverity.HIGH]


class MemberBudgetBreakdown(DocumentModel):
    """One member's share of a single family budget."""

    user_id: str
    member_name: str
    role: FamilyRole
    allocated_amount: float
    spent_amount: float
    remaining_amount: float
    transaction_count: int
    percentage_used: float


class MemberBudgetLine(DocumentModel):
    budget_id: str
    budget_name: str
    allocated_amount: float
    spent_amount: float
    remaining_amount: float
    percentage_used: float
    status: BudgetStatus


class MemberBudgetOverview(DocumentModel):
    """A member's allocations and spend across all family budgets."""

    user_id: str
    total_allocated: float
    total_spent: float
    total_remaining: float
    percentage_used: float
    budget_breakdown: list[MemberBudgetLine] = Field(default_factory=list)


class PersonalBudgetView(DocumentModel):
    """A member's personal budget with its spend for one month."""

    id: str
    category: str
    budget: float
    spent: float
    predicted: float
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
