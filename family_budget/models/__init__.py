"""
Data Models Package

This package contains all Pydantic models used by the family budget engine.
Stored records, caller input and derived report views all conform to these
schemas.
"""

from family_budget.models.budget import (
    Budget,
    BudgetCreate,
    BudgetPeriod,
    BudgetStatus,
    BudgetUpdate,
    MemberAllocation,
    PersonalBudget,
    PersonalBudgetCreate,
    PersonalBudgetPeriod,
    PersonalBudgetUpdate,
)
from family_budget.models.family import (
    FamilyMember,
    FamilyRole,
    SpendingLimit,
    Transaction,
    TransactionType,
    member_document_id,
)
from family_budget.models.report import (
    AlertSeverity,
    AlertType,
    BudgetAlert,
    BudgetDetail,
    BudgetReport,
    BudgetReportLine,
    CategoryAmount,
    MemberBudgetBreakdown,
    MemberBudgetLine,
    MemberBudgetOverview,
    MemberSpendingLimit,
    MemberSpendingLine,
    PersonalBudgetView,
)
from family_budget.models.audit import (
    AuditAction,
    AuditEvent,
    AuditEventBuilder,
    AuditSeverity,
)

__all__ = [
    # Budget models
    "Budget",
    "BudgetCreate",
    "BudgetPeriod",
    "BudgetStatus",
    "BudgetUpdate",
    "MemberAllocation",
    "PersonalBudget",
    "PersonalBudgetCreate",
    "PersonalBudgetPeriod",
    "PersonalBudgetUpdate",
    # Family models
    "FamilyMember",
    "FamilyRole",
    "SpendingLimit",
    "Transaction",
    "TransactionType",
    "member_document_id",
    # Derived views
    "AlertSeverity",
    "AlertType",
    "BudgetAlert",
    "BudgetDetail",
    "BudgetReport",
    "BudgetReportLine",
    "CategoryAmount",
    "MemberBudgetBreakdown",
    "MemberBudgetLine",
    "MemberBudgetOverview",
    "MemberSpendingLimit",
    "MemberSpendingLine",
    "PersonalBudgetView",
    # Audit models
    "AuditAction",
    "AuditEvent",
    "AuditEventBuilder",
    "AuditSeverity",
]
