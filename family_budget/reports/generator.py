"""
Report Generator

Turns budgets, members and one period's transactions into derived views:
BudgetDetail per budget, MemberSpendingLimit per member with a limit, and
the consolidated BudgetReport with its alerts.

Everything in this module is a pure function of its inputs. The caller
fetches each source collection once and passes the same transaction list
to every pass.
"""

from datetime import datetime
from typing import Iterable, Optional, Sequence

from family_budget.aggregation import (
    CategoryMatcher,
    average_amount,
    expenses,
    group_by_user,
    latest_transaction_date,
    sum_expenses,
    top_categories,
)
from family_budget.config import get_settings
from family_budget.models import (
    AlertSeverity,
    AlertType,
    Budget,
    BudgetAlert,
    BudgetDetail,
    BudgetReport,
    BudgetReportLine,
    BudgetStatus,
    CategoryAmount,
    FamilyMember,
    MemberBudgetBreakdown,
    MemberBudgetLine,
    MemberBudgetOverview,
    MemberSpendingLimit,
    MemberSpendingLine,
    PersonalBudget,
    PersonalBudgetView,
    Transaction,
)
from family_budget.reports.formatting import format_currency
from family_budget.status import (
    calculate_budget_status,
    clamp_percentage,
    evaluate_spending_limit,
    is_alert_due,
    usage_percentage,
)


def build_budget_detail(
    budget: Budget,
    transactions: Sequence[Transaction],
    now: datetime,
) -> BudgetDetail:
    """Attach live spend state to a budget."""
    matched = CategoryMatcher.select(budget, transactions)
    spent = sum_expenses(matched)
    status = calculate_budget_status(budget.allocated_amount, spent)

    return BudgetDetail(
        **budget.model_dump(),
        spent_amount=spent,
        remaining_amount=status.remaining_amount,
        percentage_used=status.percentage_used,
        raw_percentage_used=status.raw_percentage_used,
        percentage_remaining=status.percentage_remaining,
        transaction_count=len(expenses(matched)),
        average_transaction_amount=average_amount(matched),
        last_transaction_date=latest_transaction_date(matched),
        days_since_start=max(0, (now - budget.start_date).days),
        status=status.status,
    )


def build_spending_limit(
    member: FamilyMember,
    transactions: Sequence[Transaction],
) -> Optional[MemberSpendingLimit]:
    """
    Evaluate a member's monthly limit against their transactions.

    Returns None for members without a spending limit.
    """
    if member.spending_limit is None:
        return None

    limit = member.spending_limit
    own = [tx for tx in transactions if tx.user_id == member.user_id]
    spent = sum_expenses(own)
    result = evaluate_spending_limit(limit.amount, spent)

    return MemberSpendingLimit(
        user_id=member.user_id,
        member_name=member.name,
        role=member.role,
        monthly_limit=limit.amount,
        current_month_spent=spent,
        remaining_amount=result.remaining_amount,
        alert_threshold=limit.notification_threshold,
        alert_enabled=True,
        transaction_count=len(expenses(own)),
        average_transaction_amount=average_amount(own),
        last_spent_date=latest_transaction_date(own),
        is_over_limit=result.is_over_limit,
        percentage_used=result.percentage_used,
        raw_percentage_used=result.raw_percentage_used,
        status=result.status,
    )


def build_spending_limits(
    members: Iterable[FamilyMember],
    transactions: Sequence[Transaction],
) -> list[MemberSpendingLimit]:
    limits = []
    for member in members:
        limit = build_spending_limit(member, transactions)
        if limit is not None:
            limits.append(limit)
    return limits


def _member_alerts(
    limits: Iterable[MemberSpendingLimit],
    currency: str,
    default_threshold: float,
) -> list[BudgetAlert]:
    alerts = []
    for limit in limits:
        if limit.is_over_limit:
            alerts.append(BudgetAlert(
                type=AlertType.MEMBER_LIMIT,
                severity=AlertSeverity.HIGH,
                message=(
                    f"{limit.member_name} has exceeded their spending limit "
                    f"({format_currency(limit.current_month_spent, currency)} / "
                    f"{format_currency(limit.monthly_limit, currency)})"
                ),
                affected_user=limit.user_id,
            ))
        elif is_alert_due(limit.percentage_used, limit.alert_threshold, default_threshold):
            alerts.append(BudgetAlert(
                type=AlertType.MEMBER_LIMIT,
                severity=AlertSeverity.MEDIUM,
                message=(
                    f"{limit.member_name} has used {limit.percentage_used:.0f}% "
                    f"of their spending limit"
                ),
                affected_user=limit.user_id,
            ))
    return alerts


def _budget_alerts(details: Iterable[BudgetDetail]) -> list[BudgetAlert]:
    alerts = []
    for detail in details:
        if detail.status == BudgetStatus.CRITICAL:
            alerts.append(BudgetAlert(
                type=AlertType.BUDGET_LIMIT,
                severity=AlertSeverity.HIGH,
                message=(
                    f'Budget "{detail.name}" is over its limit '
                    f"({format_currency(detail.spent_amount, detail.currency)} / "
                    f"{format_currency(detail.allocated_amount, detail.currency)})"
                ),
                affected_budget=detail.id,
            ))
        elif detail.status == BudgetStatus.WARNING:
            alerts.append(BudgetAlert(
                type=AlertType.BUDGET_LIMIT,
                severity=AlertSeverity.MEDIUM,
                message=f'Budget "{detail.name}" is running low ({detail.percentage_used:.0f}%)',
                affected_budget=detail.id,
            ))
    return alerts


def generate_report(
    family_id: str,
    budgets: Sequence[Budget],
    members: Sequence[FamilyMember],
    transactions: Sequence[Transaction],
    now: datetime,
    currency: Optional[str] = None,
) -> BudgetReport:
    """
    Compose the consolidated report for one family and period.

    Inactive budgets are skipped. Alerts list members first, then budgets,
    each in input order.
    """
    settings = get_settings().budget
    currency = currency or settings.default_currency

    details = [
        build_budget_detail(budget, transactions, now)
        for budget in budgets
        if budget.is_active
    ]
    limits = build_spending_limits(members, transactions)

    total_allocated = sum(d.allocated_amount for d in details)
    total_spent = sum(d.spent_amount for d in details)
    # Sum of per-budget clamped remainders, not total_allocated - total_spent
    total_remaining = sum(d.remaining_amount for d in details)

    by_user = group_by_user(transactions)
    member_spending = []
    for limit in limits:
        member_spending.append(MemberSpendingLine(
            user_id=limit.user_id,
            member_name=limit.member_name,
            total_spent=limit.current_month_spent,
            percentage_of_total=(
                limit.current_month_spent / total_spent * 100
                if total_spent > 0 else 0.0
            ),
            top_categories=[
                CategoryAmount(category=category, amount=amount)
                for category, amount in top_categories(
                    by_user.get(limit.user_id, []),
                    limit=settings.top_categories_limit,
                )
            ],
        ))

    alerts = _member_alerts(limits, currency, settings.default_alert_threshold)
    alerts.extend(_budget_alerts(details))

    return BudgetReport(
        family_id=family_id,
        period=now.strftime("%B %Y"),
        generated_at=now,
        total_allocated=total_allocated,
        total_spent=total_spent,
        total_remaining=total_remaining,
        overall_percentage_used=clamp_percentage(
            usage_percentage(total_allocated, total_spent)
        ),
        budgets=[
            BudgetReportLine(
                id=d.id,
                name=d.name,
                category=d.category,
                allocated=d.allocated_amount,
                spent=d.spent_amount,
                remaining=d.remaining_amount,
                percentage=d.percentage_used,
                status=d.status,
            )
            for d in details
        ],
        member_spending=member_spending,
        alerts=alerts,
    )


# =============================================================================
# PER-MEMBER VIEWS
# =============================================================================

def build_member_breakdown(
    budget: Budget,
    members: Sequence[FamilyMember],
    transactions: Sequence[Transaction],
) -> list[MemberBudgetBreakdown]:
    """
    Split one budget across the family's members.

    A member's share is their allocation entry when the budget has any
    allocations (0 for members without one); otherwise the budget is
    divided evenly across all members.
    """
    by_user = group_by_user(CategoryMatcher.select(budget, transactions))
    rows = []
    for member in members:
        if budget.member_allocations:
            entry = budget.allocation_for(member.user_id)
            allocated = entry.allocated_amount if entry else 0.0
        else:
            allocated = budget.allocated_amount / len(members)

        own = by_user.get(member.user_id, [])
        spent = sum_expenses(own)
        status = calculate_budget_status(allocated, spent)
        rows.append(MemberBudgetBreakdown(
            user_id=member.user_id,
            member_name=member.name,
            role=member.role,
            allocated_amount=allocated,
            spent_amount=spent,
            remaining_amount=status.remaining_amount,
            transaction_count=len(expenses(own)),
            percentage_used=status.percentage_used,
        ))
    return rows


def build_member_overview(
    user_id: str,
    budgets: Sequence[Budget],
    transactions: Sequence[Transaction],
) -> MemberBudgetOverview:
    """
    One member's allocations and spend across the given budgets.

    Unlike the family report, total_remaining here is computed from the
    totals: max(0, total_allocated - total_spent).
    """
    own = [tx for tx in transactions if tx.user_id == user_id]
    lines = []
    for budget in budgets:
        entry = budget.allocation_for(user_id)
        allocated = entry.allocated_amount if entry else 0.0
        spent = sum_expenses(CategoryMatcher.select(budget, own))
        status = calculate_budget_status(allocated, spent)
        lines.append(MemberBudgetLine(
            budget_id=budget.id,
            budget_name=budget.name,
            allocated_amount=allocated,
            spent_amount=spent,
            remaining_amount=status.remaining_amount,
            percentage_used=status.percentage_used,
            status=status.status,
        ))

    total_allocated = sum(line.allocated_amount for line in lines)
    total_spent = sum(line.spent_amount for line in lines)
    return MemberBudgetOverview(
        user_id=user_id,
        total_allocated=total_allocated,
        total_spent=total_spent,
        total_remaining=max(0.0, total_allocated - total_spent),
        percentage_used=clamp_percentage(usage_percentage(total_allocated, total_spent)),
        budget_breakdown=lines,
    )


def build_personal_budget_views(
    budgets: Sequence[PersonalBudget],
    transactions: Sequence[Transaction],
) -> list[PersonalBudgetView]:
    """Personal budgets with spend from the member's own transactions."""
    views = []
    for budget in budgets:
        spent = sum_expenses(CategoryMatcher.select(budget, transactions))
        views.append(PersonalBudgetView(
            id=budget.id,
            category=budget.category,
            budget=budget.allocated_amount,
            spent=spent,
            predicted=spent,
            is_active=budget.is_active,
            created_at=budget.created_at,
            updated_at=budget.updated_at,
        ))
    return views
