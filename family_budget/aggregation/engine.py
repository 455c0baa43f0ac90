"""
Aggregation Engine

Pure functions that group transactions and fold them into spend totals.
Nothing here touches storage or the clock.

Grouping keeps every transaction regardless of type; only summation
restricts to expenses, so one grouping pass serves both income and
expense views.
"""

from collections import defaultdict
from datetime import datetime
from typing import Iterable, Optional, Protocol

from family_budget.models.family import Transaction


def group_by_category(
    transactions: Iterable[Transaction],
) -> dict[Optional[str], list[Transaction]]:
    """Group transactions by their category label, verbatim."""
    grouped: dict[Optional[str], list[Transaction]] = defaultdict(list)
    for tx in transactions:
        grouped[tx.category].append(tx)
    return dict(grouped)


def group_by_user(transactions: Iterable[Transaction]) -> dict[str, list[Transaction]]:
    """Group transactions by the user who recorded them."""
    grouped: dict[str, list[Transaction]] = defaultdict(list)
    for tx in transactions:
        grouped[tx.user_id].append(tx)
    return dict(grouped)


def expenses(transactions: Iterable[Transaction]) -> list[Transaction]:
    return [tx for tx in transactions if tx.is_expense]


def sum_expenses(transactions: Iterable[Transaction]) -> float:
    """Total amount of the expense transactions; income is ignored."""
    return sum(tx.amount for tx in transactions if tx.is_expense)


def average_amount(transactions: Iterable[Transaction]) -> float:
    """Mean expense amount, 0 when there are no expenses."""
    spent = expenses(transactions)
    if not spent:
        return 0.0
    return sum(tx.amount for tx in spent) / len(spent)


def latest_transaction_date(transactions: Iterable[Transaction]) -> Optional[datetime]:
    """Most recent occurrence time among the expenses."""
    dates = [tx.occurred_at for tx in transactions if tx.is_expense and tx.occurred_at]
    return max(dates) if dates else None


def top_categories(
    transactions: Iterable[Transaction],
    limit: int = 5,
) -> list[tuple[Optional[str], float]]:
    """
    Categories ranked by expense total, largest first.

    Categories with no expenses are left out. Ties keep first-seen order.
    """
    totals = [
        (category, sum_expenses(group))
        for category, group in group_by_category(transactions).items()
    ]
    totals = [(category, amount) for category, amount in totals if amount > 0]
    totals.sort(key=lambda item: item[1], reverse=True)
    return totals[:limit]


class CategoryTarget(Protocol):
    """Anything carrying a category label and an optional category id."""

    category: str
    category_id: Optional[str]


class CategoryMatcher:
    """
    Match transactions to a budget's category.

    Historical records are inconsistent: some carry a categoryId, some only
    a category label, some both. A transaction matches when its id equals
    the budget's id, or failing that when its label equals the budget's
    label. Labels are compared exactly.
    """

    @staticmethod
    def match_by_id(target: CategoryTarget, tx: Transaction) -> bool:
        if target.category_id is None or tx.category_id is None:
            return False
        return (
            tx.category_id == target.category_id
            or str(tx.category_id) == str(target.category_id)
        )

    @staticmethod
    def match_by_name(target: CategoryTarget, tx: Transaction) -> bool:
        if not target.category or tx.category is None:
            return False
        return tx.category == target.category

    @classmethod
    def matches(cls, target: CategoryTarget, tx: Transaction) -> bool:
        return cls.match_by_id(target, tx) or cls.match_by_name(target, tx)

    @classmethod
    def select(
        cls,
        target: CategoryTarget,
        transactions: Iterable[Transaction],
    ) -> list[Transaction]:
        """Transactions matching the target, in source order."""
        return [tx for tx in transactions if cls.matches(target, tx)]
