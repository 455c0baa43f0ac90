"""Transaction access package."""

from family_budget.transactions.accessor import (
    FAMILY_TRANSACTIONS,
    AccountingPeriod,
    TransactionAccessor,
    member_transactions_collection,
    parse_transactions,
)

__all__ = [
    "FAMILY_TRANSACTIONS",
    "AccountingPeriod",
    "TransactionAccessor",
    "member_transactions_collection",
    "parse_transactions",
]
