"""
Transaction Accessor

Reads one accounting period's transactions for a family or a member and
returns them as Transaction models.

Transaction records are written by other parts of the app and vary in
shape. Records that cannot be read at all are skipped with a warning
instead of failing the whole request. Store errors are not caught here.
"""

from datetime import datetime
from typing import Callable, Iterable, Optional

import structlog
from pydantic import BaseModel, Field, ValidationError

from family_budget.models import Transaction
from family_budget.services.storage import DocumentStoreInterface, QueryFilter


logger = structlog.get_logger(__name__)

FAMILY_TRANSACTIONS = "transactions"


def member_transactions_collection(member_id: str) -> str:
    return f"users/{member_id}/transactions"


class AccountingPeriod(BaseModel):
    """A calendar month. month is 1-12."""

    year: int = Field(..., ge=1970, le=9999)
    month: int = Field(..., ge=1, le=12)

    @classmethod
    def containing(cls, moment: datetime) -> "AccountingPeriod":
        return cls(year=moment.year, month=moment.month)

    @property
    def start(self) -> datetime:
        return datetime(self.year, self.month, 1)

    @property
    def end(self) -> datetime:
        """First instant of the following month (exclusive bound)."""
        if self.month == 12:
            return datetime(self.year + 1, 1, 1)
        return datetime(self.year, self.month + 1, 1)

    def contains(self, moment: Optional[datetime]) -> bool:
        return moment is not None and self.start <= moment < self.end

    @property
    def label(self) -> str:
        return self.start.strftime("%B %Y")


def parse_transactions(documents: Iterable[dict], source: str) -> list[Transaction]:
    """Convert raw documents, skipping the ones that fail validation."""
    transactions = []
    for document in documents:
        try:
            transactions.append(Transaction.model_validate(document))
        except ValidationError as e:
            logger.warning(
                "transaction_skipped",
                source=source,
                transaction_id=document.get("id"),
                error=str(e),
            )
    return transactions


class TransactionAccessor:
    """Period-scoped reads over the transaction collections."""

    def __init__(
        self,
        store: DocumentStoreInterface,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._store = store
        self._clock = clock or datetime.now

    def current_period(self) -> AccountingPeriod:
        return AccountingPeriod.containing(self._clock())

    async def family_transactions(
        self,
        family_id: str,
        period: Optional[AccountingPeriod] = None,
    ) -> list[Transaction]:
        """
        Family transactions created within the period.

        createdAt is stored as naive or aware datetimes or ISO strings, so
        the period is checked after parsing, not in the store query.
        """
        period = period or self.current_period()
        documents = await self._store.query(
            FAMILY_TRANSACTIONS,
            filters=[QueryFilter(field="familyId", op="==", value=family_id)],
        )
        transactions = [
            tx for tx in parse_transactions(documents, FAMILY_TRANSACTIONS)
            if period.contains(tx.created_at)
        ]
        logger.debug(
            "transactions_fetched",
            family_id=family_id,
            period=period.label,
            count=len(transactions),
        )
        return transactions

    async def member_transactions(
        self,
        member_id: str,
        period: Optional[AccountingPeriod] = None,
    ) -> list[Transaction]:
        """
        A member's own transactions that occurred within the period.

        Older member records may lack familyId, so no family filter is
        applied. The period is checked against date, else createdAt.
        """
        period = period or self.current_period()
        collection = member_transactions_collection(member_id)
        documents = await self._store.query(
            collection,
            order_by="createdAt",
            descending=True,
        )
        transactions = [
            tx for tx in parse_transactions(documents, collection)
            if period.contains(tx.occurred_at)
        ]
        logger.debug(
            "transactions_fetched",
            member_id=member_id,
            period=period.label,
            count=len(transactions),
        )
        return transactions
