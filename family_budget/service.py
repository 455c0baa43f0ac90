"""
Family Budget Service

This module ties together the repository, the transaction accessor and the
report generator, and exposes the operations callers use.

DESIGN DECISION: The service is an ordinary object constructed with its
store. There is no module-level instance, so tests build one per case
around an in-memory store.

Reads are not permission-gated: any caller can read a family's budgets and
reports. Mutations are delegated to BudgetRepository, which enforces
identity, permission, lock and family-scope rules.
"""

from datetime import datetime
from typing import Callable, Literal, Optional, Sequence, Union

import structlog
from pydantic import BaseModel

from family_budget.audit import AuditLogger
from family_budget.models import (
    Budget,
    BudgetCreate,
    BudgetDetail,
    BudgetReport,
    BudgetUpdate,
    MemberAllocation,
    MemberBudgetBreakdown,
    MemberBudgetOverview,
    MemberSpendingLimit,
    PersonalBudget,
    PersonalBudgetCreate,
    PersonalBudgetUpdate,
    PersonalBudgetView,
)
from family_budget.reports import (
    build_budget_detail,
    build_member_breakdown,
    build_member_overview,
    build_personal_budget_views,
    build_spending_limits,
    generate_report,
)
from family_budget.repository import BudgetRepository, validate_input
from family_budget.services.storage import (
    DocumentAuditStorage,
    DocumentStoreInterface,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
)
from family_budget.transactions import AccountingPeriod, TransactionAccessor


logger = structlog.get_logger(__name__)


class BudgetListOptions(BaseModel):
    """Ordering and filtering for get_family_budgets."""

    include_inactive: bool = False
    order_by: Literal["createdAt", "allocatedAmount", "spentAmount"] = "createdAt"
    order_dir: Literal["asc", "desc"] = "desc"


class FamilyBudgetService:
    """
    Budget operations for one document store.

    Args:
        store: Where budgets, members, transactions and audit logs live
        audit_logger: Defaults to logging into the store's audit_logs
        clock: Source of "now" (period selection, report timestamps)
    """

    def __init__(
        self,
        store: DocumentStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._store = store
        self._clock = clock or datetime.now
        self._audit = audit_logger or AuditLogger(DocumentAuditStorage(store))
        self.repository = BudgetRepository(store, self._audit, self._clock)
        self.transactions = TransactionAccessor(store, self._clock)

    # =========================================================================
    # READS
    # =========================================================================

    async def get_family_budgets(
        self,
        family_id: str,
        include_inactive: bool = False,
        order_by: str = "createdAt",
        order_dir: str = "desc",
    ) -> list[BudgetDetail]:
        """
        Budgets of a family with live spend for the current month.

        spentAmount is never stored, so ordering by it happens after the
        details are derived.
        """
        options = validate_input(BudgetListOptions, {
            "include_inactive": include_inactive,
            "order_by": order_by,
            "order_dir": order_dir,
        })
        descending = options.order_dir == "desc"
        store_order = None if options.order_by == "spentAmount" else options.order_by

        budgets = await self.repository.list_budgets(
            family_id,
            include_inactive=options.include_inactive,
            order_by=store_order,
            descending=descending,
        )
        transactions = await self.transactions.family_transactions(family_id)
        now = self._clock()
        details = [build_budget_detail(b, transactions, now) for b in budgets]

        if options.order_by == "spentAmount":
            details.sort(key=lambda d: d.spent_amount, reverse=descending)

        logger.info("budgets_fetched", family_id=family_id, count=len(details))
        return details

    async def get_budget_detail(self, family_id: str, budget_id: str) -> BudgetDetail:
        """
        One budget with live spend.

        Raises:
            BudgetNotFoundError: If the budget does not exist
        """
        budget = await self.repository.get_budget(family_id, budget_id)
        transactions = await self.transactions.family_transactions(family_id)
        return build_budget_detail(budget, transactions, self._clock())

    async def get_spending_limits(self, family_id: str) -> list[MemberSpendingLimit]:
        """Monthly limit state for each member that has a limit."""
        members = await self.repository.list_members(family_id)
        transactions = await self.transactions.family_transactions(family_id)
        return build_spending_limits(members, transactions)

    async def generate_budget_report(self, family_id: str) -> BudgetReport:
        """
        Consolidated report for the current month.

        Budgets, members and transactions are each read once.
        """
        budgets = await self.repository.list_budgets(family_id)
        members = await self.repository.list_members(family_id)
        transactions = await self.transactions.family_transactions(family_id)

        report = generate_report(family_id, budgets, members, transactions, self._clock())
        logger.info(
            "budget_report_generated",
            family_id=family_id,
            budgets=len(report.budgets),
            alerts=len(report.alerts),
        )
        return report

    async def get_budget_by_member(
        self,
        family_id: str,
        budget_id: str,
    ) -> list[MemberBudgetBreakdown]:
        """How one budget splits across the family's members."""
        budget = await self.repository.get_budget(family_id, budget_id)
        transactions = await self.transactions.family_transactions(family_id)
        members = await self.repository.list_members(family_id)
        return build_member_breakdown(budget, members, transactions)

    async def get_member_budget_overview(
        self,
        family_id: str,
        user_id: str,
    ) -> MemberBudgetOverview:
        """A member's allocations and spend across the active budgets."""
        budgets = await self.repository.list_budgets(family_id)
        transactions = await self.transactions.family_transactions(family_id)
        return build_member_overview(user_id, budgets, transactions)

    async def get_member_personal_budgets(
        self,
        family_id: str,
        member_id: str,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> list[PersonalBudgetView]:
        """
        A member's personal budgets with spend for one month.

        Defaults to the current month. Budgets recorded under another
        family are left out; budgets without a familyId are kept.
        """
        current = self.transactions.current_period()
        period = validate_input(AccountingPeriod, {
            "year": current.year if year is None else year,
            "month": current.month if month is None else month,
        })

        budgets = [
            budget for budget in await self.repository.list_personal_budgets(member_id)
            if budget.family_id in (None, family_id)
        ]
        transactions = await self.transactions.member_transactions(member_id, period)
        return build_personal_budget_views(budgets, transactions)

    # =========================================================================
    # FAMILY BUDGET MUTATIONS
    # =========================================================================

    async def create_budget(
        self,
        family_id: str,
        actor_id: Optional[str],
        data: Union[BudgetCreate, dict],
    ) -> Budget:
        return await self.repository.create_budget(family_id, actor_id, data)

    async def update_budget(
        self,
        family_id: str,
        actor_id: Optional[str],
        budget_id: str,
        updates: Union[BudgetUpdate, dict],
    ) -> Budget:
        return await self.repository.update_budget(family_id, actor_id, budget_id, updates)

    async def lock_budget(
        self,
        family_id: str,
        actor_id: Optional[str],
        budget_id: str,
        locked: bool,
    ) -> Budget:
        return await self.repository.lock_budget(family_id, actor_id, budget_id, locked)

    async def delete_budget(
        self,
        family_id: str,
        actor_id: Optional[str],
        budget_id: str,
    ) -> None:
        await self.repository.delete_budget(family_id, actor_id, budget_id)

    async def allocate_budget_to_members(
        self,
        family_id: str,
        actor_id: Optional[str],
        budget_id: str,
        allocations: Sequence[Union[MemberAllocation, dict]],
    ) -> Budget:
        return await self.repository.allocate_budget_to_members(
            family_id, actor_id, budget_id, allocations,
        )

    # =========================================================================
    # PERSONAL BUDGET MUTATIONS
    # =========================================================================

    async def create_member_personal_budget(
        self,
        family_id: str,
        actor_id: Optional[str],
        member_id: str,
        data: Union[PersonalBudgetCreate, dict],
    ) -> PersonalBudget:
        return await self.repository.create_personal_budget(
            family_id, actor_id, member_id, data,
        )

    async def update_member_personal_budget(
        self,
        family_id: str,
        actor_id: Optional[str],
        member_id: str,
        budget_id: str,
        updates: Union[PersonalBudgetUpdate, dict],
    ) -> PersonalBudget:
        return await self.repository.update_personal_budget(
            family_id, actor_id, member_id, budget_id, updates,
        )

    async def delete_member_personal_budget(
        self,
        family_id: str,
        actor_id: Optional[str],
        member_id: str,
        budget_id: str,
    ) -> None:
        await self.repository.delete_personal_budget(
            family_id, actor_id, member_id, budget_id,
        )


def create_app_components(
    use_storage: bool = True,
) -> tuple[FamilyBudgetService, DocumentStoreInterface]:
    """
    Factory function to create the budget service.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False to run on an in-memory store.

    Returns:
        (service, store)
    """
    store: DocumentStoreInterface

    if use_storage:
        try:
            store = GoogleSheetsDocumentStore(GoogleSheetsClient())
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            store = InMemoryDocumentStore()
    else:
        store = InMemoryDocumentStore()

    audit_logger = AuditLogger(DocumentAuditStorage(store))
    return FamilyBudgetService(store, audit_logger=audit_logger), store
