"""
Budget Repository

CRUD over family budgets and member personal budgets.

Every mutation follows the same sequence:
1. Reject a missing actor before any read
2. Check permission (and lock / family scope) before any write
3. Apply the change in one batched write
4. Write one audit entry; its failure never undoes step 3

There is no version field on budget documents. Concurrent edits are
last-write-wins.
"""

from datetime import datetime
from typing import Any, Callable, Optional, Sequence, Type, TypeVar, Union

import structlog
from pydantic import BaseModel, ValidationError

from family_budget.audit import AuditLogger
from family_budget.config import get_settings
from family_budget.errors import (
    AuthenticationRequiredError,
    BudgetLockedError,
    BudgetNotFoundError,
    BudgetValidationError,
    CrossFamilyAccessError,
    PermissionDeniedError,
)
from family_budget.models import (
    AuditEventBuilder,
    Budget,
    BudgetCreate,
    BudgetUpdate,
    FamilyMember,
    MemberAllocation,
    PersonalBudget,
    PersonalBudgetCreate,
    PersonalBudgetUpdate,
    member_document_id,
)
from family_budget.repository.permissions import (
    can_manage_budgets,
    can_manage_personal_budget,
)
from family_budget.services.storage import (
    SERVER_TIMESTAMP,
    DocumentStoreInterface,
    QueryFilter,
)


logger = structlog.get_logger(__name__)

FAMILY_MEMBERS = "family_members"

ModelT = TypeVar("ModelT", bound=BaseModel)


def family_budgets_collection(family_id: str) -> str:
    return f"families/{family_id}/budgets"


def personal_budgets_collection(member_id: str) -> str:
    return f"users/{member_id}/budgets"


def require_actor(actor_id: Optional[str]) -> str:
    """Reject calls without a caller identity."""
    if not actor_id or not actor_id.strip():
        raise AuthenticationRequiredError()
    return actor_id


def validate_input(model: Type[ModelT], data: Union[ModelT, dict, Any]) -> ModelT:
    """Validate caller input, surfacing failures as BudgetValidationError."""
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise BudgetValidationError(e) from e


class BudgetRepository:
    """
    Storage-backed budget operations with permission and lock enforcement.

    Args:
        store: Document store holding budgets, members and audit logs
        audit_logger: Receives one event per committed mutation
        clock: Source of "now" for personal budget periods
    """

    def __init__(
        self,
        store: DocumentStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._store = store
        self._audit = audit_logger or AuditLogger()
        self._clock = clock or datetime.now

    # =========================================================================
    # MEMBERS
    # =========================================================================

    async def get_member(self, family_id: str, user_id: str) -> Optional[FamilyMember]:
        """The user's membership record in this family, if any."""
        document = await self._store.get_document(
            FAMILY_MEMBERS,
            member_document_id(family_id, user_id),
        )
        if document is None or document.get("familyId") != family_id:
            return None
        return FamilyMember.model_validate(document)

    async def list_members(self, family_id: str) -> list[FamilyMember]:
        documents = await self._store.query(
            FAMILY_MEMBERS,
            filters=[QueryFilter(field="familyId", op="==", value=family_id)],
        )
        members = []
        for document in documents:
            try:
                members.append(FamilyMember.model_validate(document))
            except ValidationError as e:
                logger.warning(
                    "member_skipped",
                    family_id=family_id,
                    member_id=document.get("id"),
                    error=str(e),
                )
        return members

    async def _require_budget_manager(self, family_id: str, actor_id: str, action: str) -> None:
        actor = await self.get_member(family_id, actor_id)
        if not can_manage_budgets(actor):
            logger.warning(
                "budget_mutation_denied",
                family_id=family_id,
                actor_id=actor_id,
                action=action,
            )
            raise PermissionDeniedError(actor_id, family_id, action)

    async def _require_personal_manager(
        self,
        family_id: str,
        actor_id: str,
        member_id: str,
        action: str,
    ) -> None:
        actor = None
        if actor_id != member_id:
            actor = await self.get_member(family_id, actor_id)
        if not can_manage_personal_budget(actor_id, member_id, actor):
            logger.warning(
                "personal_budget_mutation_denied",
                family_id=family_id,
                actor_id=actor_id,
                member_id=member_id,
                action=action,
            )
            raise PermissionDeniedError(actor_id, family_id, action)

    # =========================================================================
    # FAMILY BUDGETS - READ
    # =========================================================================

    @staticmethod
    def _to_budget(family_id: str, document: dict) -> Budget:
        return Budget.model_validate({**document, "familyId": family_id})

    async def get_budget(self, family_id: str, budget_id: str) -> Budget:
        """
        Load one family budget.

        Raises:
            BudgetNotFoundError: If the document does not exist
        """
        collection = family_budgets_collection(family_id)
        document = await self._store.get_document(collection, budget_id)
        if document is None:
            raise BudgetNotFoundError(budget_id, collection)
        return self._to_budget(family_id, document)

    async def list_budgets(
        self,
        family_id: str,
        include_inactive: bool = False,
        order_by: Optional[str] = "createdAt",
        descending: bool = True,
    ) -> list[Budget]:
        filters = []
        if not include_inactive:
            filters.append(QueryFilter(field="isActive", op="==", value=True))
        documents = await self._store.query(
            family_budgets_collection(family_id),
            filters=filters,
            order_by=order_by,
            descending=descending,
        )
        budgets = []
        for document in documents:
            try:
                budgets.append(self._to_budget(family_id, document))
            except ValidationError as e:
                logger.warning(
                    "budget_skipped",
                    family_id=family_id,
                    budget_id=document.get("id"),
                    error=str(e),
                )
        return budgets

    # =========================================================================
    # FAMILY BUDGETS - WRITE
    # =========================================================================

    async def create_budget(
        self,
        family_id: str,
        actor_id: Optional[str],
        data: Union[BudgetCreate, dict],
    ) -> Budget:
        """
        Create a family budget.

        Derived fields in the input (spentAmount, remainingAmount) and any
        other unknown keys are dropped; a new budget always starts unlocked.
        """
        actor_id = require_actor(actor_id)
        await self._require_budget_manager(family_id, actor_id, "create budgets")
        create = validate_input(BudgetCreate, data)

        collection = family_budgets_collection(family_id)
        budget_id = self._store.new_document_id(collection)
        document = {
            **create.to_document(),
            "id": budget_id,
            "familyId": family_id,
            "isLocked": False,
            "createdBy": actor_id,
            "createdAt": SERVER_TIMESTAMP,
            "updatedAt": SERVER_TIMESTAMP,
        }

        batch = self._store.batch()
        batch.set(collection, budget_id, document)
        await batch.commit()

        logger.info(
            "budget_created",
            family_id=family_id,
            budget_id=budget_id,
            actor_id=actor_id,
        )
        await self._audit.log(AuditEventBuilder.budget_created(
            family_id, actor_id, budget_id, create.name, create.allocated_amount,
        ))
        return await self.get_budget(family_id, budget_id)

    async def _load_unlocked(self, family_id: str, budget_id: str, actor_id: str) -> Budget:
        budget = await self.get_budget(family_id, budget_id)
        if budget.is_locked:
            logger.warning(
                "budget_update_rejected",
                family_id=family_id,
                budget_id=budget_id,
                actor_id=actor_id,
                reason="locked",
            )
            raise BudgetLockedError(budget_id)
        return budget

    async def update_budget(
        self,
        family_id: str,
        actor_id: Optional[str],
        budget_id: str,
        updates: Union[BudgetUpdate, dict],
    ) -> Budget:
        """
        Apply a partial update to an unlocked family budget.

        An update that sets no known field writes nothing and is not audited.

        Raises:
            BudgetLockedError: If the budget is locked, whatever the actor's role
        """
        actor_id = require_actor(actor_id)
        await self._require_budget_manager(family_id, actor_id, "update budgets")
        update = validate_input(BudgetUpdate, updates)
        existing = await self._load_unlocked(family_id, budget_id, actor_id)
        if update.is_empty:
            return existing

        changes = update.to_document(exclude_unset=True)
        # Dates are validated against the stored counterpart too
        validate_input(Budget, {**existing.to_document(), **changes})

        batch = self._store.batch()
        batch.update(family_budgets_collection(family_id), budget_id, {
            **changes,
            "updatedAt": SERVER_TIMESTAMP,
            "updatedBy": actor_id,
        })
        await batch.commit()

        logger.info(
            "budget_updated",
            family_id=family_id,
            budget_id=budget_id,
            actor_id=actor_id,
            fields=sorted(changes),
        )
        await self._audit.log(AuditEventBuilder.budget_updated(
            family_id, actor_id, budget_id, changes,
        ))
        return await self.get_budget(family_id, budget_id)

    async def lock_budget(
        self,
        family_id: str,
        actor_id: Optional[str],
        budget_id: str,
        locked: bool,
    ) -> Budget:
        """Lock or unlock a budget. Not subject to the lock check itself."""
        actor_id = require_actor(actor_id)
        action = "lock budgets" if locked else "unlock budgets"
        await self._require_budget_manager(family_id, actor_id, action)
        await self.get_budget(family_id, budget_id)

        batch = self._store.batch()
        batch.update(family_budgets_collection(family_id), budget_id, {
            "isLocked": locked,
            "updatedAt": SERVER_TIMESTAMP,
            "updatedBy": actor_id,
        })
        await batch.commit()

        logger.info(
            "budget_lock_changed",
            family_id=family_id,
            budget_id=budget_id,
            actor_id=actor_id,
            locked=locked,
        )
        await self._audit.log(AuditEventBuilder.budget_lock_changed(
            family_id, actor_id, budget_id, locked,
        ))
        return await self.get_budget(family_id, budget_id)

    async def delete_budget(
        self,
        family_id: str,
        actor_id: Optional[str],
        budget_id: str,
    ) -> None:
        """
        Hard-delete a budget document, locked or not.

        Only the allocation row is removed; transactions are never touched.
        """
        actor_id = require_actor(actor_id)
        await self._require_budget_manager(family_id, actor_id, "delete budgets")
        await self.get_budget(family_id, budget_id)

        batch = self._store.batch()
        batch.delete(family_budgets_collection(family_id), budget_id)
        await batch.commit()

        logger.info(
            "budget_deleted",
            family_id=family_id,
            budget_id=budget_id,
            actor_id=actor_id,
        )
        await self._audit.log(AuditEventBuilder.budget_deleted(
            family_id, actor_id, budget_id,
        ))

    async def allocate_budget_to_members(
        self,
        family_id: str,
        actor_id: Optional[str],
        budget_id: str,
        allocations: Sequence[Union[MemberAllocation, dict]],
    ) -> Budget:
        """Replace a budget's per-member allocations."""
        actor_id = require_actor(actor_id)
        await self._require_budget_manager(family_id, actor_id, "allocate budgets")
        entries = [validate_input(MemberAllocation, item) for item in allocations]
        await self._load_unlocked(family_id, budget_id, actor_id)

        documents = [entry.to_document() for entry in entries]
        batch = self._store.batch()
        batch.update(family_budgets_collection(family_id), budget_id, {
            "memberAllocations": documents,
            "updatedAt": SERVER_TIMESTAMP,
            "updatedBy": actor_id,
        })
        await batch.commit()

        logger.info(
            "budget_allocated",
            family_id=family_id,
            budget_id=budget_id,
            actor_id=actor_id,
            members=len(documents),
        )
        await self._audit.log(AuditEventBuilder.budget_allocated(
            family_id, actor_id, budget_id, documents,
        ))
        return await self.get_budget(family_id, budget_id)

    # =========================================================================
    # PERSONAL BUDGETS
    # =========================================================================

    async def list_personal_budgets(self, member_id: str) -> list[PersonalBudget]:
        collection = personal_budgets_collection(member_id)
        documents = await self._store.query(collection)
        budgets = []
        for document in documents:
            try:
                budgets.append(PersonalBudget.model_validate(document))
            except ValidationError as e:
                logger.warning(
                    "personal_budget_skipped",
                    member_id=member_id,
                    budget_id=document.get("id"),
                    error=str(e),
                )
        return budgets

    async def _get_scoped_personal_budget(
        self,
        family_id: str,
        member_id: str,
        budget_id: str,
    ) -> PersonalBudget:
        collection = personal_budgets_collection(member_id)
        document = await self._store.get_document(collection, budget_id)
        if document is None:
            raise BudgetNotFoundError(budget_id, collection)
        if document.get("familyId") != family_id:
            logger.warning(
                "cross_family_access_rejected",
                family_id=family_id,
                member_id=member_id,
                budget_id=budget_id,
            )
            raise CrossFamilyAccessError(budget_id, family_id)
        return PersonalBudget.model_validate(document)

    async def create_personal_budget(
        self,
        family_id: str,
        actor_id: Optional[str],
        member_id: str,
        data: Union[PersonalBudgetCreate, dict],
    ) -> PersonalBudget:
        """Create a personal budget for the current month."""
        actor_id = require_actor(actor_id)
        await self._require_personal_manager(
            family_id, actor_id, member_id, "manage this member's budgets",
        )
        create = validate_input(PersonalBudgetCreate, data)

        now = self._clock()
        collection = personal_budgets_collection(member_id)
        budget_id = self._store.new_document_id(collection)
        document = {
            **create.to_document(),
            "id": budget_id,
            "familyId": family_id,
            "currency": create.currency or get_settings().budget.default_currency,
            "year": now.year,
            "month": now.month,
            "isActive": True,
            "createdBy": actor_id,
            "createdAt": SERVER_TIMESTAMP,
            "updatedAt": SERVER_TIMESTAMP,
        }

        batch = self._store.batch()
        batch.set(collection, budget_id, document)
        await batch.commit()

        logger.info(
            "personal_budget_created",
            family_id=family_id,
            member_id=member_id,
            budget_id=budget_id,
            actor_id=actor_id,
        )
        await self._audit.log(AuditEventBuilder.personal_budget_created(
            family_id, actor_id, member_id, budget_id,
            create.category, create.allocated_amount,
        ))
        return await self._get_scoped_personal_budget(family_id, member_id, budget_id)

    async def update_personal_budget(
        self,
        family_id: str,
        actor_id: Optional[str],
        member_id: str,
        budget_id: str,
        updates: Union[PersonalBudgetUpdate, dict],
    ) -> PersonalBudget:
        actor_id = require_actor(actor_id)
        await self._require_personal_manager(
            family_id, actor_id, member_id, "manage this member's budgets",
        )
        update = validate_input(PersonalBudgetUpdate, updates)
        existing = await self._get_scoped_personal_budget(family_id, member_id, budget_id)
        if update.is_empty:
            return existing

        changes = update.to_document(exclude_unset=True)
        batch = self._store.batch()
        batch.update(personal_budgets_collection(member_id), budget_id, {
            **changes,
            "updatedAt": SERVER_TIMESTAMP,
            "updatedBy": actor_id,
        })
        await batch.commit()

        logger.info(
            "personal_budget_updated",
            family_id=family_id,
            member_id=member_id,
            budget_id=budget_id,
            actor_id=actor_id,
            fields=sorted(changes),
        )
        await self._audit.log(AuditEventBuilder.personal_budget_updated(
            family_id, actor_id, member_id, budget_id, changes,
        ))
        return await self._get_scoped_personal_budget(family_id, member_id, budget_id)

    async def delete_personal_budget(
        self,
        family_id: str,
        actor_id: Optional[str],
        member_id: str,
        budget_id: str,
    ) -> None:
        actor_id = require_actor(actor_id)
        await self._require_personal_manager(
            family_id, actor_id, member_id, "manage this member's budgets",
        )
        existing = await self._get_scoped_personal_budget(family_id, member_id, budget_id)

        batch = self._store.batch()
        batch.delete(personal_budgets_collection(member_id), budget_id)
        await batch.commit()

        logger.info(
            "personal_budget_deleted",
            family_id=family_id,
            member_id=member_id,
            budget_id=budget_id,
            actor_id=actor_id,
        )
        await self._audit.log(AuditEventBuilder.personal_budget_deleted(
            family_id, actor_id, member_id, budget_id, existing.category,
        ))
