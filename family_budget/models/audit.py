"""
Audit Models for the Family Budget Engine

Every budget mutation is logged for audit purposes.
This provides:
1. Traceability of who changed which allocation, and when
2. Debugging information when household members disagree about an edit
3. A record that survives the deletion of the budget it describes

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
An audit entry is written AFTER the mutation it describes has committed, and
losing one is acceptable. Rolling back a financial mutation because its log
entry failed is not.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditAction(str, Enum):
    """
    Actions we audit.

    Values are the action strings persisted in the audit_logs collection.
    """
    # Family budgets
    BUDGET_CREATED = "BUDGET_CREATED"
    BUDGET_UPDATED = "BUDGET_UPDATED"
    BUDGET_LOCKED = "BUDGET_LOCKED"
    BUDGET_UNLOCKED = "BUDGET_UNLOCKED"
    BUDGET_DELETED = "BUDGET_DELETED"
    BUDGET_ALLOCATED = "BUDGET_ALLOCATED"

    # Member personal budgets
    PERSONAL_BUDGET_CREATED = "PERSONAL_BUDGET_CREATED"
    PERSONAL_BUDGET_UPDATED = "PERSONAL_BUDGET_UPDATED"
    PERSONAL_BUDGET_DELETED = "PERSONAL_BUDGET_DELETED"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Persisted as {familyId, actorId, action, details, timestamp}; the rest
    of the fields only travel to the local structured log.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred"
    )

    # Event classification
    action: AuditAction = Field(
        ...,
        description="What was done"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Who and where
    family_id: str = Field(
        ...,
        min_length=1,
        description="Family the mutated budget belongs to"
    )
    actor_id: str = Field(
        ...,
        min_length=1,
        description="User who performed the action"
    )

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'budget', 'personal_budget')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    # Additional data (action-specific)
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional action-specific data"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "action": self.action.value,
            "severity": self.severity.value,
            "family_id": self.family_id,
            "actor_id": self.actor_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
        }

    def to_document(self) -> dict:
        """
        Convert to the persisted audit_logs document.

        The timestamp is left to the caller so the store can substitute
        its own server-side time.
        """
        return {
            "id": str(self.event_id),
            "familyId": self.family_id,
            "actorId": self.actor_id,
            "action": self.action.value,
            "details": self.details,
        }

    @classmethod
    def from_document(cls, document: dict) -> "AuditEvent":
        """Rebuild an event from a stored audit_logs document."""
        timestamp = document.get("timestamp")
        return cls(
            event_id=UUID(document["id"]) if document.get("id") else uuid4(),
            timestamp=timestamp if isinstance(timestamp, datetime) else datetime.now(),
            action=AuditAction(document["action"]),
            family_id=document["familyId"],
            actor_id=document["actorId"],
            description=document.get("description") or document["action"],
            details=document.get("details") or {},
        )


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.budget_created(family_id, actor_id, budget_id, name, amount)
        event = AuditEventBuilder.budget_lock_changed(family_id, actor_id, budget_id, True)
    """

    @staticmethod
    def budget_created(
        family_id: str,
        actor_id: str,
        budget_id: str,
        name: str,
        allocated_amount: float,
    ) -> AuditEvent:
        return AuditEvent(
            action=AuditAction.BUDGET_CREATED,
            family_id=family_id,
            actor_id=actor_id,
            entity_type="budget",
            entity_id=budget_id,
            description=f"Budget created: {name}",
            details={
                "budgetId": budget_id,
                "name": name,
                "allocatedAmount": allocated_amount,
            },
        )

    @staticmethod
    def budget_updated(
        family_id: str,
        actor_id: str,
        budget_id: str,
        updates: dict,
    ) -> AuditEvent:
        return AuditEvent(
            action=AuditAction.BUDGET_UPDATED,
            family_id=family_id,
            actor_id=actor_id,
            entity_type="budget",
            entity_id=budget_id,
            description=f"Budget updated: {', '.join(sorted(updates)) or 'no fields'}",
            details={
                "budgetId": budget_id,
                "updates": updates,
            },
        )

    @staticmethod
    def budget_lock_changed(
        family_id: str,
        actor_id: str,
        budget_id: str,
        locked: bool,
    ) -> AuditEvent:
        return AuditEvent(
            action=AuditAction.BUDGET_LOCKED if locked else AuditAction.BUDGET_UNLOCKED,
            family_id=family_id,
            actor_id=actor_id,
            entity_type="budget",
            entity_id=budget_id,
            description="Budget locked" if locked else "Budget unlocked",
            details={"budgetId": budget_id},
        )

    @staticmethod
    def budget_deleted(
        family_id: str,
        actor_id: str,
        budget_id: str,
    ) -> AuditEvent:
        return AuditEvent(
            action=AuditAction.BUDGET_DELETED,
            severity=AuditSeverity.WARNING,
            family_id=family_id,
            actor_id=actor_id,
            entity_type="budget",
            entity_id=budget_id,
            description="Budget deleted",
            details={"budgetId": budget_id},
        )

    @staticmethod
    def budget_allocated(
        family_id: str,
        actor_id: str,
        budget_id: str,
        allocations: list[dict],
    ) -> AuditEvent:
        return AuditEvent(
            action=AuditAction.BUDGET_ALLOCATED,
            family_id=family_id,
            actor_id=actor_id,
            entity_type="budget",
            entity_id=budget_id,
            description=f"Budget allocated to {len(allocations)} members",
            details={
                "budgetId": budget_id,
                "allocations": allocations,
            },
        )

    @staticmethod
    def personal_budget_created(
        family_id: str,
        actor_id: str,
        member_id: str,
        budget_id: str,
        category: str,
        amount: float,
    ) -> AuditEvent:
        return AuditEvent(
            action=AuditAction.PERSONAL_BUDGET_CREATED,
            family_id=family_id,
            actor_id=actor_id,
            entity_type="personal_budget",
            entity_id=budget_id,
            description=f"Personal budget created for {member_id}: {category}",
            details={
                "memberId": member_id,
                "budgetId": budget_id,
                "category": category,
                "amount": amount,
            },
        )

    @staticmethod
    def personal_budget_updated(
        family_id: str,
        actor_id: str,
        member_id: str,
        budget_id: str,
        updates: dict,
    ) -> AuditEvent:
        return AuditEvent(
            action=AuditAction.PERSONAL_BUDGET_UPDATED,
            family_id=family_id,
            actor_id=actor_id,
            entity_type="personal_budget",
            entity_id=budget_id,
            description=f"Personal budget updated for {member_id}",
            details={
                "memberId": member_id,
                "budgetId": budget_id,
                "updates": updates,
            },
        )

    @staticmethod
    def personal_budget_deleted(
        family_id: str,
        actor_id: str,
        member_id: str,
        budget_id: str,
        category: Optional[str],
    ) -> AuditEvent:
        return AuditEvent(
            action=AuditAction.PERSONAL_BUDGET_DELETED,
            severity=AuditSeverity.WARNING,
            family_id=family_id,
            actor_id=actor_id,
            entity_type="personal_budget",
            entity_id=budget_id,
            description=f"Personal budget deleted for {member_id}",
            details={
                "memberId": member_id,
                "budgetId": budget_id,
                "category": category,
            },
        )
