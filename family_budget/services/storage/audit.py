"""
Audit Storage

Audit events are stored as documents in the audit_logs collection of the
same document store the budgets live in.
"""

from family_budget.models.audit import AuditEvent
from family_budget.services.storage.interface import (
    SERVER_TIMESTAMP,
    AuditStorageInterface,
    DocumentStoreInterface,
    QueryFilter,
)


AUDIT_COLLECTION = "audit_logs"


class DocumentAuditStorage(AuditStorageInterface):
    """
    Audit log storage on top of any document store.

    Events are appended to the audit_logs collection; the timestamp is
    resolved by the store at write time.
    """

    def __init__(self, store: DocumentStoreInterface):
        self._store = store

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        document = event.to_document()
        document["timestamp"] = SERVER_TIMESTAMP
        document["description"] = event.description
        batch = self._store.batch()
        batch.set(AUDIT_COLLECTION, document["id"], document)
        await batch.commit()
        return True

    async def get_events_by_family(
        self,
        family_id: str,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get events for one family."""
        documents = await self._store.query(
            AUDIT_COLLECTION,
            filters=[QueryFilter(field="familyId", op="==", value=family_id)],
            order_by="timestamp",
            descending=True,
            limit=limit,
        )
        return [AuditEvent.from_document(doc) for doc in documents]

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        documents = await self._store.query(
            AUDIT_COLLECTION,
            order_by="timestamp",
            descending=True,
            limit=limit,
        )
        return [AuditEvent.from_document(doc) for doc in documents]
