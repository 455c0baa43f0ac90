"""
Abstract Storage Interface

DESIGN DECISION: The engine talks to a document store through this interface
only. This allows us to:
1. Run against Google Sheets, Firestore or anything document-shaped
2. Use in-memory storage for testing
3. Keep budget logic decoupled from storage implementation

The interface is intentionally small. It exposes only what the budget engine
uses: document reads, field queries with ordering, batched writes, and a
server-timestamp sentinel. There are no multi-document transactions.
"""

import operator
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Iterable, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from family_budget.models.audit import AuditEvent


class ServerTimestamp:
    """Sentinel replaced by the store's own clock when a write commits."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = ServerTimestamp()


FilterOp = Literal["==", "!=", "<", "<=", ">", ">="]

_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


class QueryFilter(BaseModel):
    """A single where(field, op, value) clause."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    field: str = Field(..., min_length=1)
    op: FilterOp = "=="
    value: Any = None

    def matches(self, document: dict) -> bool:
        """
        Check a document against this clause.

        Documents missing the field never match, and values of different
        types never satisfy a range comparison.
        """
        if self.field not in document:
            return False
        try:
            return bool(_OPERATORS[self.op](document[self.field], self.value))
        except TypeError:
            return False


class BatchOperation(BaseModel):
    """One write inside a WriteBatch."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    kind: Literal["set", "update", "delete"]
    collection: str
    document_id: str
    data: dict[str, Any] = Field(default_factory=dict)
    merge: bool = False


class WriteBatch:
    """
    Collects writes and applies them together on commit.

    A batch either applies every operation or none of them.
    """

    def __init__(self, store: "DocumentStoreInterface"):
        self._store = store
        self._operations: list[BatchOperation] = []
        self._committed = False

    @property
    def operations(self) -> list[BatchOperation]:
        return list(self._operations)

    def set(
        self,
        collection: str,
        document_id: str,
        data: dict,
        merge: bool = False,
    ) -> "WriteBatch":
        self._operations.append(BatchOperation(
            kind="set",
            collection=collection,
            document_id=document_id,
            data=dict(data),
            merge=merge,
        ))
        return self

    def update(self, collection: str, document_id: str, data: dict) -> "WriteBatch":
        self._operations.append(BatchOperation(
            kind="update",
            collection=collection,
            document_id=document_id,
            data=dict(data),
        ))
        return self

    def delete(self, collection: str, document_id: str) -> "WriteBatch":
        self._operations.append(BatchOperation(
            kind="delete",
            collection=collection,
            document_id=document_id,
        ))
        return self

    async def commit(self) -> int:
        """
        Apply all collected writes.

        Returns:
            Number of operations applied

        Raises:
            StorageError: If the batch was already committed or the write fails
            NotFoundError: If an update targets a missing document
        """
        if self._committed:
            raise StorageError("Batch already committed")
        await self._store.apply_batch(self.operations)
        self._committed = True
        return len(self._operations)


class DocumentStoreInterface(ABC):
    """
    Abstract interface for a document database.

    Collections are addressed by slash-separated paths such as
    'families/F1/budgets'. Documents are plain dicts; every document
    returned carries its id under the 'id' key.
    """

    @abstractmethod
    async def get_document(self, collection: str, document_id: str) -> Optional[dict]:
        """
        Retrieve a document by id.

        Returns:
            The document if found, None otherwise
        """
        pass

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Sequence[QueryFilter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict]:
        """
        Query a collection.

        Args:
            collection: Collection path
            filters: Clauses that must all match
            order_by: Field to sort by; documents without it are excluded
            descending: Sort direction
            limit: Maximum number of results

        Returns:
            List of matching documents
        """
        pass

    @abstractmethod
    async def apply_batch(self, operations: Sequence[BatchOperation]) -> None:
        """
        Apply a list of writes all-or-nothing.

        SERVER_TIMESTAMP values in the written data are replaced with the
        store's current time.

        Raises:
            NotFoundError: If an update targets a missing document
            StorageError: If the write fails
        """
        pass

    def new_document_id(self, collection: str) -> str:
        """Generate an id for a new document in a collection."""
        return uuid.uuid4().hex[:20]

    def batch(self) -> WriteBatch:
        """Start a new write batch."""
        return WriteBatch(self)


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_family(
        self,
        family_id: str,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get audit events for one family.

        Returns:
            List of events (newest first)
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


# =============================================================================
# HELPERS SHARED BY IMPLEMENTATIONS
# =============================================================================

def resolve_server_timestamps(data: dict, now: datetime) -> dict:
    """Replace SERVER_TIMESTAMP sentinels (top level and nested dicts)."""
    resolved = {}
    for key, value in data.items():
        if isinstance(value, ServerTimestamp):
            resolved[key] = now
        elif isinstance(value, dict):
            resolved[key] = resolve_server_timestamps(value, now)
        else:
            resolved[key] = value
    return resolved


def _sort_key(value: Any) -> tuple:
    # Mixed types sort by type rank first, as document stores do
    if value is None:
        return (0, 0)
    if isinstance(value, bool):
        return (1, value)
    if isinstance(value, (int, float)):
        return (2, value)
    if isinstance(value, str):
        return (3, value)
    if isinstance(value, datetime):
        # Naive values are local time; aware and naive must share one scale
        return (4, value.timestamp())
    return (5, str(value))


def run_query(
    documents: Iterable[dict],
    filters: Sequence[QueryFilter] = (),
    order_by: Optional[str] = None,
    descending: bool = False,
    limit: Optional[int] = None,
) -> list[dict]:
    """Filter, order and limit documents in Python."""
    results = [
        doc for doc in documents
        if all(f.matches(doc) for f in filters)
    ]
    if order_by:
        results = [doc for doc in results if order_by in doc]
        results.sort(key=lambda doc: _sort_key(doc[order_by]), reverse=descending)
    if limit is not None:
        results = results[:limit]
    return results


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
