"""
Storage Services Package

Provides the abstract document store interface and its implementations.
Google Sheets is the deployable backend; the in-memory store serves tests
and local runs. Both are swappable behind DocumentStoreInterface.
"""

from family_budget.services.storage.interface import (
    SERVER_TIMESTAMP,
    AuditStorageInterface,
    BatchOperation,
    ConnectionError,
    DocumentStoreInterface,
    NotFoundError,
    QueryFilter,
    StorageError,
    WriteBatch,
)
from family_budget.services.storage.audit import (
    AUDIT_COLLECTION,
    DocumentAuditStorage,
)
from family_budget.services.storage.memory import InMemoryDocumentStore
from family_budget.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "BatchOperation",
    "DocumentStoreInterface",
    "QueryFilter",
    "SERVER_TIMESTAMP",
    "WriteBatch",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "AUDIT_COLLECTION",
    "DocumentAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "InMemoryDocumentStore",
]
