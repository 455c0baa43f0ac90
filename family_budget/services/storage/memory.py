"""
In-Memory Document Store

Implements the document store interface on plain dicts. Used by the test
suite and for local runs when no Google Sheets backend is configured.

Reads return deep copies so callers can never mutate stored state, and a
batch is validated in full before anything is applied.
"""

import copy
from collections import defaultdict
from datetime import datetime
from typing import Callable, Optional, Sequence

from family_budget.services.storage.interface import (
    BatchOperation,
    DocumentStoreInterface,
    NotFoundError,
    QueryFilter,
    StorageError,
    resolve_server_timestamps,
    run_query,
)


class InMemoryDocumentStore(DocumentStoreInterface):
    """
    Dict-backed document store.

    Args:
        clock: Source of server timestamps (defaults to datetime.now)

    Faults can be injected per collection through fail_reads_from and
    fail_writes_to; any read or batch touching those collections raises
    StorageError.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._collections: dict[str, dict[str, dict]] = defaultdict(dict)
        self._clock = clock or datetime.now
        self._id_counter = 0
        self.fail_reads_from: set[str] = set()
        self.fail_writes_to: set[str] = set()
        self.query_log: list[str] = []

    # -------------------------------------------------------------------------
    # Test helpers
    # -------------------------------------------------------------------------

    def seed(self, collection: str, document_id: str, data: dict) -> None:
        """Write a document directly, bypassing batches and fault injection."""
        stored = {key: value for key, value in data.items() if key != "id"}
        self._collections[collection][document_id] = copy.deepcopy(stored)

    def documents(self, collection: str) -> dict[str, dict]:
        """Snapshot of every document in a collection, keyed by id."""
        return {
            doc_id: {**copy.deepcopy(data), "id": doc_id}
            for doc_id, data in self._collections.get(collection, {}).items()
        }

    # -------------------------------------------------------------------------
    # DocumentStoreInterface
    # -------------------------------------------------------------------------

    def _check_read(self, collection: str) -> None:
        if collection in self.fail_reads_from:
            raise StorageError(f"Read failed for collection: {collection}")

    async def get_document(self, collection: str, document_id: str) -> Optional[dict]:
        self._check_read(collection)
        data = self._collections.get(collection, {}).get(document_id)
        if data is None:
            return None
        return {**copy.deepcopy(data), "id": document_id}

    async def query(
        self,
        collection: str,
        filters: Sequence[QueryFilter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict]:
        self._check_read(collection)
        self.query_log.append(collection)
        return run_query(
            self.documents(collection).values(),
            filters=filters,
            order_by=order_by,
            descending=descending,
            limit=limit,
        )

    def new_document_id(self, collection: str) -> str:
        self._id_counter += 1
        return f"doc{self._id_counter:06d}"

    async def apply_batch(self, operations: Sequence[BatchOperation]) -> None:
        for op in operations:
            if op.collection in self.fail_writes_to:
                raise StorageError(f"Write failed for collection: {op.collection}")
            if op.kind == "update" and op.document_id not in self._collections.get(op.collection, {}):
                raise NotFoundError(
                    f"Document not found: {op.collection}/{op.document_id}"
                )

        now = self._clock()
        for op in operations:
            bucket = self._collections[op.collection]
            data = resolve_server_timestamps(copy.deepcopy(op.data), now)
            data.pop("id", None)

            if op.kind == "delete":
                bucket.pop(op.document_id, None)
            elif op.kind == "update" or (op.kind == "set" and op.merge):
                bucket.setdefault(op.document_id, {}).update(data)
            else:
                bucket[op.document_id] = data
