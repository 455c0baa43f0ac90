"""
Tests for the document store implementations.

The Google Sheets store runs against a fake worksheet; no network calls.
"""

from datetime import datetime, timezone

import pytest

from family_budget.models import AuditAction, AuditEventBuilder
from family_budget.services.storage import (
    SERVER_TIMESTAMP,
    DocumentAuditStorage,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
    NotFoundError,
    QueryFilter,
    StorageError,
)
from family_budget.services.storage.google_sheets import decode_document, encode_document
from family_budget.services.storage.interface import run_query


NOW = datetime(2025, 3, 15, 12, 0, 0)


class TestQueryFilter:
    """Tests for where-clause matching."""

    def test_equality(self):
        assert QueryFilter(field="familyId", value="f1").matches({"familyId": "f1"})
        assert not QueryFilter(field="familyId", value="f1").matches({"familyId": "f2"})

    def test_missing_field_never_matches(self):
        assert not QueryFilter(field="isActive", op="!=", value=True).matches({})

    def test_range_across_types_does_not_match(self):
        """Test a string never satisfies a datetime range."""
        clause = QueryFilter(field="createdAt", op=">=", value=datetime(2025, 3, 1))
        assert not clause.matches({"createdAt": "2025-03-10"})
        assert clause.matches({"createdAt": datetime(2025, 3, 10)})

    def test_rejects_unknown_operator(self):
        with pytest.raises(ValueError):
            QueryFilter(field="a", op="in", value=[1])


class TestRunQuery:
    """Tests for in-Python filtering and ordering."""

    def test_order_by_excludes_documents_without_field(self):
        documents = [
            {"id": "a", "createdAt": datetime(2025, 3, 2)},
            {"id": "b"},
            {"id": "c", "createdAt": datetime(2025, 3, 5)},
        ]
        result = run_query(documents, order_by="createdAt", descending=True)
        assert [d["id"] for d in result] == ["c", "a"]

    def test_order_by_mixes_naive_and_aware_datetimes(self):
        documents = [
            {"id": "a", "createdAt": datetime(2025, 3, 2)},
            {"id": "b", "createdAt": datetime(2025, 3, 9, tzinfo=timezone.utc)},
            {"id": "c", "createdAt": datetime(2025, 3, 5)},
        ]
        result = run_query(documents, order_by="createdAt", descending=True)
        assert [d["id"] for d in result] == ["b", "c", "a"]

    def test_limit(self):
        documents = [{"id": str(i), "n": i} for i in range(5)]
        assert [d["n"] for d in run_query(documents, order_by="n", limit=2)] == [0, 1]


class TestInMemoryDocumentStore:
    """Tests for the dict-backed store."""

    @pytest.fixture
    def store(self):
        return InMemoryDocumentStore(clock=lambda: NOW)

    @pytest.mark.asyncio
    async def test_set_and_get(self, store):
        batch = store.batch()
        batch.set("things", "t1", {"name": "one", "createdAt": SERVER_TIMESTAMP})
        await batch.commit()

        document = await store.get_document("things", "t1")
        assert document == {"id": "t1", "name": "one", "createdAt": NOW}

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, store):
        assert await store.get_document("things", "nope") is None

    @pytest.mark.asyncio
    async def test_reads_are_copies(self, store):
        store.seed("things", "t1", {"tags": ["a"]})
        document = await store.get_document("things", "t1")
        document["tags"].append("b")
        assert (await store.get_document("things", "t1"))["tags"] == ["a"]

    @pytest.mark.asyncio
    async def test_update_merges_fields(self, store):
        store.seed("things", "t1", {"name": "one", "size": 1})
        batch = store.batch()
        batch.update("things", "t1", {"size": 2})
        await batch.commit()
        assert await store.get_document("things", "t1") == {"id": "t1", "name": "one", "size": 2}

    @pytest.mark.asyncio
    async def test_update_missing_document_fails_whole_batch(self, store):
        """Test a batch is all-or-nothing."""
        batch = store.batch()
        batch.set("things", "t1", {"name": "one"})
        batch.update("things", "missing", {"size": 2})
        with pytest.raises(NotFoundError):
            await batch.commit()
        assert await store.get_document("things", "t1") is None

    @pytest.mark.asyncio
    async def test_batch_cannot_be_committed_twice(self, store):
        batch = store.batch()
        batch.set("things", "t1", {})
        await batch.commit()
        with pytest.raises(StorageError):
            await batch.commit()

    @pytest.mark.asyncio
    async def test_delete(self, store):
        store.seed("things", "t1", {"name": "one"})
        batch = store.batch()
        batch.delete("things", "t1")
        await batch.commit()
        assert store.documents("things") == {}

    @pytest.mark.asyncio
    async def test_fault_injection(self, store):
        store.fail_writes_to.add("things")
        store.fail_reads_from.add("other")
        batch = store.batch()
        batch.set("things", "t1", {})
        with pytest.raises(StorageError):
            await batch.commit()
        with pytest.raises(StorageError):
            await store.query("other")

    @pytest.mark.asyncio
    async def test_query_with_filters(self, store):
        store.seed("things", "a", {"familyId": "f1", "n": 2})
        store.seed("things", "b", {"familyId": "f2", "n": 1})
        store.seed("things", "c", {"familyId": "f1", "n": 3})
        result = await store.query(
            "things",
            filters=[QueryFilter(field="familyId", value="f1")],
            order_by="n",
            descending=True,
        )
        assert [d["id"] for d in result] == ["c", "a"]

    def test_new_document_ids_are_unique(self, store):
        assert store.new_document_id("things") != store.new_document_id("things")


class TestDocumentAuditStorage:
    """Tests for audit events stored as documents."""

    @pytest.mark.asyncio
    async def test_append_and_read_back(self):
        store = InMemoryDocumentStore(clock=lambda: NOW)
        storage = DocumentAuditStorage(store)
        event = AuditEventBuilder.budget_created("fam-1", "u1", "b1", "Food", 100)

        assert await storage.append_event(event)

        stored = store.documents("audit_logs")[str(event.event_id)]
        assert stored["familyId"] == "fam-1"
        assert stored["actorId"] == "u1"
        assert stored["action"] == "BUDGET_CREATED"
        assert stored["timestamp"] == NOW

        events = await storage.get_events_by_family("fam-1")
        assert [e.action for e in events] == [AuditAction.BUDGET_CREATED]
        assert await storage.get_events_by_family("fam-2") == []

    @pytest.mark.asyncio
    async def test_recent_events_limit(self):
        store = InMemoryDocumentStore(clock=lambda: NOW)
        storage = DocumentAuditStorage(store)
        for budget_id in ("b1", "b2", "b3"):
            await storage.append_event(AuditEventBuilder.budget_deleted("fam-1", "u1", budget_id))

        events = await storage.get_recent_events(limit=2)

        assert len(events) == 2
        assert all(e.action == AuditAction.BUDGET_DELETED for e in events)


class FakeWorksheet:
    """In-memory stand-in for a gspread Worksheet."""

    def __init__(self):
        self.rows = [["collection", "id", "updated_at", "data_json"]]

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def append_row(self, row, value_input_option=None):
        self.rows.append(list(row))

    def update(self, range_name=None, values=None):
        row_number = int(range_name.split(":")[0][1:])
        self.rows[row_number - 1] = list(values[0])

    def delete_rows(self, index):
        del self.rows[index - 1]


class FakeSheetsClient:
    def __init__(self):
        self.sheet = FakeWorksheet()

    def get_documents_sheet(self):
        return self.sheet


class TestGoogleSheetsDocumentStore:
    """Tests for the Sheets-backed store."""

    @pytest.fixture
    def store(self):
        return GoogleSheetsDocumentStore(client=FakeSheetsClient())

    def test_encoding_preserves_datetimes(self):
        data = {"createdAt": datetime(2025, 3, 1, 8, 30), "nested": {"at": datetime(2025, 1, 1)}}
        assert decode_document(encode_document(data)) == data

    @pytest.mark.asyncio
    async def test_set_update_delete(self, store):
        batch = store.batch()
        batch.set("families/f1/budgets", "b1", {"name": "Food", "createdAt": SERVER_TIMESTAMP})
        batch.set("families/f1/budgets", "b2", {"name": "Fuel"})
        await batch.commit()

        batch = store.batch()
        batch.update("families/f1/budgets", "b1", {"isLocked": True})
        batch.delete("families/f1/budgets", "b2")
        await batch.commit()

        documents = await store.query("families/f1/budgets")
        assert len(documents) == 1
        assert documents[0]["id"] == "b1"
        assert documents[0]["name"] == "Food"
        assert documents[0]["isLocked"] is True
        assert isinstance(documents[0]["createdAt"], datetime)

    @pytest.mark.asyncio
    async def test_collections_are_isolated(self, store):
        batch = store.batch()
        batch.set("users/a/budgets", "p1", {"category": "Food"})
        await batch.commit()
        assert await store.get_document("users/b/budgets", "p1") is None
        assert (await store.get_document("users/a/budgets", "p1"))["category"] == "Food"

    @pytest.mark.asyncio
    async def test_update_missing_raises(self, store):
        batch = store.batch()
        batch.update("things", "missing", {"a": 1})
        with pytest.raises(NotFoundError):
            await batch.commit()
