"""
Shared fixtures for the family budget tests.

Every test runs against a fresh in-memory store seeded with one family:

    u-owner   owner   no spending limit
    u-admin   admin   no spending limit
    u-member  member  limit 2.000.000 (alert at 80%)
    u-kid     member  limit 500.000 (no threshold set)

The clock is fixed at 15 March 2025, so "this month" is March 2025.
"""

from datetime import datetime
from typing import Optional

import pytest

from family_budget.audit import AuditLogger
from family_budget.service import FamilyBudgetService
from family_budget.services.storage import DocumentAuditStorage, InMemoryDocumentStore


NOW = datetime(2025, 3, 15, 12, 0, 0)
FAMILY_ID = "fam-1"
OTHER_FAMILY_ID = "fam-2"

OWNER = "u-owner"
ADMIN = "u-admin"
MEMBER = "u-member"
KID = "u-kid"


def seed_member(
    store: InMemoryDocumentStore,
    user_id: str,
    role: str,
    name: str,
    family_id: str = FAMILY_ID,
    limit: Optional[float] = None,
    threshold: Optional[float] = None,
) -> None:
    data = {"familyId": family_id, "userId": user_id, "name": name, "role": role}
    if limit is not None:
        data["spendingLimit"] = {"amount": limit, "notificationThreshold": threshold}
    store.seed("family_members", f"{family_id}_{user_id}", data)


def seed_budget(
    store: InMemoryDocumentStore,
    budget_id: str,
    category: str,
    allocated: float,
    family_id: str = FAMILY_ID,
    **fields,
) -> None:
    data = {
        "familyId": family_id,
        "name": fields.pop("name", category),
        "category": category,
        "allocatedAmount": allocated,
        "currency": "VND",
        "period": "monthly",
        "startDate": datetime(2025, 3, 1),
        "alertThreshold": 80,
        "alertEnabled": True,
        "isActive": True,
        "isLocked": False,
        "createdBy": OWNER,
        "createdAt": datetime(2025, 3, 1, 8, 0, 0),
        "updatedAt": datetime(2025, 3, 1, 8, 0, 0),
    }
    data.update(fields)
    store.seed(f"families/{family_id}/budgets", budget_id, data)


def seed_transaction(
    store: InMemoryDocumentStore,
    tx_id: str,
    user_id: str,
    category: Optional[str],
    amount: float,
    tx_type: str = "expense",
    created_at: datetime = datetime(2025, 3, 10, 9, 0, 0),
    family_id: str = FAMILY_ID,
    **fields,
) -> None:
    data = {
        "familyId": family_id,
        "userId": user_id,
        "category": category,
        "type": tx_type,
        "amount": amount,
        "date": created_at,
        "createdAt": created_at,
    }
    data.update(fields)
    store.seed("transactions", tx_id, data)


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def store(clock) -> InMemoryDocumentStore:
    store = InMemoryDocumentStore(clock=clock)
    seed_member(store, OWNER, "owner", "Owner")
    seed_member(store, ADMIN, "admin", "Admin")
    seed_member(store, MEMBER, "member", "Lan", limit=2_000_000, threshold=80)
    seed_member(store, KID, "member", "Minh", limit=500_000)
    return store


@pytest.fixture
def service(store, clock) -> FamilyBudgetService:
    audit_logger = AuditLogger(DocumentAuditStorage(store))
    return FamilyBudgetService(store, audit_logger=audit_logger, clock=clock)
