"""
Family and Transaction Models

Transactions and family members are owned by other parts of the app; this
subsystem only reads them. Both collections hold records written by several
generations of clients, so these models are deliberately lenient:

- a transaction without a type is an expense
- a transaction without an amount is worth 0
- categoryId may be stored as a number or a string
- the occurrence time is 'date' when present, otherwise 'createdAt'
"""

from datetime import date, datetime, time
from enum import Enum
from typing import Any, Optional

from pydantic import ConfigDict, Field, field_validator

from family_budget.models.budget import DocumentModel, naive_datetime


class FamilyRole(str, Enum):
    """Role of a member inside a family."""
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


MANAGER_ROLES = frozenset({FamilyRole.OWNER, FamilyRole.ADMIN})


class TransactionType(str, Enum):
    """Direction of a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


def _coerce_datetime(value: Any) -> Any:
    if value in (None, ""):
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.min)
    return value


class Transaction(DocumentModel):
    """A single income or expense record."""

    model_config = ConfigDict(extra="ignore")

    id: str = ""
    user_id: str = ""
    family_id: Optional[str] = None
    category: Optional[str] = None
    category_id: Optional[str] = None
    type: TransactionType = TransactionType.EXPENSE
    amount: float = 0.0
    date: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @field_validator('category_id', mode='before')
    @classmethod
    def stringify_category_id(cls, v: Any) -> Optional[str]:
        if v is None or v == "":
            return None
        return str(v)

    @field_validator('type', mode='before')
    @classmethod
    def default_type(cls, v: Any) -> Any:
        if v in (None, ""):
            return TransactionType.EXPENSE
        return v.lower() if isinstance(v, str) else v

    @field_validator('amount', mode='before')
    @classmethod
    def default_amount(cls, v: Any) -> Any:
        return 0.0 if v in (None, "") else v

    @field_validator('date', 'created_at', mode='before')
    @classmethod
    def parse_timestamp(cls, v: Any) -> Any:
        return _coerce_datetime(v)

    @field_validator('date', 'created_at', mode='after')
    @classmethod
    def drop_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        return naive_datetime(v)

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE

    @property
    def occurred_at(self) -> Optional[datetime]:
        """When the transaction happened: its date, else its creation time."""
        return self.date or self.created_at


class SpendingLimit(DocumentModel):
    """A member's monthly expense ceiling, stored on the member record."""

    model_config = ConfigDict(extra="ignore")

    amount: float = Field(..., ge=0)
    notification_threshold: Optional[float] = Field(default=None, ge=0, le=100)


class FamilyMember(DocumentModel):
    """A member record stored at family_members/{familyId}_{userId}."""

    model_config = ConfigDict(extra="ignore")

    id: str = ""
    family_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    name: str = ""
    role: FamilyRole = FamilyRole.MEMBER
    spending_limit: Optional[SpendingLimit] = None

    @field_validator('role', mode='before')
    @classmethod
    def normalize_role(cls, v: Any) -> Any:
        if v in (None, ""):
            return FamilyRole.MEMBER
        return v.lower() if isinstance(v, str) else v

    @property
    def can_manage_budgets(self) -> bool:
        return self.role in MANAGER_ROLES


def member_document_id(family_id: str, user_id: str) -> str:
    """Document id of a member record."""
    return f"{family_id}_{user_id}"
