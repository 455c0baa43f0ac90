"""
Budget Models for the Family Budget Engine

These models define the schemas for budget allocations as they are stored
in the document store and as callers submit them.

DESIGN DECISION: spentAmount and remainingAmount are NOT fields of any
persisted budget model. They are always derived from transactions at read
time (see family_budget.status). Input models ignore unknown fields, so a
caller-supplied spentAmount is dropped before it can reach storage, and
stored documents from older clients that still echo those fields are read
without them.

Stored documents use camelCase keys; Python code uses snake_case attributes.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from family_budget.config import get_settings


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class BudgetPeriod(str, Enum):
    """Accounting period of a family budget."""
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class PersonalBudgetPeriod(str, Enum):
    """Accounting period of a member's personal budget."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class BudgetStatus(str, Enum):
    """
    Three-tier spend status.

    safe: < 50% used, warning: 50% up to 80%, critical: 80% and above.
    """
    SAFE = "safe"
    WARNING = "warning"
    CRITICAL = "critical"


# =============================================================================
# SHARED HELPERS
# =============================================================================

def to_plain(value: Any) -> Any:
    """Recursively replace enums with their values for storage."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: to_plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(item) for item in value]
    return value


def naive_datetime(value: Any) -> Any:
    """Drop timezone info (converting to local time) so datetimes compare."""
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def _default_currency() -> str:
    return get_settings().budget.default_currency


class DocumentModel(BaseModel):
    """Base for models that map onto camelCase store documents."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_document(self, exclude_unset: bool = False) -> dict:
        """Dump with store field names and plain values."""
        return to_plain(
            self.model_dump(by_alias=True, exclude_unset=exclude_unset)
        )


# =============================================================================
# FAMILY BUDGET
# =============================================================================

class MemberAllocation(DocumentModel):
    """A member's share of a family budget."""

    model_config = ConfigDict(str_strip_whitespace=True)

    user_id: str = Field(..., min_length=1)
    member_name: str = Field(default="", max_length=100)
    allocated_amount: float = Field(..., ge=0)


class BudgetFields(DocumentModel):
    """Fields a manager controls on a family budget."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name of the budget"
    )
    description: Optional[str] = Field(default=None, max_length=500)
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Category label matched against transactions"
    )
    category_id: Optional[str] = Field(
        default=None,
        description="Category id matched against transactions"
    )
    category_icon: Optional[str] = None
    category_color: Optional[str] = None

    allocated_amount: float = Field(
        ...,
        ge=0,
        description="Planned spend ceiling for the period"
    )
    currency: str = Field(default_factory=_default_currency)
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    start_date: datetime = Field(default_factory=datetime.now)
    end_date: Optional[datetime] = None
    reset_day: Optional[int] = Field(default=None, ge=1, le=31)

    alert_threshold: float = Field(
        default=80.0,
        ge=0,
        le=100,
        description="Percentage used at which alerts are raised"
    )
    alert_enabled: bool = True
    alert_notifications: list[str] = Field(default_factory=list)

    member_allocations: Optional[list[MemberAllocation]] = None

    is_active: bool = True

    @field_validator('category_id', mode='before')
    @classmethod
    def stringify_category_id(cls, v: Any) -> Optional[str]:
        """Category ids arrive as numbers from older clients."""
        if v is None or v == "":
            return None
        return str(v)

    @field_validator('start_date', 'end_date', mode='after')
    @classmethod
    def drop_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        return naive_datetime(v)

    @model_validator(mode='after')
    def validate_dates(self) -> 'BudgetFields':
        """Validate date relationships."""
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("Budget end date cannot be before start date")
        return self


class BudgetCreate(BudgetFields):
    """
    Input for creating a family budget.

    Unknown keys (spentAmount, remainingAmount, isLocked, ...) are ignored.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class BudgetUpdate(DocumentModel):
    """
    Partial update of a family budget.

    Lock state is not updatable here; use lock_budget.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    category_id: Optional[str] = None
    category_icon: Optional[str] = None
    category_color: Optional[str] = None
    allocated_amount: Optional[float] = Field(default=None, ge=0)
    currency: Optional[str] = None
    period: Optional[BudgetPeriod] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    reset_day: Optional[int] = Field(default=None, ge=1, le=31)
    alert_threshold: Optional[float] = Field(default=None, ge=0, le=100)
    alert_enabled: Optional[bool] = None
    alert_notifications: Optional[list[str]] = None
    member_allocations: Optional[list[MemberAllocation]] = None
    is_active: Optional[bool] = None

    @field_validator('category_id', mode='before')
    @classmethod
    def stringify_category_id(cls, v: Any) -> Optional[str]:
        if v is None or v == "":
            return None
        return str(v)

    @model_validator(mode='after')
    def validate_dates(self) -> 'BudgetUpdate':
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("Budget end date cannot be before start date")
        return self

    @property
    def is_empty(self) -> bool:
        return not self.model_fields_set


class Budget(BudgetFields):
    """
    A family budget as stored at families/{familyId}/budgets/{id}.

    Read tolerantly: fields this model does not know are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    family_id: str = Field(..., min_length=1)
    is_locked: bool = False

    created_by: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None

    @field_validator('created_at', 'updated_at', mode='after')
    @classmethod
    def drop_metadata_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        return naive_datetime(v)

    def allocation_for(self, user_id: str) -> Optional[MemberAllocation]:
        """Return the member's allocation entry, if the budget has one."""
        for allocation in self.member_allocations or []:
            if allocation.user_id == user_id:
                return allocation
        return None


# =============================================================================
# PERSONAL BUDGET
# =============================================================================

class PersonalBudgetCreate(DocumentModel):
    """Input for creating a member's personal budget."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    category: str = Field(..., min_length=1, max_length=100)
    category_id: Optional[str] = None
    allocated_amount: float = Field(..., ge=0)
    period: PersonalBudgetPeriod = PersonalBudgetPeriod.MONTHLY
    currency: Optional[str] = None

    @field_validator('category_id', mode='before')
    @classmethod
    def stringify_category_id(cls, v: Any) -> Optional[str]:
        if v is None or v == "":
            return None
        return str(v)


class PersonalBudgetUpdate(DocumentModel):
    """Partial update of a member's personal budget."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    allocated_amount: Optional[float] = Field(default=None, ge=0)
    period: Optional[PersonalBudgetPeriod] = None

    @field_validator('category', 'allocated_amount', 'period', mode='before')
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        """Omit a field to keep it; null would expose the legacy aliases."""
        if v is None:
            raise ValueError("value cannot be null")
        return v

    @property
    def is_empty(self) -> bool:
        return not self.model_fields_set


class PersonalBudget(DocumentModel):
    """
    A member's personal budget as stored at users/{memberId}/budgets/{id}.

    Scoped to one accounting period (year + month, month 1-12).
    Older documents carry the allocation under 'budget' or 'amount'; those
    names are read but never written.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    family_id: Optional[str] = None
    category: str = "Unknown"
    category_id: Optional[str] = None
    allocated_amount: float = 0.0
    period: str = PersonalBudgetPeriod.MONTHLY.value
    currency: str = Field(default_factory=_default_currency)
    year: Optional[int] = None
    month: Optional[int] = Field(default=None, ge=1, le=12)
    is_active: bool = True

    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None

    @model_validator(mode='before')
    @classmethod
    def coalesce_amount_aliases(cls, data: Any) -> Any:
        """Take the first truthy of allocatedAmount, budget, amount."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        candidates = [
            data.pop("allocatedAmount", None),
            data.pop("allocated_amount", None),
            data.pop("budget", None),
            data.pop("amount", None),
        ]
        data["allocatedAmount"] = next((c for c in candidates if c), 0)
        return data

    @field_validator('category', mode='before')
    @classmethod
    def default_category(cls, v: Any) -> str:
        return v or "Unknown"

    @field_validator('category_id', mode='before')
    @classmethod
    def stringify_category_id(cls, v: Any) -> Optional[str]:
        if v is None or v == "":
            return None
        return str(v)

    @field_validator('is_active', mode='before')
    @classmethod
    def default_active(cls, v: Any) -> bool:
        return True if v is None else v

    @field_validator('created_at', 'updated_at', mode='after')
    @classmethod
    def drop_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        return naive_datetime(v)
