from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import uuid4

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Aware datetimes are shifted to UTC and stripped so all comparisons are naive."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class RecordBase(BaseModel):
    """Read-only snapshot of a record owned by the persistence layer."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class SubscriptionRecord(RecordBase):
    id: str = Field(default_factory=lambda: str(uuid4()), validation_alias=AliasChoices("id", "_id"))
    name: str
    price: float = Field(default=0.0, ge=0)
    currency: Optional[str] = "USD"
    frequency: str = "monthly"  # daily, weekly, monthly, yearly
    category: Optional[str] = None
    status: str = "active"
    start_date: Optional[datetime] = None
    renewal_date: Optional[datetime] = None

    @field_validator("start_date", "renewal_date")
    @classmethod
    def strip_timezone(cls, value: Optional[datetime]) -> Optional[datetime]:
        return naive_utc(value)


class BillRecord(RecordBase):
    id: str = Field(default_factory=lambda: str(uuid4()), validation_alias=AliasChoices("id", "_id"))
    name: str
    amount: float = Field(default=0.0, ge=0)
    currency: Optional[str] = "USD"
    category: Optional[str] = None
    due_date: Optional[datetime] = None
    status: str = "pending"  # pending, paid, overdue

    @field_validator("due_date")
    @classmethod
    def strip_timezone(cls, value: Optional[datetime]) -> Optional[datetime]:
        return naive_utc(value)


class BudgetRecord(RecordBase):
    monthly_limit: Optional[float] = Field(default=None, ge=0)
    currency: Optional[str] = None
    category_limits: Dict[str, float] = Field(default_factory=dict)
    notification_threshold: float = 80.0


class FinancialSnapshot(RecordBase):
    """Everything fetched for one user before invoking the engine."""

    subscriptions: List[SubscriptionRecord] = Field(default_factory=list)
    bills: List[BillRecord] = Field(default_factory=list)
    budget: Optional[BudgetRecord] = None
