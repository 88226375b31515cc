"""
Schedule and Ledger Models for LifeOS

These models describe the rows the trackers read and write:
- RecurringBill / BillWithDue: monthly obligations anchored to a calendar day
- MaintenanceItem / MaintenanceLog: services anchored to an elapsed interval
- LedgerEntry: money movements (expenses, income, debts)
- CategoryTotal / DailyTotal / AnalyticsData: monthly spending breakdowns

DESIGN DECISION: Loading is lenient where the stored data is lenient.
A bill's day-of-month is clamped rather than rejected, and a maintenance
item's last service date is kept as the stored string so that one malformed
row still loads and is reported as "not overdue" by the recurrence engine.
Writes from user input stay strict (names required, no negative amounts).
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS
# =============================================================================

class MaintenanceType(str, Enum):
    """Kinds of things that need periodic service."""
    VEHICLE = "vehicle"
    APPLIANCE = "appliance"


class MaintenanceStatus(str, Enum):
    """Derived health of a maintenance item."""
    HEALTHY = "healthy"
    OVERDUE = "overdue"


class BillUrgency(str, Enum):
    """
    Derived urgency of a recurring bill.

    PAID only applies for the session in which the payment was logged.
    """
    PAID = "paid"
    URGENT = "urgent"      # due within the urgent threshold (default 1 day)
    WARNING = "warning"    # due within the warning threshold (default 3 days)
    NORMAL = "normal"


class TransactionType(str, Enum):
    """Ledger transaction kinds."""
    EXPENSE = "expense"
    INCOME = "income"
    DEBT_GIVEN = "debt_given"
    DEBT_TAKEN = "debt_taken"


# =============================================================================
# RECURRING BILLS
# =============================================================================

class RecurringBill(BaseModel):
    """
    A monthly obligation anchored to a day of the month.

    The anchor is always stored in [1, 31]. Shorter months are handled by
    the recurrence engine, not here.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique bill ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Bill name (e.g., Rent, Internet)"
    )
    amount: Annotated[
        Decimal,
        Field(ge=0, decimal_places=2, description="Expected monthly amount")
    ]
    day_of_month: int = Field(
        default=1,
        ge=1,
        le=31,
        description="Day of the month the bill is due"
    )
    category: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Optional category"
    )

    @field_validator('day_of_month', mode='before')
    @classmethod
    def clamp_day_of_month(cls, v: Any) -> int:
        """Clamp out-of-range or garbage anchors instead of rejecting them."""
        try:
            day = int(v)
        except OverflowError:
            return 31 if v > 0 else 1
        except (TypeError, ValueError):
            return 1
        return max(1, min(31, day))

    @field_validator('category', mode='before')
    @classmethod
    def blank_category_is_none(cls, v: Any) -> Optional[str]:
        if v is None or not str(v).strip():
            return None
        return str(v)


class BillWithDue(RecurringBill):
    """A recurring bill with its next due date resolved against "now"."""

    next_due: date = Field(
        ...,
        description="Next due date"
    )
    days_remaining: int = Field(
        ...,
        description="Whole days until due (0 = today)"
    )


# =============================================================================
# MAINTENANCE
# =============================================================================

class MaintenanceItem(BaseModel):
    """
    Something that needs service every ``service_interval_days`` days.

    ``last_service_date`` holds the stored ISO value as-is. Use
    ``lifeos.recurrence.parse_date`` to read it.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique item ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Item name (e.g., Car, Water heater)"
    )
    type: MaintenanceType = Field(
        default=MaintenanceType.VEHICLE,
        description="Vehicle or appliance"
    )
    last_service_date: str = Field(
        default="",
        description="ISO date of the last service, as stored"
    )
    service_interval_days: int = Field(
        default=0,
        description="Days between services (writes reject negatives)"
    )
    notes: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="User notes"
    )

    @field_validator('type', mode='before')
    @classmethod
    def unknown_type_is_vehicle(cls, v: Any) -> MaintenanceType:
        try:
            return MaintenanceType(v)
        except ValueError:
            return MaintenanceType.VEHICLE

    @field_validator('last_service_date', mode='before')
    @classmethod
    def date_to_string(cls, v: Any) -> str:
        if v is None:
            return ""
        if isinstance(v, (date, datetime)):
            return v.isoformat()
        return str(v)

    @field_validator('service_interval_days', mode='before')
    @classmethod
    def coerce_interval(cls, v: Any) -> int:
        """Stored intervals load as whole days; missing or garbage values are 0."""
        if v is None or v == "":
            return 0
        try:
            return int(float(v))
        except (OverflowError, TypeError, ValueError):
            return 0

    @field_validator('notes', mode='before')
    @classmethod
    def blank_notes_is_none(cls, v: Any) -> Optional[str]:
        if v is None or not str(v).strip():
            return None
        return str(v)


class MaintenanceLog(BaseModel):
    """One recorded service of a maintenance item."""

    item_id: UUID
    service_date: date
    cost: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        decimal_places=2,
        description="What the service cost"
    )


# =============================================================================
# LEDGER
# =============================================================================

def as_utc(value: datetime) -> datetime:
    """Make a timestamp timezone-aware. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


DEBT_TYPES = frozenset({TransactionType.DEBT_GIVEN, TransactionType.DEBT_TAKEN})


class LedgerEntry(BaseModel):
    """
    A single money movement in the central ledger.

    ``created_at`` is always UTC. Debt entries name the other party in
    ``entity_name`` and carry ``is_settled``; other entries leave it None.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique entry ID"
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="When the entry was recorded (UTC)"
    )
    item_name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What the money was for"
    )
    category: str = Field(
        default="Other",
        max_length=100
    )
    quantity: int = Field(
        default=1,
        ge=0
    )
    amount: Annotated[
        Decimal,
        Field(ge=0, decimal_places=2, description="Final amount paid")
    ]
    transaction_type: TransactionType = Field(
        default=TransactionType.EXPENSE
    )
    entity_name: Optional[str] = Field(
        default=None,
        max_length=200,
        description="Who gave or took the money (debts)"
    )
    is_settled: Optional[bool] = Field(
        default=None,
        description="Whether a debt has been paid back"
    )

    @field_validator('created_at')
    @classmethod
    def created_at_is_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    @field_validator('entity_name', mode='before')
    @classmethod
    def blank_entity_is_none(cls, v: Any) -> Optional[str]:
        if v is None or not str(v).strip():
            return None
        return str(v)

    @property
    def is_debt(self) -> bool:
        return self.transaction_type in DEBT_TYPES


class DashboardStats(BaseModel):
    """Summary shown on the household dashboard."""

    month_spend: Decimal = Field(
        default=Decimal("0"),
        description="Ledger total for the current month"
    )
    overdue_count: int = Field(
        default=0,
        ge=0,
        description="Maintenance items past their service date"
    )
    recent_transactions: list[LedgerEntry] = Field(default_factory=list)


# =============================================================================
# ANALYTICS
# =============================================================================

class CategoryTotal(BaseModel):
    """Ledger total for one category in a month."""

    name: str
    value: Decimal = Field(default=Decimal("0"))
    percentage: float = Field(
        default=0.0,
        ge=0,
        le=100,
        description="Share of the month's total"
    )


class DailyTotal(BaseModel):
    """Ledger total for one calendar day."""

    on_date: date
    day: int = Field(..., ge=1, le=31)
    amount: Decimal = Field(default=Decimal("0"))


class AnalyticsData(BaseModel):
    """Monthly breakdown by category and by day."""

    category_data: list[CategoryTotal] = Field(default_factory=list)
    daily_data: list[DailyTotal] = Field(default_factory=list)
    total_spent: Decimal = Field(default=Decimal("0"))
