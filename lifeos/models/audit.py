"""
Audit Models for LifeOS

Every user action that changes household data is logged:
bills added or paid, maintenance items serviced, expenses recorded.
Storage failures are logged too, so a missing ledger row can be traced.

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Recurring bills
    BILL_ADDED = "bill_added"
    BILL_DELETED = "bill_deleted"
    BILL_PAID = "bill_paid"

    # Maintenance
    MAINTENANCE_ITEM_ADDED = "maintenance_item_added"
    MAINTENANCE_ITEM_UPDATED = "maintenance_item_updated"
    MAINTENANCE_ITEM_DELETED = "maintenance_item_deleted"
    SERVICE_LOGGED = "service_logged"

    # Ledger
    EXPENSE_LOGGED = "expense_logged"
    TRANSACTION_LOGGED = "transaction_logged"
    DEBT_SETTLED = "debt_settled"

    # System events
    STORAGE_ERROR = "storage_error"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'bill', 'maintenance_item', 'ledger')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    error_message: Optional[str] = None
    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_storage_row(self) -> dict:
        """
        Convert to a row for the ``audit_log`` table.

        Same keys as ``to_log_dict``; details stay a dict for the jsonb column.
        """
        return self.to_log_dict()


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.bill_paid(bill_id, "Rent", "1200.00")
    """

    @staticmethod
    def bill_added(bill_id: UUID, name: str, day_of_month: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BILL_ADDED,
            entity_type="bill",
            entity_id=bill_id,
            description=f"Recurring bill added: {name}",
            details={"name": name, "day_of_month": day_of_month},
            is_user_action=True,
        )

    @staticmethod
    def bill_deleted(bill_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BILL_DELETED,
            entity_type="bill",
            entity_id=bill_id,
            description="Recurring bill deleted",
            is_user_action=True,
        )

    @staticmethod
    def bill_paid(bill_id: UUID, name: str, amount: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BILL_PAID,
            entity_type="bill",
            entity_id=bill_id,
            description=f"Bill paid and logged to ledger: {name}",
            details={"name": name, "amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def maintenance_item_added(item_id: UUID, name: str, item_type: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MAINTENANCE_ITEM_ADDED,
            entity_type="maintenance_item",
            entity_id=item_id,
            description=f"Maintenance item added: {name}",
            details={"name": name, "type": item_type},
            is_user_action=True,
        )

    @staticmethod
    def maintenance_item_updated(item_id: UUID, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MAINTENANCE_ITEM_UPDATED,
            entity_type="maintenance_item",
            entity_id=item_id,
            description=f"Maintenance item updated ({', '.join(fields)})",
            details={"fields": fields},
            is_user_action=True,
        )

    @staticmethod
    def maintenance_item_deleted(item_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MAINTENANCE_ITEM_DELETED,
            entity_type="maintenance_item",
            entity_id=item_id,
            description="Maintenance item deleted",
            is_user_action=True,
        )

    @staticmethod
    def service_logged(
        item_id: UUID,
        service_date: str,
        cost: str,
        next_due: Optional[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SERVICE_LOGGED,
            entity_type="maintenance_item",
            entity_id=item_id,
            description=f"Service logged on {service_date}",
            details={
                "service_date": service_date,
                "cost": cost,
                "next_due": next_due,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_logged(entry_id: UUID, item_name: str, amount: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_LOGGED,
            entity_type="ledger",
            entity_id=entry_id,
            description=f"Expense logged: {item_name}",
            details={"item_name": item_name, "amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def transaction_logged(
        entry_id: UUID,
        item_name: str,
        transaction_type: str,
        amount: str,
        entity_name: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_LOGGED,
            entity_type="ledger",
            entity_id=entry_id,
            description=f"{transaction_type} logged: {item_name}",
            details={
                "item_name": item_name,
                "transaction_type": transaction_type,
                "amount": amount,
                "entity_name": entity_name,
            },
            is_user_action=True,
        )

    @staticmethod
    def debt_settled(entry_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEBT_SETTLED,
            entity_type="ledger",
            entity_id=entry_id,
            description="Debt marked as settled",
            is_user_action=True,
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        entity_type: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            entity_type=entity_type,
            description=f"Storage operation failed: {operation}",
            details={"operation": operation},
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            details=details or {},
            error_message=error_message,
        )
