"""
Audit Logger

DESIGN DECISION: Every user action that changes household data is logged.
This provides:
1. Traceability of payments and services
2. Debugging capability when a ledger row goes missing

The audit logger:
- Is async to match the storage layer
- Gracefully handles failures (doesn't crash the app if logging fails)
"""

from typing import Optional
from uuid import UUID

import structlog

from lifeos.models.audit import AuditEvent, AuditEventBuilder
from lifeos.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The audit storage backend, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("lifeos.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_bill_added(self, bill_id: UUID, name: str, day_of_month: int) -> None:
        await self.log(AuditEventBuilder.bill_added(bill_id, name, day_of_month))

    async def log_bill_deleted(self, bill_id: UUID) -> None:
        await self.log(AuditEventBuilder.bill_deleted(bill_id))

    async def log_bill_paid(self, bill_id: UUID, name: str, amount: str) -> None:
        await self.log(AuditEventBuilder.bill_paid(bill_id, name, amount))

    async def log_maintenance_item_added(
        self,
        item_id: UUID,
        name: str,
        item_type: str,
    ) -> None:
        await self.log(AuditEventBuilder.maintenance_item_added(item_id, name, item_type))

    async def log_maintenance_item_updated(self, item_id: UUID, fields: list[str]) -> None:
        await self.log(AuditEventBuilder.maintenance_item_updated(item_id, fields))

    async def log_maintenance_item_deleted(self, item_id: UUID) -> None:
        await self.log(AuditEventBuilder.maintenance_item_deleted(item_id))

    async def log_service_logged(
        self,
        item_id: UUID,
        service_date: str,
        cost: str,
        next_due: Optional[str],
    ) -> None:
        """Log a completed service."""
        event = AuditEventBuilder.service_logged(
            item_id=item_id,
            service_date=service_date,
            cost=cost,
            next_due=next_due,
        )
        await self.log(event)

    async def log_expense_logged(self, entry_id: UUID, item_name: str, amount: str) -> None:
        await self.log(AuditEventBuilder.expense_logged(entry_id, item_name, amount))

    async def log_transaction_logged(
        self,
        entry_id: UUID,
        item_name: str,
        transaction_type: str,
        amount: str,
        entity_name: Optional[str] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_logged(
            entry_id, item_name, transaction_type, amount, entity_name
        ))

    async def log_debt_settled(self, entry_id: UUID) -> None:
        await self.log(AuditEventBuilder.debt_settled(entry_id))

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        entity_type: Optional[str] = None,
    ) -> None:
        """Log a failed storage operation."""
        event = AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            entity_type=entity_type,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
        )
        await self.log(event)
