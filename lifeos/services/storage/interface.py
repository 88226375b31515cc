"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Run against Supabase in production
2. Use in-memory storage for testing
3. Keep tracker logic decoupled from the storage implementation

The interface is intentionally simple - we're not building a full ORM.
Just the operations the trackers need.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from lifeos.models.audit import AuditEvent
from lifeos.models.schedule import (
    LedgerEntry,
    MaintenanceItem,
    MaintenanceLog,
    RecurringBill,
    TransactionType,
)


class BillStorageInterface(ABC):
    """Abstract interface for recurring bill storage."""

    @abstractmethod
    async def list_bills(self) -> list[RecurringBill]:
        """
        List all recurring bills.

        Returns:
            Bills ordered by day of month ascending
        """
        pass

    @abstractmethod
    async def add_bill(self, bill: RecurringBill) -> RecurringBill:
        """
        Save a new recurring bill.

        Returns:
            The bill as stored

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def delete_bill(self, bill_id: UUID) -> bool:
        """
        Delete a bill by ID.

        Returns:
            True if a bill was deleted
        """
        pass


class MaintenanceStorageInterface(ABC):
    """Abstract interface for maintenance item storage."""

    @abstractmethod
    async def list_items(self) -> list[MaintenanceItem]:
        """
        List all maintenance items.

        Returns:
            Items ordered by last service date ascending
        """
        pass

    @abstractmethod
    async def get_item(self, item_id: UUID) -> Optional[MaintenanceItem]:
        """Retrieve an item by its ID, or None if it doesn't exist."""
        pass

    @abstractmethod
    async def add_item(self, item: MaintenanceItem) -> MaintenanceItem:
        """
        Save a new maintenance item.

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def update_item(self, item_id: UUID, fields: dict[str, Any]) -> bool:
        """
        Update only the given fields of an item.

        Raises:
            NotFoundError: If the item doesn't exist
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def delete_item(self, item_id: UUID) -> bool:
        """
        Delete an item by ID.

        Returns:
            True if an item was deleted
        """
        pass

    @abstractmethod
    async def add_service_log(self, log: MaintenanceLog) -> bool:
        """
        Append a service record.

        Raises:
            StorageError: If save fails
        """
        pass


class LedgerStorageInterface(ABC):
    """Abstract interface for the central ledger."""

    @abstractmethod
    async def add_entry(self, entry: LedgerEntry) -> LedgerEntry:
        """
        Append a ledger entry.

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def list_entries(
        self,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        limit: Optional[int] = None,
        transaction_type: Optional[TransactionType] = None,
        is_settled: Optional[bool] = None,
    ) -> list[LedgerEntry]:
        """
        List ledger entries, newest first.

        Args:
            created_from: Only entries created at or after this time (naive = UTC)
            created_to: Only entries created at or before this time (naive = UTC)
            limit: Maximum number of results
            transaction_type: Only entries of this type
            is_settled: True for settled entries only; False for entries
                        that are unsettled or have no settled flag
        """
        pass

    @abstractmethod
    async def settle_entry(self, entry_id: UUID) -> bool:
        """
        Mark an entry as settled.

        Returns:
            True if an entry was updated
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
