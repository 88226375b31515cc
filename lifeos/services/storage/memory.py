"""
In-Memory Storage Implementation

Dict-backed storage for tests and for running the trackers without a
database. Ordering mirrors the Supabase queries so callers see the same
shape of results from either backend.
"""

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
    as_utc,
)
from lifeos.services.storage.interface import (
    AuditStorageInterface,
    BillStorageInterface,
    DuplicateError,
    LedgerStorageInterface,
    MaintenanceStorageInterface,
    NotFoundError,
)


class InMemoryBillStorage(BillStorageInterface):

    def __init__(self, bills: Optional[list[RecurringBill]] = None):
        self._bills: dict[UUID, RecurringBill] = {}
        for bill in bills or []:
            self._bills[bill.id] = bill

    async def list_bills(self) -> list[RecurringBill]:
        return sorted(self._bills.values(), key=lambda b: b.day_of_month)

    async def add_bill(self, bill: RecurringBill) -> RecurringBill:
        if bill.id in self._bills:
            raise DuplicateError(f"Bill already exists: {bill.id}")
        self._bills[bill.id] = bill
        return bill

    async def delete_bill(self, bill_id: UUID) -> bool:
        return self._bills.pop(bill_id, None) is not None


class InMemoryMaintenanceStorage(MaintenanceStorageInterface):

    def __init__(self, items: Optional[list[MaintenanceItem]] = None):
        self._items: dict[UUID, MaintenanceItem] = {}
        self.logs: list[MaintenanceLog] = []
        for item in items or []:
            self._items[item.id] = item

    async def list_items(self) -> list[MaintenanceItem]:
        # Empty dates sort last, like NULLS LAST
        return sorted(
            self._items.values(),
            key=lambda i: (not i.last_service_date, i.last_service_date),
        )

    async def get_item(self, item_id: UUID) -> Optional[MaintenanceItem]:
        return self._items.get(item_id)

    async def add_item(self, item: MaintenanceItem) -> MaintenanceItem:
        if item.id in self._items:
            raise DuplicateError(f"Maintenance item already exists: {item.id}")
        self._items[item.id] = item
        return item

    async def update_item(self, item_id: UUID, fields: dict[str, Any]) -> bool:
        item = self._items.get(item_id)
        if item is None:
            raise NotFoundError(f"Maintenance item not found: {item_id}")
        self._items[item_id] = MaintenanceItem(**{**item.model_dump(), **fields})
        return True

    async def delete_item(self, item_id: UUID) -> bool:
        return self._items.pop(item_id, None) is not None

    async def add_service_log(self, log: MaintenanceLog) -> bool:
        self.logs.append(log)
        return True


class InMemoryLedgerStorage(LedgerStorageInterface):

    def __init__(self, entries: Optional[list[LedgerEntry]] = None):
        self._entries: list[LedgerEntry] = list(entries or [])

    async def add_entry(self, entry: LedgerEntry) -> LedgerEntry:
        self._entries.append(entry)
        return entry

    async def list_entries(
        self,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        limit: Optional[int] = None,
        transaction_type: Optional[TransactionType] = None,
        is_settled: Optional[bool] = None,
    ) -> list[LedgerEntry]:
        start = as_utc(created_from) if created_from else None
        end = as_utc(created_to) if created_to else None
        entries = [
            e for e in self._entries
            if (start is None or e.created_at >= start)
            and (end is None or e.created_at <= end)
            and (transaction_type is None or e.transaction_type == transaction_type)
            and (is_settled is None or bool(e.is_settled) == is_settled)
        ]
        entries.sort(key=lambda e: e.created_at, reverse=True)
        if limit:
            entries = entries[:limit]
        return entries

    async def settle_entry(self, entry_id: UUID) -> bool:
        for i, entry in enumerate(self._entries):
            if entry.id == entry_id:
                self._entries[i] = entry.model_copy(update={"is_settled": True})
                return True
        return False


class InMemoryAuditStorage(AuditStorageInterface):

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self.events, key=lambda e: e.timestamp, reverse=True)[:limit]
