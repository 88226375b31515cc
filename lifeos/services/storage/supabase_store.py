"""
Supabase Storage Implementation

DESIGN DECISION: Supabase (hosted Postgres behind PostgREST) is the
production backend because:
1. The household data is relational (bills, items, service logs, ledger)
2. Row-level security is handled by the platform
3. The same tables are readable from the Supabase dashboard

TRADEOFFS:
- The Python client is blocking; calls run inside the async methods
- No multi-statement transactions (log_service writes the log first, then
  moves the date, so a failure leaves history rather than a silent reset)

Rows that fail to load are skipped with a warning instead of failing the
whole list.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

import structlog
from supabase import Client, create_client
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from lifeos.config import SupabaseSettings, get_settings
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
    ConnectionError,
    DuplicateError,
    LedgerStorageInterface,
    MaintenanceStorageInterface,
    NotFoundError,
    StorageError,
)


logger = structlog.get_logger(__name__)

BILL_COLUMNS = "id, name, amount, due_day, category"
MAINTENANCE_COLUMNS = "id, name, type, last_service_date, service_interval_days, notes"
LEDGER_COLUMNS = (
    "id, created_at, item_name, category, amount, quantity, transaction_type, "
    "entity_name, is_settled"
)

# Postgres unique_violation
UNIQUE_VIOLATION = "23505"

# Writes are retried only when the request never got an answer from the
# database. Coded PostgREST errors (constraints, RLS) fail on the first try.
retry_transient = retry(
    retry=retry_if_exception_type(ConnectionError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


def _storage_error(operation: str, error: Exception) -> StorageError:
    """
    Map a PostgREST/client error onto our exception hierarchy.

    PostgREST errors carry a Postgres error code. Errors without one (network,
    timeouts) never reached the database and map to ConnectionError.
    """
    if isinstance(error, StorageError):
        return error
    code = getattr(error, "code", None)
    if code == UNIQUE_VIOLATION:
        return DuplicateError(f"Failed to {operation}: {error}")
    if code:
        return StorageError(f"Failed to {operation}: {error}")
    return ConnectionError(f"Failed to {operation}: {error}")


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


class SupabaseClient:
    """
    Low-level Supabase client wrapper.

    Holds the credentials and creates the client lazily.
    """

    def __init__(self, settings: Optional[SupabaseSettings] = None):
        self._client: Optional[Client] = None
        self._settings = settings or get_settings().supabase

    @property
    def settings(self) -> SupabaseSettings:
        return self._settings

    def connect(self) -> Client:
        """
        Create the Supabase client on first use.

        No network I/O happens here, so failures are configuration errors
        and are not retried.
        """
        if self._client is None:
            try:
                self._client = create_client(self._settings.url, self._settings.key)
            except Exception as e:
                raise StorageError(f"Failed to create Supabase client: {e}") from e
        return self._client

    def table(self, name: str):
        """Start a PostgREST query on a table."""
        return self.connect().table(name)


class SupabaseBillStorage(BillStorageInterface):
    """
    Supabase implementation of recurring bill storage.

    The day anchor lives in the ``due_day`` column; older tables used
    ``day_of_month`` and are still read.
    """

    def __init__(
        self,
        client: Optional[SupabaseClient] = None,
        table: Optional[str] = None,
    ):
        self._client = client or SupabaseClient()
        self._table = table or self._client.settings.bills_table

    def _row_to_bill(self, row: dict) -> RecurringBill:
        """Convert a table row to a RecurringBill."""
        data = {
            "name": row.get("name") or "",
            "amount": row.get("amount") or 0,
            "day_of_month": row.get("due_day") or row.get("day_of_month") or 1,
            "category": row.get("category"),
        }
        if row.get("id"):
            data["id"] = row["id"]
        return RecurringBill(**data)

    def _bill_to_row(self, bill: RecurringBill) -> dict:
        row = {
            "id": str(bill.id),
            "name": bill.name,
            "amount": float(bill.amount),
            "due_day": bill.day_of_month,
        }
        if bill.category:
            row["category"] = bill.category
        return row

    async def list_bills(self) -> list[RecurringBill]:
        """List bills ordered by due day."""
        try:
            response = (
                self._client.table(self._table)
                .select(BILL_COLUMNS)
                .order("due_day")
                .execute()
            )
        except Exception as e:
            raise _storage_error("list bills", e)

        bills = []
        for row in response.data or []:
            try:
                bills.append(self._row_to_bill(row))
            except Exception as e:
                logger.warning("bill_row_skipped", row_id=row.get("id"), error=str(e))
        return bills

    @retry_transient
    async def add_bill(self, bill: RecurringBill) -> RecurringBill:
        """Insert a bill and return the stored row."""
        try:
            response = (
                self._client.table(self._table)
                .insert(self._bill_to_row(bill))
                .execute()
            )
        except Exception as e:
            raise _storage_error("add bill", e)

        if response.data:
            return self._row_to_bill(response.data[0])
        return bill

    async def delete_bill(self, bill_id: UUID) -> bool:
        """Delete a bill by ID."""
        try:
            response = (
                self._client.table(self._table)
                .delete()
                .eq("id", str(bill_id))
                .execute()
            )
        except Exception as e:
            raise _storage_error("delete bill", e)
        return bool(response.data)


class SupabaseMaintenanceStorage(MaintenanceStorageInterface):
    """Supabase implementation of maintenance item storage."""

    def __init__(
        self,
        client: Optional[SupabaseClient] = None,
        table: Optional[str] = None,
        logs_table: Optional[str] = None,
    ):
        self._client = client or SupabaseClient()
        self._table = table or self._client.settings.maintenance_table
        self._logs_table = logs_table or self._client.settings.maintenance_logs_table

    def _row_to_item(self, row: dict) -> MaintenanceItem:
        """Convert a table row to a MaintenanceItem."""
        data = {
            "name": row.get("name") or "",
            "type": row.get("type"),
            "last_service_date": row.get("last_service_date"),
            "service_interval_days": row.get("service_interval_days"),
            "notes": row.get("notes"),
        }
        if row.get("id"):
            data["id"] = row["id"]
        return MaintenanceItem(**data)

    def _item_to_row(self, item: MaintenanceItem) -> dict:
        return {
            "id": str(item.id),
            "name": item.name,
            "type": item.type.value,
            "last_service_date": item.last_service_date,
            "service_interval_days": item.service_interval_days,
            "notes": item.notes or "",
        }

    async def list_items(self) -> list[MaintenanceItem]:
        """List items ordered by last service date."""
        try:
            response = (
                self._client.table(self._table)
                .select(MAINTENANCE_COLUMNS)
                .order("last_service_date")
                .execute()
            )
        except Exception as e:
            raise _storage_error("list maintenance items", e)

        items = []
        for row in response.data or []:
            try:
                items.append(self._row_to_item(row))
            except Exception as e:
                logger.warning("maintenance_row_skipped", row_id=row.get("id"), error=str(e))
        return items

    async def get_item(self, item_id: UUID) -> Optional[MaintenanceItem]:
        try:
            response = (
                self._client.table(self._table)
                .select(MAINTENANCE_COLUMNS)
                .eq("id", str(item_id))
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise _storage_error("get maintenance item", e)

        if not response.data:
            return None
        try:
            return self._row_to_item(response.data[0])
        except ValueError as e:
            raise StorageError(f"Malformed maintenance item {item_id}: {e}") from e

    @retry_transient
    async def add_item(self, item: MaintenanceItem) -> MaintenanceItem:
        try:
            response = (
                self._client.table(self._table)
                .insert(self._item_to_row(item))
                .execute()
            )
        except Exception as e:
            raise _storage_error("add maintenance item", e)

        if response.data:
            return self._row_to_item(response.data[0])
        return item

    async def update_item(self, item_id: UUID, fields: dict[str, Any]) -> bool:
        """Update only the provided columns."""
        try:
            response = (
                self._client.table(self._table)
                .update(fields)
                .eq("id", str(item_id))
                .execute()
            )
        except Exception as e:
            raise _storage_error("update maintenance item", e)

        if not response.data:
            raise NotFoundError(f"Maintenance item not found: {item_id}")
        return True

    async def delete_item(self, item_id: UUID) -> bool:
        try:
            response = (
                self._client.table(self._table)
                .delete()
                .eq("id", str(item_id))
                .execute()
            )
        except Exception as e:
            raise _storage_error("delete maintenance item", e)
        return bool(response.data)

    @retry_transient
    async def add_service_log(self, log: MaintenanceLog) -> bool:
        try:
            self._client.table(self._logs_table).insert({
                "item_id": str(log.item_id),
                "service_date": log.service_date.isoformat(),
                "cost": float(log.cost),
            }).execute()
        except Exception as e:
            raise _storage_error("add service log", e)
        return True


class SupabaseLedgerStorage(LedgerStorageInterface):
    """Supabase implementation of the central ledger."""

    def __init__(
        self,
        client: Optional[SupabaseClient] = None,
        table: Optional[str] = None,
    ):
        self._client = client or SupabaseClient()
        self._table = table or self._client.settings.ledger_table

    def _row_to_entry(self, row: dict) -> LedgerEntry:
        data = {
            "item_name": row.get("item_name") or "",
            "category": row.get("category") or "Other",
            "amount": row.get("amount") or 0,
            "quantity": row.get("quantity") or 0,
        }
        if row.get("id"):
            data["id"] = row["id"]
        created_at = _parse_timestamp(row.get("created_at"))
        if created_at is not None:
            data["created_at"] = created_at
        if row.get("transaction_type"):
            data["transaction_type"] = row["transaction_type"]
        if row.get("entity_name"):
            data["entity_name"] = row["entity_name"]
        if row.get("is_settled") is not None:
            data["is_settled"] = row["is_settled"]
        return LedgerEntry(**data)

    def _entry_to_row(self, entry: LedgerEntry) -> dict:
        return {
            "id": str(entry.id),
            "created_at": entry.created_at.isoformat(),
            "item_name": entry.item_name,
            "category": entry.category,
            "quantity": entry.quantity,
            "amount": float(entry.amount),
            "transaction_type": entry.transaction_type.value,
            "entity_name": entry.entity_name,
            "is_settled": entry.is_settled,
        }

    @retry_transient
    async def add_entry(self, entry: LedgerEntry) -> LedgerEntry:
        try:
            response = (
                self._client.table(self._table)
                .insert(self._entry_to_row(entry))
                .execute()
            )
        except Exception as e:
            raise _storage_error("add ledger entry", e)

        if response.data:
            return self._row_to_entry(response.data[0])
        return entry

    async def list_entries(
        self,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        limit: Optional[int] = None,
        transaction_type: Optional[TransactionType] = None,
        is_settled: Optional[bool] = None,
    ) -> list[LedgerEntry]:
        try:
            query = self._client.table(self._table).select(LEDGER_COLUMNS)
            if created_from:
                query = query.gte("created_at", as_utc(created_from).isoformat())
            if created_to:
                query = query.lte("created_at", as_utc(created_to).isoformat())
            if transaction_type:
                query = query.eq("transaction_type", TransactionType(transaction_type).value)
            if is_settled is True:
                query = query.eq("is_settled", True)
            elif is_settled is False:
                query = query.or_("is_settled.is.null,is_settled.eq.false")
            query = query.order("created_at", desc=True)
            if limit:
                query = query.limit(limit)
            response = query.execute()
        except Exception as e:
            raise _storage_error("list ledger entries", e)

        entries = []
        for row in response.data or []:
            try:
                entries.append(self._row_to_entry(row))
            except Exception as e:
                logger.warning("ledger_row_skipped", row_id=row.get("id"), error=str(e))
        return entries

    async def settle_entry(self, entry_id: UUID) -> bool:
        try:
            response = (
                self._client.table(self._table)
                .update({"is_settled": True})
                .eq("id", str(entry_id))
                .execute()
            )
        except Exception as e:
            raise _storage_error("settle ledger entry", e)
        return bool(response.data)


class SupabaseAuditStorage(AuditStorageInterface):
    """
    Supabase implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(
        self,
        client: Optional[SupabaseClient] = None,
        table: Optional[str] = None,
    ):
        self._client = client or SupabaseClient()
        self._table = table or self._client.settings.audit_table

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._client.table(self._table).insert(event.to_storage_row()).execute()
            return True
        except Exception as e:
            # Audit logging should not break the main flow
            logger.warning("audit_write_failed", event_id=str(event.event_id), error=str(e))
            return False

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        try:
            response = (
                self._client.table(self._table)
                .select("*")
                .order("timestamp", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            raise _storage_error("get audit events", e)

        events = []
        for row in response.data or []:
            try:
                events.append(AuditEvent(**row))
            except Exception:
                continue
        return events
