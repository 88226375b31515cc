"""Services package."""

from lifeos.services.storage import (
    AuditStorageInterface,
    BillStorageInterface,
    ConnectionError,
    DuplicateError,
    InMemoryAuditStorage,
    InMemoryBillStorage,
    InMemoryLedgerStorage,
    InMemoryMaintenanceStorage,
    LedgerStorageInterface,
    MaintenanceStorageInterface,
    NotFoundError,
    StorageError,
    SupabaseAuditStorage,
    SupabaseBillStorage,
    SupabaseClient,
    SupabaseLedgerStorage,
    SupabaseMaintenanceStorage,
)

__all__ = [
    "AuditStorageInterface",
    "BillStorageInterface",
    "ConnectionError",
    "DuplicateError",
    "InMemoryAuditStorage",
    "InMemoryBillStorage",
    "InMemoryLedgerStorage",
    "InMemoryMaintenanceStorage",
    "LedgerStorageInterface",
    "MaintenanceStorageInterface",
    "NotFoundError",
    "StorageError",
    "SupabaseAuditStorage",
    "SupabaseBillStorage",
    "SupabaseClient",
    "SupabaseLedgerStorage",
    "SupabaseMaintenanceStorage",
]
