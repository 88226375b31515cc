"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Supabase is the production backend; the in-memory backend serves tests.
"""

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
from lifeos.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryBillStorage,
    InMemoryLedgerStorage,
    InMemoryMaintenanceStorage,
)
from lifeos.services.storage.supabase_store import (
    SupabaseAuditStorage,
    SupabaseBillStorage,
    SupabaseClient,
    SupabaseLedgerStorage,
    SupabaseMaintenanceStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "BillStorageInterface",
    "LedgerStorageInterface",
    "MaintenanceStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryBillStorage",
    "InMemoryLedgerStorage",
    "InMemoryMaintenanceStorage",
    # Supabase implementation
    "SupabaseAuditStorage",
    "SupabaseBillStorage",
    "SupabaseClient",
    "SupabaseLedgerStorage",
    "SupabaseMaintenanceStorage",
]
