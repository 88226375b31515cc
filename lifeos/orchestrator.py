"""
Main Orchestrator for LifeOS

Wires storage, audit logging and the trackers together.

DESIGN DECISION: When Supabase is not configured the app still starts,
falling back to in-memory storage so the trackers and the recurrence engine
remain usable (demo mode, tests).
"""

from typing import NamedTuple, Optional

import structlog

from lifeos.audit import AuditLogger
from lifeos.services.storage import (
    InMemoryAuditStorage,
    InMemoryBillStorage,
    InMemoryLedgerStorage,
    InMemoryMaintenanceStorage,
    SupabaseAuditStorage,
    SupabaseBillStorage,
    SupabaseClient,
    SupabaseLedgerStorage,
    SupabaseMaintenanceStorage,
)
from lifeos.trackers import (
    AnalyticsService,
    BillTracker,
    DashboardService,
    LedgerTracker,
    MaintenanceTracker,
)


logger = structlog.get_logger(__name__)


class AppComponents(NamedTuple):
    bill_tracker: BillTracker
    maintenance_tracker: MaintenanceTracker
    dashboard: DashboardService
    ledger_tracker: LedgerTracker
    analytics: AnalyticsService
    supabase_client: Optional[SupabaseClient]


def create_app_components(use_storage: bool = True) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use Supabase storage.
                    Set to False for in-memory storage.
    """
    supabase_client = None

    if use_storage:
        try:
            supabase_client = SupabaseClient()
            bill_storage = SupabaseBillStorage(supabase_client)
            maintenance_storage = SupabaseMaintenanceStorage(supabase_client)
            ledger_storage = SupabaseLedgerStorage(supabase_client)
            audit_logger = AuditLogger(SupabaseAuditStorage(supabase_client))
        except Exception as e:
            logger.warning("storage_not_configured", error=str(e))
            supabase_client = None

    if supabase_client is None:
        bill_storage = InMemoryBillStorage()
        maintenance_storage = InMemoryMaintenanceStorage()
        ledger_storage = InMemoryLedgerStorage()
        audit_logger = AuditLogger(InMemoryAuditStorage())

    return AppComponents(
        bill_tracker=BillTracker(bill_storage, ledger_storage, audit_logger),
        maintenance_tracker=MaintenanceTracker(maintenance_storage, audit_logger),
        dashboard=DashboardService(ledger_storage, maintenance_storage, audit_logger),
        ledger_tracker=LedgerTracker(ledger_storage, audit_logger),
        analytics=AnalyticsService(ledger_storage),
        supabase_client=supabase_client,
    )
