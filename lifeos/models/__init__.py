"""
Data Models Package

This package contains all Pydantic models used in LifeOS.
Rows loaded from storage and written by the trackers conform to these schemas.
"""

from lifeos.models.schedule import (
    DEBT_TYPES,
    AnalyticsData,
    BillUrgency,
    BillWithDue,
    CategoryTotal,
    DailyTotal,
    DashboardStats,
    LedgerEntry,
    MaintenanceItem,
    MaintenanceLog,
    MaintenanceStatus,
    MaintenanceType,
    RecurringBill,
    TransactionType,
    as_utc,
)
from lifeos.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Schedule and ledger models
    "DEBT_TYPES",
    "AnalyticsData",
    "BillUrgency",
    "BillWithDue",
    "CategoryTotal",
    "DailyTotal",
    "DashboardStats",
    "LedgerEntry",
    "MaintenanceItem",
    "MaintenanceLog",
    "MaintenanceStatus",
    "MaintenanceType",
    "RecurringBill",
    "TransactionType",
    "as_utc",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
