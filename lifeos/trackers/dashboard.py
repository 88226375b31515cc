"""
Dashboard Service

Builds the household summary: this month's spend, how many maintenance
items are overdue, and the latest ledger activity.

The three sources are loaded concurrently and each one fails open.
A broken ledger query still shows the overdue count, and vice versa.
"""

import asyncio
from datetime import tzinfo
from decimal import Decimal
from typing import Optional

import structlog

from lifeos.audit import AuditLogger
from lifeos.config import AppSettings, get_settings
from lifeos.models.schedule import DashboardStats, LedgerEntry
from lifeos.recurrence import DateLike, resolve_now
from lifeos.services.storage import (
    LedgerStorageInterface,
    MaintenanceStorageInterface,
    StorageError,
)
from lifeos.trackers.base import month_bounds, parse_amount
from lifeos.trackers.maintenance import MaintenanceTracker


logger = structlog.get_logger(__name__)


class DashboardService:
    """Read-mostly summary over the ledger and maintenance tables."""

    def __init__(
        self,
        ledger_storage: LedgerStorageInterface,
        maintenance_storage: MaintenanceStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AppSettings] = None,
        tz: Optional[tzinfo] = None,
    ):
        self._ledger_storage = ledger_storage
        self._maintenance_storage = maintenance_storage
        self._audit_logger = audit_logger
        self._settings = settings or get_settings().app
        self._tz = tz

    async def fetch_stats(self, now: Optional[DateLike] = None) -> DashboardStats:
        """
        Load dashboard numbers.

        Args:
            now: Reference date, defaults to today. The month is taken in the
                 service time zone (system zone unless one was given).

        Raises:
            ValueError: If ``now`` cannot be read as a date
        """
        reference = resolve_now(now)
        start, end = month_bounds(reference, self._tz)

        spending, maintenance, recent = await asyncio.gather(
            self._ledger_storage.list_entries(created_from=start, created_to=end),
            self._maintenance_storage.list_items(),
            self._ledger_storage.list_entries(limit=self._settings.recent_activity_limit),
            return_exceptions=True,
        )

        stats = DashboardStats()

        if isinstance(spending, BaseException):
            await self._report_failure("spending", spending)
        else:
            stats.month_spend = sum((e.amount for e in spending), Decimal("0"))

        if isinstance(maintenance, BaseException):
            await self._report_failure("maintenance", maintenance)
        else:
            stats.overdue_count = MaintenanceTracker.overdue_count(maintenance, reference)

        if isinstance(recent, BaseException):
            await self._report_failure("recent_activity", recent)
        else:
            stats.recent_transactions = recent

        return stats

    async def _report_failure(self, part: str, error: BaseException) -> None:
        logger.error("dashboard_part_failed", part=part, error=str(error))
        if self._audit_logger:
            await self._audit_logger.log_error(
                error_type=type(error).__name__,
                error_message=str(error),
                details={"source": "dashboard", "part": part},
            )

    async def log_quick_expense(
        self,
        item_name: str,
        category: str,
        amount,
    ) -> LedgerEntry:
        """
        Log a manual cash expense to the ledger.

        Raises:
            ValueError: If the name is empty or the amount is invalid
            StorageError: If the entry could not be saved
        """
        item_name = (item_name or "").strip()
        if not item_name:
            raise ValueError("Enter what the expense was for")

        entry = LedgerEntry(
            item_name=item_name,
            category=(category or "").strip() or "Other",
            quantity=1,
            amount=parse_amount(amount),
        )

        try:
            stored = await self._ledger_storage.add_entry(entry)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error("log_quick_expense", str(e), "ledger")
            raise

        if self._audit_logger:
            await self._audit_logger.log_expense_logged(stored.id, stored.item_name, str(stored.amount))
        return stored
