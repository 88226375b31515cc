"""Trackers package: the collaborators that consume the recurrence engine."""

from lifeos.trackers.analytics import AnalyticsService
from lifeos.trackers.bills import BillTracker
from lifeos.trackers.dashboard import DashboardService
from lifeos.trackers.ledger import LedgerTracker
from lifeos.trackers.maintenance import MaintenanceTracker

__all__ = [
    "AnalyticsService",
    "BillTracker",
    "DashboardService",
    "LedgerTracker",
    "MaintenanceTracker",
]
