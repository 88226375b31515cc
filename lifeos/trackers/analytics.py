"""
Analytics Service

Monthly spending breakdown: totals per category with their share of the
month, and a per-day series with every day of the month present.
"""

import calendar
from collections import defaultdict
from datetime import timedelta, tzinfo
from decimal import Decimal
from typing import Optional

import structlog

from lifeos.models.schedule import AnalyticsData, CategoryTotal, DailyTotal, LedgerEntry
from lifeos.recurrence import DateLike, resolve_now
from lifeos.services.storage import LedgerStorageInterface, StorageError
from lifeos.trackers.base import local_date, month_bounds


logger = structlog.get_logger(__name__)


class AnalyticsService:
    """Category and daily totals over the ledger."""

    def __init__(
        self,
        ledger_storage: LedgerStorageInterface,
        tz: Optional[tzinfo] = None,
    ):
        self._storage = ledger_storage
        self._tz = tz

    async def fetch_analytics(self, now: Optional[DateLike] = None) -> AnalyticsData:
        """
        Breakdown of the month containing ``now`` (defaults to today).

        A failing ledger query is logged and reported as an empty month.
        """
        reference = resolve_now(now)
        start, end = month_bounds(reference, self._tz)

        try:
            entries = await self._storage.list_entries(created_from=start, created_to=end)
        except StorageError as e:
            logger.error("analytics_fetch_failed", error=str(e))
            entries = []

        return self.summarize(entries, reference, self._tz)

    @staticmethod
    def summarize(
        entries: list[LedgerEntry],
        reference,
        tz: Optional[tzinfo] = None,
    ) -> AnalyticsData:
        """Build the breakdown for the month of ``reference`` from ``entries``."""
        month_start = reference.replace(day=1)
        days_in_month = calendar.monthrange(month_start.year, month_start.month)[1]

        by_category: dict[str, Decimal] = {}
        by_day: dict = defaultdict(lambda: Decimal("0"))
        total = Decimal("0")

        for entry in entries:
            category = entry.category or "Other"
            by_category[category] = by_category.get(category, Decimal("0")) + entry.amount
            by_day[local_date(entry.created_at, tz)] += entry.amount
            total += entry.amount

        categories = [
            CategoryTotal(
                name=name,
                value=value,
                percentage=float(value / total * 100) if total > 0 else 0.0,
            )
            for name, value in by_category.items()
        ]
        categories.sort(key=lambda c: c.value, reverse=True)

        daily = []
        for offset in range(days_in_month):
            day = month_start + timedelta(days=offset)
            daily.append(DailyTotal(
                on_date=day,
                day=day.day,
                amount=by_day.get(day, Decimal("0")),
            ))

        return AnalyticsData(
            category_data=categories,
            daily_data=daily,
            total_spent=total,
        )
