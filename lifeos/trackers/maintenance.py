"""
Maintenance Tracker

Keeps vehicles and appliances on their service interval.
An item is overdue once today is past ``last_service_date +
service_interval_days``; logging a service moves the date forward and is the
only way back to healthy.
"""

from datetime import date
from typing import Any, Optional, Union
from uuid import UUID

from lifeos.audit import AuditLogger
from lifeos.models.schedule import (
    MaintenanceItem,
    MaintenanceLog,
    MaintenanceStatus,
    MaintenanceType,
)
from lifeos.recurrence import (
    get_days_overdue,
    get_maintenance_status,
    get_next_service_date,
    get_service_progress,
    parse_date,
    today,
)
from lifeos.services.storage import (
    MaintenanceStorageInterface,
    NotFoundError,
    StorageError,
)
from lifeos.trackers.base import parse_amount


EDITABLE_FIELDS = ("name", "type", "last_service_date", "service_interval_days", "notes")


class MaintenanceTracker:
    """Service schedules for household items."""

    def __init__(
        self,
        maintenance_storage: MaintenanceStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = maintenance_storage
        self._audit_logger = audit_logger

    async def fetch_items(self, now=None) -> list[MaintenanceItem]:
        """Load all items, most overdue first."""
        items = await self._storage.list_items()
        return self.sort_by_urgency(items, now)

    @staticmethod
    def sort_by_urgency(items: list[MaintenanceItem], now=None) -> list[MaintenanceItem]:
        """
        Overdue items first, most overdue first.

        Healthy items keep their incoming order.
        """
        reference = now if now is not None else today()

        def key(item: MaintenanceItem) -> tuple[int, int]:
            days = get_days_overdue(item.last_service_date, item.service_interval_days, reference)
            if days > 0:
                return (0, -days)
            return (1, 0)

        return sorted(items, key=key)

    @staticmethod
    def days_overdue(item: MaintenanceItem, now=None) -> int:
        return get_days_overdue(item.last_service_date, item.service_interval_days, now)

    @staticmethod
    def status(item: MaintenanceItem, now=None) -> MaintenanceStatus:
        return get_maintenance_status(MaintenanceTracker.days_overdue(item, now))

    @staticmethod
    def progress(item: MaintenanceItem, now=None) -> float:
        return get_service_progress(item.last_service_date, item.service_interval_days, now)

    @staticmethod
    def next_service_date(item: MaintenanceItem) -> Optional[date]:
        return get_next_service_date(item.last_service_date, item.service_interval_days)

    @staticmethod
    def overdue_count(items: list[MaintenanceItem], now=None) -> int:
        reference = now if now is not None else today()
        return sum(
            1 for item in items
            if get_days_overdue(item.last_service_date, item.service_interval_days, reference) > 0
        )

    async def add_item(
        self,
        name: str,
        item_type: Union[MaintenanceType, str] = MaintenanceType.VEHICLE,
        last_service_date=None,
        service_interval_days: int = 0,
        notes: Optional[str] = None,
    ) -> MaintenanceItem:
        """
        Create a maintenance item.

        ``last_service_date`` defaults to today.

        Raises:
            ValueError: If the name is empty or the interval is negative
            StorageError: If the item could not be saved
        """
        name = (name or "").strip()
        if not name:
            raise ValueError("Enter an item name")

        interval = self._normalize_updates(
            {"service_interval_days": service_interval_days or 0}
        )["service_interval_days"]

        item = MaintenanceItem(
            name=name,
            type=item_type,
            last_service_date=last_service_date if last_service_date is not None else today(),
            service_interval_days=interval,
            notes=notes,
        )

        try:
            stored = await self._storage.add_item(item)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    "add_maintenance_item", str(e), "maintenance_item"
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_maintenance_item_added(
                stored.id, stored.name, stored.type.value
            )
        return stored

    async def update_item(self, item_id: UUID, **updates: Any) -> bool:
        """
        Update the given fields of an item. Fields passed as None are ignored.

        Raises:
            ValueError: On unknown fields or invalid values
            NotFoundError: If the item doesn't exist
        """
        unknown = set(updates) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        fields = self._normalize_updates(
            {k: v for k, v in updates.items() if v is not None}
        )
        if not fields:
            return True

        await self._storage.update_item(item_id, fields)
        if self._audit_logger:
            await self._audit_logger.log_maintenance_item_updated(item_id, sorted(fields))
        return True

    @staticmethod
    def _normalize_updates(fields: dict[str, Any]) -> dict[str, Any]:
        """Validate updates and convert them to storable values."""
        normalized = dict(fields)
        if "name" in normalized:
            normalized["name"] = str(normalized["name"]).strip()
            if not normalized["name"]:
                raise ValueError("Enter an item name")
        if "type" in normalized:
            normalized["type"] = MaintenanceType(normalized["type"]).value
        if "last_service_date" in normalized:
            parsed = parse_date(normalized["last_service_date"])
            if parsed is None:
                raise ValueError(f"Invalid service date: {normalized['last_service_date']!r}")
            normalized["last_service_date"] = parsed.isoformat()
        if "service_interval_days" in normalized:
            try:
                interval = int(normalized["service_interval_days"])
            except (OverflowError, TypeError, ValueError):
                raise ValueError(
                    f"Invalid service interval: {normalized['service_interval_days']!r}"
                )
            if interval < 0:
                raise ValueError("Service interval cannot be negative")
            normalized["service_interval_days"] = interval
        return normalized

    async def delete_item(self, item_id: UUID) -> bool:
        deleted = await self._storage.delete_item(item_id)
        if deleted and self._audit_logger:
            await self._audit_logger.log_maintenance_item_deleted(item_id)
        return deleted

    async def log_service(
        self,
        item_id: UUID,
        service_date=None,
        cost=0,
    ) -> Optional[date]:
        """
        Record a service and move the item's last service date.

        The service log is written before the date moves, so a failed update
        still leaves the history.

        Args:
            item_id: Item that was serviced
            service_date: When, defaults to today
            cost: What it cost; invalid or negative costs are stored as 0

        Returns:
            The next due date

        Raises:
            NotFoundError: If the item doesn't exist
            StorageError: If either write fails
        """
        item = await self._storage.get_item(item_id)
        if item is None:
            raise NotFoundError(f"Maintenance item not found: {item_id}")

        serviced_on = parse_date(service_date) if service_date is not None else today()
        if serviced_on is None:
            raise ValueError(f"Invalid service date: {service_date!r}")

        try:
            service_cost = parse_amount(cost, "cost")
        except ValueError:
            service_cost = parse_amount(0)

        try:
            await self._storage.add_service_log(MaintenanceLog(
                item_id=item_id,
                service_date=serviced_on,
                cost=service_cost,
            ))
            await self._storage.update_item(
                item_id, {"last_service_date": serviced_on.isoformat()}
            )
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    "log_service", str(e), "maintenance_item"
                )
            raise

        next_due = get_next_service_date(serviced_on, item.service_interval_days)
        if self._audit_logger:
            await self._audit_logger.log_service_logged(
                item_id=item_id,
                service_date=serviced_on.isoformat(),
                cost=str(service_cost),
                next_due=next_due.isoformat() if next_due else None,
            )
        return next_due
