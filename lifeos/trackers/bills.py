"""
Bill Tracker

Loads recurring bills, resolves each one's next due date against "now",
and records payments to the ledger.

DESIGN DECISION: Paid state is session-scoped.
A bill carries no persisted "last paid" field; marking it paid writes a
ledger entry and remembers the bill ID on this tracker instance only.
A new tracker (a page reload) shows the bill by due date again.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from lifeos.audit import AuditLogger
from lifeos.config import AppSettings, get_settings
from lifeos.models.schedule import (
    BillUrgency,
    BillWithDue,
    LedgerEntry,
    RecurringBill,
)
from lifeos.recurrence import (
    calculate_next_due_date,
    get_bill_urgency,
    get_days_remaining,
    today,
)
from lifeos.services.storage import (
    BillStorageInterface,
    LedgerStorageInterface,
    StorageError,
)
from lifeos.trackers.base import parse_amount


class BillTracker:
    """
    Recurring bill reminders.

    Ordering: soonest due first. Bills with the same days remaining keep
    the order the store returned them in.
    """

    def __init__(
        self,
        bill_storage: BillStorageInterface,
        ledger_storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._bill_storage = bill_storage
        self._ledger_storage = ledger_storage
        self._audit_logger = audit_logger
        self._settings = settings or get_settings().app
        self._paid_this_session: set[UUID] = set()

    async def fetch_bills(self, now=None) -> list[BillWithDue]:
        """
        Load all bills with their next due date and days remaining.

        Args:
            now: Reference date, defaults to today
        """
        reference = now if now is not None else today()
        bills = await self._bill_storage.list_bills()

        with_due = []
        for bill in bills:
            next_due = calculate_next_due_date(bill.day_of_month, reference)
            with_due.append(BillWithDue(
                **bill.model_dump(),
                next_due=next_due,
                days_remaining=get_days_remaining(next_due, reference),
            ))

        with_due.sort(key=lambda b: b.days_remaining)
        return with_due

    async def add_bill(
        self,
        name: str,
        amount,
        day_of_month,
        category: Optional[str] = None,
    ) -> RecurringBill:
        """
        Create a recurring bill.

        The day anchor is clamped into [1, 31].

        Raises:
            ValueError: If the name is empty or the amount is invalid
            StorageError: If the bill could not be saved
        """
        name = (name or "").strip()
        if not name:
            raise ValueError("Enter a bill name")

        bill = RecurringBill(
            name=name,
            amount=parse_amount(amount),
            day_of_month=day_of_month,
            category=category,
        )

        try:
            stored = await self._bill_storage.add_bill(bill)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error("add_bill", str(e), "bill")
            raise

        if self._audit_logger:
            await self._audit_logger.log_bill_added(stored.id, stored.name, stored.day_of_month)
        return stored

    async def delete_bill(self, bill_id: UUID) -> bool:
        deleted = await self._bill_storage.delete_bill(bill_id)
        self._paid_this_session.discard(bill_id)
        if deleted and self._audit_logger:
            await self._audit_logger.log_bill_deleted(bill_id)
        return deleted

    async def log_payment(
        self,
        bill: RecurringBill,
        amount=None,
    ) -> LedgerEntry:
        """
        Record a bill payment in the ledger and mark the bill paid.

        Args:
            bill: The bill being paid
            amount: Amount actually paid, defaults to the bill amount

        Raises:
            ValueError: If the amount is invalid
            StorageError: If the ledger entry could not be saved
        """
        paid_amount = parse_amount(bill.amount if amount is None else amount)
        entry = LedgerEntry(
            item_name=f"{bill.name} (Recurring)",
            category=self._settings.bill_payment_category,
            quantity=1,
            amount=paid_amount,
        )

        try:
            stored = await self._ledger_storage.add_entry(entry)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error("log_bill_payment", str(e), "ledger")
            raise

        self._paid_this_session.add(bill.id)
        if self._audit_logger:
            await self._audit_logger.log_bill_paid(bill.id, bill.name, str(paid_amount))
        return stored

    def is_paid(self, bill_id: UUID) -> bool:
        return bill_id in self._paid_this_session

    def urgency(self, bill: BillWithDue) -> BillUrgency:
        return get_bill_urgency(
            bill.days_remaining,
            paid=self.is_paid(bill.id),
            urgent_within_days=self._settings.bill_urgent_within_days,
            warning_within_days=self._settings.bill_warning_within_days,
        )

    @staticmethod
    def total_monthly(bills: list[RecurringBill]) -> Decimal:
        return sum((b.amount for b in bills), Decimal("0"))
