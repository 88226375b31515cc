"""
Tests for the bill, maintenance, ledger, dashboard and analytics trackers.

All trackers run against in-memory storage; coroutines are driven with
asyncio.run so no async test plugin is needed.
"""

import asyncio
import pytest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from lifeos.audit import AuditLogger
from lifeos.config import AppSettings
from lifeos.models import (
    AuditEventType,
    BillUrgency,
    LedgerEntry,
    MaintenanceItem,
    MaintenanceStatus,
    RecurringBill,
    TransactionType,
)
from lifeos.services.storage import (
    InMemoryAuditStorage,
    InMemoryBillStorage,
    InMemoryLedgerStorage,
    InMemoryMaintenanceStorage,
    NotFoundError,
    StorageError,
)
from lifeos.trackers import (
    AnalyticsService,
    BillTracker,
    DashboardService,
    LedgerTracker,
    MaintenanceTracker,
)


EASTERN_STANDARD = timezone(timedelta(hours=-5))


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def settings():
    return AppSettings(_env_file=None)


class FailingLedgerStorage(InMemoryLedgerStorage):

    async def add_entry(self, entry):
        raise StorageError("ledger unavailable")

    async def list_entries(self, **filters):
        raise StorageError("ledger unavailable")

    async def settle_entry(self, entry_id):
        raise StorageError("ledger unavailable")


class TestBillTracker:
    """Tests for BillTracker."""

    @pytest.fixture
    def bills(self):
        return [
            RecurringBill(name="Rent", amount=Decimal("1200"), day_of_month=1),
            RecurringBill(name="Electric", amount=Decimal("85"), day_of_month=15),
            RecurringBill(name="Internet", amount=Decimal("60"), day_of_month=12),
            RecurringBill(name="Phone", amount=Decimal("40"), day_of_month=31),
        ]

    @pytest.fixture
    def tracker(self, bills, audit_logger, settings):
        return BillTracker(
            InMemoryBillStorage(bills),
            InMemoryLedgerStorage(),
            audit_logger,
            settings,
        )

    def test_fetch_bills_sorted_by_days_remaining(self, tracker):
        result = run(tracker.fetch_bills(now=date(2024, 4, 10)))
        assert [b.name for b in result] == ["Internet", "Electric", "Phone", "Rent"]
        assert [b.days_remaining for b in result] == [2, 5, 20, 21]
        assert result[2].next_due == date(2024, 4, 30)
        assert result[3].next_due == date(2024, 5, 1)

    def test_fetch_bills_due_today(self, tracker):
        result = run(tracker.fetch_bills(now=date(2024, 4, 15)))
        electric = next(b for b in result if b.name == "Electric")
        assert electric.days_remaining == 0
        assert electric.next_due == date(2024, 4, 15)

    def test_ties_keep_store_order(self, audit_logger, settings):
        first = RecurringBill(name="Water", amount=Decimal("30"), day_of_month=10)
        second = RecurringBill(name="Trash", amount=Decimal("20"), day_of_month=10)
        tracker = BillTracker(
            InMemoryBillStorage([first, second]),
            InMemoryLedgerStorage(),
            audit_logger,
            settings,
        )
        result = run(tracker.fetch_bills(now=date(2024, 4, 1)))
        assert [b.name for b in result] == ["Water", "Trash"]

    def test_add_bill_clamps_day_and_audits(self, tracker, audit_storage):
        bill = run(tracker.add_bill("  Gym ", "25.5", 42, category=" Health "))
        assert bill.name == "Gym"
        assert bill.day_of_month == 31
        assert bill.amount == Decimal("25.50")
        assert bill.category == "Health"
        assert audit_storage.events[-1].event_type == AuditEventType.BILL_ADDED

    @pytest.mark.parametrize("name,amount", [("", "10"), ("Gym", "-1"), ("Gym", "abc"), ("Gym", "nan")])
    def test_add_bill_rejects_bad_input(self, tracker, name, amount):
        with pytest.raises(ValueError):
            run(tracker.add_bill(name, amount, 5))

    def test_log_payment_writes_ledger_and_marks_paid(self, tracker, bills, audit_storage):
        rent = bills[0]
        entry = run(tracker.log_payment(rent))
        assert entry.item_name == "Rent (Recurring)"
        assert entry.category == "Bill"
        assert entry.quantity == 1
        assert entry.amount == Decimal("1200.00")
        assert tracker.is_paid(rent.id)
        assert audit_storage.events[-1].event_type == AuditEventType.BILL_PAID

    def test_log_payment_custom_amount(self, tracker, bills):
        entry = run(tracker.log_payment(bills[1], amount="90.10"))
        assert entry.amount == Decimal("90.10")

    def test_log_payment_rejects_negative_amount(self, tracker, bills):
        with pytest.raises(ValueError):
            run(tracker.log_payment(bills[1], amount=-3))
        assert not tracker.is_paid(bills[1].id)

    def test_failed_payment_is_not_marked_paid(self, bills, audit_logger, audit_storage, settings):
        tracker = BillTracker(
            InMemoryBillStorage(bills),
            FailingLedgerStorage(),
            audit_logger,
            settings,
        )
        with pytest.raises(StorageError):
            run(tracker.log_payment(bills[0]))
        assert not tracker.is_paid(bills[0].id)
        assert audit_storage.events[-1].event_type == AuditEventType.STORAGE_ERROR

    def test_paid_state_is_per_tracker(self, bills, tracker, settings):
        run(tracker.log_payment(bills[0]))
        fresh = BillTracker(InMemoryBillStorage(bills), InMemoryLedgerStorage(), settings=settings)
        assert not fresh.is_paid(bills[0].id)

    def test_urgency(self, tracker, bills):
        result = run(tracker.fetch_bills(now=date(2024, 4, 10)))
        by_name = {b.name: b for b in result}
        assert tracker.urgency(by_name["Internet"]) == BillUrgency.WARNING
        assert tracker.urgency(by_name["Rent"]) == BillUrgency.NORMAL

        run(tracker.log_payment(by_name["Internet"]))
        assert tracker.urgency(by_name["Internet"]) == BillUrgency.PAID

    def test_delete_bill(self, tracker, bills, audit_storage):
        assert run(tracker.delete_bill(bills[0].id)) is True
        assert run(tracker.delete_bill(bills[0].id)) is False
        names = [b.name for b in run(tracker.fetch_bills(now=date(2024, 4, 10)))]
        assert "Rent" not in names
        assert audit_storage.events[-1].event_type == AuditEventType.BILL_DELETED

    def test_total_monthly(self, bills):
        assert BillTracker.total_monthly(bills) == Decimal("1385")


class TestMaintenanceTracker:
    """Tests for MaintenanceTracker."""

    NOW = date(2024, 6, 1)

    @pytest.fixture
    def items(self):
        return [
            MaintenanceItem(name="Car", type="vehicle",
                            last_service_date="2024-01-01", service_interval_days=90),
            MaintenanceItem(name="Fridge", type="appliance",
                            last_service_date="2024-05-01", service_interval_days=365),
            MaintenanceItem(name="Bike", type="vehicle",
                            last_service_date="2024-04-01", service_interval_days=30),
            MaintenanceItem(name="Boiler", type="appliance",
                            last_service_date="garbage", service_interval_days=30),
        ]

    @pytest.fixture
    def storage(self, items):
        return InMemoryMaintenanceStorage(items)

    @pytest.fixture
    def tracker(self, storage, audit_logger):
        return MaintenanceTracker(storage, audit_logger)

    def test_fetch_items_overdue_first(self, tracker):
        result = run(tracker.fetch_items(now=self.NOW))
        # Car: due 2024-03-31 (62 overdue), Bike: due 2024-05-01 (31 overdue)
        assert [i.name for i in result[:2]] == ["Car", "Bike"]
        assert {i.name for i in result[2:]} == {"Fridge", "Boiler"}

    def test_status_and_days(self, items):
        car, fridge, bike, boiler = items
        assert MaintenanceTracker.days_overdue(car, self.NOW) == 62
        assert MaintenanceTracker.status(car, self.NOW) == MaintenanceStatus.OVERDUE
        assert MaintenanceTracker.status(fridge, self.NOW) == MaintenanceStatus.HEALTHY
        assert MaintenanceTracker.days_overdue(boiler, self.NOW) == 0
        assert MaintenanceTracker.status(boiler, self.NOW) == MaintenanceStatus.HEALTHY

    def test_progress(self, items):
        car, fridge, bike, boiler = items
        assert MaintenanceTracker.progress(car, self.NOW) == 100.0
        assert MaintenanceTracker.progress(boiler, self.NOW) == 0.0

    def test_overdue_count(self, items):
        assert MaintenanceTracker.overdue_count(items, self.NOW) == 2

    def test_log_service_resets_overdue(self, tracker, storage, items, audit_storage):
        car = items[0]
        next_due = run(tracker.log_service(car.id, service_date="2024-06-01", cost="120"))
        assert next_due == date(2024, 8, 30)

        updated = run(storage.get_item(car.id))
        assert updated.last_service_date == "2024-06-01"
        assert MaintenanceTracker.status(updated, self.NOW) == MaintenanceStatus.HEALTHY

        assert storage.logs[-1].cost == Decimal("120.00")
        assert audit_storage.events[-1].event_type == AuditEventType.SERVICE_LOGGED

    def test_log_service_negative_cost_is_zero(self, tracker, storage, items):
        run(tracker.log_service(items[2].id, service_date=date(2024, 6, 1), cost=-40))
        assert storage.logs[-1].cost == Decimal("0")

    def test_log_service_unknown_item(self, tracker):
        with pytest.raises(NotFoundError):
            run(tracker.log_service(uuid4()))

    def test_add_item_defaults_to_today(self, tracker):
        item = run(tracker.add_item("Dishwasher", "appliance", service_interval_days=180))
        assert item.last_service_date == date.today().isoformat()
        assert MaintenanceTracker.days_overdue(item) == -180

    def test_add_item_rejects_empty_name(self, tracker):
        with pytest.raises(ValueError):
            run(tracker.add_item("  "))

    @pytest.mark.parametrize("interval", [-1, "weekly"])
    def test_add_item_rejects_bad_interval(self, tracker, interval):
        with pytest.raises(ValueError):
            run(tracker.add_item("Dishwasher", "appliance", service_interval_days=interval))

    def test_stored_negative_interval_still_counts(self):
        item = MaintenanceItem(name="Scooter", last_service_date="2024-06-01", service_interval_days=-5)
        assert MaintenanceTracker.days_overdue(item, date(2024, 6, 1)) == 5
        assert MaintenanceTracker.overdue_count([item], date(2024, 6, 1)) == 1

    def test_update_item(self, tracker, storage, items, audit_storage):
        fridge = items[1]
        assert run(tracker.update_item(fridge.id, service_interval_days=30, notes=None)) is True
        updated = run(storage.get_item(fridge.id))
        assert updated.service_interval_days == 30
        assert audit_storage.events[-1].details["fields"] == ["service_interval_days"]

    def test_update_item_no_fields_is_noop(self, tracker, items, audit_storage):
        before = len(audit_storage.events)
        assert run(tracker.update_item(items[1].id)) is True
        assert len(audit_storage.events) == before

    @pytest.mark.parametrize("updates", [
        {"color": "red"},
        {"service_interval_days": -5},
        {"last_service_date": "whenever"},
        {"name": " "},
    ])
    def test_update_item_rejects_bad_fields(self, tracker, items, updates):
        with pytest.raises(ValueError):
            run(tracker.update_item(items[1].id, **updates))

    def test_update_missing_item(self, tracker):
        with pytest.raises(NotFoundError):
            run(tracker.update_item(uuid4(), name="Ghost"))

    def test_delete_item(self, tracker, items):
        assert run(tracker.delete_item(items[0].id)) is True
        assert run(tracker.delete_item(items[0].id)) is False


class TestDashboardService:
    """Tests for DashboardService."""

    NOW = datetime(2024, 6, 15, 12, 0)

    @pytest.fixture
    def ledger(self):
        return InMemoryLedgerStorage([
            LedgerEntry(item_name="Groceries", amount=Decimal("54.20"),
                        created_at=datetime(2024, 6, 2, 10, 0)),
            LedgerEntry(item_name="Rent (Recurring)", category="Bill", amount=Decimal("1200"),
                        created_at=datetime(2024, 6, 1, 9, 0)),
            LedgerEntry(item_name="Old fuel", amount=Decimal("40"),
                        created_at=datetime(2024, 5, 31, 23, 0)),
        ])

    @pytest.fixture
    def maintenance(self):
        return InMemoryMaintenanceStorage([
            MaintenanceItem(name="Car", last_service_date="2024-01-01", service_interval_days=90),
            MaintenanceItem(name="Oven", type="appliance",
                            last_service_date="2024-06-01", service_interval_days=365),
        ])

    def test_fetch_stats(self, ledger, maintenance, settings):
        dashboard = DashboardService(ledger, maintenance, settings=settings, tz=timezone.utc)
        stats = run(dashboard.fetch_stats(now=self.NOW))
        assert stats.month_spend == Decimal("1254.20")
        assert stats.overdue_count == 1
        assert [e.item_name for e in stats.recent_transactions] == [
            "Groceries", "Rent (Recurring)", "Old fuel",
        ]

    def test_recent_activity_limit(self, ledger, maintenance):
        settings = AppSettings(_env_file=None, recent_activity_limit=2)
        dashboard = DashboardService(ledger, maintenance, settings=settings, tz=timezone.utc)
        stats = run(dashboard.fetch_stats(now=self.NOW))
        assert len(stats.recent_transactions) == 2

    def test_failing_ledger_still_reports_maintenance(self, maintenance, settings):
        dashboard = DashboardService(FailingLedgerStorage(), maintenance, settings=settings, tz=timezone.utc)
        stats = run(dashboard.fetch_stats(now=self.NOW))
        assert stats.month_spend == Decimal("0")
        assert stats.recent_transactions == []
        assert stats.overdue_count == 1

    def test_failures_are_audited(self, maintenance, settings, audit_logger, audit_storage):
        dashboard = DashboardService(FailingLedgerStorage(), maintenance, audit_logger, settings)
        run(dashboard.fetch_stats(now=self.NOW))
        errors = [e for e in audit_storage.events if e.event_type == AuditEventType.SYSTEM_ERROR]
        assert sorted(e.details["part"] for e in errors) == ["recent_activity", "spending"]
        assert errors[0].error_message == "ledger unavailable"

    def test_month_is_taken_in_local_time(self, maintenance, settings):
        # 21:00 on March 31 at UTC-5 is already April 1 in UTC
        late_march = LedgerEntry(
            item_name="Takeout",
            amount=Decimal("30"),
            created_at=datetime(2024, 3, 31, 21, 0, tzinfo=EASTERN_STANDARD),
        )
        early_march = LedgerEntry(
            item_name="Late February",
            amount=Decimal("5"),
            created_at=datetime(2024, 3, 1, 3, 0, tzinfo=timezone.utc),
        )
        ledger = InMemoryLedgerStorage([late_march, early_march])
        dashboard = DashboardService(ledger, maintenance, settings=settings, tz=EASTERN_STANDARD)

        march = run(dashboard.fetch_stats(now=date(2024, 3, 15)))
        april = run(dashboard.fetch_stats(now=date(2024, 4, 15)))

        assert march.month_spend == Decimal("30")
        assert april.month_spend == Decimal("0")

    def test_string_reference_date(self, ledger, maintenance, settings):
        dashboard = DashboardService(ledger, maintenance, settings=settings, tz=timezone.utc)
        stats = run(dashboard.fetch_stats(now="2024-06-15"))
        assert stats.month_spend == Decimal("1254.20")

    def test_unreadable_reference_date(self, ledger, maintenance, settings):
        dashboard = DashboardService(ledger, maintenance, settings=settings)
        with pytest.raises(ValueError):
            run(dashboard.fetch_stats(now="mid-june"))

    def test_log_quick_expense(self, ledger, maintenance, settings, audit_logger, audit_storage):
        dashboard = DashboardService(ledger, maintenance, audit_logger, settings)
        entry = run(dashboard.log_quick_expense("Coffee", "", "3.5"))
        assert entry.category == "Other"
        assert entry.amount == Decimal("3.50")
        assert audit_storage.events[-1].event_type == AuditEventType.EXPENSE_LOGGED

    def test_log_quick_expense_rejects_bad_amount(self, ledger, maintenance, settings):
        dashboard = DashboardService(ledger, maintenance, settings=settings, tz=timezone.utc)
        with pytest.raises(ValueError):
            run(dashboard.log_quick_expense("Coffee", "Food", "free"))


class TestLedgerTracker:
    """Tests for LedgerTracker."""

    @pytest.fixture
    def ledger(self):
        return InMemoryLedgerStorage()

    @pytest.fixture
    def tracker(self, ledger, audit_logger):
        return LedgerTracker(ledger, audit_logger)

    def test_add_expense(self, tracker, audit_storage):
        entry = run(tracker.add_transaction("Groceries", "42.10", category="Food"))
        assert entry.transaction_type == TransactionType.EXPENSE
        assert entry.category == "Food"
        assert entry.is_settled is None
        assert audit_storage.events[-1].event_type == AuditEventType.TRANSACTION_LOGGED

    def test_add_income_defaults_category(self, tracker):
        entry = run(tracker.add_transaction("Salary", 3000, transaction_type="income"))
        assert entry.transaction_type == TransactionType.INCOME
        assert entry.category == "Other"

    def test_debt_starts_unsettled(self, tracker):
        entry = run(tracker.add_transaction(
            "Concert tickets", 80, transaction_type="debt_given", entity_name=" Alex ",
        ))
        assert entry.is_debt
        assert entry.entity_name == "Alex"
        assert entry.is_settled is False

    def test_debt_requires_entity(self, tracker):
        with pytest.raises(ValueError):
            run(tracker.add_transaction("Loan", 80, transaction_type="debt_taken"))

    @pytest.mark.parametrize("name,amount,kind", [
        ("", 10, "expense"),
        ("Loan", -5, "expense"),
        ("Loan", 10, "gift"),
    ])
    def test_rejects_bad_input(self, tracker, name, amount, kind):
        with pytest.raises(ValueError):
            run(tracker.add_transaction(name, amount, transaction_type=kind))

    def test_custom_timestamp(self, tracker):
        entry = run(tracker.add_transaction("Fuel", 60, created_at="2024-05-03T08:15:00Z"))
        assert entry.created_at == datetime(2024, 5, 3, 8, 15, tzinfo=timezone.utc)

    def test_fetch_ledger_filters(self, tracker):
        run(tracker.add_transaction("Groceries", 20))
        lent = run(tracker.add_transaction("Rent share", 300, "debt_given", entity_name="Jo"))
        borrowed = run(tracker.add_transaction("Taxi", 15, "debt_taken", entity_name="Kim"))
        run(tracker.settle_debt(borrowed.id))

        unsettled = run(tracker.fetch_ledger(is_settled=False))
        assert {e.item_name for e in unsettled} == {"Groceries", "Rent share"}

        settled = run(tracker.fetch_ledger(is_settled=True))
        assert [e.id for e in settled] == [borrowed.id]

        given = run(tracker.fetch_ledger(transaction_type="debt_given"))
        assert [e.id for e in given] == [lent.id]

    def test_settle_debt(self, tracker, audit_storage):
        debt = run(tracker.add_transaction("Loan", 100, "debt_given", entity_name="Jo"))
        assert run(tracker.settle_debt(debt.id)) is True
        assert audit_storage.events[-1].event_type == AuditEventType.DEBT_SETTLED
        assert run(tracker.fetch_ledger(is_settled=True))[0].is_settled is True

    def test_settle_unknown_entry(self, tracker):
        with pytest.raises(NotFoundError):
            run(tracker.settle_debt(uuid4()))

    def test_failed_write_is_audited(self, audit_logger, audit_storage):
        tracker = LedgerTracker(FailingLedgerStorage(), audit_logger)
        with pytest.raises(StorageError):
            run(tracker.add_transaction("Groceries", 20))
        assert audit_storage.events[-1].event_type == AuditEventType.STORAGE_ERROR

    def test_outstanding_balance(self):
        entries = [
            LedgerEntry(item_name="Lent", amount=Decimal("100"),
                        transaction_type="debt_given", entity_name="Jo", is_settled=False),
            LedgerEntry(item_name="Borrowed", amount=Decimal("30"),
                        transaction_type="debt_taken", entity_name="Kim", is_settled=False),
            LedgerEntry(item_name="Repaid", amount=Decimal("500"),
                        transaction_type="debt_given", entity_name="Al", is_settled=True),
            LedgerEntry(item_name="Groceries", amount=Decimal("12")),
        ]
        assert LedgerTracker.outstanding_balance(entries) == Decimal("70")


class TestAnalyticsService:
    """Tests for AnalyticsService."""

    @pytest.fixture
    def ledger(self):
        return InMemoryLedgerStorage([
            LedgerEntry(item_name="Groceries", category="Food", amount=Decimal("60"),
                        created_at=datetime(2024, 2, 3, 10, 0)),
            LedgerEntry(item_name="Bakery", category="Food", amount=Decimal("15"),
                        created_at=datetime(2024, 2, 3, 18, 0)),
            LedgerEntry(item_name="Rent (Recurring)", category="Bill", amount=Decimal("25"),
                        created_at=datetime(2024, 2, 29, 9, 0)),
            LedgerEntry(item_name="January", category="Food", amount=Decimal("99"),
                        created_at=datetime(2024, 1, 31, 9, 0)),
        ])

    def test_category_totals(self, ledger):
        data = run(AnalyticsService(ledger, tz=timezone.utc).fetch_analytics(now=date(2024, 2, 10)))
        assert data.total_spent == Decimal("100")
        assert [(c.name, c.value, c.percentage) for c in data.category_data] == [
            ("Food", Decimal("75"), 75.0),
            ("Bill", Decimal("25"), 25.0),
        ]

    def test_daily_series_covers_every_day(self, ledger):
        data = run(AnalyticsService(ledger, tz=timezone.utc).fetch_analytics(now=date(2024, 2, 10)))
        assert len(data.daily_data) == 29
        assert [d.day for d in data.daily_data] == list(range(1, 30))
        assert data.daily_data[0].on_date == date(2024, 2, 1)
        assert data.daily_data[2].amount == Decimal("75")
        assert data.daily_data[28].amount == Decimal("25")
        assert data.daily_data[1].amount == Decimal("0")

    def test_days_follow_local_time(self):
        ledger = InMemoryLedgerStorage([
            LedgerEntry(item_name="Dinner", category="Food", amount=Decimal("40"),
                        created_at=datetime(2024, 3, 1, 2, 0, tzinfo=timezone.utc)),
        ])
        data = run(AnalyticsService(ledger, tz=EASTERN_STANDARD).fetch_analytics(now=date(2024, 2, 10)))
        assert data.daily_data[28].on_date == date(2024, 2, 29)
        assert data.daily_data[28].amount == Decimal("40")

    def test_empty_month(self):
        data = run(AnalyticsService(InMemoryLedgerStorage(), tz=timezone.utc).fetch_analytics(now="2024-04-02"))
        assert data.category_data == []
        assert data.total_spent == Decimal("0")
        assert len(data.daily_data) == 30
        assert all(d.amount == Decimal("0") for d in data.daily_data)

    def test_failing_ledger_is_empty_month(self):
        data = run(AnalyticsService(FailingLedgerStorage()).fetch_analytics(now=date(2024, 4, 2)))
        assert data.total_spent == Decimal("0")
        assert len(data.daily_data) == 30
