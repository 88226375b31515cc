"""
Recurrence Engine

Pure calendar arithmetic shared by the bill tracker and the maintenance
tracker. Nothing here touches storage or the clock directly: every function
takes an optional ``now`` and falls back to today only when it is omitted.

Two anchoring rules are supported:
1. Day-of-month anchor (bills) - recurs on the same calendar day each month,
   clamped to the last day of shorter months.
2. Elapsed-interval anchor (maintenance) - recurs a fixed number of days
   after the last recorded service.

DESIGN DECISION: All results are plain ``date`` objects. Time of day is not
part of the semantics, so datetimes are truncated on the way in.
"""

import calendar
from datetime import date, datetime, timedelta
from typing import Optional, Union

from lifeos.models.schedule import BillUrgency, MaintenanceStatus


DateLike = Union[date, datetime, str]

MIN_DAY_OF_MONTH = 1
MAX_DAY_OF_MONTH = 31


def today() -> date:
    return date.today()


def parse_date(value: Optional[DateLike]) -> Optional[date]:
    """
    Parse a stored date value into a ``date``.

    Accepts ``date``, ``datetime`` and ISO 8601 strings, either a plain
    ``YYYY-MM-DD`` or a full timestamp such as ``2024-03-01T09:30:00Z``.
    Returns None for anything that cannot be read as a date.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def resolve_now(now: Optional[DateLike]) -> date:
    """Read ``now`` as a date, defaulting to today. Unreadable values raise ValueError."""
    if now is None:
        return today()
    resolved = parse_date(now)
    if resolved is None:
        raise ValueError(f"Invalid reference date: {now!r}")
    return resolved


def clamp_day_of_month(day_of_month) -> int:
    """
    Clamp a day-of-month anchor into [1, 31].

    Non-numeric input (and NaN) becomes 1. Infinities clamp to the nearest
    bound.
    """
    try:
        day = int(day_of_month)
    except OverflowError:
        return MAX_DAY_OF_MONTH if day_of_month > 0 else MIN_DAY_OF_MONTH
    except (TypeError, ValueError):
        return MIN_DAY_OF_MONTH
    return max(MIN_DAY_OF_MONTH, min(MAX_DAY_OF_MONTH, day))


def calculate_next_due_date(day_of_month, now: Optional[DateLike] = None) -> date:
    """
    Next occurrence of a monthly day-of-month anchor.

    If today's day is on or before the anchor the due date is in the current
    month, otherwise it is in the next month. The anchor is clamped to the
    target month's last day, so day 31 in February resolves to Feb 28/29.

    Args:
        day_of_month: Anchor day, expected 1-31 (clamped if not)
        now: Reference date, defaults to today

    Returns:
        The due date
    """
    reference = resolve_now(now)
    anchor = clamp_day_of_month(day_of_month)

    year, month = reference.year, reference.month
    if reference.day > anchor:
        if month == 12:
            year, month = year + 1, 1
        else:
            month += 1

    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(anchor, last_day))


def get_days_remaining(due_date: DateLike, now: Optional[DateLike] = None) -> int:
    """
    Whole days from ``now`` to ``due_date``.

    0 = due today, 1 = tomorrow, negative = already past.

    Raises:
        ValueError: If ``due_date`` cannot be parsed
    """
    due = parse_date(due_date)
    if due is None:
        raise ValueError(f"Invalid due date: {due_date!r}")
    return (due - resolve_now(now)).days


def get_next_service_date(
    last_service_date: Optional[DateLike],
    service_interval_days: int,
) -> Optional[date]:
    """Last service date plus the interval, or None if the date is unreadable."""
    last = parse_date(last_service_date)
    if last is None:
        return None
    try:
        return last + timedelta(days=int(service_interval_days))
    except (OverflowError, TypeError, ValueError):
        return None


def get_days_overdue(
    last_service_date: Optional[DateLike],
    service_interval_days: int,
    now: Optional[DateLike] = None,
) -> int:
    """
    Days past the next service date.

    Positive = overdue by that many days. Zero or negative = healthy, with
    the negated value being the days left until service is due.

    A malformed ``last_service_date`` returns 0 (treated as not overdue) so a
    single bad record cannot break a whole list.
    """
    due = get_next_service_date(last_service_date, service_interval_days)
    if due is None:
        return 0
    return (resolve_now(now) - due).days


def get_service_progress(
    last_service_date: Optional[DateLike],
    service_interval_days: int,
    now: Optional[DateLike] = None,
) -> float:
    """
    Share of the service interval already elapsed, as a percentage in [0, 100].

    An interval of 0 is measured as 1 day.
    """
    last = parse_date(last_service_date)
    if last is None:
        return 0.0
    try:
        interval = int(service_interval_days or 0) or 1
    except (OverflowError, TypeError, ValueError):
        interval = 1
    elapsed = (resolve_now(now) - last).days
    return min(100.0, max(0.0, elapsed / interval * 100))


def get_maintenance_status(days_overdue: int) -> MaintenanceStatus:
    if days_overdue > 0:
        return MaintenanceStatus.OVERDUE
    return MaintenanceStatus.HEALTHY


def get_bill_urgency(
    days_remaining: int,
    paid: bool = False,
    urgent_within_days: int = 1,
    warning_within_days: int = 3,
) -> BillUrgency:
    """Classify a bill by how close its due date is."""
    if paid:
        return BillUrgency.PAID
    if days_remaining <= urgent_within_days:
        return BillUrgency.URGENT
    if days_remaining <= warning_within_days:
        return BillUrgency.WARNING
    return BillUrgency.NORMAL
