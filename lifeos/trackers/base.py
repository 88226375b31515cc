"""Shared helpers for the trackers."""

import calendar
from datetime import date, datetime, time, timezone, tzinfo
from decimal import Decimal, InvalidOperation
from typing import Optional


def parse_amount(value, field: str = "amount") -> Decimal:
    """
    Read a user-supplied money amount.

    Raises:
        ValueError: If the value is not a finite, non-negative number
    """
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"Enter a valid {field}: {value!r}")
    if not amount.is_finite() or amount < 0:
        raise ValueError(f"Enter a valid {field}: {value!r}")
    return amount.quantize(Decimal("0.01"))


def _localize(value: datetime, tz: Optional[tzinfo]) -> datetime:
    # Naive datetimes are wall-clock times in ``tz`` (system zone when None)
    if tz is None:
        return value.astimezone()
    return value.replace(tzinfo=tz)


def month_bounds(
    reference: date,
    tz: Optional[tzinfo] = None,
) -> tuple[datetime, datetime]:
    """
    First and last instant of the calendar month containing ``reference``.

    The month is taken in ``tz`` (the system time zone by default) and both
    bounds are returned in UTC, ready to compare with ledger timestamps.
    """
    last_day = calendar.monthrange(reference.year, reference.month)[1]
    start = datetime(reference.year, reference.month, 1)
    end = datetime.combine(reference.replace(day=last_day), time.max)
    return (
        _localize(start, tz).astimezone(timezone.utc),
        _localize(end, tz).astimezone(timezone.utc),
    )


def local_date(value: datetime, tz: Optional[tzinfo] = None) -> date:
    """Calendar date of a UTC timestamp in ``tz`` (the system time zone by default)."""
    return value.astimezone(tz).date()
