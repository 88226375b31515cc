"""Recurrence engine package."""

from lifeos.recurrence.engine import (
    DateLike,
    calculate_next_due_date,
    clamp_day_of_month,
    get_bill_urgency,
    get_days_overdue,
    get_days_remaining,
    get_maintenance_status,
    get_next_service_date,
    get_service_progress,
    parse_date,
    resolve_now,
    today,
)

__all__ = [
    "DateLike",
    "calculate_next_due_date",
    "clamp_day_of_month",
    "get_bill_urgency",
    "get_days_overdue",
    "get_days_remaining",
    "get_maintenance_status",
    "get_next_service_date",
    "get_service_progress",
    "parse_date",
    "resolve_now",
    "today",
]
