"""
status_resolver.py
------------------
Derives the status an appointment should be *shown* with.

Stored vs resolved status:
- The stored status only changes on explicit action or reconciliation.
- The resolved status also looks at the clock: a "Booked" appointment whose
  scheduled instant has passed resolves to "Completed" even before the
  reconciler has persisted it. Every other "Booked" appointment resolves to
  "Upcoming".

Everything here is pure and total: no I/O, no global clock, and malformed
dates/times resolve to "Upcoming" instead of raising.
"""

from datetime import date, datetime, time, timezone as dt_timezone

from ..models import AppointmentStatus
from .clock import shop_timezone

UPCOMING = "Upcoming"
COMPLETED = AppointmentStatus.COMPLETED.value
CANCELLED = AppointmentStatus.CANCELLED.value

DISPLAY_STATUSES = (UPCOMING, COMPLETED, CANCELLED)

# Explicit (admin/user) transitions. "Completed" is reached automatically too,
# but only the reconciler and edits may move an appointment there from Booked.
ALLOWED_TRANSITIONS = {
    AppointmentStatus.BOOKED.value: {AppointmentStatus.COMPLETED.value, AppointmentStatus.CANCELLED.value},
    AppointmentStatus.COMPLETED.value: {AppointmentStatus.CANCELLED.value},
    AppointmentStatus.CANCELLED.value: set(),
}


def to_calendar_date(value):
    """
    Normalize a stored date to a `date`.

    Accepts date objects, datetimes (aware ones are taken in UTC, like an ISO
    string would be) and strings such as "2025-03-01" or
    "2025-03-01T00:00:00.000Z". Returns None when nothing usable is found.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(dt_timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        head = value.strip().split("T", 1)[0].split(" ", 1)[0]
        try:
            return date.fromisoformat(head)
        except ValueError:
            return None
    return None


def parse_clock_time(value):
    """Parse "HH:MM" (seconds tolerated) into a `time`; None if malformed."""
    if isinstance(value, time):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    parts = value.strip().split(":")
    if len(parts) < 2:
        return None
    try:
        hour, minute = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return None
    return time(hour, minute)


def scheduled_instant(appt_date, appt_time, tz=None):
    """
    Combine a stored date and "HH:MM" time into an aware datetime in the shop
    time zone, or None if either part is malformed.
    """
    day = to_calendar_date(appt_date)
    clock_time = parse_clock_time(appt_time)
    if day is None or clock_time is None:
        return None
    return datetime.combine(day, clock_time).replace(tzinfo=tz or shop_timezone())


def has_time_passed(appt_date, appt_time, now, tz=None):
    """True when the scheduled instant is strictly before `now`."""
    instant = scheduled_instant(appt_date, appt_time, tz)
    return instant is not None and instant < now


def resolve_status(appointment, now, tz=None):
    """
    Display status of an appointment at instant `now`.

    Returns "Completed" or "Cancelled" unchanged when stored that way;
    otherwise "Completed" if the scheduled instant has passed, else "Upcoming".
    """
    stored = getattr(appointment, "status", None)
    if stored in (COMPLETED, CANCELLED):
        return stored
    if has_time_passed(appointment.date, appointment.time, now, tz):
        return COMPLETED
    return UPCOMING


def is_expired(appointment, now, tz=None):
    """Stored "Booked" but resolved "Completed": what a sweep persists."""
    return (
        getattr(appointment, "status", None) == AppointmentStatus.BOOKED
        and resolve_status(appointment, now, tz) == COMPLETED
    )


def status_after_reschedule(current_status, appt_date, appt_time, now, tz=None):
    """
    Stored status to save after an admin edit moves an appointment.

    Cancelled stays cancelled. Anything else follows the new scheduled
    instant: already passed -> Completed, otherwise back to Booked.
    """
    if current_status == CANCELLED:
        return CANCELLED
    if has_time_passed(appt_date, appt_time, now, tz):
        return COMPLETED
    return AppointmentStatus.BOOKED.value


def can_transition(current_status, new_status):
    if current_status == new_status:
        return True
    return new_status in ALLOWED_TRANSITIONS.get(current_status, set())


def display_sort_key(appointment, now, tz=None):
    """Completed appointments sink to the bottom, the rest by date then time."""
    day = to_calendar_date(appointment.date) or date.max
    return (
        resolve_status(appointment, now, tz) == COMPLETED,
        day,
        appointment.time or "",
    )


def filter_by_display_status(appointments, status, now, tz=None):
    if not status:
        return list(appointments)
    return [a for a in appointments if resolve_status(a, now, tz) == status]
