"""
appointment_store.py
--------------------
Async persistence contract for appointments, plus the Django ORM backend.

Writes can carry a SlotKey (the date, time and service type the caller last
saw). The write only goes through if the stored row still matches, so an
update computed from a stale copy of a rescheduled appointment is rejected
with AppointmentConflict instead of overwriting the new schedule.
"""

import abc
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from django.utils import timezone

from ..models import Appointment, AppointmentStatus
from .status_resolver import to_calendar_date

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({
    "status",
    "date",
    "time",
    "service_type",
    "day_care_options",
    "total_price",
    "notes",
    "pet_name",
    "pet_type",
    "owner_name",
    "owner_email",
    "owner_phone",
})


class AppointmentStoreError(Exception):
    """Base class for persistence failures."""


class AppointmentNotFound(AppointmentStoreError):
    pass


class AppointmentConflict(AppointmentStoreError):
    """The stored slot no longer matches the one the caller saw."""


@dataclass(frozen=True)
class SlotKey:
    """
    Date, time and (optionally) service type a writer last saw. A key
    without a service type matches on date and time only.
    """
    date: date
    time: str
    service_type: Optional[str] = None

    @classmethod
    def from_appointment(cls, appointment):
        return cls(
            date=to_calendar_date(appointment.date),
            time=appointment.time or "",
            service_type=appointment.service_type or "",
        )

    @classmethod
    def parse(cls, date_time, service_type=None):
        """
        Build a key from the admin form's "YYYY-MM-DDTHH:MM" value.

        Raises ValueError when the value has no usable date or time part.
        """
        if not date_time or "T" not in date_time:
            raise ValueError(f"Expected YYYY-MM-DDTHH:MM, got {date_time!r}")
        day_part, time_part = date_time.split("T", 1)
        day = to_calendar_date(day_part)
        if day is None or len(time_part) < 5:
            raise ValueError(f"Expected YYYY-MM-DDTHH:MM, got {date_time!r}")
        return cls(date=day, time=time_part[:5], service_type=service_type or None)

    def as_filter(self):
        lookup = {"date": self.date, "time": self.time}
        if self.service_type is not None:
            lookup["service_type"] = self.service_type
        return lookup

    def matches(self, appointment):
        current = SlotKey.from_appointment(appointment)
        if (current.date, current.time) != (self.date, self.time):
            return False
        return self.service_type is None or current.service_type == self.service_type


class AppointmentStore(abc.ABC):
    """Persistence seam used by the reconciler and the appointment manager."""

    @abc.abstractmethod
    async def list_all(self):
        """Every appointment."""

    @abc.abstractmethod
    async def get(self, appointment_id):
        """One appointment, or AppointmentNotFound."""

    @abc.abstractmethod
    async def update(self, appointment_id, patch, disambiguator=None):
        """Apply `patch` and return the stored record."""

    @abc.abstractmethod
    async def delete(self, appointment_id, disambiguator=None):
        """Remove the appointment permanently."""


def validate_patch(patch):
    """
    Check a patch before it reaches the database; returns a cleaned copy.

    Raises:
        ValueError: unknown fields, an unknown status or an unreadable date
    """
    unknown = set(patch) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update field(s): {', '.join(sorted(unknown))}")
    cleaned = dict(patch)
    if "status" in cleaned and cleaned["status"] not in AppointmentStatus.values:
        raise ValueError(f"Invalid status: {cleaned['status']!r}")
    if "date" in cleaned:
        day = to_calendar_date(cleaned["date"])
        if day is None:
            raise ValueError(f"Invalid date: {cleaned['date']!r}")
        cleaned["date"] = day
    return cleaned


class DjangoAppointmentStore(AppointmentStore):
    """AppointmentStore backed by the Django ORM (async API)."""

    def __init__(self, queryset=None):
        self._queryset = queryset if queryset is not None else Appointment.objects.all()
        # always clone before evaluating; a shared queryset would cache rows

    def _filter(self, appointment_id, disambiguator):
        qs = self._queryset.filter(pk=appointment_id)
        if disambiguator is not None:
            qs = qs.filter(**disambiguator.as_filter())
        return qs

    async def _missing_or_conflict(self, appointment_id):
        if await self._queryset.filter(pk=appointment_id).aexists():
            return AppointmentConflict(
                f"Appointment {appointment_id} was rescheduled or changed service since it was loaded."
            )
        return AppointmentNotFound(f"Appointment {appointment_id} not found.")

    async def list_all(self):
        return [appointment async for appointment in self._queryset.all()]

    async def get(self, appointment_id):
        try:
            return await self._queryset.aget(pk=appointment_id)
        except (Appointment.DoesNotExist, ValueError, TypeError):
            raise AppointmentNotFound(f"Appointment {appointment_id} not found.")

    async def update(self, appointment_id, patch, disambiguator=None):
        cleaned = validate_patch(patch)
        appointment = await self.get(appointment_id)

        if disambiguator is not None and not disambiguator.matches(appointment):
            raise AppointmentConflict(
                f"Appointment {appointment_id} was rescheduled or changed service since it was loaded."
            )

        changes = {field: value for field, value in cleaned.items() if getattr(appointment, field) != value}
        if not changes:
            return appointment

        rows = await self._filter(appointment_id, disambiguator).aupdate(updated_at=timezone.now(), **changes)
        if rows == 0:
            raise await self._missing_or_conflict(appointment_id)

        await appointment.arefresh_from_db()
        logger.debug("Appointment %s updated: %s", appointment_id, sorted(changes))
        return appointment

    async def delete(self, appointment_id, disambiguator=None):
        deleted, _ = await self._filter(appointment_id, disambiguator).adelete()
        if not deleted:
            raise await self._missing_or_conflict(appointment_id)
        logger.info("Appointment %s deleted", appointment_id)
