"""
appointment_manager.py
----------------------
Coordinates booking creation, admin edits, cancellation and deletion.

Notes:
- Creation is synchronous (used straight from the booking API inside a
  transaction). Everything that changes an existing appointment goes through
  the async AppointmentStore so it shares the reconciler's conditional writes.
- An edit recomputes status against the new scheduled time: moving a
  completed appointment into the future books it again, moving it into the
  past completes it. Cancelled appointments stay cancelled.
- The stored total_price is refreshed on every create/edit.
"""

import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from ..models import Appointment, AppointmentStatus, PetType
from .appointment_store import DjangoAppointmentStore, SlotKey
from .clock import system_clock
from .price_calculator import is_member, normalize_day_care, quote_price
from .reconciler import apply_sweep, sweep_once
from .service_catalog import ServiceCatalog
from .status_resolver import (
    CANCELLED,
    COMPLETED,
    can_transition,
    parse_clock_time,
    status_after_reschedule,
    to_calendar_date,
)

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({
    "date",
    "time",
    "service_type",
    "day_care_options",
    "notes",
    "pet_name",
    "pet_type",
    "owner_name",
    "owner_email",
    "owner_phone",
})


class InvalidTransition(Exception):
    """The requested status change is not allowed from the current status."""


def _clean_schedule(appt_date, appt_time):
    day = to_calendar_date(appt_date)
    if day is None:
        raise ValidationError(f"Invalid date: {appt_date!r}. Use YYYY-MM-DD.")
    clock_time = parse_clock_time(appt_time)
    if clock_time is None:
        raise ValidationError(f"Invalid time: {appt_time!r}. Use HH:MM (24-hour).")
    return day, clock_time.strftime("%H:%M")


class AppointmentManager:
    def __init__(self, store=None, catalog=None, clock=system_clock):
        self.store = store or DjangoAppointmentStore()
        self.catalog = catalog or ServiceCatalog()
        self.clock = clock

    # -------------------------
    # Booking
    # -------------------------
    @transaction.atomic
    def create_appointment(self, *, pet_name, pet_type, owner_name, owner_email, owner_phone,
                           service_type, date, time, day_care_options=None, notes="", user=None):
        """
        Book an appointment. Status starts as Booked and total_price is a
        snapshot of the current catalog price.

        Raises:
            ValidationError: bad schedule or pet type
        """
        day, clock_time = _clean_schedule(date, time)
        if pet_type not in PetType.values:
            raise ValidationError(f"Pet type must be one of: {', '.join(PetType.values)}.")

        day_care = normalize_day_care(day_care_options)
        breakdown = quote_price(service_type, day_care, user is not None, self.catalog.snapshot())

        appointment = Appointment.objects.create(
            user=user,
            pet_name=pet_name,
            pet_type=pet_type,
            owner_name=owner_name,
            owner_email=owner_email,
            owner_phone=owner_phone,
            service_type=service_type,
            date=day,
            time=clock_time,
            status=AppointmentStatus.BOOKED,
            day_care_options=day_care,
            total_price=breakdown.total_price,
            notes=notes or "",
        )
        logger.info("Booked appointment %s: %s on %s %s", appointment.id, service_type, day, clock_time)
        return appointment

    # -------------------------
    # Admin edits
    # -------------------------
    async def edit_appointment(self, appointment_id, changes, disambiguator=None):
        """
        Apply admin form changes and recompute status and price.

        Args:
            appointment_id: appointment to change
            changes: dict of EDITABLE_FIELDS
            disambiguator: SlotKey the admin loaded; defaults to the current slot

        Raises:
            AppointmentNotFound, AppointmentConflict, ValidationError
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot edit field(s): {', '.join(sorted(unknown))}")

        current = await self.store.get(appointment_id)
        if disambiguator is None:
            disambiguator = SlotKey.from_appointment(current)

        patch = dict(changes)
        day, clock_time = _clean_schedule(
            patch.get("date", current.date),
            patch.get("time", current.time),
        )
        patch["date"], patch["time"] = day, clock_time
        if "pet_type" in patch and patch["pet_type"] not in PetType.values:
            raise ValidationError(f"Pet type must be one of: {', '.join(PetType.values)}.")

        day_care = normalize_day_care(patch.get("day_care_options", current.day_care_options))
        patch["day_care_options"] = day_care
        patch["status"] = status_after_reschedule(current.status, day, clock_time, self.clock())

        service_type = patch.get("service_type", current.service_type)
        snapshot = await self.catalog.asnapshot()
        patch["total_price"] = quote_price(service_type, day_care, is_member(current), snapshot).total_price

        updated = await self.store.update(appointment_id, patch, disambiguator)
        logger.info("Edited appointment %s (status %s)", appointment_id, updated.status)
        return updated

    async def _transition(self, appointment_id, new_status):
        current = await self.store.get(appointment_id)
        if not can_transition(current.status, new_status):
            raise InvalidTransition(f"Cannot change appointment from {current.status} to {new_status}.")
        return await self.store.update(
            appointment_id, {"status": new_status}, SlotKey.from_appointment(current)
        )

    async def cancel_appointment(self, appointment_id):
        appointment = await self._transition(appointment_id, CANCELLED)
        logger.info("Cancelled appointment %s", appointment_id)
        return appointment

    async def mark_completed(self, appointment_id):
        return await self._transition(appointment_id, COMPLETED)

    async def delete_appointment(self, appointment_id, disambiguator=None):
        await self.store.delete(appointment_id, disambiguator)

    # -------------------------
    # Member history
    # -------------------------
    async def member_history(self, user):
        """
        Past appointments of a member, newest first. Expired bookings are
        completed on the way.
        """
        store = DjangoAppointmentStore(Appointment.objects.filter(user=user))
        appointments = await store.list_all()
        result = await apply_sweep(sweep_once(appointments, self.clock), store)

        by_id = {appt.id: appt for appt in appointments}
        for record in result.updated:
            by_id[record.id] = record

        history = [appt for appt in by_id.values() if appt.status in (COMPLETED, CANCELLED)]
        history.sort(key=lambda appt: (appt.date, appt.time), reverse=True)
        return history
