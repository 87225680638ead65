# grooming/tests/test_appointment_store.py

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

from django.test import SimpleTestCase, TestCase

from grooming.models import Appointment
from grooming.services.appointment_store import (
    AppointmentConflict,
    AppointmentNotFound,
    DjangoAppointmentStore,
    SlotKey,
    validate_patch,
)


def make_appointment(**overrides):
    fields = dict(
        pet_name="Milo",
        pet_type="dog",
        owner_name="Aisha",
        owner_email="aisha@example.com",
        owner_phone="0123456789",
        service_type="Basic Grooming",
        date=date(2025, 3, 10),
        time="09:00",
        status="Booked",
        total_price=Decimal("70.00"),
    )
    fields.update(overrides)
    return Appointment.objects.create(**fields)


class SlotKeyTests(SimpleTestCase):
    def test_parse_form_value(self):
        key = SlotKey.parse("2025-03-10T09:00", "Spa Treatment")
        self.assertEqual(key, SlotKey(date(2025, 3, 10), "09:00", "Spa Treatment"))

    def test_key_without_service_type_matches_on_date_and_time(self):
        key = SlotKey.parse("2025-03-10T09:00")
        self.assertIsNone(key.service_type)
        self.assertEqual(key.as_filter(), {"date": date(2025, 3, 10), "time": "09:00"})

        spa = SimpleNamespace(date=date(2025, 3, 10), time="09:00", service_type="Spa Treatment")
        self.assertTrue(key.matches(spa))
        self.assertFalse(SlotKey.parse("2025-03-10T09:00", "Basic Grooming").matches(spa))
        self.assertFalse(SlotKey.parse("2025-03-10T10:00").matches(spa))

    def test_parse_rejects_garbage(self):
        for bad in ("", "2025-03-10", "nope T09:00", "2025-03-10T9"):
            with self.subTest(value=bad):
                with self.assertRaises(ValueError):
                    SlotKey.parse(bad)

    def test_validate_patch(self):
        self.assertEqual(validate_patch({"date": "2025-03-11"})["date"], date(2025, 3, 11))
        with self.assertRaises(ValueError):
            validate_patch({"id": 3})
        with self.assertRaises(ValueError):
            validate_patch({"status": "Upcoming"})
        with self.assertRaises(ValueError):
            validate_patch({"date": "soon"})


class DjangoAppointmentStoreTests(TestCase):
    def setUp(self):
        self.store = DjangoAppointmentStore()
        self.appointment = make_appointment()

    async def test_list_all_and_get(self):
        await Appointment.objects.acreate(
            pet_name="Luna", pet_type="cat", owner_name="Wei", owner_email="wei@example.com",
            owner_phone="0198765432", service_type="Spa Treatment", date=date(2025, 3, 11), time="10:00",
        )
        records = await self.store.list_all()
        self.assertEqual([r.pet_name for r in records], ["Milo", "Luna"])
        # a second call sees fresh rows
        await Appointment.objects.filter(pet_name="Luna").adelete()
        self.assertEqual(len(await self.store.list_all()), 1)

        record = await self.store.get(self.appointment.id)
        self.assertEqual(record.pet_name, "Milo")

    async def test_get_missing(self):
        with self.assertRaises(AppointmentNotFound):
            await self.store.get(999999)

    async def test_update_with_matching_slot(self):
        key = SlotKey.from_appointment(self.appointment)
        updated = await self.store.update(self.appointment.id, {"status": "Completed"}, key)
        self.assertEqual(updated.status, "Completed")
        self.assertGreaterEqual(updated.updated_at, self.appointment.updated_at)
        self.assertEqual(updated.time, "09:00")

    async def test_update_is_idempotent(self):
        key = SlotKey.from_appointment(self.appointment)
        first = await self.store.update(self.appointment.id, {"status": "Completed"}, key)
        second = await self.store.update(self.appointment.id, {"status": "Completed"}, key)
        self.assertEqual(second.status, "Completed")
        self.assertEqual(second.updated_at, first.updated_at)

    async def test_update_rejects_stale_slot(self):
        stale = SlotKey(date(2025, 3, 10), "08:00", "Basic Grooming")
        with self.assertRaises(AppointmentConflict):
            await self.store.update(self.appointment.id, {"status": "Completed"}, stale)
        record = await self.store.get(self.appointment.id)
        self.assertEqual(record.status, "Booked")

    async def test_update_with_date_time_only_key_ignores_service(self):
        spa = await Appointment.objects.acreate(
            pet_name="Luna", pet_type="cat", owner_name="Wei", owner_email="wei@example.com",
            owner_phone="0198765432", service_type="Spa Treatment", date=date(2025, 3, 11), time="10:00",
        )
        updated = await self.store.update(spa.id, {"notes": "nervous"}, SlotKey.parse("2025-03-11T10:00"))
        self.assertEqual(updated.notes, "nervous")

        await self.store.delete(spa.id, SlotKey.parse("2025-03-11T10:00"))
        self.assertFalse(await Appointment.objects.filter(pk=spa.id).aexists())

    async def test_update_missing(self):
        with self.assertRaises(AppointmentNotFound):
            await self.store.update(999999, {"status": "Completed"})

    async def test_update_rejects_unknown_fields(self):
        with self.assertRaises(ValueError):
            await self.store.update(self.appointment.id, {"user_id": 5})

    async def test_delete(self):
        stale = SlotKey(date(2025, 3, 9), "09:00", "Basic Grooming")
        with self.assertRaises(AppointmentConflict):
            await self.store.delete(self.appointment.id, stale)

        await self.store.delete(self.appointment.id, SlotKey.from_appointment(self.appointment))
        self.assertFalse(await Appointment.objects.filter(pk=self.appointment.id).aexists())
        with self.assertRaises(AppointmentNotFound):
            await self.store.delete(self.appointment.id)
