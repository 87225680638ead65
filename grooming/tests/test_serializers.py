# grooming/tests/test_serializers.py

from datetime import date, datetime, timezone as dt_timezone
from types import SimpleNamespace

from django.test import SimpleTestCase

from grooming.serializers import AppointmentCreateSerializer, AppointmentSerializer

BOOKING = dict(
    pet_name="Milo",
    pet_type="dog",
    owner_name="Aisha",
    owner_email="aisha@example.com",
    owner_phone="0123456789",
    service_type="Basic Grooming",
    time="10:00",
)


class AppointmentCreateSerializerTests(SimpleTestCase):
    def test_future_check_uses_injected_clock(self):
        early = {"now": datetime(2020, 1, 1, tzinfo=dt_timezone.utc)}
        serializer = AppointmentCreateSerializer(data=dict(BOOKING, date="2021-06-01"), context=early)
        self.assertTrue(serializer.is_valid(), serializer.errors)

        late = {"now": datetime(2100, 1, 1, tzinfo=dt_timezone.utc)}
        serializer = AppointmentCreateSerializer(data=dict(BOOKING, date="2099-06-01"), context=late)
        self.assertFalse(serializer.is_valid())
        self.assertIn("non_field_errors", serializer.errors)


class AppointmentSerializerTests(SimpleTestCase):
    def test_display_status_uses_injected_clock(self):
        booked = SimpleNamespace(date=date(2030, 5, 1), time="09:00", status="Booked")

        serializer = AppointmentSerializer(context={"now": datetime(2030, 1, 1, tzinfo=dt_timezone.utc)})
        self.assertEqual(serializer.get_display_status(booked), "Upcoming")

        serializer = AppointmentSerializer(context={"now": datetime(2031, 1, 1, tzinfo=dt_timezone.utc)})
        self.assertEqual(serializer.get_display_status(booked), "Completed")
