# reports/tests.py

from datetime import date, datetime, timezone as dt_timezone
from decimal import Decimal
from types import SimpleNamespace

from django.contrib.auth.models import User
from django.test import SimpleTestCase, TestCase
from rest_framework.test import APIClient

from grooming.models import Appointment, GroomingService
from grooming.services.service_catalog import CatalogSnapshot
from reports.views import build_summary

NOW = datetime(2025, 3, 10, 2, 0, tzinfo=dt_timezone.utc)


def appt(service_type, day, status="Booked", user_id=None):
    return SimpleNamespace(
        service_type=service_type, date=day, time="09:00", status=status, user_id=user_id, day_care_options=None
    )


class BuildSummaryTests(SimpleTestCase):
    def test_counts_and_revenue_use_display_status_and_recomputed_prices(self):
        catalog = CatalogSnapshot(services=[
            SimpleNamespace(name="Basic Grooming", price=Decimal("70"), discount=Decimal("8")),
        ])
        appointments = [
            appt("Basic Grooming", date(2025, 3, 1)),                    # expired -> Completed
            appt("Basic Grooming", date(2025, 3, 2), user_id=4),        # expired member -> 64.40
            appt("Spa Treatment", date(2025, 3, 20)),                   # upcoming, default 240
            appt("Basic Grooming", date(2025, 3, 3), status="Cancelled"),
        ]
        summary = build_summary(appointments, catalog, NOW)

        self.assertEqual(summary["total_appointments"], 4)
        self.assertEqual(summary["counts"], {"Upcoming": 1, "Completed": 2, "Cancelled": 1})
        self.assertEqual(Decimal(summary["revenue"]), Decimal("134.40"))
        self.assertEqual(summary["display_revenue"], "RM 134.40")
        self.assertEqual(Decimal(summary["expected_revenue"]), Decimal("240"))
        self.assertEqual(summary["top_services"][0], {"service_type": "Basic Grooming", "count": 2})


class ReportsViewTests(TestCase):
    def setUp(self):
        GroomingService.objects.create(
            name="Basic Grooming", price=Decimal("70"), duration_minutes=60, discount=Decimal("8")
        )
        Appointment.objects.create(
            pet_name="Milo", pet_type="dog", owner_name="Aisha", owner_email="aisha@example.com",
            owner_phone="0123456789", service_type="Basic Grooming", date=date(2020, 1, 6), time="09:00",
        )
        self.client = APIClient()

    def test_staff_only(self):
        resp = self.client.get("/api/reports/summary")
        self.assertIn(resp.status_code, (401, 403))

    def test_summary(self):
        admin = User.objects.create_user(username="admin", password="pw12345!", is_staff=True)
        self.client.force_authenticate(admin)
        resp = self.client.get("/api/reports/summary")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["counts"]["Completed"], 1)
        self.assertEqual(resp.data["display_revenue"], "RM 70.00")
