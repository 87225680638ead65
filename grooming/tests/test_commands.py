# grooming/tests/test_commands.py

from datetime import date
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase, TransactionTestCase

from grooming.models import Appointment, DayCareOption, GroomingService


class SeedServicesCommandTests(TestCase):
    def test_seed_is_idempotent(self):
        out = StringIO()
        call_command("seed_services", stdout=out)
        self.assertIn("Created=5", out.getvalue())
        self.assertEqual(GroomingService.objects.count(), 3)
        self.assertEqual(DayCareOption.objects.get(type="longTerm").price, Decimal("80.00"))
        self.assertTrue(GroomingService.objects.get(name="Spa Treatment").recommended)

        out = StringIO()
        call_command("seed_services", stdout=out)
        self.assertIn("Created=0, Updated=0", out.getvalue())

    def test_seed_restores_changed_prices(self):
        call_command("seed_services", stdout=StringIO())
        GroomingService.objects.filter(name="Basic Grooming").update(price=Decimal("1.00"))
        out = StringIO()
        call_command("seed_services", stdout=out)
        self.assertIn("Updated=1", out.getvalue())
        self.assertEqual(GroomingService.objects.get(name="Basic Grooming").price, Decimal("60.00"))


# asyncio.run() talks to the database from a worker thread, so the rows must be committed
class ReconcileCommandTests(TransactionTestCase):
    def test_once_completes_expired_bookings(self):
        expired = Appointment.objects.create(
            pet_name="Milo", pet_type="dog", owner_name="Aisha", owner_email="aisha@example.com",
            owner_phone="0123456789", service_type="Basic Grooming", date=date(2020, 1, 6), time="09:00",
        )
        upcoming = Appointment.objects.create(
            pet_name="Luna", pet_type="cat", owner_name="Wei", owner_email="wei@example.com",
            owner_phone="0198765432", service_type="Spa Treatment", date=date(2099, 1, 6), time="09:00",
        )
        out = StringIO()
        call_command("reconcile_appointments", "--once", stdout=out)

        self.assertIn("Completed 1 appointment(s)", out.getvalue())
        expired.refresh_from_db()
        upcoming.refresh_from_db()
        self.assertEqual(expired.status, "Completed")
        self.assertEqual(upcoming.status, "Booked")
