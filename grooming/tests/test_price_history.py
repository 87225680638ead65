# grooming/tests/test_price_history.py

from decimal import Decimal
from django.contrib.auth.models import User
from django.test import TestCase
from rest_framework.test import APIClient

from grooming.models import GroomingService, PriceHistory


class PriceHistoryTests(TestCase):
    def setUp(self):
        # DRF test client, logged in as shop staff
        self.client = APIClient()
        self.admin = User.objects.create_user(username="admin", password="testpass123", is_staff=True)
        self.client.force_authenticate(self.admin)

        # Create a sample service
        self.service = GroomingService.objects.create(
            name="Premium Grooming",
            description="Test service",
            duration_minutes=180,
            price=Decimal("120.00"),
            discount=Decimal("8"),
        )

    def test_price_change_creates_history(self):
        # Sanity: no history yet
        self.assertEqual(PriceHistory.objects.count(), 0)

        # PATCH price to a new value via API (mimics admin updating price)
        url = f"/api/services/{self.service.id}/"
        resp = self.client.patch(url, data={"price": "140.00"}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["display_price"], "RM 140.00")

        # Now we should have one PriceHistory entry
        self.assertEqual(PriceHistory.objects.count(), 1)
        ph = PriceHistory.objects.first()
        self.assertEqual(ph.service.id, self.service.id)
        self.assertEqual(ph.old_price, Decimal("120.00"))
        self.assertEqual(ph.new_price, Decimal("140.00"))
        self.assertEqual(ph.changed_by, "admin")

    def test_no_history_when_price_unchanged(self):
        # PATCH duration only; price should remain the same
        url = f"/api/services/{self.service.id}/"
        resp = self.client.patch(url, data={"duration_minutes": 240}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["display_duration"], "4 hours")

        # No history should be created because price didn't change
        self.assertEqual(PriceHistory.objects.count(), 0)

    def test_rejected_price_leaves_no_history(self):
        url = f"/api/services/{self.service.id}/"
        resp = self.client.patch(url, data={"price": "-5"}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(PriceHistory.objects.count(), 0)

    def test_anonymous_cannot_change_price(self):
        anonymous = APIClient()
        resp = anonymous.patch(f"/api/services/{self.service.id}/", data={"price": "1.00"}, format="json")
        self.assertIn(resp.status_code, (401, 403))
        self.service.refresh_from_db()
        self.assertEqual(self.service.price, Decimal("120.00"))
