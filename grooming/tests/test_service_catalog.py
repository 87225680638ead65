from django.test import TestCase
from django.core.exceptions import ValidationError
from decimal import Decimal

from grooming.models import DayCareOption, GroomingService, PriceHistory
from grooming.services.service_catalog import (
    CatalogConflict,
    CatalogNotFound,
    ServiceCatalog,
    format_duration,
)


class CatalogValidationTests(TestCase):
    """
    Price, discount and duration checks applied to every catalog change.
    """

    def test_validate_valid_price(self):
        """Test that valid prices pass validation"""
        self.assertEqual(ServiceCatalog.validate_price("25.00"), Decimal("25.00"))
        self.assertEqual(ServiceCatalog.validate_price(50), Decimal("50"))
        self.assertEqual(ServiceCatalog.validate_price(Decimal("100.99")), Decimal("100.99"))

    def test_validate_price_rejects_zero_and_negative(self):
        for bad in (0, -10):
            with self.assertRaises(ValidationError) as context:
                ServiceCatalog.validate_price(bad)
            self.assertIn("greater than zero", str(context.exception))

    def test_validate_price_rejects_non_numeric(self):
        for bad in ("abc", "RM50.00", None, True):
            with self.assertRaises(ValidationError):
                ServiceCatalog.validate_price(bad)

    def test_day_care_price_may_be_zero(self):
        self.assertEqual(ServiceCatalog.validate_day_care_price("0"), Decimal("0"))
        with self.assertRaises(ValidationError):
            ServiceCatalog.validate_day_care_price("-1")

    def test_discount_range(self):
        self.assertEqual(ServiceCatalog.validate_discount("8"), Decimal("8"))
        self.assertEqual(ServiceCatalog.validate_discount(100), Decimal("100"))
        for bad in (-1, "100.5", "lots"):
            with self.assertRaises(ValidationError):
                ServiceCatalog.validate_discount(bad)

    def test_duration_at_least_one_minute(self):
        self.assertEqual(ServiceCatalog.validate_duration("90"), 90)
        with self.assertRaises(ValidationError):
            ServiceCatalog.validate_duration(0)

    def test_format_duration(self):
        self.assertEqual(format_duration(60), "1 hour")
        self.assertEqual(format_duration(90), "1 hour")
        self.assertEqual(format_duration(180), "3 hours")
        self.assertEqual(format_duration(30), "0 hours")


class GroomingServiceUpsertTests(TestCase):
    def setUp(self):
        self.catalog = ServiceCatalog()
        self.service = GroomingService.objects.create(
            name="Basic Grooming",
            description="Bath and brush",
            duration_minutes=60,
            price=Decimal("60.00"),
            discount=Decimal("8"),
        )

    def test_new_id_sentinel_creates(self):
        created = self.catalog.upsert_grooming_service({
            "id": "new-1712345678",
            "name": "Spa Treatment",
            "price": "220",
            "duration_minutes": 240,
            "discount": "10",
            "features": [{"text": "Aromatherapy bath"}, "Massage", ""],
            "recommended": True,
        })
        self.assertNotEqual(str(created.id), "new-1712345678")
        self.assertEqual(created.features, ["Aromatherapy bath", "Massage"])
        self.assertTrue(created.recommended)
        self.assertEqual(GroomingService.objects.count(), 2)

    def test_update_changes_price_and_logs_history(self):
        updated = self.catalog.upsert_grooming_service(
            {"id": self.service.id, "price": "75.00"}, changed_by="admin"
        )
        self.assertEqual(updated.price, Decimal("75.00"))
        self.assertEqual(updated.name, "Basic Grooming")
        history = PriceHistory.objects.get()
        self.assertEqual(history.old_price, Decimal("60.00"))
        self.assertEqual(history.new_price, Decimal("75.00"))
        self.assertEqual(history.changed_by, "admin")

    def test_update_without_price_change_logs_nothing(self):
        self.catalog.upsert_grooming_service({"id": self.service.id, "description": "New text"})
        self.assertEqual(PriceHistory.objects.count(), 0)
        self.service.refresh_from_db()
        self.assertEqual(self.service.description, "New text")

    def test_duplicate_name_conflicts(self):
        with self.assertRaises(CatalogConflict):
            self.catalog.upsert_grooming_service(
                {"name": "Basic Grooming", "price": "10", "duration_minutes": 30}, is_new=True
            )

    def test_invalid_price_is_rejected_and_nothing_changes(self):
        with self.assertRaises(ValidationError):
            self.catalog.upsert_grooming_service({"id": self.service.id, "price": "0"})
        self.service.refresh_from_db()
        self.assertEqual(self.service.price, Decimal("60.00"))

    def test_update_missing_service(self):
        with self.assertRaises(CatalogNotFound):
            self.catalog.upsert_grooming_service({"id": 9999, "price": "10"})

    def test_delete(self):
        self.catalog.delete_grooming_service(self.service.id)
        self.assertFalse(GroomingService.objects.exists())
        with self.assertRaises(CatalogNotFound):
            self.catalog.delete_grooming_service(self.service.id)

    def test_snapshot_looks_up_by_exact_name(self):
        snapshot = self.catalog.snapshot()
        self.assertEqual(snapshot.find_service("Basic Grooming").price, Decimal("60.00"))
        self.assertIsNone(snapshot.find_service("basic grooming"))


class DayCareOptionUpsertTests(TestCase):
    def setUp(self):
        self.catalog = ServiceCatalog()
        DayCareOption.objects.create(type="daily", price=Decimal("50"), description="Daily")

    def test_new_option_sentinel_creates(self):
        option = self.catalog.upsert_day_care_option(
            {"original_type": "new-option", "type": "weekend", "price": "65"}
        )
        self.assertEqual(option.type, "weekend")
        self.assertEqual(DayCareOption.objects.count(), 2)

    def test_sentinel_type_itself_is_not_a_valid_type(self):
        with self.assertRaises(ValidationError):
            self.catalog.upsert_day_care_option({"type": "new-option", "price": "65"})

    def test_update_keeps_type(self):
        option = self.catalog.upsert_day_care_option({"type": "daily", "price": "55"})
        self.assertEqual(option.price, Decimal("55"))
        with self.assertRaises(ValidationError):
            self.catalog.upsert_day_care_option({"original_type": "daily", "type": "hourly", "price": "5"})

    def test_duplicate_type_conflicts(self):
        with self.assertRaises(CatalogConflict):
            self.catalog.upsert_day_care_option({"type": "daily", "price": "10"}, is_new=True)

    def test_update_and_delete_missing_option(self):
        with self.assertRaises(CatalogNotFound):
            self.catalog.upsert_day_care_option({"type": "longTerm", "price": "80"})
        with self.assertRaises(CatalogNotFound):
            self.catalog.delete_day_care_option("longTerm")

    def test_delete(self):
        self.catalog.delete_day_care_option("daily")
        self.assertIsNone(self.catalog.snapshot().find_day_care("daily"))

    async def test_async_snapshot(self):
        snapshot = await self.catalog.asnapshot()
        self.assertEqual(snapshot.find_day_care("daily").price, Decimal("50"))
