# grooming/models.py
#
# Purpose:
# - Core domain models for the grooming shop.
#
# Design highlights:
# - GroomingService: catalog entry; "name" is the key appointments reference.
# - DayCareOption: per-day add-on rate, keyed by "type" (daily / longTerm / ...).
# - Appointment:
#   • service_type stores the service NAME, not a foreign key, so a renamed or
#     deleted service leaves old appointments pricing from the default table.
#   • date + time (local "HH:MM" text) form the scheduled instant in the shop
#     time zone; no time zone is persisted.
#   • status is the stored status: "Booked", "Completed" or "Cancelled".
#   • user is optional; its presence is what grants the member discount.
# - PriceHistory: records grooming service price changes.
#
# Notes for developers:
# - total_price is only a snapshot taken at booking/edit time. Anything that
#   needs an accurate amount recomputes it with services.price_calculator.
# - day_care_options may hold junk from older clients (days=0, no time of day
#   selected...). Always go through services.price_calculator.normalize_day_care
#   before reading it.
#

from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class AppointmentStatus(models.TextChoices):
    BOOKED = "Booked", "Booked"
    COMPLETED = "Completed", "Completed"
    CANCELLED = "Cancelled", "Cancelled"


class PetType(models.TextChoices):
    DOG = "dog", "Dog"
    CAT = "cat", "Cat"


# -------------------------
# Grooming service catalog
# -------------------------
class GroomingService(models.Model):
    """
    A grooming package offered by the shop.

    Rules:
    - name is unique; appointments point at it by name
    - price must be > 0
    - duration_minutes must be > 0 (shown to customers as whole hours)
    - discount is a member-only percentage, 0..100
    """
    name = models.CharField(max_length=120, unique=True)
    description = models.TextField(blank=True)
    price = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    duration_minutes = models.PositiveIntegerField(
        validators=[MinValueValidator(1)]
    )
    discount = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
        help_text="Member discount in percent.",
    )
    features = models.JSONField(default=list, blank=True)
    recommended = models.BooleanField(default=False)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.name} (RM {self.price})"


# -------------------------
# Day-care add-on
# -------------------------
class DayCareOption(models.Model):
    """
    Day-care rate per day. "type" is the natural key (daily, longTerm, ...).
    """
    type = models.CharField(max_length=40, unique=True)
    price = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    description = models.TextField(blank=True)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.type} (RM {self.price}/day)"


# -------------------------
# Appointment record
# -------------------------
class Appointment(models.Model):
    """
    A grooming appointment, optionally with day care.

    Owner contact fields are a snapshot taken when booking and are not
    re-synced with the member profile.
    """
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="grooming_appointments",
    )
    pet_name = models.CharField(max_length=100)
    pet_type = models.CharField(max_length=10, choices=PetType.choices)
    owner_name = models.CharField(max_length=200)
    owner_email = models.EmailField()
    owner_phone = models.CharField(max_length=20)
    service_type = models.CharField(max_length=120)
    date = models.DateField()
    time = models.CharField(max_length=5, help_text="Local time, HH:MM (24-hour).")
    status = models.CharField(
        max_length=10,
        choices=AppointmentStatus.choices,
        default=AppointmentStatus.BOOKED,
    )
    day_care_options = models.JSONField(null=True, blank=True)
    total_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["date", "time"]
        indexes = [
            models.Index(fields=["date", "time"], name="grooming_appt_slot_idx"),
            models.Index(fields=["owner_email"], name="grooming_appt_email_idx"),
        ]

    def __str__(self):
        return f"{self.pet_name} → {self.service_type} on {self.date} {self.time}"


# -------------------------
# Service price change log
# -------------------------
class PriceHistory(models.Model):
    """
    Record of changes to a grooming service price, for auditing.
    """
    service = models.ForeignKey(GroomingService, on_delete=models.CASCADE, related_name="price_changes")
    old_price = models.DecimalField(max_digits=8, decimal_places=2)
    new_price = models.DecimalField(max_digits=8, decimal_places=2)
    changed_by = models.CharField(max_length=150, default="system")
    changed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-changed_at"]
