# grooming/services/service_catalog.py
#
# Purpose:
# - Admin maintenance of the grooming service catalog and day-care options
# - Read-only catalog snapshots for the price calculator
# - Validate catalog changes and keep a price change audit trail (PriceHistory)
#
# Notes:
# - Create vs update is decided by `is_new`. When the caller leaves it out, the
#   admin form placeholders decide: a service id starting with "new-", or a
#   day-care option whose original type is "new-option".
# - Deleting a service does not touch appointments. They keep the name and
#   fall back to the default price table.

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from types import MappingProxyType

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from ..models import DayCareOption, GroomingService, PriceHistory

logger = logging.getLogger(__name__)

NEW_SERVICE_PREFIX = "new-"
NEW_OPTION_TYPE = "new-option"

MAX_PRICE = Decimal("999999.99")


class CatalogError(Exception):
    """Base class for catalog mutation failures."""


class CatalogConflict(CatalogError):
    """A service name or day-care type is already taken."""


class CatalogNotFound(CatalogError):
    """The service or day-care option to change does not exist."""


# -------------------------
# Snapshot used for pricing
# -------------------------
@dataclass(frozen=True)
class ServiceRate:
    name: str
    price: Decimal
    discount: Decimal
    duration_minutes: int = 0


@dataclass(frozen=True)
class DayCareRate:
    type: str
    price: Decimal


class CatalogSnapshot:
    """
    Immutable view of the catalog at one point in time.

    Services are keyed by exact name, day-care options by type.
    """

    def __init__(self, services=(), day_care_options=()):
        self._services = MappingProxyType({
            s.name: ServiceRate(s.name, Decimal(str(s.price)), Decimal(str(s.discount)),
                                getattr(s, "duration_minutes", 0))
            for s in services
        })
        self._day_care = MappingProxyType({
            o.type: DayCareRate(o.type, Decimal(str(o.price)))
            for o in day_care_options
        })

    @classmethod
    def empty(cls):
        return cls()

    def find_service(self, name):
        return self._services.get(name)

    def find_day_care(self, care_type):
        return self._day_care.get(care_type)


def format_duration(duration_minutes):
    """
    Whole-hour duration label shown on the catalog, e.g. "1 hour", "3 hours".
    Minutes are truncated.
    """
    try:
        hours = int(duration_minutes) // 60
    except (TypeError, ValueError):
        hours = 0
    return f"{hours} {'hour' if hours == 1 else 'hours'}"


class ServiceCatalog:
    """
    Catalog operations for the admin portal.

    Rules:
    1. Grooming service price must be a number > 0
    2. Day-care price must be a number >= 0
    3. Member discount is a percentage within 0..100
    4. Duration is at least one minute
    5. Service names and day-care types are unique
    6. A day-care option's type never changes once created
    7. Every grooming price change is written to PriceHistory
    """

    # -------------------------
    # Validation
    # -------------------------
    @staticmethod
    def _to_decimal(value, label):
        if isinstance(value, bool):
            raise ValidationError(f"Invalid {label} format. Received: {value}")
        try:
            return Decimal(str(value).strip())
        except (ValueError, TypeError, InvalidOperation):
            raise ValidationError(
                f"Invalid {label} format. {label.capitalize()} must be a number. Received: {value}"
            )

    @staticmethod
    def validate_price(price):
        """
        Validate a grooming service price: a number greater than zero.

        Returns:
            Decimal: the validated price

        Raises:
            ValidationError: if the price is invalid
        """
        price_decimal = ServiceCatalog._to_decimal(price, "price")
        if price_decimal <= 0:
            raise ValidationError(f"Price must be greater than zero. Received: {price_decimal}")
        if price_decimal > MAX_PRICE:
            raise ValidationError(
                f"Price exceeds maximum allowed value of {MAX_PRICE}. Received: {price_decimal}"
            )
        return price_decimal

    @staticmethod
    def validate_day_care_price(price):
        price_decimal = ServiceCatalog._to_decimal(price, "price")
        if price_decimal < 0:
            raise ValidationError(f"Day care price cannot be negative. Received: {price_decimal}")
        if price_decimal > MAX_PRICE:
            raise ValidationError(
                f"Price exceeds maximum allowed value of {MAX_PRICE}. Received: {price_decimal}"
            )
        return price_decimal

    @staticmethod
    def validate_discount(discount):
        discount_decimal = ServiceCatalog._to_decimal(discount, "discount")
        if discount_decimal < 0 or discount_decimal > 100:
            raise ValidationError(
                f"Discount must be between 0 and 100 percent. Received: {discount_decimal}"
            )
        return discount_decimal

    @staticmethod
    def validate_duration(duration_minutes):
        try:
            minutes = int(duration_minutes)
        except (TypeError, ValueError):
            raise ValidationError(f"Duration must be a whole number of minutes. Received: {duration_minutes}")
        if minutes < 1:
            raise ValidationError(f"Duration must be at least 1 minute. Received: {minutes}")
        return minutes

    @staticmethod
    def _clean_features(features):
        if features is None:
            return []
        if not isinstance(features, (list, tuple)):
            raise ValidationError("Features must be a list of strings.")
        cleaned = []
        for feature in features:
            # older clients send [{"text": "..."}]
            if isinstance(feature, dict):
                feature = feature.get("text", "")
            feature = str(feature).strip()
            if feature:
                cleaned.append(feature)
        return cleaned

    # -------------------------
    # Reads
    # -------------------------
    def list_grooming_services(self):
        return list(GroomingService.objects.all())

    def list_day_care_options(self):
        return list(DayCareOption.objects.all())

    def snapshot(self):
        return CatalogSnapshot(self.list_grooming_services(), self.list_day_care_options())

    async def asnapshot(self):
        services = [s async for s in GroomingService.objects.all()]
        options = [o async for o in DayCareOption.objects.all()]
        return CatalogSnapshot(services, options)

    # -------------------------
    # Grooming services
    # -------------------------
    @staticmethod
    def _service_is_new(data):
        service_id = data.get("id")
        return service_id in (None, "") or str(service_id).startswith(NEW_SERVICE_PREFIX)

    @transaction.atomic
    def upsert_grooming_service(self, data, is_new=None, changed_by=None):
        """
        Create or update a grooming service from admin form data.

        Args:
            data: dict with name, description, price, duration_minutes,
                  discount, features, recommended (and id when updating)
            is_new: force create (True) or update (False)
            changed_by: username recorded on the price history row

        Raises:
            ValidationError, CatalogConflict, CatalogNotFound
        """
        if is_new is None:
            is_new = self._service_is_new(data)

        if is_new:
            service = GroomingService()
            old_price = None
        else:
            try:
                service = GroomingService.objects.select_for_update().get(pk=data.get("id"))
            except (GroomingService.DoesNotExist, ValueError, TypeError):
                raise CatalogNotFound(f"Grooming service {data.get('id')!r} not found.")
            old_price = service.price

        name = data.get("name", service.name if not is_new else "")
        name = (name or "").strip()
        if not name:
            raise ValidationError("Service name is required.")
        taken = GroomingService.objects.filter(name=name)
        if not is_new:
            taken = taken.exclude(pk=service.pk)
        if taken.exists():
            raise CatalogConflict(f"A grooming service named {name!r} already exists.")
        service.name = name

        if is_new or "price" in data:
            service.price = self.validate_price(data.get("price"))
        if is_new or "duration_minutes" in data:
            service.duration_minutes = self.validate_duration(data.get("duration_minutes"))
        if "discount" in data:
            service.discount = self.validate_discount(data["discount"])
        if "description" in data:
            service.description = data["description"] or ""
        if "features" in data:
            service.features = self._clean_features(data["features"])
        if "recommended" in data:
            service.recommended = bool(data["recommended"])

        try:
            service.save()
        except IntegrityError:
            raise CatalogConflict(f"A grooming service named {name!r} already exists.")

        if old_price is not None and service.price != old_price:
            PriceHistory.objects.create(
                service=service,
                old_price=old_price,
                new_price=service.price,
                changed_by=changed_by or "system",
            )
            logger.info("Price of %s changed %s -> %s by %s", service.name, old_price, service.price,
                        changed_by or "system")

        logger.info("%s grooming service %s", "Created" if is_new else "Updated", service.name)
        return service

    def delete_grooming_service(self, service_id):
        deleted, _ = GroomingService.objects.filter(pk=service_id).delete()
        if not deleted:
            raise CatalogNotFound(f"Grooming service {service_id!r} not found.")
        logger.info("Deleted grooming service %s", service_id)

    # -------------------------
    # Day-care options
    # -------------------------
    def upsert_day_care_option(self, data, is_new=None):
        """
        Create or update a day-care option.

        `original_type` names the option being edited; it defaults to `type`.
        """
        care_type = (data.get("type") or "").strip()
        original_type = (data.get("original_type") or care_type).strip()
        if is_new is None:
            is_new = original_type == NEW_OPTION_TYPE

        if is_new:
            if not care_type or care_type == NEW_OPTION_TYPE:
                raise ValidationError("Day care type is required.")
            if DayCareOption.objects.filter(type=care_type).exists():
                raise CatalogConflict(f"A day care option of type {care_type!r} already exists.")
            option = DayCareOption(type=care_type)
            option.price = self.validate_day_care_price(data.get("price"))
        else:
            if care_type and care_type != original_type:
                raise ValidationError("Day care type cannot be changed.")
            try:
                option = DayCareOption.objects.get(type=original_type)
            except DayCareOption.DoesNotExist:
                raise CatalogNotFound(f"Day care option {original_type!r} not found.")
            if "price" in data:
                option.price = self.validate_day_care_price(data["price"])

        if "description" in data:
            option.description = data["description"] or ""

        try:
            option.save()
        except IntegrityError:
            raise CatalogConflict(f"A day care option of type {option.type!r} already exists.")
        logger.info("%s day care option %s", "Created" if is_new else "Updated", option.type)
        return option

    def delete_day_care_option(self, option_type):
        deleted, _ = DayCareOption.objects.filter(type=option_type).delete()
        if not deleted:
            raise CatalogNotFound(f"Day care option {option_type!r} not found.")
        logger.info("Deleted day care option %s", option_type)
