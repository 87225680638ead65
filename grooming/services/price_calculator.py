# grooming/services/price_calculator.py
#
# Purpose:
# - Price breakdown for an appointment: grooming service + day care - member discount.
#
# Rules:
# - The service is looked up by exact name in the catalog. A miss (renamed or
#   deleted service) falls back to DEFAULT_SERVICE_PRICES; unknown names price at 0.
# - Day care is priced per day by type, with DEFAULT_DAY_CARE_RATES as fallback.
# - The member discount applies to the service price only, and only when the
#   appointment has a user attached.
# - Amounts stay unrounded Decimals; format_price rounds at display time.

from dataclasses import asdict, dataclass
from decimal import Decimal, InvalidOperation

from django.conf import settings

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# (price, member discount %) used when the catalog has no matching service.
DEFAULT_SERVICE_PRICES = {
    "Basic Grooming": (Decimal("70"), Decimal("8")),
    "Premium Grooming": (Decimal("140"), Decimal("8")),
    "Full Grooming": (Decimal("140"), Decimal("8")),
    "Spa Treatment": (Decimal("240"), Decimal("10")),
}

DEFAULT_DAY_CARE_RATES = {
    "daily": Decimal("50"),
    "longTerm": Decimal("80"),
}

TIME_OF_DAY_FLAGS = ("morning", "afternoon", "evening")


@dataclass(frozen=True)
class PriceBreakdown:
    service_price: Decimal
    day_care_price: Decimal
    member_discount: Decimal
    total_before_discount: Decimal
    total_price: Decimal
    discount_rate: Decimal

    def as_dict(self):
        return asdict(self)


def _to_decimal(value):
    try:
        return Decimal(str(value))
    except (ValueError, TypeError, InvalidOperation):
        return ZERO


def normalize_day_care(options):
    """
    Return a clean day-care dict, or None when the add-on should be treated
    as absent: no type, days missing / not a positive integer, or none of
    morning / afternoon / evening selected.
    """
    if not isinstance(options, dict):
        return None
    care_type = options.get("type")
    days = options.get("days")
    if not care_type or isinstance(days, bool):
        return None
    try:
        days = int(days)
    except (TypeError, ValueError):
        return None
    if days <= 0:
        return None
    flags = {flag: bool(options.get(flag)) for flag in TIME_OF_DAY_FLAGS}
    if not any(flags.values()):
        return None
    return {"type": str(care_type), "days": days, **flags}


def is_member(appointment):
    """A member booking is any appointment with a user attached."""
    return bool(getattr(appointment, "user_id", None) or getattr(appointment, "user", None))


def service_rate(service_type, catalog):
    """(price, discount %) for a service name, catalog first, then defaults."""
    service = catalog.find_service(service_type)
    if service is not None:
        return _to_decimal(service.price), _to_decimal(service.discount)
    return DEFAULT_SERVICE_PRICES.get(service_type, (ZERO, ZERO))


def day_care_rate(care_type, catalog):
    option = catalog.find_day_care(care_type)
    if option is not None:
        return _to_decimal(option.price)
    return DEFAULT_DAY_CARE_RATES.get(care_type, ZERO)


def quote_price(service_type, day_care_options, member, catalog):
    """
    Price a booking from its parts. Used for existing appointments and for
    the booking form before an appointment exists.
    """
    service_price, discount_rate = service_rate(service_type, catalog)

    day_care_price = ZERO
    day_care = normalize_day_care(day_care_options)
    if day_care is not None:
        day_care_price = day_care_rate(day_care["type"], catalog) * day_care["days"]

    member_discount = (service_price * discount_rate) / HUNDRED if member else ZERO

    total_before_discount = service_price + day_care_price
    return PriceBreakdown(
        service_price=service_price,
        day_care_price=day_care_price,
        member_discount=member_discount,
        total_before_discount=total_before_discount,
        total_price=total_before_discount - member_discount,
        discount_rate=discount_rate,
    )


def calculate_price(appointment, catalog):
    """Price breakdown for an appointment against a catalog snapshot."""
    return quote_price(
        appointment.service_type,
        appointment.day_care_options,
        is_member(appointment),
        catalog,
    )


def format_price(price, currency_symbol=None):
    """
    Format a price for display with two decimal places, e.g. "RM 64.40".
    Invalid values render as zero.
    """
    if currency_symbol is None:
        currency_symbol = getattr(settings, "SHOP_CURRENCY_SYMBOL", "RM")
    try:
        price_decimal = Decimal(str(price))
        return f"{currency_symbol} {price_decimal:.2f}"
    except (ValueError, TypeError, InvalidOperation):
        return f"{currency_symbol} 0.00"
