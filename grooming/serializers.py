from rest_framework import serializers

from .models import Appointment, DayCareOption, GroomingService, PetType
from .services.price_calculator import calculate_price, format_price, normalize_day_care
from .services.service_catalog import format_duration
from .services.status_resolver import parse_clock_time, resolve_status, scheduled_instant


class GroomingServiceSerializer(serializers.ModelSerializer):
    display_price = serializers.SerializerMethodField()
    display_duration = serializers.SerializerMethodField()

    class Meta:
        model = GroomingService
        fields = [
            "id",
            "name",
            "description",
            "price",
            "display_price",
            "duration_minutes",
            "display_duration",
            "discount",
            "features",
            "recommended",
        ]

    def get_display_price(self, obj):
        return format_price(obj.price)

    def get_display_duration(self, obj):
        return format_duration(obj.duration_minutes)


class DayCareOptionSerializer(serializers.ModelSerializer):
    display_price = serializers.SerializerMethodField()

    class Meta:
        model = DayCareOption
        fields = ["type", "price", "display_price", "description"]

    def get_display_price(self, obj):
        return format_price(obj.price)


class AppointmentSerializer(serializers.ModelSerializer):
    """
    Read serializer. Expects `now` and `catalog` (a CatalogSnapshot) in the
    context; both are computed once per request by the view.
    """
    display_status = serializers.SerializerMethodField()
    price_details = serializers.SerializerMethodField()
    is_member = serializers.SerializerMethodField()

    class Meta:
        model = Appointment
        fields = [
            "id",
            "pet_name",
            "pet_type",
            "owner_name",
            "owner_email",
            "owner_phone",
            "service_type",
            "date",
            "time",
            "status",
            "display_status",
            "day_care_options",
            "total_price",
            "price_details",
            "is_member",
            "notes",
            "created_at",
            "updated_at",
        ]

    def get_display_status(self, obj):
        now = self.context["now"]
        return resolve_status(obj, now)

    def get_price_details(self, obj):
        catalog = self.context.get("catalog")
        if catalog is None:
            return None
        breakdown = calculate_price(obj, catalog)
        details = {key: str(value) for key, value in breakdown.as_dict().items()}
        details["display_total"] = format_price(breakdown.total_price)
        return details

    def get_is_member(self, obj):
        return obj.user_id is not None


class AppointmentCreateSerializer(serializers.Serializer):
    """Booking form payload."""
    pet_name = serializers.CharField(max_length=100)
    pet_type = serializers.ChoiceField(choices=PetType.choices)
    owner_name = serializers.CharField(max_length=200)
    owner_email = serializers.EmailField()
    owner_phone = serializers.RegexField(r"^\+?[\d\s-]{7,20}$", max_length=20)
    service_type = serializers.CharField(max_length=120)
    date = serializers.DateField()
    time = serializers.CharField(max_length=5)
    day_care_options = serializers.JSONField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_time(self, value):
        if parse_clock_time(value) is None:
            raise serializers.ValidationError("Time must be HH:MM (24-hour).")
        return value

    def validate_day_care_options(self, value):
        # incomplete selections are dropped rather than rejected
        return normalize_day_care(value)

    def validate(self, attrs):
        # prevent past dates
        instant = scheduled_instant(attrs["date"], attrs["time"])
        if instant is not None and instant <= self.context["now"]:
            raise serializers.ValidationError("Appointment time must be in the future.")
        return attrs


class AppointmentEditSerializer(serializers.Serializer):
    """Admin edit payload. Only the fields sent are changed."""
    pet_name = serializers.CharField(max_length=100, required=False)
    pet_type = serializers.ChoiceField(choices=PetType.choices, required=False)
    owner_name = serializers.CharField(max_length=200, required=False)
    owner_email = serializers.EmailField(required=False)
    owner_phone = serializers.CharField(max_length=20, required=False)
    service_type = serializers.CharField(max_length=120, required=False)
    date = serializers.DateField(required=False)
    time = serializers.CharField(max_length=5, required=False)
    day_care_options = serializers.JSONField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    # slot the admin loaded, "YYYY-MM-DDTHH:MM"
    old_date_time = serializers.CharField(required=False, write_only=True)
    old_service_type = serializers.CharField(required=False, write_only=True)

    def validate_time(self, value):
        if parse_clock_time(value) is None:
            raise serializers.ValidationError("Time must be HH:MM (24-hour).")
        return value


class PriceQuoteSerializer(serializers.Serializer):
    service_type = serializers.CharField(max_length=120)
    day_care_options = serializers.JSONField(required=False, allow_null=True)
