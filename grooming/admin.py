from django.contrib import admin
from .models import Appointment, DayCareOption, GroomingService, PriceHistory

@admin.register(GroomingService)
class GroomingServiceAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "price", "duration_minutes", "discount", "recommended")
    list_filter = ("recommended",)
    search_fields = ("name",)
    # Price edits made here skip PriceHistory; use the API / ServiceCatalog for audited changes.

@admin.register(DayCareOption)
class DayCareOptionAdmin(admin.ModelAdmin):
    list_display = ("type", "price", "description")

@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ("id", "pet_name", "owner_name", "service_type", "date", "time", "status", "total_price")
    list_filter = ("status", "service_type", "pet_type")
    search_fields = ("pet_name", "owner_name", "owner_email")

@admin.register(PriceHistory)
class PriceHistoryAdmin(admin.ModelAdmin):
    list_display = ("service", "old_price", "new_price", "changed_by", "changed_at")
    list_filter = ("service",)
    search_fields = ("service__name",)
