# grooming/urls.py
#
# Purpose:
# - Expose the grooming REST API via DRF router:
#     * /api/services/          grooming service catalog
#     * /api/daycare-options/   day-care add-on rates (by type)
#     * /api/appointments/      bookings, admin edits, history, reconcile
#     * /api/price-quote/       booking form price

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    AppointmentViewSet,
    DayCareOptionViewSet,
    GroomingServiceViewSet,
    PriceQuoteView,
)

router = DefaultRouter()
router.register(r"services", GroomingServiceViewSet, basename="service")
router.register(r"daycare-options", DayCareOptionViewSet, basename="daycare-option")
router.register(r"appointments", AppointmentViewSet, basename="appointment")

urlpatterns = [
    path("", include(router.urls)),
    path("price-quote/", PriceQuoteView.as_view(), name="price_quote"),
]
