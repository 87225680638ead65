# reports/views.py

import logging
from collections import Counter
from decimal import Decimal

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import BasePermission

from grooming.models import Appointment
from grooming.services.clock import system_clock
from grooming.services.price_calculator import calculate_price, format_price
from grooming.services.service_catalog import ServiceCatalog
from grooming.services.status_resolver import CANCELLED, COMPLETED, DISPLAY_STATUSES, resolve_status

logger = logging.getLogger(__name__)

TOP_SERVICES_LIMIT = 5


class IsStaffOnly(BasePermission):
    """
    Only allow requests from logged-in staff users.
    """
    def has_permission(self, request, view):
        return bool(request.user and request.user.is_staff)


def build_summary(appointments, catalog, now):
    """
    Dashboard numbers for a list of appointments.

    - counts: appointments per display status (Upcoming / Completed / Cancelled)
    - revenue: recomputed price of completed appointments
    - expected_revenue: recomputed price of upcoming appointments
    - top_services: most booked services, cancelled excluded
    """
    counts = {name: 0 for name in DISPLAY_STATUSES}
    revenue = Decimal("0")
    expected = Decimal("0")
    services = Counter()

    for appt in appointments:
        display_status = resolve_status(appt, now)
        counts[display_status] += 1
        if display_status == CANCELLED:
            continue
        services[appt.service_type] += 1
        total = calculate_price(appt, catalog).total_price
        if display_status == COMPLETED:
            revenue += total
        else:
            expected += total

    return {
        "total_appointments": sum(counts.values()),
        "counts": counts,
        "revenue": str(revenue),
        "display_revenue": format_price(revenue),
        "expected_revenue": str(expected),
        "display_expected_revenue": format_price(expected),
        "top_services": [
            {"service_type": name, "count": count}
            for name, count in services.most_common(TOP_SERVICES_LIMIT)
        ],
    }


class ReportsView(APIView):
    """
    GET /api/reports/summary

    Admin dashboard statistics. Status and prices are recomputed from the
    catalog, not read from the stored status / total_price.

    Only accessible by staff users.
    """
    permission_classes = [IsStaffOnly]

    def get(self, request):
        now = system_clock()
        data = build_summary(Appointment.objects.all(), ServiceCatalog().snapshot(), now)
        logger.debug("Dashboard summary: %s appointments", data["total_appointments"])
        return Response(data)
