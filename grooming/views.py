# grooming/views.py
#
# Purpose:
# - Catalog APIs (grooming services, day-care options): public read, admin write.
# - Appointment APIs: booking (public or member), listing with display status and
#   recomputed prices, admin edit/delete/complete, cancellation, member history.
# - Price quote for the booking form.
#
# Notes for developers:
# - Display status and prices are computed per request from one "now" and one
#   catalog snapshot; the stored status/total_price are never trusted for display.
# - Changes to existing appointments go through AppointmentManager (async); the
#   views bridge with asgiref's async_to_sync.
# - Error mapping: not found -> 404, slot conflict / duplicate name -> 409,
#   validation and transition errors -> 400. Auth failures are DRF's 401/403.
#
from asgiref.sync import async_to_sync
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Q
from django.shortcuts import get_object_or_404

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, BasePermission, IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Appointment, DayCareOption, GroomingService
from .serializers import (
    AppointmentCreateSerializer,
    AppointmentEditSerializer,
    AppointmentSerializer,
    DayCareOptionSerializer,
    GroomingServiceSerializer,
    PriceQuoteSerializer,
)
from .services.appointment_manager import AppointmentManager, InvalidTransition
from .services.appointment_store import (
    AppointmentConflict,
    AppointmentNotFound,
    DjangoAppointmentStore,
    SlotKey,
)
from .services.clock import system_clock
from .services.price_calculator import format_price, quote_price
from .services.reconciler import AppointmentReconciler
from .services.service_catalog import CatalogConflict, CatalogNotFound, ServiceCatalog
from .services.status_resolver import DISPLAY_STATUSES, display_sort_key, filter_by_display_status


# -------------------- Permissions --------------------
class IsStaffOrReadOnly(BasePermission):
    """
    Read: anyone
    Write: staff only
    """
    def has_permission(self, request, view):
        if request.method in ("GET", "HEAD", "OPTIONS"):
            return True
        return bool(request.user and request.user.is_staff)


class IsStaffOrOwner(BasePermission):
    """Staff, or the member the appointment belongs to."""
    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated)

    def has_object_permission(self, request, view, obj):
        return bool(request.user.is_staff or obj.user_id == request.user.id)


# -------------------- Error mapping --------------------
def _validation_messages(exc):
    return exc.messages if hasattr(exc, "messages") else [str(exc)]


def catalog_error_response(exc):
    if isinstance(exc, CatalogNotFound):
        return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, CatalogConflict):
        return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
    return Response({"detail": _validation_messages(exc)}, status=status.HTTP_400_BAD_REQUEST)


def appointment_error_response(exc):
    if isinstance(exc, AppointmentNotFound):
        return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, AppointmentConflict):
        return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
    if isinstance(exc, DjangoValidationError):
        return Response({"detail": _validation_messages(exc)}, status=status.HTTP_400_BAD_REQUEST)
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


APPOINTMENT_ERRORS = (AppointmentNotFound, AppointmentConflict, InvalidTransition, DjangoValidationError, ValueError)
CATALOG_ERRORS = (CatalogNotFound, CatalogConflict, DjangoValidationError)


def _plain_data(data):
    # QueryDict (form posts) -> dict; JSON bodies are already dicts
    return data.dict() if hasattr(data, "dict") else dict(data)


def _username(request):
    user = getattr(request, "user", None)
    return user.get_username() if user and user.is_authenticated else None


# -------------------- Catalog --------------------
class GroomingServiceViewSet(viewsets.ModelViewSet):
    """
    Grooming service catalog:
    - Anyone can list services (display price and duration included).
    - Only staff can create/update/delete (IsStaffOrReadOnly).
    - Writes go through ServiceCatalog so validation and PriceHistory apply.
    """
    queryset = GroomingService.objects.all()
    serializer_class = GroomingServiceSerializer
    permission_classes = [IsStaffOrReadOnly]
    catalog = ServiceCatalog()

    def create(self, request, *args, **kwargs):
        try:
            service = self.catalog.upsert_grooming_service(
                _plain_data(request.data), is_new=True, changed_by=_username(request)
            )
        except CATALOG_ERRORS as e:
            return catalog_error_response(e)
        return Response(self.get_serializer(service).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        data = _plain_data(request.data)
        data["id"] = kwargs["pk"]
        try:
            service = self.catalog.upsert_grooming_service(data, is_new=False, changed_by=_username(request))
        except CATALOG_ERRORS as e:
            return catalog_error_response(e)
        return Response(self.get_serializer(service).data)

    def partial_update(self, request, *args, **kwargs):
        return self.update(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):
        try:
            self.catalog.delete_grooming_service(kwargs["pk"])
        except CATALOG_ERRORS as e:
            return catalog_error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)


class DayCareOptionViewSet(viewsets.ModelViewSet):
    """Day-care options, addressed by type (e.g. /api/daycare-options/daily/)."""
    queryset = DayCareOption.objects.all()
    serializer_class = DayCareOptionSerializer
    permission_classes = [IsStaffOrReadOnly]
    lookup_field = "type"
    catalog = ServiceCatalog()

    def create(self, request, *args, **kwargs):
        try:
            option = self.catalog.upsert_day_care_option(_plain_data(request.data), is_new=True)
        except CATALOG_ERRORS as e:
            return catalog_error_response(e)
        return Response(self.get_serializer(option).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        data = _plain_data(request.data)
        data["original_type"] = kwargs["type"]
        try:
            option = self.catalog.upsert_day_care_option(data, is_new=False)
        except CATALOG_ERRORS as e:
            return catalog_error_response(e)
        return Response(self.get_serializer(option).data)

    def partial_update(self, request, *args, **kwargs):
        return self.update(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):
        try:
            self.catalog.delete_day_care_option(kwargs["type"])
        except CATALOG_ERRORS as e:
            return catalog_error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)


# -------------------- Appointments --------------------
class AppointmentViewSet(viewsets.GenericViewSet):
    """
    Endpoints:
    - GET    /api/appointments/                 list (staff: all, member: own)
                                                ?status=Upcoming|Completed|Cancelled
                                                ?search=<pet/owner/email/service>
    - POST   /api/appointments/                 book (public or member)
    - GET    /api/appointments/{id}/            detail
    - PATCH  /api/appointments/{id}/            admin edit (old_date_time, old_service_type)
    - DELETE /api/appointments/{id}/            admin delete (?old_date_time=&old_service_type=)
    - POST   /api/appointments/{id}/cancel/     cancel (staff or owner)
    - POST   /api/appointments/{id}/complete/   mark completed (staff)
    - GET    /api/appointments/{id}/price/      price breakdown
    - GET    /api/appointments/history/         member's past appointments
    - POST   /api/appointments/reconcile/       persist expired bookings now (staff)
    """
    queryset = Appointment.objects.all()
    serializer_class = AppointmentSerializer

    def get_permissions(self):
        if self.action == "create":
            return [AllowAny()]
        if self.action in ("partial_update", "destroy", "complete", "reconcile"):
            return [IsAdminUser()]
        if self.action == "history":
            return [IsAuthenticated()]
        return [IsStaffOrOwner()]

    def get_queryset(self):
        user = self.request.user
        qs = Appointment.objects.all()
        if user.is_staff:
            return qs
        return qs.filter(user=user)

    def get_manager(self):
        return AppointmentManager(clock=system_clock)

    def render_context(self):
        return {"now": system_clock(), "catalog": ServiceCatalog().snapshot()}

    def _respond(self, appointment, status_code=status.HTTP_200_OK):
        serializer = AppointmentSerializer(appointment, context=self.render_context())
        return Response(serializer.data, status=status_code)

    def list(self, request):
        qs = self.get_queryset()

        search = (request.query_params.get("search") or "").strip()
        if search:
            qs = qs.filter(
                Q(pet_name__icontains=search)
                | Q(owner_name__icontains=search)
                | Q(owner_email__icontains=search)
                | Q(service_type__icontains=search)
            )

        display_status = (request.query_params.get("status") or "").strip()
        if display_status.lower() == "all":
            display_status = ""
        if display_status and display_status not in DISPLAY_STATUSES:
            return Response(
                {"detail": f"Unknown status. Use one of: {', '.join(DISPLAY_STATUSES)}."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        context = self.render_context()
        now = context["now"]
        appointments = filter_by_display_status(qs, display_status, now)
        appointments.sort(key=lambda appt: display_sort_key(appt, now))
        return Response(AppointmentSerializer(appointments, many=True, context=context).data)

    def retrieve(self, request, pk=None):
        appointment = get_object_or_404(self.get_queryset(), pk=pk)
        self.check_object_permissions(request, appointment)
        return self._respond(appointment)

    def create(self, request):
        """
        Book an appointment. Logged-in members are linked to the booking,
        which is what grants the member discount.
        """
        serializer = AppointmentCreateSerializer(data=request.data, context={"now": system_clock()})
        serializer.is_valid(raise_exception=True)
        user = request.user if request.user.is_authenticated else None
        try:
            appointment = self.get_manager().create_appointment(user=user, **serializer.validated_data)
        except DjangoValidationError as e:
            return appointment_error_response(e)
        return self._respond(appointment, status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        serializer = AppointmentEditSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        changes = dict(serializer.validated_data)
        old_date_time = changes.pop("old_date_time", None)
        old_service_type = changes.pop("old_service_type", None)
        try:
            disambiguator = SlotKey.parse(old_date_time, old_service_type) if old_date_time else None
            appointment = async_to_sync(self.get_manager().edit_appointment)(pk, changes, disambiguator)
        except APPOINTMENT_ERRORS as e:
            return appointment_error_response(e)
        return self._respond(appointment)

    def destroy(self, request, pk=None):
        old_date_time = request.query_params.get("old_date_time")
        old_service_type = request.query_params.get("old_service_type")
        try:
            disambiguator = SlotKey.parse(old_date_time, old_service_type) if old_date_time else None
            async_to_sync(self.get_manager().delete_appointment)(pk, disambiguator)
        except APPOINTMENT_ERRORS as e:
            return appointment_error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        appointment = get_object_or_404(self.get_queryset(), pk=pk)
        self.check_object_permissions(request, appointment)
        try:
            appointment = async_to_sync(self.get_manager().cancel_appointment)(appointment.pk)
        except APPOINTMENT_ERRORS as e:
            return appointment_error_response(e)
        return self._respond(appointment)

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):
        try:
            appointment = async_to_sync(self.get_manager().mark_completed)(pk)
        except APPOINTMENT_ERRORS as e:
            return appointment_error_response(e)
        return self._respond(appointment)

    @action(detail=True, methods=["get"])
    def price(self, request, pk=None):
        appointment = get_object_or_404(self.get_queryset(), pk=pk)
        self.check_object_permissions(request, appointment)
        details = AppointmentSerializer(appointment, context=self.render_context()).data["price_details"]
        return Response(details)

    @action(detail=False, methods=["get"])
    def history(self, request):
        appointments = async_to_sync(self.get_manager().member_history)(request.user)
        return Response(AppointmentSerializer(appointments, many=True, context=self.render_context()).data)

    @action(detail=False, methods=["post"])
    def reconcile(self, request):
        reconciler = AppointmentReconciler(DjangoAppointmentStore(), clock=system_clock)
        result = async_to_sync(reconciler.load)()
        return Response({
            "completed": [appt.id for appt in result.updated],
            "failed": [appt.id for appt, _exc in result.failed],
        })


# -------------------- Price quote --------------------
class PriceQuoteView(APIView):
    """
    POST /api/price-quote/  {"service_type": "...", "day_care_options": {...}}

    Price shown on the booking form. Logged-in members get their discount.
    """
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = PriceQuoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        breakdown = quote_price(
            data["service_type"],
            data.get("day_care_options"),
            request.user.is_authenticated,
            ServiceCatalog().snapshot(),
        )
        body = {key: str(value) for key, value in breakdown.as_dict().items()}
        body["display_total"] = format_price(breakdown.total_price)
        return Response(body)
