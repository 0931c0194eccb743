# doctor_core/dashboard/api/views.py
from __future__ import annotations

from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response

from doctor_core.appointments.api.serializers import AppointmentSerializer
from doctor_core.appointments.selectors import AppointmentSelector
from doctor_core.common.api.pagination import paginate
from doctor_core.common.permissions import DashboardPermission
from doctor_core.dashboard.api.serializers import DashboardStatisticsSerializer, PatientSummarySerializer
from doctor_core.dashboard.filters import DashboardAppointmentFilter
from doctor_core.dashboard.services import DashboardService
from doctor_core.iam.auth import caller_user_id


class DashboardViewSet(viewsets.ViewSet):
    """
    Doctor dashboard (read-only). All data belongs to the calling doctor.
    """

    permission_classes = [DashboardPermission]

    def _doctor(self, request):
        return DashboardService.doctor_for(user_id=caller_user_id(request))

    @action(detail=False, methods=["get"])
    def statistics(self, request):
        stats = DashboardService.statistics(doctor=self._doctor(request))
        return Response(DashboardStatisticsSerializer(stats).data)

    # ----------------------------
    # Patients
    # ----------------------------
    @action(detail=False, methods=["get"])
    def patients(self, request):
        doctor = self._doctor(request)
        rows = DashboardService.patient_list(
            doctor=doctor,
            status=request.query_params.get("status"),
            search=request.query_params.get("search"),
        )
        return paginate(request, rows, PatientSummarySerializer)

    @action(detail=False, methods=["get"], url_path="patients/count")
    def patients_count(self, request):
        return Response(DashboardService.patient_counts(doctor=self._doctor(request)))

    # ----------------------------
    # Appointments
    # ----------------------------
    @action(detail=False, methods=["get"])
    def appointments(self, request):
        doctor = self._doctor(request)
        fs = DashboardAppointmentFilter(
            request.query_params,
            queryset=AppointmentSelector.for_doctor(doctor_id=doctor.id),
            request=request,
        )
        if not fs.is_valid():
            raise DRFValidationError(fs.errors)
        return paginate(request, fs.qs, AppointmentSerializer)

    @action(detail=False, methods=["get"], url_path="appointments/upcoming")
    def upcoming(self, request):
        qs = DashboardService.upcoming_appointments(doctor=self._doctor(request))
        return Response(AppointmentSerializer(qs, many=True).data)

    @action(detail=False, methods=["get"], url_path="appointments/today")
    def today(self, request):
        qs = DashboardService.today_appointments(doctor=self._doctor(request))
        return Response(AppointmentSerializer(qs, many=True).data)

    @action(detail=False, methods=["get"], url_path="appointments/count")
    def appointments_count(self, request):
        return Response(DashboardService.appointment_counts(doctor=self._doctor(request)))
