# doctor_core/appointments/api/views.py
from __future__ import annotations

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from doctor_core.appointments.api.serializers import (
    AppointmentSerializer,
    BookAppointmentSerializer,
    CancelAppointmentSerializer,
    CompleteAppointmentSerializer,
    FeedbackSerializer,
    RescheduleAppointmentSerializer,
)
from doctor_core.appointments.selectors import AppointmentSelector
from doctor_core.appointments.services import AppointmentService
from doctor_core.common.permissions import AppointmentPermission
from doctor_core.doctors.selectors import DoctorSelector
from doctor_core.iam.auth import caller_user_id


class AppointmentViewSet(viewsets.ViewSet):
    """
    Thin API layer:
    - resolves the calling doctor (appointments are scoped to their owner)
    - validates payloads
    - calls services for writes
    """

    permission_classes = [AppointmentPermission]

    def _doctor(self, request):
        return DoctorSelector.get_by_user_id(user_id=caller_user_id(request))

    def _respond(self, appointment, http_status=status.HTTP_200_OK):
        return Response(AppointmentSerializer(appointment).data, status=http_status)

    # ----------------------------
    # Create / read
    # ----------------------------
    def create(self, request):
        doctor = self._doctor(request)
        ser = BookAppointmentSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        appointment = AppointmentService.book(
            doctor_id=doctor.id,
            created_by=caller_user_id(request),
            **ser.validated_data,
        )
        return self._respond(appointment, status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        doctor = self._doctor(request)
        appointment = AppointmentSelector.get_for_doctor(doctor_id=doctor.id, appointment_id=pk)
        return self._respond(appointment)

    # ----------------------------
    # Workflow actions
    # ----------------------------
    @action(detail=True, methods=["post"])
    def confirm(self, request, pk=None):
        doctor = self._doctor(request)
        return self._respond(AppointmentService.confirm(doctor_id=doctor.id, appointment_id=pk))

    @action(detail=True, methods=["post"], url_path="check-in")
    def check_in(self, request, pk=None):
        doctor = self._doctor(request)
        return self._respond(AppointmentService.check_in(doctor_id=doctor.id, appointment_id=pk))

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):
        doctor = self._doctor(request)
        ser = CompleteAppointmentSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        appointment = AppointmentService.complete(doctor_id=doctor.id, appointment_id=pk, **ser.validated_data)
        return self._respond(appointment)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        doctor = self._doctor(request)
        ser = CancelAppointmentSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        appointment = AppointmentService.cancel(
            doctor_id=doctor.id,
            appointment_id=pk,
            cancelled_by=caller_user_id(request),
            reason=ser.validated_data.get("reason", ""),
        )
        return self._respond(appointment)

    @action(detail=True, methods=["post"], url_path="no-show")
    def no_show(self, request, pk=None):
        doctor = self._doctor(request)
        return self._respond(AppointmentService.mark_no_show(doctor_id=doctor.id, appointment_id=pk))

    @action(detail=True, methods=["post"])
    def reschedule(self, request, pk=None):
        doctor = self._doctor(request)
        ser = RescheduleAppointmentSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        appointment = AppointmentService.reschedule(doctor_id=doctor.id, appointment_id=pk, **ser.validated_data)
        return self._respond(appointment)

    # ----------------------------
    # Patient side
    # ----------------------------
    @action(detail=True, methods=["post"])
    def feedback(self, request, pk=None):
        ser = FeedbackSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        appointment = AppointmentService.submit_feedback(
            appointment_id=pk,
            patient_user_id=caller_user_id(request),
            rating=ser.validated_data["rating"],
            feedback=ser.validated_data.get("feedback", ""),
        )
        return self._respond(appointment)
