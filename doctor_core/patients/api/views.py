# doctor_core/patients/api/views.py
from __future__ import annotations

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from doctor_core.common.permissions import PatientLedgerPermission
from doctor_core.doctors.selectors import DoctorSelector
from doctor_core.iam.auth import caller_user_id
from doctor_core.patients.api.serializers import (
    AssignPatientSerializer,
    DoctorPatientSerializer,
    TerminateRelationshipSerializer,
)
from doctor_core.patients.services import PatientAssignmentService


class PatientLedgerViewSet(viewsets.ViewSet):
    """
    The calling doctor's patient relationships.
    """

    permission_classes = [PatientLedgerPermission]
    lookup_field = "patient_user_id"
    lookup_value_regex = "[^/]+"

    def _doctor(self, request):
        return DoctorSelector.get_by_user_id(user_id=caller_user_id(request))

    @action(detail=False, methods=["post"])
    def assign(self, request):
        doctor = self._doctor(request)
        ser = AssignPatientSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        relationship = PatientAssignmentService.assign(
            doctor_id=doctor.id,
            patient_user_id=ser.validated_data["patient_user_id"],
        )
        return Response(DoctorPatientSerializer(relationship).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"])
    def terminate(self, request, patient_user_id=None):
        doctor = self._doctor(request)
        ser = TerminateRelationshipSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        relationship = PatientAssignmentService.terminate(
            doctor_id=doctor.id,
            patient_user_id=patient_user_id,
            reason=ser.validated_data.get("reason", ""),
        )
        return Response(DoctorPatientSerializer(relationship).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"])
    def reactivate(self, request, patient_user_id=None):
        doctor = self._doctor(request)
        relationship = PatientAssignmentService.reactivate(
            doctor_id=doctor.id,
            patient_user_id=patient_user_id,
        )
        return Response(DoctorPatientSerializer(relationship).data, status=status.HTTP_200_OK)
