# doctor_core/doctors/api/views.py
from __future__ import annotations

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response

from doctor_core.common.permissions import ActivationPermission, DoctorPermission
from doctor_core.doctors.api.serializers import (
    DoctorRegistrationSerializer,
    DoctorSerializer,
    PendingDoctorSerializer,
    ProcessActivationSerializer,
)
from doctor_core.doctors.selectors import DoctorSelector
from doctor_core.doctors.services import ActivationService
from doctor_core.iam.auth import caller_email, caller_user_id


class ActivationViewSet(viewsets.ViewSet):
    """
    Admin queue of doctor registrations awaiting approval.
    """

    permission_classes = [ActivationPermission]

    @action(detail=False, methods=["get"])
    def pending(self, request):
        rows = ActivationService.list_pending_doctors()
        return Response(PendingDoctorSerializer(rows, many=True).data)

    @action(detail=False, methods=["get"], url_path="pending/count")
    def pending_count(self, request):
        return Response({"count": ActivationService.count_pending()})

    @action(detail=False, methods=["post"])
    def process(self, request):
        ser = ProcessActivationSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        doctor = ActivationService.process_activation(
            doctor_id=ser.validated_data["doctor_id"],
            action=ser.validated_data["action"],
            admin_id=caller_user_id(request),
            admin_email=caller_email(request) or "",
            notes=ser.validated_data.get("notes", ""),
        )
        return Response(DoctorSerializer(doctor).data, status=status.HTTP_200_OK)


class DoctorViewSet(viewsets.ViewSet):
    """
    Doctor self-service: registration and own profile.
    """

    permission_classes = [DoctorPermission]

    @action(detail=False, methods=["post"])
    def register(self, request):
        ser = DoctorRegistrationSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        email = data.get("email") or caller_email(request)
        if not email:
            raise DRFValidationError({"email": "This field is required."})

        doctor = ActivationService.register_doctor(
            user_id=caller_user_id(request),
            email=email,
            first_name=data["first_name"],
            last_name=data["last_name"],
            phone_number=data.get("phone_number", ""),
            medical_license_number=data["medical_license_number"],
            specialization=data.get("specialization", ""),
            hospital_affiliation=data.get("hospital_affiliation", ""),
            years_of_experience=data.get("years_of_experience", 0),
        )
        return Response(DoctorSerializer(doctor).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"])
    def me(self, request):
        doctor = DoctorSelector.get_by_user_id(user_id=caller_user_id(request))
        return Response(DoctorSerializer(doctor).data)
