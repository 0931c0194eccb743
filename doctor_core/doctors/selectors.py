# doctor_core/doctors/selectors.py
from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import QuerySet
from rest_framework.exceptions import NotFound

from doctor_core.doctors.models import ActivationStatus, Doctor, DoctorActivationRequest


class DoctorSelector:
    @staticmethod
    def get_by_id(*, doctor_id) -> Doctor:
        try:
            return Doctor.objects.get(id=doctor_id)
        except (Doctor.DoesNotExist, DjangoValidationError):
            raise NotFound("Doctor not found.")

    @staticmethod
    def get_by_user_id(*, user_id: str) -> Doctor:
        """Resolve the doctor profile owned by an external user id."""
        try:
            return Doctor.objects.get(user_id=str(user_id))
        except Doctor.DoesNotExist:
            raise NotFound("Doctor profile not found for this user.")

    @staticmethod
    def pending_doctors() -> QuerySet[Doctor]:
        # Unbounded: the admin queue is expected to stay small.
        return (
            Doctor.objects.filter(activation_status=ActivationStatus.PENDING)
            .select_related("activation_request")
            .order_by("activation_request_date", "created_at")
        )

    @staticmethod
    def count_pending_requests() -> int:
        return DoctorActivationRequest.objects.filter(is_pending=True).count()
