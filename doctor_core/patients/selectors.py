# doctor_core/patients/selectors.py
from __future__ import annotations

from django.db.models import Count, QuerySet
from rest_framework.exceptions import NotFound

from doctor_core.patients.models import DoctorPatient, RelationshipStatus


class DoctorPatientSelector:
    @staticmethod
    def get(*, doctor_id, patient_user_id: str) -> DoctorPatient:
        try:
            return DoctorPatient.objects.get(doctor_id=doctor_id, patient_user_id=str(patient_user_id))
        except DoctorPatient.DoesNotExist:
            raise NotFound("Patient is not assigned to this doctor")

    @staticmethod
    def exists(*, doctor_id, patient_user_id: str) -> bool:
        return DoctorPatient.objects.filter(doctor_id=doctor_id, patient_user_id=str(patient_user_id)).exists()

    @staticmethod
    def for_doctor(*, doctor_id, status: str | None = None) -> QuerySet[DoctorPatient]:
        """
        status=None means every status.
        """
        qs = DoctorPatient.objects.filter(doctor_id=doctor_id)
        if status:
            qs = qs.filter(status=status)
        return qs.order_by("-assigned_at")

    @staticmethod
    def count_active(*, doctor_id) -> int:
        return DoctorPatient.objects.filter(doctor_id=doctor_id, status=RelationshipStatus.ACTIVE).count()

    @staticmethod
    def count_by_status(*, doctor_id) -> dict[str, int]:
        counts = {s: 0 for s in RelationshipStatus.values}
        rows = (
            DoctorPatient.objects.filter(doctor_id=doctor_id)
            .values("status")
            .annotate(n=Count("id"))
        )
        for row in rows:
            counts[row["status"]] = row["n"]
        return counts
