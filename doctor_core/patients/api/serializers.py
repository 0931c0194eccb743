# doctor_core/patients/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from doctor_core.patients.models import DoctorPatient


class DoctorPatientSerializer(serializers.ModelSerializer):
    doctor_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = DoctorPatient
        fields = [
            "id",
            "doctor_id",
            "patient_user_id",
            "status",
            "assigned_at",
            "first_consultation_date",
            "last_consultation_date",
            "total_consultations",
            "total_appointments",
            "medical_notes",
            "terminated_at",
            "termination_reason",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AssignPatientSerializer(serializers.Serializer):
    patient_user_id = serializers.CharField(max_length=64)


class TerminateRelationshipSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")
