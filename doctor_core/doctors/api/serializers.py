# doctor_core/doctors/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from doctor_core.doctors.models import ActivationAction, Doctor


class DoctorSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)
    is_activated = serializers.BooleanField(read_only=True)

    class Meta:
        model = Doctor
        fields = [
            "id",
            "user_id",
            "email",
            "first_name",
            "last_name",
            "full_name",
            "phone_number",
            "medical_license_number",
            "specialization",
            "hospital_affiliation",
            "years_of_experience",
            "activation_status",
            "is_activated",
            "activation_request_date",
            "activation_date",
            "rejection_date",
            "rejection_reason",
            "total_patients",
            "total_consultations",
            "average_rating",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class DoctorRegistrationSerializer(serializers.Serializer):
    email = serializers.EmailField(required=False)
    first_name = serializers.CharField(max_length=100)
    last_name = serializers.CharField(max_length=100)
    phone_number = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    medical_license_number = serializers.CharField(max_length=64)
    specialization = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")
    hospital_affiliation = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    years_of_experience = serializers.IntegerField(min_value=0, required=False, default=0)


class PendingDoctorSerializer(serializers.Serializer):
    id = serializers.UUIDField(source="request_id", allow_null=True)
    doctor_id = serializers.UUIDField()
    email = serializers.EmailField()
    full_name = serializers.CharField()
    medical_license_number = serializers.CharField()
    specialization = serializers.CharField()
    hospital_affiliation = serializers.CharField()
    years_of_experience = serializers.IntegerField()
    registration_date = serializers.DateTimeField()
    activation_request_date = serializers.DateTimeField(allow_null=True)


class ProcessActivationSerializer(serializers.Serializer):
    doctor_id = serializers.UUIDField()
    action = serializers.CharField()
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_action(self, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in ActivationAction.values:
            raise serializers.ValidationError("Invalid action. Use APPROVE or REJECT.")
        return normalized
