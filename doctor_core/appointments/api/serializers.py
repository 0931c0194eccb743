# doctor_core/appointments/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from doctor_core.appointments.models import (
    DEFAULT_DURATION_MINUTES,
    Appointment,
    AppointmentType,
    PaymentMethod,
)


class AppointmentSerializer(serializers.ModelSerializer):
    doctor_id = serializers.UUIDField(read_only=True)
    can_be_cancelled = serializers.SerializerMethodField()
    can_be_rescheduled = serializers.SerializerMethodField()

    class Meta:
        model = Appointment
        fields = [
            "id",
            "doctor_id",
            "patient_user_id",
            "patient_name",
            "patient_email",
            "patient_phone",
            "appointment_date",
            "appointment_end_date",
            "duration_minutes",
            "appointment_type",
            "status",
            "reason_for_visit",
            "symptoms",
            "patient_notes",
            "diagnosis",
            "prescription",
            "treatment_plan",
            "doctor_notes",
            "follow_up_instructions",
            "follow_up_date",
            "consultation_fee",
            "payment_status",
            "payment_method",
            "cancelled_at",
            "cancelled_by",
            "cancellation_reason",
            "rescheduled_from",
            "rescheduled_reason",
            "checked_in_at",
            "completed_at",
            "rating",
            "patient_feedback",
            "can_be_cancelled",
            "can_be_rescheduled",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_can_be_cancelled(self, obj) -> bool:
        return obj.can_be_cancelled()

    def get_can_be_rescheduled(self, obj) -> bool:
        return obj.can_be_rescheduled()


class BookAppointmentSerializer(serializers.Serializer):
    patient_user_id = serializers.CharField(max_length=64)
    appointment_date = serializers.DateTimeField()
    duration_minutes = serializers.IntegerField(min_value=5, max_value=480, default=DEFAULT_DURATION_MINUTES)
    appointment_type = serializers.ChoiceField(choices=AppointmentType.choices, default=AppointmentType.CONSULTATION)
    reason_for_visit = serializers.CharField(required=False, allow_blank=True, default="")
    symptoms = serializers.CharField(required=False, allow_blank=True, default="")
    patient_notes = serializers.CharField(required=False, allow_blank=True, default="")
    consultation_fee = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True, default=None)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices, required=False, allow_blank=True, default="")


class CompleteAppointmentSerializer(serializers.Serializer):
    diagnosis = serializers.CharField(required=False, allow_blank=True, default="")
    prescription = serializers.CharField(required=False, allow_blank=True, default="")
    treatment_plan = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    follow_up_instructions = serializers.CharField(required=False, allow_blank=True, default="")
    follow_up_date = serializers.DateTimeField(required=False, allow_null=True, default=None)


class CancelAppointmentSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class RescheduleAppointmentSerializer(serializers.Serializer):
    new_date = serializers.DateTimeField()
    reason = serializers.CharField(required=False, allow_blank=True, default="")
    duration_minutes = serializers.IntegerField(min_value=5, max_value=480, required=False, allow_null=True, default=None)


class FeedbackSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5)
    feedback = serializers.CharField(required=False, allow_blank=True, default="")
