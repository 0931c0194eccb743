# doctor_core/dashboard/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from doctor_core.appointments.selectors import AppointmentSelector


class DashboardStatisticsSerializer(serializers.Serializer):
    doctor_id = serializers.UUIDField()
    doctor_name = serializers.CharField()
    specialization = serializers.CharField()
    average_rating = serializers.DecimalField(max_digits=3, decimal_places=2)
    total_patients = serializers.IntegerField()
    active_patients = serializers.IntegerField()
    total_consultations = serializers.IntegerField()
    total_appointments = serializers.IntegerField()
    upcoming_appointments = serializers.IntegerField()
    today_appointments = serializers.IntegerField()
    completed_today = serializers.IntegerField()
    pending_today = serializers.IntegerField()
    this_week_appointments = serializers.IntegerField()
    this_month_completed = serializers.IntegerField()
    new_patients_this_month = serializers.IntegerField()


class PatientSummarySerializer(serializers.Serializer):
    """
    One patient row. The next appointment is looked up per row, so only
    serialize a page at a time.
    """
    patient_id = serializers.UUIDField(source="relationship_id")
    user_id = serializers.CharField()
    first_name = serializers.CharField()
    last_name = serializers.CharField()
    full_name = serializers.CharField()
    email = serializers.CharField()
    phone_number = serializers.CharField()
    birth_date = serializers.DateField(allow_null=True)
    age = serializers.IntegerField(allow_null=True)
    gender = serializers.CharField(allow_null=True)
    patient_status = serializers.CharField(source="status")
    first_consultation_date = serializers.DateTimeField(allow_null=True)
    last_consultation_date = serializers.DateTimeField(allow_null=True)
    total_consultations = serializers.IntegerField()
    total_appointments = serializers.IntegerField()
    next_appointment_date = serializers.SerializerMethodField()
    next_appointment_type = serializers.SerializerMethodField()
    assigned_at = serializers.DateTimeField()

    def _next(self, obj):
        cache = self.context.setdefault("_next_appointments", {})
        if obj.user_id not in cache:
            cache[obj.user_id] = AppointmentSelector.next_for_patient(
                doctor_id=obj.doctor_id, patient_user_id=obj.user_id
            )
        return cache[obj.user_id]

    def get_next_appointment_date(self, obj):
        nxt = self._next(obj)
        return serializers.DateTimeField().to_representation(nxt.appointment_date) if nxt else None

    def get_next_appointment_type(self, obj):
        nxt = self._next(obj)
        return nxt.appointment_type if nxt else None
