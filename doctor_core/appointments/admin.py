# doctor_core/appointments/admin.py
from django.contrib import admin

from doctor_core.appointments.models import Appointment


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = (
        "appointment_date",
        "doctor",
        "patient_name",
        "appointment_type",
        "status",
        "payment_status",
    )
    list_filter = ("status", "appointment_type", "payment_status")
    search_fields = ("patient_name", "patient_email", "patient_user_id", "doctor__last_name")
    readonly_fields = ("created_at", "updated_at", "appointment_end_date")
    date_hierarchy = "appointment_date"
    ordering = ("-appointment_date",)
