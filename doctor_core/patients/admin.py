# doctor_core/patients/admin.py
from django.contrib import admin

from doctor_core.patients.models import DoctorPatient


@admin.register(DoctorPatient)
class DoctorPatientAdmin(admin.ModelAdmin):
    list_display = (
        "doctor",
        "patient_user_id",
        "status",
        "assigned_at",
        "total_appointments",
        "total_consultations",
        "last_consultation_date",
    )
    list_filter = ("status",)
    search_fields = ("patient_user_id", "doctor__last_name", "doctor__email")
    readonly_fields = ("created_at", "updated_at")
    ordering = ("-assigned_at",)
