# doctor_core/doctors/admin.py
from django.contrib import admin

from doctor_core.doctors.models import Doctor, DoctorActivationRequest


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = (
        "last_name",
        "first_name",
        "email",
        "medical_license_number",
        "specialization",
        "activation_status",
        "total_patients",
        "created_at",
    )
    list_filter = ("activation_status", "specialization")
    search_fields = ("first_name", "last_name", "email", "medical_license_number", "user_id")
    readonly_fields = ("created_at", "updated_at", "total_patients", "total_consultations", "average_rating")
    ordering = ("-created_at",)


@admin.register(DoctorActivationRequest)
class DoctorActivationRequestAdmin(admin.ModelAdmin):
    list_display = ("doctor_full_name", "doctor_email", "is_pending", "action", "requested_at", "processed_at")
    list_filter = ("is_pending", "action")
    search_fields = ("doctor_full_name", "doctor_email", "medical_license_number")
    readonly_fields = ("created_at", "updated_at")
