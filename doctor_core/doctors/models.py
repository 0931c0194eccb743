# doctor_core/doctors/models.py
from decimal import Decimal

from django.db import models

from doctor_core.common.models import UUIDModel


class ActivationStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    APPROVED = "APPROVED", "Approved"
    REJECTED = "REJECTED", "Rejected"


class ActivationAction(models.TextChoices):
    APPROVE = "APPROVE", "Approve"
    REJECT = "REJECT", "Reject"


class Doctor(UUIDModel):
    """
    Doctor profile. The login identity lives in the user service; `user_id`
    is that service's id for the doctor.
    """
    user_id = models.CharField(max_length=64, unique=True)
    email = models.EmailField(db_index=True)
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    phone_number = models.CharField(max_length=32, blank=True, default="")

    medical_license_number = models.CharField(max_length=64, unique=True)
    specialization = models.CharField(max_length=128, blank=True, default="")
    hospital_affiliation = models.CharField(max_length=255, blank=True, default="")
    years_of_experience = models.PositiveIntegerField(default=0)

    activation_status = models.CharField(
        max_length=16,
        choices=ActivationStatus.choices,
        default=ActivationStatus.PENDING,
        db_index=True,
    )
    activation_request_date = models.DateTimeField(null=True, blank=True)
    activated_by = models.CharField(max_length=64, blank=True, default="")
    activation_date = models.DateTimeField(null=True, blank=True)
    rejected_by = models.CharField(max_length=64, blank=True, default="")
    rejection_date = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True, default="")

    # Cached counters (maintained by the ledger / appointment services)
    total_patients = models.PositiveIntegerField(default=0)
    total_consultations = models.PositiveIntegerField(default=0)
    average_rating = models.DecimalField(max_digits=3, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        db_table = "doctors_doctor"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Dr. {self.full_name} ({self.medical_license_number})"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_activated(self) -> bool:
        return self.activation_status == ActivationStatus.APPROVED


class DoctorActivationRequest(UUIDModel):
    """
    Admin review ticket created with the doctor's registration. Carries a
    snapshot of the credentials as submitted; processed exactly once.
    """
    doctor = models.OneToOneField(Doctor, on_delete=models.PROTECT, related_name="activation_request")

    doctor_email = models.EmailField()
    doctor_full_name = models.CharField(max_length=255)
    medical_license_number = models.CharField(max_length=64)
    specialization = models.CharField(max_length=128, blank=True, default="")
    hospital_affiliation = models.CharField(max_length=255, blank=True, default="")
    years_of_experience = models.PositiveIntegerField(default=0)

    is_pending = models.BooleanField(default=True, db_index=True)
    requested_at = models.DateTimeField()

    processed_at = models.DateTimeField(null=True, blank=True)
    processed_by = models.CharField(max_length=64, blank=True, default="")
    processed_by_email = models.EmailField(blank=True, default="")
    action = models.CharField(max_length=16, choices=ActivationAction.choices, blank=True, default="")
    admin_notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "doctors_activation_request"
        ordering = ["requested_at"]

    def __str__(self) -> str:
        state = "pending" if self.is_pending else self.action.lower()
        return f"Activation {self.doctor_full_name} [{state}]"
