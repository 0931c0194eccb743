# doctor_core/patients/models.py
from django.db import models

from doctor_core.common.models import UUIDModel
from doctor_core.doctors.models import Doctor


class RelationshipStatus(models.TextChoices):
    ACTIVE = "ACTIVE", "Active"
    INACTIVE = "INACTIVE", "Inactive"
    TERMINATED = "TERMINATED", "Terminated"


class DoctorPatient(UUIDModel):
    """
    Doctor <-> patient relationship ledger. The patient is identified only by
    the user service id; demographics are looked up on demand.
    """
    doctor = models.ForeignKey(Doctor, on_delete=models.PROTECT, related_name="patient_links")
    patient_user_id = models.CharField(max_length=64, db_index=True)

    status = models.CharField(
        max_length=16,
        choices=RelationshipStatus.choices,
        default=RelationshipStatus.ACTIVE,
        db_index=True,
    )
    assigned_at = models.DateTimeField(db_index=True)

    first_consultation_date = models.DateTimeField(null=True, blank=True)
    last_consultation_date = models.DateTimeField(null=True, blank=True)
    total_consultations = models.PositiveIntegerField(default=0)
    total_appointments = models.PositiveIntegerField(default=0)

    medical_notes = models.TextField(blank=True, default="")

    terminated_at = models.DateTimeField(null=True, blank=True)
    termination_reason = models.TextField(blank=True, default="")

    class Meta:
        db_table = "patients_doctor_patient"
        indexes = [
            models.Index(fields=["doctor", "status", "assigned_at"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["doctor", "patient_user_id"],
                name="uq_doctor_patient_pair",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.doctor_id} -> {self.patient_user_id} [{self.status}]"

    @property
    def is_active(self) -> bool:
        return self.status == RelationshipStatus.ACTIVE
