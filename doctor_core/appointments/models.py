# doctor_core/appointments/models.py
from datetime import timedelta

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils.timezone import now as tz_now

from doctor_core.common.models import UUIDModel
from doctor_core.doctors.models import Doctor


class AppointmentStatus(models.TextChoices):
    SCHEDULED = "SCHEDULED", "Scheduled"
    CONFIRMED = "CONFIRMED", "Confirmed"
    IN_PROGRESS = "IN_PROGRESS", "In Progress"
    COMPLETED = "COMPLETED", "Completed"
    CANCELLED = "CANCELLED", "Cancelled"
    NO_SHOW = "NO_SHOW", "No Show"


class AppointmentType(models.TextChoices):
    CONSULTATION = "CONSULTATION", "Consultation"
    FOLLOW_UP = "FOLLOW_UP", "Follow-up"
    EMERGENCY = "EMERGENCY", "Emergency"
    CHECK_UP = "CHECK_UP", "Check-up"
    VACCINATION = "VACCINATION", "Vaccination"


class PaymentStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PAID = "PAID", "Paid"
    REFUNDED = "REFUNDED", "Refunded"


class PaymentMethod(models.TextChoices):
    CASH = "CASH", "Cash"
    CARD = "CARD", "Card"
    INSURANCE = "INSURANCE", "Insurance"


# Waiting on the doctor (future visits)
SCHEDULABLE_STATUSES = (AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED)
# Occupy the doctor's calendar
ACTIVE_STATUSES = (AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED, AppointmentStatus.IN_PROGRESS)
TERMINAL_STATUSES = (AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW)

DEFAULT_DURATION_MINUTES = 30


class Appointment(UUIDModel):
    doctor = models.ForeignKey(Doctor, on_delete=models.PROTECT, related_name="appointments")
    patient_user_id = models.CharField(max_length=64, db_index=True)

    # Copied from the user directory at booking time; may go stale
    patient_name = models.CharField(max_length=255, blank=True, default="")
    patient_email = models.EmailField(blank=True, default="")
    patient_phone = models.CharField(max_length=32, blank=True, default="")

    appointment_date = models.DateTimeField(db_index=True)
    appointment_end_date = models.DateTimeField()
    duration_minutes = models.PositiveIntegerField(default=DEFAULT_DURATION_MINUTES)

    appointment_type = models.CharField(
        max_length=16,
        choices=AppointmentType.choices,
        default=AppointmentType.CONSULTATION,
    )
    status = models.CharField(
        max_length=16,
        choices=AppointmentStatus.choices,
        default=AppointmentStatus.SCHEDULED,
        db_index=True,
    )

    reason_for_visit = models.TextField(blank=True, default="")
    symptoms = models.TextField(blank=True, default="")
    patient_notes = models.TextField(blank=True, default="")

    diagnosis = models.TextField(blank=True, default="")
    prescription = models.TextField(blank=True, default="")
    treatment_plan = models.TextField(blank=True, default="")
    doctor_notes = models.TextField(blank=True, default="")
    follow_up_instructions = models.TextField(blank=True, default="")
    follow_up_date = models.DateTimeField(null=True, blank=True)

    consultation_fee = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    payment_status = models.CharField(max_length=16, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)
    payment_method = models.CharField(max_length=16, choices=PaymentMethod.choices, blank=True, default="")

    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.CharField(max_length=64, blank=True, default="")
    cancellation_reason = models.TextField(blank=True, default="")
    rescheduled_from = models.DateTimeField(null=True, blank=True)
    rescheduled_reason = models.TextField(blank=True, default="")

    checked_in_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    rating = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(5)],
    )
    patient_feedback = models.TextField(blank=True, default="")

    reminder_sent = models.BooleanField(default=False)
    reminder_sent_at = models.DateTimeField(null=True, blank=True)

    created_by = models.CharField(max_length=64, blank=True, default="")

    class Meta:
        db_table = "appointments_appointment"
        ordering = ["appointment_date"]
        indexes = [
            models.Index(fields=["doctor", "status", "appointment_date"]),
            models.Index(fields=["doctor", "patient_user_id", "appointment_date"]),
        ]

    def __str__(self) -> str:
        return f"{self.appointment_type} {self.appointment_date:%Y-%m-%d %H:%M} [{self.status}]"

    def save(self, *args, **kwargs):
        # End is always derived from start + duration
        if self.appointment_date and self.duration_minutes:
            self.appointment_end_date = self.appointment_date + timedelta(minutes=self.duration_minutes)
        return super().save(*args, **kwargs)

    @property
    def is_scheduled(self) -> bool:
        return self.status in SCHEDULABLE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def can_be_rescheduled(self, at=None) -> bool:
        at = at or tz_now()
        return self.is_scheduled and self.appointment_date > at

    def can_be_cancelled(self, at=None) -> bool:
        """
        Requires more than CANCELLATION_NOTICE_HOURS of notice (exactly at
        the boundary is too late).
        """
        at = at or tz_now()
        notice = timedelta(hours=settings.CANCELLATION_NOTICE_HOURS)
        return self.is_scheduled and self.appointment_date > at + notice
