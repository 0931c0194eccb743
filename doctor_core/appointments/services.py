# doctor_core/appointments/services.py

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Avg, F, QuerySet
from django.utils.timezone import now
from rest_framework.exceptions import NotFound, PermissionDenied

from doctor_core.appointments.models import (
    DEFAULT_DURATION_MINUTES,
    Appointment,
    AppointmentStatus,
    AppointmentType,
)
from doctor_core.appointments.selectors import AppointmentSelector
from doctor_core.common.api.exceptions import ConflictError, UpstreamUnavailable
from doctor_core.doctors.models import Doctor
from doctor_core.integrations.users import UserDirectoryError, get_user_directory
from doctor_core.patients.services import PatientAssignmentService

logger = logging.getLogger(__name__)


class AppointmentService:
    """
    Appointment write-model operations.

    Workflow:
      SCHEDULED -> CONFIRMED -> IN_PROGRESS -> COMPLETED
      SCHEDULED | CONFIRMED -> CANCELLED  (with enough notice)
      SCHEDULED | CONFIRMED | IN_PROGRESS -> NO_SHOW
    COMPLETED, CANCELLED and NO_SHOW are terminal: nothing on a terminal
    appointment changes except patient feedback on a COMPLETED one.
    """

    # -------------------------
    # Internal helpers
    # -------------------------
    @staticmethod
    def _get_locked(*, doctor_id, appointment_id) -> Appointment:
        try:
            return Appointment.objects.select_for_update().get(id=appointment_id, doctor_id=doctor_id)
        except (Appointment.DoesNotExist, ValidationError):
            raise NotFound("Appointment not found.")

    @staticmethod
    def _ensure_not_terminal(appointment: Appointment) -> None:
        if appointment.is_terminal:
            raise ValidationError(f"Appointment is {appointment.status} and can no longer be changed.")

    @staticmethod
    def _ensure_no_conflict(*, doctor_id, start: datetime, end: datetime, exclude_id=None) -> None:
        clash = AppointmentSelector.conflicting(doctor_id=doctor_id, start=start, end=end, exclude_id=exclude_id).first()
        if clash is not None:
            raise ConflictError(
                f"Doctor already has an appointment from {clash.appointment_date.isoformat()} "
                f"to {clash.appointment_end_date.isoformat()}."
            )

    # -------------------------
    # Conflict detection
    # -------------------------
    @staticmethod
    def find_conflicting_appointments(*, doctor_id, start: datetime, end: datetime, exclude_id=None) -> QuerySet[Appointment]:
        return AppointmentSelector.conflicting(doctor_id=doctor_id, start=start, end=end, exclude_id=exclude_id)

    # -------------------------
    # Booking
    # -------------------------
    @staticmethod
    def book(
        *,
        doctor_id,
        patient_user_id: str,
        appointment_date: datetime,
        duration_minutes: int = DEFAULT_DURATION_MINUTES,
        appointment_type: str = AppointmentType.CONSULTATION,
        reason_for_visit: str = "",
        symptoms: str = "",
        patient_notes: str = "",
        consultation_fee: Optional[Decimal] = None,
        payment_method: str = "",
        created_by: str = "",
        directory=None,
    ) -> Appointment:
        """
        Books a visit after the overlap check; links the patient to the
        doctor (idempotent) and counts the appointment on the ledger.
        """
        if appointment_date <= now():
            raise ValidationError("Appointment date must be in the future.")
        if not duration_minutes or duration_minutes <= 0:
            raise ValidationError("Duration must be a positive number of minutes.")

        patient_user_id = str(patient_user_id)
        directory = directory or get_user_directory()
        try:
            patient = directory.get_by_id(patient_user_id)
        except UserDirectoryError:
            raise UpstreamUnavailable("User directory is unavailable; cannot book appointment.")
        if patient is None:
            raise NotFound("Patient not found in user directory.")

        end = appointment_date + timedelta(minutes=duration_minutes)

        with transaction.atomic():
            # Serialises bookings for one doctor
            try:
                doctor = Doctor.objects.select_for_update().get(id=doctor_id)
            except (Doctor.DoesNotExist, ValidationError):
                raise NotFound("Doctor not found.")
            if not doctor.is_activated:
                raise ValidationError("Doctor account is not activated.")

            AppointmentService._ensure_no_conflict(doctor_id=doctor.id, start=appointment_date, end=end)

            PatientAssignmentService.assign(doctor_id=doctor.id, patient_user_id=patient_user_id, patient=patient)

            appointment = Appointment.objects.create(
                doctor=doctor,
                patient_user_id=patient_user_id,
                patient_name=patient.full_name,
                patient_email=patient.email,
                patient_phone=patient.phone_number,
                appointment_date=appointment_date,
                appointment_end_date=end,
                duration_minutes=duration_minutes,
                appointment_type=appointment_type or AppointmentType.CONSULTATION,
                status=AppointmentStatus.SCHEDULED,
                reason_for_visit=reason_for_visit or "",
                symptoms=symptoms or "",
                patient_notes=patient_notes or "",
                consultation_fee=consultation_fee,
                payment_method=payment_method or "",
                created_by=created_by or "",
            )

            PatientAssignmentService.record_appointment(doctor_id=doctor.id, patient_user_id=patient_user_id)

        logger.info("Appointment %s booked for doctor %s at %s", appointment.id, doctor.id, appointment_date.isoformat())
        return appointment

    # -------------------------
    # Workflow
    # -------------------------
    @staticmethod
    @transaction.atomic
    def confirm(*, doctor_id, appointment_id) -> Appointment:
        appointment = AppointmentService._get_locked(doctor_id=doctor_id, appointment_id=appointment_id)

        # Idempotent no-op
        if appointment.status == AppointmentStatus.CONFIRMED:
            return appointment

        AppointmentService._ensure_not_terminal(appointment)
        if appointment.status != AppointmentStatus.SCHEDULED:
            raise ValidationError("Only SCHEDULED appointment can be confirmed.")

        appointment.status = AppointmentStatus.CONFIRMED
        appointment.save(update_fields=["status", "updated_at"])
        logger.info("Appointment %s confirmed", appointment.id)
        return appointment

    @staticmethod
    @transaction.atomic
    def check_in(*, doctor_id, appointment_id) -> Appointment:
        appointment = AppointmentService._get_locked(doctor_id=doctor_id, appointment_id=appointment_id)
        AppointmentService._ensure_not_terminal(appointment)

        if not appointment.is_scheduled:
            raise ValidationError("Only SCHEDULED or CONFIRMED appointment can be checked in.")

        appointment.status = AppointmentStatus.IN_PROGRESS
        appointment.checked_in_at = now()
        appointment.save(update_fields=["status", "checked_in_at", "updated_at"])
        logger.info("Appointment %s checked in", appointment.id)
        return appointment

    @staticmethod
    @transaction.atomic
    def complete(
        *,
        doctor_id,
        appointment_id,
        diagnosis: str = "",
        prescription: str = "",
        treatment_plan: str = "",
        notes: str = "",
        follow_up_instructions: str = "",
        follow_up_date: Optional[datetime] = None,
    ) -> Appointment:
        appointment = AppointmentService._get_locked(doctor_id=doctor_id, appointment_id=appointment_id)
        AppointmentService._ensure_not_terminal(appointment)

        appointment.status = AppointmentStatus.COMPLETED
        appointment.completed_at = now()
        appointment.diagnosis = diagnosis or ""
        appointment.prescription = prescription or ""
        appointment.treatment_plan = treatment_plan or ""
        appointment.doctor_notes = notes or ""
        appointment.follow_up_instructions = follow_up_instructions or ""
        appointment.follow_up_date = follow_up_date
        appointment.save(
            update_fields=[
                "status",
                "completed_at",
                "diagnosis",
                "prescription",
                "treatment_plan",
                "doctor_notes",
                "follow_up_instructions",
                "follow_up_date",
                "updated_at",
            ]
        )

        PatientAssignmentService.record_consultation(
            doctor_id=appointment.doctor_id,
            patient_user_id=appointment.patient_user_id,
        )
        Doctor.objects.filter(id=appointment.doctor_id).update(total_consultations=F("total_consultations") + 1)

        logger.info("Appointment %s completed", appointment.id)
        return appointment

    @staticmethod
    @transaction.atomic
    def cancel(*, doctor_id, appointment_id, cancelled_by: str, reason: str = "") -> Appointment:
        appointment = AppointmentService._get_locked(doctor_id=doctor_id, appointment_id=appointment_id)
        AppointmentService._ensure_not_terminal(appointment)

        if not appointment.can_be_cancelled():
            raise ValidationError(
                f"Appointment can only be cancelled with more than {settings.CANCELLATION_NOTICE_HOURS} hours notice."
            )

        appointment.status = AppointmentStatus.CANCELLED
        appointment.cancelled_at = now()
        appointment.cancelled_by = str(cancelled_by or "")
        appointment.cancellation_reason = reason or ""
        appointment.save(update_fields=["status", "cancelled_at", "cancelled_by", "cancellation_reason", "updated_at"])
        logger.info("Appointment %s cancelled by %s", appointment.id, cancelled_by)
        return appointment

    @staticmethod
    @transaction.atomic
    def mark_no_show(*, doctor_id, appointment_id) -> Appointment:
        appointment = AppointmentService._get_locked(doctor_id=doctor_id, appointment_id=appointment_id)
        AppointmentService._ensure_not_terminal(appointment)

        appointment.status = AppointmentStatus.NO_SHOW
        appointment.save(update_fields=["status", "updated_at"])
        logger.info("Appointment %s marked no-show", appointment.id)
        return appointment

    @staticmethod
    @transaction.atomic
    def reschedule(
        *,
        doctor_id,
        appointment_id,
        new_date: datetime,
        reason: str = "",
        duration_minutes: Optional[int] = None,
    ) -> Appointment:
        appointment = AppointmentService._get_locked(doctor_id=doctor_id, appointment_id=appointment_id)
        AppointmentService._ensure_not_terminal(appointment)

        if not appointment.can_be_rescheduled():
            raise ValidationError("Only a future SCHEDULED or CONFIRMED appointment can be rescheduled.")
        if new_date <= now():
            raise ValidationError("New appointment date must be in the future.")

        duration = duration_minutes or appointment.duration_minutes
        end = new_date + timedelta(minutes=duration)
        AppointmentService._ensure_no_conflict(
            doctor_id=appointment.doctor_id, start=new_date, end=end, exclude_id=appointment.id
        )

        appointment.rescheduled_from = appointment.appointment_date
        appointment.rescheduled_reason = reason or ""
        appointment.appointment_date = new_date
        appointment.duration_minutes = duration
        appointment.appointment_end_date = end
        appointment.status = AppointmentStatus.SCHEDULED
        appointment.save(
            update_fields=[
                "rescheduled_from",
                "rescheduled_reason",
                "appointment_date",
                "duration_minutes",
                "appointment_end_date",
                "status",
                "updated_at",
            ]
        )
        logger.info("Appointment %s rescheduled to %s", appointment.id, new_date.isoformat())
        return appointment

    # -------------------------
    # Patient feedback
    # -------------------------
    @staticmethod
    @transaction.atomic
    def submit_feedback(*, appointment_id, patient_user_id: str, rating: int, feedback: str = "") -> Appointment:
        try:
            appointment = Appointment.objects.select_for_update().get(id=appointment_id)
        except (Appointment.DoesNotExist, ValidationError):
            raise NotFound("Appointment not found.")

        if appointment.patient_user_id != str(patient_user_id):
            raise PermissionDenied("You can only rate your own appointments.")
        if appointment.status != AppointmentStatus.COMPLETED:
            raise ValidationError("Only COMPLETED appointment can be rated.")
        if appointment.rating is not None:
            raise ConflictError("Feedback has already been submitted for this appointment.")
        if not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError("Rating must be an integer between 1 and 5.")

        appointment.rating = rating
        appointment.patient_feedback = feedback or ""
        appointment.save(update_fields=["rating", "patient_feedback", "updated_at"])

        avg = (
            Appointment.objects.filter(
                doctor_id=appointment.doctor_id,
                status=AppointmentStatus.COMPLETED,
                rating__isnull=False,
            ).aggregate(avg=Avg("rating"))["avg"]
        )
        average = Decimal(str(avg or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        Doctor.objects.filter(id=appointment.doctor_id).update(average_rating=average)

        logger.info("Feedback %s/5 recorded for appointment %s", rating, appointment.id)
        return appointment
