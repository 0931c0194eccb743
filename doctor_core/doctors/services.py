# doctor_core/doctors/services.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils.timezone import now
from rest_framework.exceptions import NotFound

from doctor_core.common.api.exceptions import ConflictError
from doctor_core.doctors.models import (
    ActivationAction,
    ActivationStatus,
    Doctor,
    DoctorActivationRequest,
)
from doctor_core.doctors.selectors import DoctorSelector
from doctor_core.integrations.notifications import (
    ADMINS_RECIPIENT,
    DOCTOR_ACTIVATION_CONFIRMATION,
    DOCTOR_ACTIVATION_REJECTION,
    NEW_DOCTOR_REGISTRATION,
    NotificationSink,
    get_notification_sink,
    notify_safely,
)

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "Credentials could not be verified"


@dataclass(frozen=True)
class PendingDoctor:
    request_id: Optional[UUID]
    doctor_id: UUID
    email: str
    full_name: str
    medical_license_number: str
    specialization: str
    hospital_affiliation: str
    years_of_experience: int
    registration_date: datetime
    activation_request_date: Optional[datetime]


class ActivationService:
    """
    Admin review of doctor registrations.

    Notes:
    - PENDING -> APPROVED | REJECTED, exactly once per activation request.
    - State is committed first; notifications are best-effort and sent after
      the transaction, so a sink failure never undoes a decision.
    """

    # -------------------------
    # Reads
    # -------------------------
    @staticmethod
    def list_pending_doctors() -> list[PendingDoctor]:
        out: list[PendingDoctor] = []
        for doctor in DoctorSelector.pending_doctors():
            req = getattr(doctor, "activation_request", None)
            out.append(
                PendingDoctor(
                    request_id=req.id if req else None,
                    doctor_id=doctor.id,
                    email=doctor.email,
                    full_name=doctor.full_name,
                    medical_license_number=doctor.medical_license_number,
                    specialization=doctor.specialization,
                    hospital_affiliation=doctor.hospital_affiliation,
                    years_of_experience=doctor.years_of_experience,
                    registration_date=doctor.created_at,
                    activation_request_date=doctor.activation_request_date,
                )
            )
        return out

    @staticmethod
    def count_pending() -> int:
        return DoctorSelector.count_pending_requests()

    # -------------------------
    # Registration
    # -------------------------
    @staticmethod
    def register_doctor(
        *,
        user_id: str,
        email: str,
        first_name: str,
        last_name: str,
        medical_license_number: str,
        phone_number: str = "",
        specialization: str = "",
        hospital_affiliation: str = "",
        years_of_experience: int = 0,
        notifier: NotificationSink | None = None,
    ) -> Doctor:
        """
        Creates a PENDING doctor with its activation request and tells the
        admins a new registration is waiting.
        """
        user_id = str(user_id)
        if Doctor.objects.filter(user_id=user_id).exists():
            raise ConflictError("A doctor profile already exists for this user.")
        if Doctor.objects.filter(medical_license_number=medical_license_number).exists():
            raise ConflictError("This medical license number is already registered.")

        ts = now()
        try:
            with transaction.atomic():
                doctor = Doctor.objects.create(
                    user_id=user_id,
                    email=email,
                    first_name=first_name,
                    last_name=last_name,
                    phone_number=phone_number or "",
                    medical_license_number=medical_license_number,
                    specialization=specialization or "",
                    hospital_affiliation=hospital_affiliation or "",
                    years_of_experience=years_of_experience or 0,
                    activation_status=ActivationStatus.PENDING,
                    activation_request_date=ts,
                )
                DoctorActivationRequest.objects.create(
                    doctor=doctor,
                    doctor_email=doctor.email,
                    doctor_full_name=doctor.full_name,
                    medical_license_number=doctor.medical_license_number,
                    specialization=doctor.specialization,
                    hospital_affiliation=doctor.hospital_affiliation,
                    years_of_experience=doctor.years_of_experience,
                    is_pending=True,
                    requested_at=ts,
                )
        except IntegrityError:
            # Lost a race against a concurrent registration
            raise ConflictError("A doctor with this user or license is already registered.")

        logger.info("Doctor registered (pending activation): %s", doctor.email)

        notify_safely(
            notifier or get_notification_sink(),
            NEW_DOCTOR_REGISTRATION,
            ADMINS_RECIPIENT,
            {
                "doctor_id": str(doctor.id),
                "doctor_email": doctor.email,
                "doctor_full_name": doctor.full_name,
                "medical_license_number": doctor.medical_license_number,
                "specialization": doctor.specialization,
            },
        )
        return doctor

    # -------------------------
    # Approve / reject
    # -------------------------
    @staticmethod
    def process_activation(
        *,
        doctor_id,
        action: str,
        admin_id: str,
        admin_email: str = "",
        notes: str = "",
        notifier: NotificationSink | None = None,
    ) -> Doctor:
        with transaction.atomic():
            try:
                doctor = Doctor.objects.select_for_update().get(id=doctor_id)
            except (Doctor.DoesNotExist, ValidationError):
                raise NotFound("Doctor not found.")

            try:
                request = DoctorActivationRequest.objects.select_for_update().get(doctor=doctor)
            except DoctorActivationRequest.DoesNotExist:
                raise NotFound("Activation request not found.")

            normalized = (action or "").strip().upper()
            if normalized not in ActivationAction.values:
                raise ValidationError(f"Invalid action: {action}. Use APPROVE or REJECT.")

            if not request.is_pending or doctor.activation_status != ActivationStatus.PENDING:
                raise ConflictError("Activation request has already been processed.")

            ts = now()
            notes = notes or ""
            if normalized == ActivationAction.APPROVE:
                doctor.activation_status = ActivationStatus.APPROVED
                doctor.activated_by = str(admin_id)
                doctor.activation_date = ts
                doctor.save(update_fields=["activation_status", "activated_by", "activation_date", "updated_at"])
            else:
                doctor.activation_status = ActivationStatus.REJECTED
                doctor.rejected_by = str(admin_id)
                doctor.rejection_date = ts
                doctor.rejection_reason = notes
                doctor.save(
                    update_fields=[
                        "activation_status",
                        "rejected_by",
                        "rejection_date",
                        "rejection_reason",
                        "updated_at",
                    ]
                )

            request.is_pending = False
            request.processed_at = ts
            request.processed_by = str(admin_id)
            request.processed_by_email = admin_email or ""
            request.action = normalized
            request.admin_notes = notes
            request.save(
                update_fields=[
                    "is_pending",
                    "processed_at",
                    "processed_by",
                    "processed_by_email",
                    "action",
                    "admin_notes",
                    "updated_at",
                ]
            )

        sink = notifier or get_notification_sink()
        if normalized == ActivationAction.APPROVE:
            logger.info("Doctor approved: %s by %s", doctor.email, admin_id)
            notify_safely(
                sink,
                DOCTOR_ACTIVATION_CONFIRMATION,
                doctor.user_id,
                {
                    "to": doctor.email,
                    "doctor_first_name": doctor.first_name,
                    "doctor_last_name": doctor.last_name,
                },
            )
        else:
            logger.info("Doctor rejected: %s by %s", doctor.email, admin_id)
            notify_safely(
                sink,
                DOCTOR_ACTIVATION_REJECTION,
                doctor.user_id,
                {
                    "to": doctor.email,
                    "doctor_last_name": doctor.last_name,
                    "reason": notes or DEFAULT_REJECTION_REASON,
                },
            )
        return doctor
