# doctor_core/patients/services.py

from __future__ import annotations

import logging
from typing import Optional

from django.db import IntegrityError, models, transaction
from django.db.models import F, Value
from django.db.models.functions import Coalesce
from django.utils.timezone import now
from rest_framework.exceptions import NotFound

from doctor_core.common.api.exceptions import UpstreamUnavailable
from doctor_core.doctors.models import Doctor
from doctor_core.doctors.selectors import DoctorSelector
from doctor_core.integrations.users import DirectoryUser, UserDirectoryError, get_user_directory
from doctor_core.patients.models import DoctorPatient, RelationshipStatus
from doctor_core.patients.selectors import DoctorPatientSelector

logger = logging.getLogger(__name__)


class PatientAssignmentService:
    """
    Doctor <-> patient relationship ledger (write side).

    Notes:
    - assign() is idempotent per (doctor, patient_user_id); the unique
      constraint absorbs concurrent first assignments.
    - Doctor.total_patients is the number of ACTIVE relationships and is
      recomputed with the doctor row locked, in the same transaction as the
      relationship write.
    - Counters use DB-side increments (F()) so concurrent lifecycle events
      don't lose updates.
    """

    # -------------------------
    # Internal helpers
    # -------------------------
    @staticmethod
    def _refresh_doctor_patient_count(doctor_id) -> int:
        doctor = Doctor.objects.select_for_update().get(id=doctor_id)
        active = DoctorPatientSelector.count_active(doctor_id=doctor_id)
        if doctor.total_patients != active:
            doctor.total_patients = active
            doctor.save(update_fields=["total_patients", "updated_at"])
        logger.debug("Doctor %s active patient count is %s", doctor_id, active)
        return active

    # -------------------------
    # Assignment
    # -------------------------
    @staticmethod
    def assign(
        *,
        doctor_id,
        patient_user_id: str,
        directory=None,
        patient: Optional[DirectoryUser] = None,
    ) -> DoctorPatient:
        """
        Returns the existing relationship unchanged when the pair is already
        linked; otherwise creates an ACTIVE one.

        Callers that already resolved the patient pass it as `patient` so the
        directory is not called again.
        """
        doctor = DoctorSelector.get_by_id(doctor_id=doctor_id)
        patient_user_id = str(patient_user_id)

        if patient is None:
            directory = directory or get_user_directory()
            try:
                patient = directory.get_by_id(patient_user_id)
            except UserDirectoryError:
                raise UpstreamUnavailable("User directory is unavailable; cannot verify patient.")
            if patient is None:
                raise NotFound("Patient not found in user directory.")

        existing = DoctorPatient.objects.filter(doctor=doctor, patient_user_id=patient_user_id).first()
        if existing is not None:
            return existing

        with transaction.atomic():
            try:
                # Savepoint: a duplicate insert must not poison the outer transaction
                with transaction.atomic():
                    relationship = DoctorPatient.objects.create(
                        doctor=doctor,
                        patient_user_id=patient_user_id,
                        status=RelationshipStatus.ACTIVE,
                        assigned_at=now(),
                        total_consultations=0,
                        total_appointments=0,
                    )
            except IntegrityError:
                return DoctorPatient.objects.get(doctor=doctor, patient_user_id=patient_user_id)

            PatientAssignmentService._refresh_doctor_patient_count(doctor.id)

        logger.info("Patient %s assigned to doctor %s", patient_user_id, doctor.id)
        return relationship

    @staticmethod
    def verify_belongs(*, doctor_id, patient_user_id: str) -> bool:
        return DoctorPatientSelector.exists(doctor_id=doctor_id, patient_user_id=patient_user_id)

    @staticmethod
    def get_relationship(*, doctor_id, patient_user_id: str) -> DoctorPatient:
        return DoctorPatientSelector.get(doctor_id=doctor_id, patient_user_id=patient_user_id)

    # -------------------------
    # Counters (driven by appointment lifecycle)
    # -------------------------
    @staticmethod
    @transaction.atomic
    def record_consultation(*, doctor_id, patient_user_id: str) -> DoctorPatient:
        relationship = DoctorPatientSelector.get(doctor_id=doctor_id, patient_user_id=patient_user_id)
        ts = now()
        DoctorPatient.objects.filter(pk=relationship.pk).update(
            total_consultations=F("total_consultations") + 1,
            last_consultation_date=ts,
            first_consultation_date=Coalesce(
                F("first_consultation_date"), Value(ts, output_field=models.DateTimeField())
            ),
            updated_at=ts,
        )
        relationship.refresh_from_db()
        logger.info("Recorded consultation for patient %s with doctor %s", patient_user_id, doctor_id)
        return relationship

    @staticmethod
    @transaction.atomic
    def record_appointment(*, doctor_id, patient_user_id: str) -> DoctorPatient:
        relationship = DoctorPatientSelector.get(doctor_id=doctor_id, patient_user_id=patient_user_id)
        DoctorPatient.objects.filter(pk=relationship.pk).update(
            total_appointments=F("total_appointments") + 1,
            updated_at=now(),
        )
        relationship.refresh_from_db()
        logger.info("Recorded appointment for patient %s with doctor %s", patient_user_id, doctor_id)
        return relationship

    # -------------------------
    # Termination / reactivation
    # -------------------------
    @staticmethod
    @transaction.atomic
    def terminate(*, doctor_id, patient_user_id: str, reason: str = "") -> DoctorPatient:
        relationship = DoctorPatientSelector.get(doctor_id=doctor_id, patient_user_id=patient_user_id)

        # Idempotent no-op
        if relationship.status == RelationshipStatus.TERMINATED:
            return relationship

        relationship.status = RelationshipStatus.TERMINATED
        relationship.terminated_at = now()
        relationship.termination_reason = reason or ""
        relationship.save(update_fields=["status", "terminated_at", "termination_reason", "updated_at"])

        PatientAssignmentService._refresh_doctor_patient_count(doctor_id)
        logger.info("Relationship terminated: patient %s, doctor %s", patient_user_id, doctor_id)
        return relationship

    @staticmethod
    @transaction.atomic
    def reactivate(*, doctor_id, patient_user_id: str) -> DoctorPatient:
        relationship = DoctorPatientSelector.get(doctor_id=doctor_id, patient_user_id=patient_user_id)

        if relationship.status == RelationshipStatus.ACTIVE:
            return relationship

        relationship.status = RelationshipStatus.ACTIVE
        relationship.terminated_at = None
        relationship.termination_reason = ""
        relationship.save(update_fields=["status", "terminated_at", "termination_reason", "updated_at"])

        PatientAssignmentService._refresh_doctor_patient_count(doctor_id)
        logger.info("Relationship reactivated: patient %s, doctor %s", patient_user_id, doctor_id)
        return relationship
