# doctor_core/dashboard/services.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.conf import settings
from django.core.exceptions import ValidationError
from django.utils.timezone import localdate, now

from doctor_core.appointments.models import SCHEDULABLE_STATUSES, Appointment, AppointmentStatus
from doctor_core.appointments.selectors import AppointmentSelector, day_bounds
from doctor_core.doctors.models import Doctor
from doctor_core.doctors.selectors import DoctorSelector
from doctor_core.integrations.users import UserDirectoryError, get_user_directory
from doctor_core.patients.models import DoctorPatient, RelationshipStatus
from doctor_core.patients.selectors import DoctorPatientSelector

logger = logging.getLogger(__name__)

ALL = "ALL"


@dataclass(frozen=True)
class DashboardStatistics:
    doctor_id: UUID
    doctor_name: str
    specialization: str
    average_rating: Decimal
    total_patients: int
    active_patients: int
    total_consultations: int
    total_appointments: int
    upcoming_appointments: int
    today_appointments: int
    completed_today: int
    pending_today: int
    this_week_appointments: int
    this_month_completed: int
    new_patients_this_month: int


@dataclass(frozen=True)
class PatientSummary:
    relationship_id: UUID
    doctor_id: UUID
    user_id: str
    first_name: str
    last_name: str
    full_name: str
    email: str
    phone_number: str
    birth_date: Optional[date]
    age: Optional[int]
    gender: Optional[str]
    status: str
    assigned_at: datetime
    first_consultation_date: Optional[datetime]
    last_consultation_date: Optional[datetime]
    total_consultations: int
    total_appointments: int


def _month_bounds(day: date) -> tuple[datetime, datetime]:
    """[first instant of the month, first instant of the next month)"""
    first = day.replace(day=1)
    next_first = (first + timedelta(days=32)).replace(day=1)
    start, _ = day_bounds(first)
    end, _ = day_bounds(next_first)
    return start, end


def _week_start(day: date) -> datetime:
    start, _ = day_bounds(day - timedelta(days=day.weekday()))
    return start


class DashboardService:
    """
    Read-only aggregation for the doctor dashboard. Every call is scoped to
    the doctor owned by the caller's user id.
    """

    @staticmethod
    def doctor_for(*, user_id: str) -> Doctor:
        return DoctorSelector.get_by_user_id(user_id=user_id)

    # -------------------------
    # Statistics
    # -------------------------
    @staticmethod
    def statistics(*, doctor: Doctor) -> DashboardStatistics:
        ts = now()
        today = localdate()
        day_start, day_end = day_bounds(today)
        month_start, month_end = _month_bounds(today)

        appts = Appointment.objects.filter(doctor=doctor)
        links = DoctorPatient.objects.filter(doctor=doctor)
        todays = appts.filter(appointment_date__gte=day_start, appointment_date__lt=day_end)

        return DashboardStatistics(
            doctor_id=doctor.id,
            doctor_name=doctor.full_name,
            specialization=doctor.specialization,
            average_rating=doctor.average_rating,
            total_patients=links.count(),
            active_patients=links.filter(status=RelationshipStatus.ACTIVE).count(),
            total_consultations=doctor.total_consultations,
            total_appointments=appts.count(),
            upcoming_appointments=appts.filter(status__in=SCHEDULABLE_STATUSES, appointment_date__gte=ts).count(),
            today_appointments=todays.count(),
            completed_today=todays.filter(status=AppointmentStatus.COMPLETED).count(),
            pending_today=todays.filter(status__in=SCHEDULABLE_STATUSES).count(),
            this_week_appointments=appts.filter(
                appointment_date__gte=_week_start(today), appointment_date__lte=ts
            ).count(),
            this_month_completed=appts.filter(
                status=AppointmentStatus.COMPLETED,
                appointment_date__gte=month_start,
                appointment_date__lt=month_end,
            ).count(),
            new_patients_this_month=links.filter(assigned_at__gte=month_start, assigned_at__lt=month_end).count(),
        )

    # -------------------------
    # Patients
    # -------------------------
    @staticmethod
    def patient_list(
        *,
        doctor: Doctor,
        status: Optional[str] = RelationshipStatus.ACTIVE,
        search: Optional[str] = None,
        directory=None,
    ) -> list[PatientSummary]:
        """
        Relationship rows joined with user-directory demographics, newest
        assignment first. Search is a case-insensitive substring match on
        first name, last name, full name or email.

        Directory problems degrade rather than fail: unknown users are
        skipped, an unreachable directory yields an empty list.

        Every matching relationship is resolved in one batch call before
        paging, so the batch grows with the doctor's patient count.
        """
        status = (status or RelationshipStatus.ACTIVE).upper()
        if status != ALL and status not in RelationshipStatus.values:
            raise ValidationError(f"status is invalid. Allowed: {sorted([*RelationshipStatus.values, ALL])}")

        links = list(
            DoctorPatientSelector.for_doctor(doctor_id=doctor.id, status=None if status == ALL else status)
        )
        if not links:
            return []

        directory = directory or get_user_directory()
        try:
            users = directory.get_by_ids([link.patient_user_id for link in links])
        except UserDirectoryError:
            logger.error("User directory unavailable; returning empty patient list for doctor %s", doctor.id)
            return []
        by_id = {u.id: u for u in users}

        needle = (search or "").strip().lower()
        out: list[PatientSummary] = []
        for link in links:
            user = by_id.get(link.patient_user_id)
            if user is None:
                logger.warning("User not found in directory for patient_user_id %s", link.patient_user_id)
                continue

            if needle and not any(
                needle in (value or "").lower()
                for value in (user.first_name, user.last_name, user.full_name, user.email)
            ):
                continue

            out.append(
                PatientSummary(
                    relationship_id=link.id,
                    doctor_id=doctor.id,
                    user_id=user.id,
                    first_name=user.first_name,
                    last_name=user.last_name,
                    full_name=user.full_name,
                    email=user.email,
                    phone_number=user.phone_number,
                    birth_date=user.birth_date,
                    age=user.age,
                    gender=user.gender,
                    status=link.status,
                    assigned_at=link.assigned_at,
                    first_consultation_date=link.first_consultation_date,
                    last_consultation_date=link.last_consultation_date,
                    total_consultations=link.total_consultations,
                    total_appointments=link.total_appointments,
                )
            )
        return out

    @staticmethod
    def patient_counts(*, doctor: Doctor) -> dict[str, int]:
        counts = DoctorPatientSelector.count_by_status(doctor_id=doctor.id)
        counts[ALL] = sum(counts.values())
        return counts

    # -------------------------
    # Appointments
    # -------------------------
    @staticmethod
    def upcoming_appointments(*, doctor: Doctor):
        return AppointmentSelector.upcoming(doctor_id=doctor.id, days=settings.UPCOMING_WINDOW_DAYS)

    @staticmethod
    def today_appointments(*, doctor: Doctor):
        return AppointmentSelector.today(doctor_id=doctor.id)

    @staticmethod
    def appointment_counts(*, doctor: Doctor) -> dict[str, int]:
        counts = AppointmentSelector.count_by_status(doctor_id=doctor.id)
        counts[ALL] = sum(counts.values())
        return counts
