# doctor_core/appointments/selectors.py
from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Count, QuerySet
from django.utils.timezone import localdate, make_aware, now
from rest_framework.exceptions import NotFound

from doctor_core.appointments.models import (
    ACTIVE_STATUSES,
    SCHEDULABLE_STATUSES,
    Appointment,
    AppointmentStatus,
)


def day_bounds(day) -> tuple[datetime, datetime]:
    """
    [00:00, next day 00:00) of a local calendar day, as aware datetimes.
    """
    start = make_aware(datetime.combine(day, time.min))
    return start, make_aware(datetime.combine(day + timedelta(days=1), time.min))


class AppointmentSelector:
    @staticmethod
    def get(*, appointment_id) -> Appointment:
        try:
            return Appointment.objects.select_related("doctor").get(id=appointment_id)
        except (Appointment.DoesNotExist, DjangoValidationError):
            raise NotFound("Appointment not found.")

    @staticmethod
    def get_for_doctor(*, doctor_id, appointment_id) -> Appointment:
        """Ownership-scoped lookup: another doctor's appointment is a 404."""
        try:
            return Appointment.objects.get(id=appointment_id, doctor_id=doctor_id)
        except (Appointment.DoesNotExist, DjangoValidationError):
            raise NotFound("Appointment not found.")

    @staticmethod
    def conflicting(*, doctor_id, start: datetime, end: datetime, exclude_id=None) -> QuerySet[Appointment]:
        """
        Calendar-occupying appointments overlapping the half-open window
        [start, end). Touching windows do not overlap.
        """
        qs = Appointment.objects.filter(
            doctor_id=doctor_id,
            status__in=ACTIVE_STATUSES,
            appointment_date__lt=end,
            appointment_end_date__gt=start,
        )
        if exclude_id is not None:
            qs = qs.exclude(id=exclude_id)
        return qs.order_by("appointment_date")

    @staticmethod
    def for_doctor(
        *,
        doctor_id,
        status: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> QuerySet[Appointment]:
        qs = Appointment.objects.filter(doctor_id=doctor_id)
        if status:
            qs = qs.filter(status=status)
        if start is not None:
            qs = qs.filter(appointment_date__gte=start)
        if end is not None:
            qs = qs.filter(appointment_date__lt=end)
        return qs.order_by("appointment_date")

    @staticmethod
    def upcoming(*, doctor_id, days: int) -> QuerySet[Appointment]:
        ts = now()
        return Appointment.objects.filter(
            doctor_id=doctor_id,
            status__in=SCHEDULABLE_STATUSES,
            appointment_date__gte=ts,
            appointment_date__lt=ts + timedelta(days=days),
        ).order_by("appointment_date")

    @staticmethod
    def today(*, doctor_id) -> QuerySet[Appointment]:
        start, end = day_bounds(localdate())
        return AppointmentSelector.for_doctor(doctor_id=doctor_id, start=start, end=end)

    @staticmethod
    def next_for_patient(*, doctor_id, patient_user_id: str) -> Optional[Appointment]:
        return (
            Appointment.objects.filter(
                doctor_id=doctor_id,
                patient_user_id=str(patient_user_id),
                status__in=SCHEDULABLE_STATUSES,
                appointment_date__gt=now(),
            )
            .order_by("appointment_date")
            .first()
        )

    @staticmethod
    def count_by_status(*, doctor_id) -> dict[str, int]:
        counts = {s: 0 for s in AppointmentStatus.values}
        rows = (
            Appointment.objects.filter(doctor_id=doctor_id)
            .values("status")
            .annotate(n=Count("id"))
        )
        for row in rows:
            counts[row["status"]] = row["n"]
        return counts
