from datetime import datetime, timedelta, timezone

import pytest

from doctor_core.appointments.models import Appointment, AppointmentStatus
from doctor_core.appointments.services import AppointmentService

pytestmark = pytest.mark.django_db


def _at(hour, minute=0):
    return datetime(2031, 5, 20, hour, minute, tzinfo=timezone.utc)


# -----------------------------
# Cancellation / reschedule predicates
# -----------------------------

def test_can_be_cancelled_requires_strictly_more_than_24h():
    ref = _at(10)
    appt = Appointment(status=AppointmentStatus.SCHEDULED, appointment_date=ref + timedelta(hours=24))

    assert appt.can_be_cancelled(at=ref) is False  # exactly at the boundary
    appt.appointment_date = ref + timedelta(hours=24, seconds=1)
    assert appt.can_be_cancelled(at=ref) is True
    appt.appointment_date = ref + timedelta(hours=23)
    assert appt.can_be_cancelled(at=ref) is False


@pytest.mark.parametrize(
    "status,expected",
    [
        (AppointmentStatus.SCHEDULED, True),
        (AppointmentStatus.CONFIRMED, True),
        (AppointmentStatus.IN_PROGRESS, False),
        (AppointmentStatus.COMPLETED, False),
        (AppointmentStatus.CANCELLED, False),
        (AppointmentStatus.NO_SHOW, False),
    ],
)
def test_can_be_cancelled_only_while_schedulable(status, expected):
    ref = _at(10)
    appt = Appointment(status=status, appointment_date=ref + timedelta(days=3))
    assert appt.can_be_cancelled(at=ref) is expected


def test_can_be_rescheduled_requires_future_start():
    ref = _at(10)
    appt = Appointment(status=AppointmentStatus.CONFIRMED, appointment_date=ref + timedelta(minutes=1))
    assert appt.can_be_rescheduled(at=ref) is True
    assert appt.can_be_rescheduled(at=ref + timedelta(minutes=1)) is False


def test_end_date_is_derived_on_save(doctor, make_appointment):
    appt = make_appointment(doctor, start=_at(9), duration=45)
    appt.refresh_from_db()
    assert appt.appointment_end_date == _at(9, 45)


# -----------------------------
# Conflict detection
# -----------------------------

def test_overlap_conflicts_but_touching_windows_do_not(doctor, make_appointment):
    existing = make_appointment(doctor, start=_at(10), duration=30, status=AppointmentStatus.CONFIRMED)

    clash = AppointmentService.find_conflicting_appointments(doctor_id=doctor.id, start=_at(10, 15), end=_at(10, 45))
    assert list(clash) == [existing]

    touching = AppointmentService.find_conflicting_appointments(doctor_id=doctor.id, start=_at(10, 30), end=_at(11))
    assert list(touching) == []

    before = AppointmentService.find_conflicting_appointments(doctor_id=doctor.id, start=_at(9, 30), end=_at(10))
    assert list(before) == []


def test_enclosing_window_conflicts(doctor, make_appointment):
    existing = make_appointment(doctor, start=_at(10), duration=30)
    clash = AppointmentService.find_conflicting_appointments(doctor_id=doctor.id, start=_at(9), end=_at(12))
    assert list(clash) == [existing]


@pytest.mark.parametrize(
    "status", [AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW]
)
def test_finished_appointments_do_not_block_the_slot(doctor, make_appointment, status):
    make_appointment(doctor, start=_at(10), duration=30, status=status)
    clash = AppointmentService.find_conflicting_appointments(doctor_id=doctor.id, start=_at(10), end=_at(10, 30))
    assert list(clash) == []


def test_conflicts_are_per_doctor_and_can_exclude_self(doctor, make_doctor, make_appointment):
    other = make_doctor()
    make_appointment(other, start=_at(10))
    mine = make_appointment(doctor, start=_at(10))

    clash = AppointmentService.find_conflicting_appointments(doctor_id=doctor.id, start=_at(10), end=_at(10, 30))
    assert list(clash) == [mine]

    clash = AppointmentService.find_conflicting_appointments(
        doctor_id=doctor.id, start=_at(10), end=_at(10, 30), exclude_id=mine.id
    )
    assert list(clash) == []
