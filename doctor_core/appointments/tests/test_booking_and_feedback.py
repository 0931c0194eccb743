from datetime import timedelta
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.utils.timezone import now
from rest_framework.exceptions import NotFound, PermissionDenied

from doctor_core.appointments.models import AppointmentStatus, AppointmentType
from doctor_core.appointments.services import AppointmentService
from doctor_core.common.api.exceptions import ConflictError
from doctor_core.doctors.models import ActivationStatus
from doctor_core.patients.models import DoctorPatient
from doctor_core.tests.fakes import FakeUserDirectory

pytestmark = pytest.mark.django_db


@pytest.fixture
def slot():
    return (now() + timedelta(days=5)).replace(microsecond=0)


def test_book_links_patient_and_denormalizes_directory_data(doctor, patient_user, slot):
    appt = AppointmentService.book(
        doctor_id=doctor.id,
        patient_user_id=patient_user.id,
        appointment_date=slot,
        duration_minutes=45,
        appointment_type=AppointmentType.FOLLOW_UP,
        reason_for_visit="Chest pain follow-up",
        created_by=doctor.user_id,
    )

    assert appt.status == AppointmentStatus.SCHEDULED
    assert appt.patient_name == "John Smith"
    assert appt.patient_email == "john.smith@example.com"
    assert appt.patient_phone == "+15550001"
    assert appt.appointment_end_date == slot + timedelta(minutes=45)

    link = DoctorPatient.objects.get(doctor=doctor, patient_user_id=patient_user.id)
    assert link.total_appointments == 1
    doctor.refresh_from_db()
    assert doctor.total_patients == 1


def test_second_booking_reuses_relationship(doctor, patient_user, slot):
    AppointmentService.book(doctor_id=doctor.id, patient_user_id=patient_user.id, appointment_date=slot)
    AppointmentService.book(
        doctor_id=doctor.id, patient_user_id=patient_user.id, appointment_date=slot + timedelta(hours=2)
    )

    assert DoctorPatient.objects.filter(doctor=doctor).count() == 1
    assert DoctorPatient.objects.get(doctor=doctor).total_appointments == 2


class CountingDirectory(FakeUserDirectory):
    def __init__(self):
        self.lookups = []

    def get_by_id(self, user_id):
        self.lookups.append(str(user_id))
        return super().get_by_id(user_id)


def test_booking_looks_up_the_patient_once(doctor, patient_user, slot):
    directory = CountingDirectory()

    AppointmentService.book(
        doctor_id=doctor.id, patient_user_id=patient_user.id, appointment_date=slot, directory=directory
    )

    assert directory.lookups == [patient_user.id]
    assert DoctorPatient.objects.filter(doctor=doctor, patient_user_id=patient_user.id).exists()


def test_overlapping_booking_is_a_conflict(doctor, patient_user, directory, slot):
    directory.add("pat-2", first_name="Amy", last_name="Lee")
    AppointmentService.book(doctor_id=doctor.id, patient_user_id=patient_user.id, appointment_date=slot)

    with pytest.raises(ConflictError):
        AppointmentService.book(
            doctor_id=doctor.id, patient_user_id="pat-2", appointment_date=slot + timedelta(minutes=15)
        )
    # nothing half-written for the rejected booking
    assert not DoctorPatient.objects.filter(patient_user_id="pat-2").exists()

    ok = AppointmentService.book(doctor_id=doctor.id, patient_user_id="pat-2", appointment_date=slot + timedelta(minutes=30))
    assert ok.appointment_date == slot + timedelta(minutes=30)


def test_booking_in_the_past_is_rejected(doctor, patient_user):
    with pytest.raises(ValidationError):
        AppointmentService.book(
            doctor_id=doctor.id, patient_user_id=patient_user.id, appointment_date=now() - timedelta(minutes=1)
        )


def test_booking_requires_activated_doctor(make_doctor, patient_user, slot):
    pending = make_doctor(activation_status=ActivationStatus.PENDING)
    with pytest.raises(ValidationError):
        AppointmentService.book(doctor_id=pending.id, patient_user_id=patient_user.id, appointment_date=slot)


def test_booking_unknown_patient_is_not_found(doctor, slot):
    with pytest.raises(NotFound):
        AppointmentService.book(doctor_id=doctor.id, patient_user_id="ghost", appointment_date=slot)


# -----------------------------
# Feedback
# -----------------------------

@pytest.fixture
def completed(doctor, make_link, make_appointment):
    make_link(doctor, "pat-1")
    return make_appointment(doctor, "pat-1", status=AppointmentStatus.COMPLETED)


def test_feedback_updates_average_rating(doctor, completed, make_appointment):
    second = make_appointment(doctor, "pat-1", status=AppointmentStatus.COMPLETED, start=now() + timedelta(days=9))

    AppointmentService.submit_feedback(appointment_id=completed.id, patient_user_id="pat-1", rating=5, feedback="Great")
    AppointmentService.submit_feedback(appointment_id=second.id, patient_user_id="pat-1", rating=4)

    completed.refresh_from_db()
    doctor.refresh_from_db()
    assert completed.rating == 5
    assert completed.patient_feedback == "Great"
    assert doctor.average_rating == Decimal("4.50")


def test_feedback_only_for_completed(doctor, make_link, make_appointment):
    make_link(doctor, "pat-1")
    appt = make_appointment(doctor, "pat-1")
    with pytest.raises(ValidationError):
        AppointmentService.submit_feedback(appointment_id=appt.id, patient_user_id="pat-1", rating=3)


def test_feedback_only_by_own_patient(completed):
    with pytest.raises(PermissionDenied):
        AppointmentService.submit_feedback(appointment_id=completed.id, patient_user_id="pat-2", rating=3)


def test_feedback_only_once(completed):
    AppointmentService.submit_feedback(appointment_id=completed.id, patient_user_id="pat-1", rating=3)
    with pytest.raises(ConflictError):
        AppointmentService.submit_feedback(appointment_id=completed.id, patient_user_id="pat-1", rating=1)


@pytest.mark.parametrize("rating", [0, 6])
def test_feedback_rating_range(completed, rating):
    with pytest.raises(ValidationError):
        AppointmentService.submit_feedback(appointment_id=completed.id, patient_user_id="pat-1", rating=rating)
