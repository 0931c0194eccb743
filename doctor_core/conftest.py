# doctor_core/conftest.py
import itertools
from datetime import timedelta

import pytest
from django.utils.timezone import now
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from doctor_core.appointments.models import Appointment, AppointmentStatus
from doctor_core.doctors.models import ActivationStatus, Doctor
from doctor_core.patients.models import DoctorPatient, RelationshipStatus
from doctor_core.tests.fakes import FakeUserDirectory, RecordingNotificationSink

_seq = itertools.count(1)


@pytest.fixture(autouse=True)
def _reset_fakes():
    FakeUserDirectory.reset()
    RecordingNotificationSink.reset()
    yield
    FakeUserDirectory.reset()
    RecordingNotificationSink.reset()


@pytest.fixture
def directory():
    return FakeUserDirectory


@pytest.fixture
def notifications():
    return RecordingNotificationSink


# -----------------------------
# Domain factories
# -----------------------------

@pytest.fixture
def make_doctor(db):
    def _make(**overrides):
        n = next(_seq)
        fields = {
            "user_id": f"doc-user-{n}",
            "email": f"doctor{n}@example.com",
            "first_name": "Gregory",
            "last_name": f"House{n}",
            "medical_license_number": f"LIC-{n:05d}",
            "specialization": "Cardiology",
            "activation_status": ActivationStatus.APPROVED,
        }
        fields.update(overrides)
        return Doctor.objects.create(**fields)

    return _make


@pytest.fixture
def doctor(make_doctor):
    return make_doctor(user_id="doc-user-1", email="house@example.com")


@pytest.fixture
def patient_user(directory):
    return directory.add(
        "pat-1",
        email="john.smith@example.com",
        first_name="John",
        last_name="Smith",
        phone_number="+15550001",
    )


@pytest.fixture
def make_link(db):
    def _make(doctor, patient_user_id, **overrides):
        fields = {
            "status": RelationshipStatus.ACTIVE,
            "assigned_at": now(),
        }
        fields.update(overrides)
        return DoctorPatient.objects.create(doctor=doctor, patient_user_id=str(patient_user_id), **fields)

    return _make


@pytest.fixture
def make_appointment(db):
    def _make(doctor, patient_user_id="pat-1", start=None, duration=30, **overrides):
        start = start or now() + timedelta(days=3)
        fields = {
            "status": AppointmentStatus.SCHEDULED,
            "patient_name": "John Smith",
        }
        fields.update(overrides)
        return Appointment.objects.create(
            doctor=doctor,
            patient_user_id=str(patient_user_id),
            appointment_date=start,
            appointment_end_date=start + timedelta(minutes=duration),
            duration_minutes=duration,
            **fields,
        )

    return _make


# -----------------------------
# API clients (real signed JWTs, as issued by the user service)
# -----------------------------

@pytest.fixture
def client_for(db):
    def _client(user_id, *roles, email=None):
        token = AccessToken()
        token["user_id"] = str(user_id)
        token["roles"] = list(roles)
        if email:
            token["email"] = email
        c = APIClient()
        c.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        return c

    return _client


@pytest.fixture
def doctor_client(client_for, doctor):
    return client_for(doctor.user_id, "DOCTOR", email=doctor.email)


@pytest.fixture
def admin_client(client_for):
    return client_for("admin-1", "ROLE_ADMIN", email="admin@example.com")


@pytest.fixture
def patient_client(client_for, patient_user):
    return client_for(patient_user.id, "PATIENT", email=patient_user.email)
