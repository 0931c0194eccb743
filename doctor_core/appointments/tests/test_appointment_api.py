from datetime import timedelta

import pytest
from django.utils.timezone import now

from doctor_core.appointments.models import Appointment, AppointmentStatus

pytestmark = pytest.mark.django_db

BASE = "/api/v1/appointments"


@pytest.fixture
def start():
    return (now() + timedelta(days=4)).replace(microsecond=0)


def _book(client, patient_user_id, start, **extra):
    body = {"patient_user_id": patient_user_id, "appointment_date": start.isoformat(), **extra}
    return client.post(f"{BASE}/", body, format="json")


def test_doctor_books_and_reads_appointment(doctor_client, patient_user, start):
    r = _book(doctor_client, patient_user.id, start, appointment_type="CHECK_UP", duration_minutes=20)
    assert r.status_code == 201, r.content
    assert r.data["status"] == AppointmentStatus.SCHEDULED
    assert r.data["patient_name"] == "John Smith"
    assert r.data["duration_minutes"] == 20
    assert r.data["can_be_cancelled"] is True

    r = doctor_client.get(f"{BASE}/{r.data['id']}/")
    assert r.status_code == 200
    assert r.data["appointment_type"] == "CHECK_UP"


def test_overlapping_booking_returns_409(doctor_client, patient_user, start):
    assert _book(doctor_client, patient_user.id, start).status_code == 201

    r = _book(doctor_client, patient_user.id, start + timedelta(minutes=10))
    assert r.status_code == 409
    assert r.data["error"]["code"] == "conflict"


def test_invalid_payload_returns_envelope(doctor_client):
    r = doctor_client.post(f"{BASE}/", {"appointment_type": "SURGERY"}, format="json")
    assert r.status_code == 400
    details = r.data["error"]["details"]
    assert "patient_user_id" in details
    assert "appointment_date" in details
    assert "appointment_type" in details


def test_full_workflow_over_http(doctor_client, patient_user, start):
    appt_id = _book(doctor_client, patient_user.id, start).data["id"]

    assert doctor_client.post(f"{BASE}/{appt_id}/confirm/").data["status"] == "CONFIRMED"
    assert doctor_client.post(f"{BASE}/{appt_id}/check-in/").data["status"] == "IN_PROGRESS"

    r = doctor_client.post(f"{BASE}/{appt_id}/complete/", {"diagnosis": "Migraine"}, format="json")
    assert r.status_code == 200
    assert r.data["status"] == "COMPLETED"
    assert r.data["diagnosis"] == "Migraine"

    # terminal: no further transitions
    r = doctor_client.post(f"{BASE}/{appt_id}/no-show/")
    assert r.status_code == 400
    assert r.data["error"]["code"] == "validation_error"
    assert "COMPLETED" in r.data["error"]["message"]


def test_cancel_and_reschedule_over_http(doctor_client, patient_user, start):
    first = _book(doctor_client, patient_user.id, start).data["id"]
    second = _book(doctor_client, patient_user.id, start + timedelta(hours=3)).data["id"]

    r = doctor_client.post(f"{BASE}/{first}/cancel/", {"reason": "conference"}, format="json")
    assert r.status_code == 200
    assert r.data["status"] == "CANCELLED"
    assert r.data["cancelled_by"] == "doc-user-1"

    new_date = start + timedelta(days=1)
    r = doctor_client.post(
        f"{BASE}/{second}/reschedule/",
        {"new_date": new_date.isoformat(), "reason": "patient request"},
        format="json",
    )
    assert r.status_code == 200, r.content
    assert Appointment.objects.get(id=second).appointment_date == new_date


def test_late_cancel_returns_400(doctor_client, doctor, make_link, make_appointment):
    make_link(doctor, "pat-1")
    soon = make_appointment(doctor, "pat-1", start=now() + timedelta(hours=2))

    r = doctor_client.post(f"{BASE}/{soon.id}/cancel/", {}, format="json")
    assert r.status_code == 400


def test_another_doctors_appointment_is_404(client_for, make_doctor, doctor, make_appointment):
    other = make_doctor()
    appt = make_appointment(doctor)

    c = client_for(other.user_id, "DOCTOR")
    assert c.get(f"{BASE}/{appt.id}/").status_code == 404
    assert c.post(f"{BASE}/{appt.id}/confirm/").status_code == 404


def test_patient_submits_feedback(patient_client, doctor, make_appointment):
    appt = make_appointment(doctor, "pat-1", status=AppointmentStatus.COMPLETED)

    r = patient_client.post(f"{BASE}/{appt.id}/feedback/", {"rating": 4, "feedback": "Kind"}, format="json")
    assert r.status_code == 200, r.content
    assert r.data["rating"] == 4

    doctor.refresh_from_db()
    assert str(doctor.average_rating) == "4.00"


def test_patient_cannot_drive_workflow(patient_client, doctor, make_appointment):
    appt = make_appointment(doctor, "pat-1")
    assert patient_client.post(f"{BASE}/{appt.id}/confirm/").status_code == 403


def test_doctor_cannot_leave_feedback(doctor_client, doctor, make_appointment):
    appt = make_appointment(doctor, "pat-1", status=AppointmentStatus.COMPLETED)
    r = doctor_client.post(f"{BASE}/{appt.id}/feedback/", {"rating": 5}, format="json")
    assert r.status_code == 403
