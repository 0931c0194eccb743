import pytest

from doctor_core.doctors.models import ActivationStatus, Doctor, DoctorActivationRequest
from doctor_core.doctors.services import ActivationService

pytestmark = pytest.mark.django_db

BASE = "/api/v1"


@pytest.fixture
def pending():
    return ActivationService.register_doctor(
        user_id="u-200",
        email="derek@example.com",
        first_name="Derek",
        last_name="Shepherd",
        medical_license_number="LIC-SHEP",
    )


def test_admin_lists_and_counts_pending(admin_client, pending):
    r = admin_client.get(f"{BASE}/activations/pending/")
    assert r.status_code == 200, r.content
    assert len(r.data) == 1
    assert r.data[0]["doctor_id"] == str(pending.id)
    assert r.data[0]["full_name"] == "Derek Shepherd"

    r = admin_client.get(f"{BASE}/activations/pending/count/")
    assert r.status_code == 200
    assert r.data == {"count": 1}


def test_admin_approves(admin_client, pending):
    r = admin_client.post(
        f"{BASE}/activations/process/",
        {"doctor_id": str(pending.id), "action": "APPROVE", "notes": "ok"},
        format="json",
    )
    assert r.status_code == 200, r.content
    assert r.data["activation_status"] == ActivationStatus.APPROVED
    assert r.data["is_activated"] is True

    pending.refresh_from_db()
    assert pending.activated_by == "admin-1"
    assert DoctorActivationRequest.objects.get(doctor=pending).processed_by_email == "admin@example.com"


def test_second_processing_returns_409_envelope(admin_client, pending):
    payload = {"doctor_id": str(pending.id), "action": "APPROVE"}
    assert admin_client.post(f"{BASE}/activations/process/", payload, format="json").status_code == 200

    r = admin_client.post(f"{BASE}/activations/process/", payload, format="json")
    assert r.status_code == 409
    assert r.data["error"]["code"] == "conflict"
    assert r.data["error"]["request_id"]


def test_invalid_action_returns_400(admin_client, pending):
    r = admin_client.post(
        f"{BASE}/activations/process/",
        {"doctor_id": str(pending.id), "action": "LATER"},
        format="json",
    )
    assert r.status_code == 400
    assert r.data["error"]["code"] == "validation_error"
    assert "action" in r.data["error"]["details"]


def test_unknown_doctor_returns_404(admin_client):
    r = admin_client.post(
        f"{BASE}/activations/process/",
        {"doctor_id": "00000000-0000-0000-0000-000000000000", "action": "APPROVE"},
        format="json",
    )
    assert r.status_code == 404
    assert r.data["error"]["code"] == "not_found"


def test_non_admin_cannot_process(doctor_client, pending):
    r = doctor_client.post(
        f"{BASE}/activations/process/",
        {"doctor_id": str(pending.id), "action": "APPROVE"},
        format="json",
    )
    assert r.status_code == 403
    assert r.data["error"]["code"] == "permission_denied"


def test_register_then_me(client_for):
    c = client_for("u-300", "DOCTOR", email="cristina@example.com")

    r = c.post(
        f"{BASE}/doctors/register/",
        {
            "first_name": "Cristina",
            "last_name": "Yang",
            "medical_license_number": "LIC-YANG",
            "specialization": "Cardiothoracic",
            "years_of_experience": 5,
        },
        format="json",
    )
    assert r.status_code == 201, r.content
    assert r.data["email"] == "cristina@example.com"
    assert r.data["activation_status"] == ActivationStatus.PENDING

    r = c.get(f"{BASE}/doctors/me/")
    assert r.status_code == 200
    assert r.data["user_id"] == "u-300"
    assert Doctor.objects.filter(user_id="u-300").count() == 1


def test_register_twice_is_conflict(client_for):
    c = client_for("u-301", "DOCTOR", email="a@example.com")
    body = {"first_name": "A", "last_name": "B", "medical_license_number": "LIC-AB"}
    assert c.post(f"{BASE}/doctors/register/", body, format="json").status_code == 201
    assert c.post(f"{BASE}/doctors/register/", body, format="json").status_code == 409


def test_me_without_profile_is_404(client_for):
    r = client_for("nobody", "DOCTOR").get(f"{BASE}/doctors/me/")
    assert r.status_code == 404


def test_unauthenticated_is_401(client):
    r = client.get(f"{BASE}/activations/pending/")
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "not_authenticated"
