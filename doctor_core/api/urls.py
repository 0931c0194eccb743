# doctor_core/api/urls.py
from __future__ import annotations

from rest_framework.routers import DefaultRouter

from doctor_core.appointments.api.views import AppointmentViewSet
from doctor_core.dashboard.api.views import DashboardViewSet
from doctor_core.doctors.api.views import ActivationViewSet, DoctorViewSet
from doctor_core.patients.api.views import PatientLedgerViewSet

router = DefaultRouter()

router.register(r"dashboard", DashboardViewSet, basename="dashboard")
router.register(r"activations", ActivationViewSet, basename="activations")
router.register(r"doctors", DoctorViewSet, basename="doctors")
router.register(r"patients", PatientLedgerViewSet, basename="patients")
router.register(r"appointments", AppointmentViewSet, basename="appointments")

urlpatterns = [
    *router.urls,
]
