# doctor_core/common/permissions.py

from __future__ import annotations

from typing import Set

from rest_framework.permissions import BasePermission, SAFE_METHODS

# Role names as issued in the "roles" claim by the user service
ROLE_ADMIN = "ADMIN"
ROLE_DOCTOR = "DOCTOR"
ROLE_PATIENT = "PATIENT"


def _user_roles(user) -> Set[str]:
    """
    Resolve roles from the token's "roles" claim (list or comma separated
    string). A "ROLE_" prefix is stripped so ROLE_DOCTOR == DOCTOR.
    """
    roles: Set[str] = set()

    if not user or not getattr(user, "is_authenticated", False):
        return roles

    raw = getattr(user, "roles", None)
    if not raw:
        return roles

    if isinstance(raw, str):
        raw = raw.split(",")

    for r in raw:
        name = str(r).strip().upper()
        if name.startswith("ROLE_"):
            name = name[len("ROLE_"):]
        if name:
            roles.add(name)
    return roles


def has_role(user, role: str) -> bool:
    return role in _user_roles(user)


class BaseRolePermission(BasePermission):
    """
    Base permission class for role-based access control.

    - allowed_roles_per_action maps view action -> allowed roles
    - admin_bypass: ADMIN may call everything (off for doctor-only views
      that resolve "the caller's doctor profile")
    - unknown SAFE actions fall back to list/retrieve
    """
    message = "You do not have permission to perform this action."
    admin_bypass = True

    allowed_roles_per_action: dict[str, set[str]] = {}

    def _infer_action(self, request, view) -> str | None:
        action = getattr(view, "action", None)
        if action:
            return action
        return None

    def has_permission(self, request, view) -> bool:
        user = getattr(request, "user", None)
        if not user or not getattr(user, "is_authenticated", False):
            return False

        roles = _user_roles(user)

        if self.admin_bypass and ROLE_ADMIN in roles:
            return True

        action = self._infer_action(request, view)
        allowed = self.allowed_roles_per_action.get(action)

        if allowed is None and request.method in SAFE_METHODS:
            kwargs = getattr(view, "kwargs", {}) or {}
            is_detail = "pk" in kwargs or "id" in kwargs
            allowed = self.allowed_roles_per_action.get("retrieve" if is_detail else "list")

        if allowed is not None:
            return bool(roles & allowed)

        # Unknown action => deny by default
        return False


class DashboardPermission(BaseRolePermission):
    """Doctor dashboard: only the doctor's own data."""
    admin_bypass = False
    allowed_roles_per_action = {
        "statistics": {ROLE_DOCTOR},
        "patients": {ROLE_DOCTOR},
        "patients_count": {ROLE_DOCTOR},
        "appointments": {ROLE_DOCTOR},
        "upcoming": {ROLE_DOCTOR},
        "today": {ROLE_DOCTOR},
        "appointments_count": {ROLE_DOCTOR},
    }


class ActivationPermission(BaseRolePermission):
    """Doctor activation queue (admin only)."""
    allowed_roles_per_action = {
        "pending": {ROLE_ADMIN},
        "pending_count": {ROLE_ADMIN},
        "process": {ROLE_ADMIN},
    }


class DoctorPermission(BaseRolePermission):
    """Doctor self-service (registration + own profile)."""
    admin_bypass = False
    allowed_roles_per_action = {
        "me": {ROLE_DOCTOR},
    }

    def has_permission(self, request, view) -> bool:
        # Registration happens before the DOCTOR role is granted.
        if getattr(view, "action", None) == "register":
            user = getattr(request, "user", None)
            return bool(user and getattr(user, "is_authenticated", False))
        return super().has_permission(request, view)


class PatientLedgerPermission(BaseRolePermission):
    """Doctor <-> patient relationship management."""
    admin_bypass = False
    allowed_roles_per_action = {
        "assign": {ROLE_DOCTOR},
        "terminate": {ROLE_DOCTOR},
        "reactivate": {ROLE_DOCTOR},
    }


class AppointmentPermission(BaseRolePermission):
    """Appointment lifecycle (doctor-owned) + patient feedback."""
    admin_bypass = False
    allowed_roles_per_action = {
        "create": {ROLE_DOCTOR},
        "retrieve": {ROLE_DOCTOR},
        "confirm": {ROLE_DOCTOR},
        "check_in": {ROLE_DOCTOR},
        "complete": {ROLE_DOCTOR},
        "cancel": {ROLE_DOCTOR},
        "no_show": {ROLE_DOCTOR},
        "reschedule": {ROLE_DOCTOR},
        "feedback": {ROLE_PATIENT},
    }
