# doctor_core/integrations/users.py
"""
User directory client.

Patients and doctors are owned by the user service; this service only keeps
their external user ids. Demographics are fetched over HTTP on demand:

    GET  {USER_SERVICE_URL}/api/v1/users/{user_id}
    POST {USER_SERVICE_URL}/api/v1/users/batch   body: ["id1", "id2", ...]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Optional

import requests
from django.conf import settings
from django.utils.dateparse import parse_date
from django.utils.module_loading import import_string
from django.utils.timezone import localdate

logger = logging.getLogger(__name__)


class UserDirectoryError(Exception):
    """The user service could not be reached or answered with an error."""


@dataclass(frozen=True)
class DirectoryUser:
    id: str
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    phone_number: str = ""
    birth_date: Optional[date] = None
    gender: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def age(self) -> Optional[int]:
        if not self.birth_date:
            return None
        today = localdate()
        years = today.year - self.birth_date.year
        if (today.month, today.day) < (self.birth_date.month, self.birth_date.day):
            years -= 1
        return years

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "DirectoryUser":
        raw_birth = data.get("birthDate") or data.get("birth_date")
        return cls(
            id=str(data.get("id")),
            email=data.get("email") or "",
            first_name=data.get("firstName") or data.get("first_name") or "",
            last_name=data.get("lastName") or data.get("last_name") or "",
            phone_number=data.get("phoneNumber") or data.get("phone_number") or "",
            birth_date=parse_date(raw_birth) if isinstance(raw_birth, str) else raw_birth,
            gender=data.get("gender"),
        )


class UserDirectoryClient:
    """HTTP implementation backed by the user service."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = (base_url or settings.USER_SERVICE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.USER_SERVICE_TIMEOUT

    def get_by_id(self, user_id: str) -> Optional[DirectoryUser]:
        """Returns None when the user service does not know the id."""
        url = f"{self.base_url}/api/v1/users/{user_id}"
        try:
            response = requests.get(url, timeout=self.timeout)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("User directory lookup failed for %s: %s", user_id, e)
            raise UserDirectoryError(str(e)) from e

        if not data:
            return None
        return DirectoryUser.from_payload(data)

    def get_by_ids(self, user_ids: Iterable[str]) -> list[DirectoryUser]:
        """Batch lookup; ids unknown to the user service are silently omitted."""
        ids = [str(i) for i in dict.fromkeys(user_ids)]
        if not ids:
            return []

        url = f"{self.base_url}/api/v1/users/batch"
        try:
            response = requests.post(url, json=ids, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("User directory batch lookup failed (%d ids): %s", len(ids), e)
            raise UserDirectoryError(str(e)) from e

        return [DirectoryUser.from_payload(item) for item in (data or []) if item]


def get_user_directory():
    return import_string(settings.USER_DIRECTORY_CLASS)()
