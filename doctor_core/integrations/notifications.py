# doctor_core/integrations/notifications.py
"""
Notification sink: fire-and-forget messages to users (email/push is the
notification service's business).

Callers treat delivery as best-effort: `notify_safely` logs and swallows
sink failures so they never roll back or fail the business operation.
"""

from __future__ import annotations

import logging
from typing import Any

import requests
from django.conf import settings
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)

# Notification kinds
DOCTOR_ACTIVATION_CONFIRMATION = "DOCTOR_ACTIVATION_CONFIRMATION"
DOCTOR_ACTIVATION_REJECTION = "DOCTOR_ACTIVATION_REJECTION"
NEW_DOCTOR_REGISTRATION = "NEW_DOCTOR_REGISTRATION"

# Recipient for admin-wide notifications
ADMINS_RECIPIENT = "ADMINS"


class NotificationSink:
    def notify(self, kind: str, recipient_id: str, payload: dict[str, Any]) -> None:
        raise NotImplementedError


class LoggingNotificationSink(NotificationSink):
    """Development sink: writes the notification to the log."""

    def notify(self, kind, recipient_id, payload):
        logger.info("Notification %s -> %s: %s", kind, recipient_id, payload)


class HttpNotificationSink(NotificationSink):
    """POSTs to {NOTIFICATION_SERVICE_URL}/api/v1/notifications/."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = (base_url or settings.NOTIFICATION_SERVICE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.NOTIFICATION_SERVICE_TIMEOUT

    def notify(self, kind, recipient_id, payload):
        response = requests.post(
            f"{self.base_url}/api/v1/notifications/",
            json={"type": kind, "recipient_id": str(recipient_id), "payload": payload},
            timeout=self.timeout,
        )
        response.raise_for_status()


def get_notification_sink() -> NotificationSink:
    return import_string(settings.NOTIFICATION_SINK_CLASS)()


def notify_safely(sink: NotificationSink, kind: str, recipient_id: str, payload: dict[str, Any]) -> bool:
    """
    Best-effort delivery. Returns False (and logs) on any sink failure.
    """
    try:
        sink.notify(kind, recipient_id, payload)
        return True
    except Exception:
        logger.exception("Failed to send %s notification to %s", kind, recipient_id)
        return False
