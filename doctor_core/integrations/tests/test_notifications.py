import pytest
import requests

from doctor_core.integrations import notifications as notifications_module
from doctor_core.integrations.notifications import (
    DOCTOR_ACTIVATION_CONFIRMATION,
    HttpNotificationSink,
    NotificationSink,
    get_notification_sink,
    notify_safely,
)
from doctor_core.tests.fakes import RecordingNotificationSink


class _Resp:
    def __init__(self, status_code):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class _BrokenSink(NotificationSink):
    def notify(self, kind, recipient_id, payload):
        raise RuntimeError("smtp down")


def test_http_sink_posts_notification(monkeypatch):
    sent = {}

    def fake_post(url, json, timeout):
        sent.update(url=url, json=json, timeout=timeout)
        return _Resp(202)

    monkeypatch.setattr(notifications_module.requests, "post", fake_post)

    HttpNotificationSink(base_url="http://notify.local", timeout=3).notify(
        DOCTOR_ACTIVATION_CONFIRMATION, "doc-user-9", {"doctorName": "Dr. Who"}
    )

    assert sent == {
        "url": "http://notify.local/api/v1/notifications/",
        "json": {
            "type": DOCTOR_ACTIVATION_CONFIRMATION,
            "recipient_id": "doc-user-9",
            "payload": {"doctorName": "Dr. Who"},
        },
        "timeout": 3,
    }


def test_http_sink_raises_on_error_status(monkeypatch):
    monkeypatch.setattr(notifications_module.requests, "post", lambda url, json, timeout: _Resp(500))

    with pytest.raises(requests.HTTPError):
        HttpNotificationSink(base_url="http://notify.local").notify("X", "1", {})


def test_notify_safely_contains_failures(caplog):
    assert notify_safely(_BrokenSink(), DOCTOR_ACTIVATION_CONFIRMATION, "doc-user-9", {}) is False
    assert "Failed to send DOCTOR_ACTIVATION_CONFIRMATION notification to doc-user-9" in caplog.text


def test_notify_safely_reports_success(notifications):
    assert notify_safely(RecordingNotificationSink(), "X", "r1", {"a": 1}) is True
    assert notifications.sent == [("X", "r1", {"a": 1})]


def test_configured_sink_is_loaded_from_settings():
    assert isinstance(get_notification_sink(), RecordingNotificationSink)
