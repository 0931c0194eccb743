# config/settings/test.py
from .base import *  # noqa

DEBUG = False
SECRET_KEY = "test-secret-key-not-for-production"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

SIMPLE_JWT["SIGNING_KEY"] = SECRET_KEY  # noqa: F405

# No network in tests
USER_DIRECTORY_CLASS = "doctor_core.tests.fakes.FakeUserDirectory"
NOTIFICATION_SINK_CLASS = "doctor_core.tests.fakes.RecordingNotificationSink"

LOGGING["root"]["level"] = "WARNING"  # noqa: F405
LOGGING["loggers"]["doctor_core"]["propagate"] = True  # noqa: F405
