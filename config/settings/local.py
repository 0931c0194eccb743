# config/settings/local.py
from .base import *  # noqa

DEBUG = True

LOGGING["loggers"]["doctor_core"]["level"] = "DEBUG"  # noqa: F405
