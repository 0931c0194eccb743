# doctor_core/common/logging.py
from __future__ import annotations

import logging
from contextvars import ContextVar

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    return _request_id.get()


def set_request_id(value: str | None):
    return _request_id.set(value)


def reset_request_id(token) -> None:
    _request_id.reset(token)


class RequestIdFilter(logging.Filter):
    """
    Injects the current request_id into every log record ("-" outside a request).
    """

    def filter(self, record):
        record.request_id = get_request_id() or "-"
        return True
