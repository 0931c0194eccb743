from __future__ import annotations

from doctor_core.common.api.exceptions import ensure_request_id
from doctor_core.common.logging import reset_request_id, set_request_id


class RequestIdMiddleware:
    """
    Correlates logs and error envelopes for one request.

    - Reuses an inbound X-Request-Id (set by the gateway) or generates one
    - Exposes it on request.request_id and in the logging context
    - Echoes it back in the X-Request-Id response header
    """

    HEADER = "HTTP_X_REQUEST_ID"

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        inbound = request.META.get(self.HEADER)
        if inbound:
            request.request_id = inbound[:64]
        rid = ensure_request_id(request)

        token = set_request_id(rid)
        try:
            response = self.get_response(request)
        finally:
            reset_request_id(token)

        response["X-Request-Id"] = rid
        return response
