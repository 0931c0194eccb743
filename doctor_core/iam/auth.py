# doctor_core/iam/auth.py

from __future__ import annotations

from django.conf import settings
from rest_framework_simplejwt.authentication import JWTStatelessUserAuthentication


class CookieOrHeaderJWTAuthentication(JWTStatelessUserAuthentication):
    """
    Authenticate using:
      1) Authorization: Bearer <access>
      2) HttpOnly cookie containing access token

    Stateless: users are owned by the user service, so no local user row is
    looked up. request.user is a TokenUser; request.user.id is the external
    user id and claims (email, roles) are readable as attributes.
    """

    def authenticate(self, request):
        # 1) Prefer Authorization header
        header = self.get_header(request)
        if header:
            return super().authenticate(request)

        # 2) Cookie access token
        cookie_name = settings.SIMPLE_JWT.get("AUTH_COOKIE", "health_access")
        raw_token = request.COOKIES.get(cookie_name)
        if not raw_token:
            return None

        validated_token = self.get_validated_token(raw_token)
        return self.get_user(validated_token), validated_token


def caller_user_id(request) -> str | None:
    user = getattr(request, "user", None)
    if not user or not getattr(user, "is_authenticated", False):
        return None
    uid = getattr(user, "id", None)
    return None if uid is None else str(uid)


def caller_email(request) -> str | None:
    user = getattr(request, "user", None)
    return getattr(user, "email", None) or None
