from django.apps import AppConfig


class CommonConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "doctor_core.common"

    def ready(self) -> None:
        # registers the OpenAPI auth extension
        from doctor_core.iam import openapi  # noqa: F401
