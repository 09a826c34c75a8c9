from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "campusweb.core"

    def ready(self):
        """Register system checks for the feedback configuration."""
        from . import checks  # noqa: F401
