"""App configuration for the image upload adapter."""

from django.apps import AppConfig


class UploadsConfig(AppConfig):
    """Uploads app validates images and stores them remotely or on disk."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "uploads"

    def ready(self) -> None:
        """Register storage configuration checks when the app is loaded."""
        from . import checks  # noqa: F401
