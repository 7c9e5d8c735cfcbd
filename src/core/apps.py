"""App configuration for shared project plumbing."""

from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Settings, root URLs, JWT middleware, response envelope, and error handling."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "core"
