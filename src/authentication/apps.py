"""App configuration for accounts and token handling."""

from django.apps import AppConfig


class AuthenticationConfig(AppConfig):
    """Owns the User model, JWT issuance, profiles, and the follow graph."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "authentication"
