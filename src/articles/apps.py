"""App configuration for articles and their engagement records."""

from django.apps import AppConfig


class ArticlesConfig(AppConfig):
    """Articles app holds the article model, feeds, and engagement endpoints."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "articles"
