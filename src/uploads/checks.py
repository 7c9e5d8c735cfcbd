"""System checks for image storage configuration."""

from django.core.checks import Warning, register

from .services import StorageConfig


@register()
def remote_image_storage_configured(app_configs, **kwargs):
    """Warn when uploads will fall back to local disk storage."""
    config = StorageConfig.from_settings()
    if config.remote_enabled:
        return []
    return [
        Warning(
            "Cloudinary credentials are missing or still set to placeholders; "
            "images will be stored on local disk.",
            hint="Set CLOUDINARY_CLOUD_NAME, CLOUDINARY_API_KEY and CLOUDINARY_API_SECRET.",
            id="uploads.W001",
        )
    ]
