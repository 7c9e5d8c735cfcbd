"""Image upload adapter: validation plus remote (Cloudinary) or local disk storage.

The adapter never reads storage credentials from mutable global state. Callers
pass a :class:`StorageConfig` (or let it be built from Django settings for the
current call) and the adapter resolves an ordered list of backends from it:
Cloudinary first when credentials are real, then local disk as the fallback.
"""

import io
import logging
import re
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import cloudinary.uploader
from django.conf import settings
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 5 * 1024 * 1024
ALLOWED_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp"})
ALLOWED_CONTENT_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"})

# Values shipped in the sample .env; they mean "not configured".
PLACEHOLDER_CREDENTIALS = frozenset(
    {"your_cloudinary_name", "your_cloudinary_api_key", "your_cloudinary_api_secret"}
)

LOCAL_ID_PATTERN = re.compile(r"^image-\d+-\d+\.[a-z0-9]+$")


class ImageValidationError(ValidationError):
    """Raised when an upload is rejected before any storage attempt."""


class UpstreamStorageError(APIException):
    """Raised when an image could not be stored or released by a backend."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Image storage failed."
    default_code = "upstream_storage_error"


@dataclass(frozen=True)
class StorageConfig:
    """Resolved storage settings for a single upload or delete call."""

    cloud_name: str = ""
    api_key: str = ""
    api_secret: str = ""
    folder: str = "inkwell"
    media_root: Path = Path("uploads_data")
    media_url: str = "/uploads/"
    base_url: str = "http://localhost:8000"

    @classmethod
    def from_settings(cls) -> "StorageConfig":
        """Build a config from the current Django settings."""
        return cls(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME or "",
            api_key=settings.CLOUDINARY_API_KEY or "",
            api_secret=settings.CLOUDINARY_API_SECRET or "",
            folder=settings.CLOUDINARY_FOLDER,
            media_root=Path(settings.MEDIA_ROOT),
            media_url=settings.MEDIA_URL,
            base_url=settings.PUBLIC_BASE_URL,
        )

    @property
    def remote_enabled(self) -> bool:
        """True when all Cloudinary credentials are set to real values."""
        credentials = (self.cloud_name, self.api_key, self.api_secret)
        return all(credentials) and not any(value in PLACEHOLDER_CREDENTIALS for value in credentials)


@dataclass(frozen=True)
class UploadOptions:
    """Target dimensions and folder hint for a stored image."""

    folder: str = ""
    width: int = 800
    height: int = 600
    crop: str = "fill"


@dataclass(frozen=True)
class ImagePayload:
    data: bytes
    filename: str
    content_type: str

    @property
    def extension(self) -> str:
        return Path(self.filename).suffix.lower()


@dataclass(frozen=True)
class StoredImage:
    """Stable identifier and public URL of a stored image."""

    id: str
    url: str

    def as_dict(self) -> dict[str, str]:
        return {"id": self.id, "url": self.url}


class ImageBackend(Protocol):
    name: str

    def save(self, payload: ImagePayload, options: UploadOptions) -> StoredImage:
        ...

    def delete(self, image_id: str) -> None:
        ...


class CloudinaryImageBackend:
    """Store images in Cloudinary using per-call credentials."""

    name = "cloudinary"

    def __init__(self, config: StorageConfig):
        self.config = config

    def _credentials(self) -> dict[str, str]:
        return {
            "cloud_name": self.config.cloud_name,
            "api_key": self.config.api_key,
            "api_secret": self.config.api_secret,
        }

    def save(self, payload: ImagePayload, options: UploadOptions) -> StoredImage:
        try:
            result = cloudinary.uploader.upload(
                io.BytesIO(payload.data),
                folder=options.folder or self.config.folder,
                width=options.width,
                height=options.height,
                crop=options.crop,
                quality="auto",
                **self._credentials(),
            )
        except Exception as exc:  # SDK errors and network failures
            raise UpstreamStorageError(f"Cloudinary upload failed: {exc}") from exc
        return StoredImage(id=result["public_id"], url=result["secure_url"])

    def delete(self, image_id: str) -> None:
        try:
            cloudinary.uploader.destroy(image_id, invalidate=True, **self._credentials())
        except Exception as exc:
            raise UpstreamStorageError(f"Cloudinary delete failed: {exc}") from exc


class LocalImageBackend:
    """Store images under MEDIA_ROOT and serve them from MEDIA_URL."""

    name = "local"

    def __init__(self, config: StorageConfig):
        self.config = config

    def _path_for(self, image_id: str) -> Path:
        # Only the final path component is honoured so ids cannot escape the root.
        return Path(self.config.media_root) / Path(image_id).name

    def save(self, payload: ImagePayload, options: UploadOptions) -> StoredImage:
        filename = f"image-{int(time.time() * 1000)}-{secrets.randbelow(10 ** 9)}{payload.extension}"
        try:
            Path(self.config.media_root).mkdir(parents=True, exist_ok=True)
            self._path_for(filename).write_bytes(payload.data)
        except OSError as exc:
            raise UpstreamStorageError(f"Local image storage failed: {exc}") from exc
        url = f"{self.config.base_url.rstrip('/')}{self.config.media_url}{filename}"
        return StoredImage(id=filename, url=url)

    def delete(self, image_id: str) -> None:
        try:
            self._path_for(image_id).unlink(missing_ok=True)
        except OSError as exc:
            raise UpstreamStorageError(f"Local image delete failed: {exc}") from exc


def is_local_image_id(image_id: str) -> bool:
    """Return True if the identifier names a file written by LocalImageBackend."""
    return bool(LOCAL_ID_PATTERN.match(image_id or ""))


def resolve_backends(config: StorageConfig) -> list[ImageBackend]:
    """Return backends in the order uploads should try them."""
    local = LocalImageBackend(config)
    if config.remote_enabled:
        return [CloudinaryImageBackend(config), local]
    return [local]


def validate_image(upload) -> None:
    """Reject empty, oversized, or non-image uploads before storing anything."""

    if upload is None:
        raise ImageValidationError("Please upload an image file")
    size = getattr(upload, "size", None) or 0
    if size <= 0:
        raise ImageValidationError("Uploaded file is empty")
    if size > MAX_IMAGE_BYTES:
        raise ImageValidationError("Image exceeds the 5 MiB size limit")
    extension = Path(upload.name or "").suffix.lower()
    content_type = (getattr(upload, "content_type", "") or "").lower()
    if extension not in ALLOWED_EXTENSIONS or content_type not in ALLOWED_CONTENT_TYPES:
        raise ImageValidationError("Only image files are allowed (jpeg, png, gif, webp)")


def upload_image(upload, options: UploadOptions | None = None, config: StorageConfig | None = None) -> StoredImage:
    """Validate and store an uploaded image, falling back to local disk.

    ``upload`` is any Django ``UploadedFile``-like object exposing ``name``,
    ``size``, ``content_type`` and ``read()``. Raises
    :class:`ImageValidationError` before any storage attempt and
    :class:`UpstreamStorageError` once every backend has failed.
    """

    validate_image(upload)
    config = config or StorageConfig.from_settings()
    options = options or UploadOptions(folder=config.folder)
    payload = ImagePayload(
        data=upload.read(),
        filename=upload.name,
        content_type=getattr(upload, "content_type", ""),
    )
    if not payload.data:
        raise ImageValidationError("Uploaded file is empty")

    last_error: UpstreamStorageError | None = None
    for backend in resolve_backends(config):
        try:
            stored = backend.save(payload, options)
        except UpstreamStorageError as exc:
            logger.warning("Image upload via %s failed: %s", backend.name, exc)
            last_error = exc
            continue
        logger.info("Stored image %s via %s backend", stored.id, backend.name)
        return stored

    raise last_error or UpstreamStorageError()


def delete_image(image_id: str | None, config: StorageConfig | None = None) -> bool:
    """Release a stored image; failures are logged and reported as False."""

    if not image_id:
        return False
    config = config or StorageConfig.from_settings()
    if is_local_image_id(image_id):
        backend: ImageBackend = LocalImageBackend(config)
    elif config.remote_enabled:
        backend = CloudinaryImageBackend(config)
    else:
        logger.warning("Cannot release remote image %s: remote storage is not configured", image_id)
        return False

    try:
        backend.delete(image_id)
    except UpstreamStorageError:
        logger.exception("Failed to release image %s via %s backend", image_id, backend.name)
        return False
    logger.info("Released image %s via %s backend", image_id, backend.name)
    return True


def replace_image(
    previous_id: str | None,
    upload,
    options: UploadOptions | None = None,
    config: StorageConfig | None = None,
) -> StoredImage:
    """Validate a new upload, release the previous image, then store the new one."""

    validate_image(upload)
    config = config or StorageConfig.from_settings()
    delete_image(previous_id, config)
    return upload_image(upload, options, config)


__all__ = [
    "ALLOWED_CONTENT_TYPES",
    "ALLOWED_EXTENSIONS",
    "CloudinaryImageBackend",
    "ImageValidationError",
    "LocalImageBackend",
    "MAX_IMAGE_BYTES",
    "StorageConfig",
    "StoredImage",
    "UploadOptions",
    "UpstreamStorageError",
    "delete_image",
    "is_local_image_id",
    "replace_image",
    "resolve_backends",
    "upload_image",
    "validate_image",
]
