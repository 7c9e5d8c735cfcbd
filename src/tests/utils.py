"""Shared helpers for tests (user/article factories, fake Redis, API base case)."""

from __future__ import annotations

import tempfile
from typing import Dict
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from articles.models import Article
from authentication.managers import hash_password
from authentication.services import TokenService

User = get_user_model()

# Smallest valid GIF; content sniffing is not performed, only name/type/size.
GIF_BYTES = (
    b"GIF89a\x01\x00\x01\x00\x80\x00\x00\x00\x00\x00\xff\xff\xff!\xf9\x04\x01\x00"
    b"\x00\x00\x00,\x00\x00\x00\x00\x01\x00\x01\x00\x00\x02\x02D\x01\x00;"
)


class FakeRedis:
    """Minimal Redis stub supporting the commands used by TokenService."""

    def __init__(self):
        self._store: Dict[str, str] = {}

    def setex(self, key: str, ttl_seconds: int, value: str) -> None:
        """Mimic Redis SETEX; TTL is ignored in tests, value stored in-memory."""
        self._store[key] = value

    def get(self, key: str):
        """Return stored value for key or None, matching Redis GET semantics."""
        return self._store.get(key)


def create_user(email: str, password: str = "secret123", name: str = "Test User", **extra):
    """Create a user with a bcrypt-hashed password for tests."""

    return User.objects.create(
        email=email,
        password_hash=hash_password(password),
        name=name,
        **extra,
    )


def create_article(author, title: str = "An article", content: str = "Some body text", tags=None, **extra):
    """Create an article through the model so derived fields are computed."""

    article = Article.objects.create(author=author, title=title, content=content, **extra)
    if tags:
        article.set_tags(tags)
    return article


def image_upload(name: str = "photo.gif", content_type: str = "image/gif", data: bytes = GIF_BYTES):
    return SimpleUploadedFile(name, data, content_type=content_type)


@override_settings(
    BCRYPT_ROUNDS=4,
    CLOUDINARY_CLOUD_NAME="",
    CLOUDINARY_API_KEY="",
    CLOUDINARY_API_SECRET="",
    PUBLIC_BASE_URL="http://testserver",
)
class APITestCase(TestCase):
    """TestCase with Redis replaced by FakeRedis and media written to a temp dir."""

    @classmethod
    def setUpClass(cls):
        """Patch Redis clients to use in-memory fake for all tests."""
        super().setUpClass()
        cls.fake_redis = FakeRedis()
        cls.patchers = [
            mock.patch("core.redis_client.get_redis_client", return_value=cls.fake_redis),
            mock.patch("authentication.services.get_redis_client", return_value=cls.fake_redis),
        ]
        for patcher in cls.patchers:
            patcher.start()

    @classmethod
    def tearDownClass(cls):
        """Stop Redis patches after all tests complete."""
        for patcher in cls.patchers:
            patcher.stop()
        super().tearDownClass()

    def setUp(self):
        """Fresh DRF APIClient and an empty media root per test."""
        self.api_client: APIClient = APIClient()
        media = tempfile.TemporaryDirectory()
        self.addCleanup(media.cleanup)
        self.media_root = media.name
        media_override = override_settings(MEDIA_ROOT=self.media_root)
        media_override.enable()
        self.addCleanup(media_override.disable)

    @staticmethod
    def client_for(user) -> APIClient:
        """Return an APIClient carrying a fresh access token for ``user``."""
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {TokenService.issue(user).token}")
        return client
