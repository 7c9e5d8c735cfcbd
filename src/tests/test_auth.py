"""Tests for authentication flows (register, login, refresh, logout) and profiles."""

from __future__ import annotations

import time
import uuid
from unittest import mock

import jwt
from django.conf import settings
from django.db import DatabaseError
from rest_framework.exceptions import AuthenticationFailed

from authentication.models import User
from authentication.services import BlocklistUnavailable, TokenService
from tests.utils import APITestCase, create_user, image_upload


class AuthFlowTests(APITestCase):
    """End-to-end tests covering token issuance and revocation."""

    @classmethod
    def setUpTestData(cls):
        """Create a default active user for test cases."""
        cls.password = "StrongPass123"
        cls.user = create_user("user@example.com", cls.password, name="Reader")

    def _login(self):
        return self.api_client.post(
            "/auth/login/",
            {"email": self.user.email, "password": self.password},
            format="json",
        ).json()

    def test_register_success(self):
        """Successful registration signs the user in."""
        payload = {"name": "New Writer", "email": "New@Example.com", "password": "secret1"}
        response = self.api_client.post("/auth/register/", payload, format="json")
        body = response.json()

        self.assertEqual(response.status_code, 201)
        self.assertTrue(body["success"])
        self.assertEqual(body["user"]["email"], "new@example.com")
        self.assertEqual(body["user"]["followersCount"], 0)
        self.assertIn("token", body)
        self.assertIn("refresh", body)

    def test_register_duplicate_email_400(self):
        payload = {"name": "Someone", "email": self.user.email, "password": "secret1"}
        response = self.api_client.post("/auth/register/", payload, format="json")
        body = response.json()

        self.assertEqual(response.status_code, 400)
        self.assertFalse(body["success"])
        self.assertEqual(body["errors"][0]["field"], "email")

    def test_register_validates_name_and_password(self):
        payload = {"name": "A", "email": "short@example.com", "password": "123"}
        response = self.api_client.post("/auth/register/", payload, format="json")
        body = response.json()

        self.assertEqual(response.status_code, 400)
        fields = {error["field"] for error in body["errors"]}
        self.assertEqual(fields, {"name", "password"})

    def test_login_success_returns_tokens(self):
        """Valid credentials return access and refresh tokens."""
        body = self._login()

        self.assertTrue(body["success"])
        self.assertIn("token", body)
        self.assertIn("refresh", body)
        self.assertEqual(body["user"]["name"], "Reader")

    def test_login_invalid_credentials_401(self):
        """Bad password returns 401 in the failure envelope."""
        response = self.api_client.post(
            "/auth/login/",
            {"email": self.user.email, "password": "wrongpass"},
            format="json",
        )
        body = response.json()

        self.assertEqual(response.status_code, 401)
        self.assertFalse(body["success"])
        self.assertTrue(body["message"])

    def test_login_inactive_user_401(self):
        """Inactive user cannot log in and receives 401."""
        self.user.is_active = False
        self.user.save(update_fields=["is_active"])

        response = self.api_client.post(
            "/auth/login/",
            {"email": self.user.email, "password": self.password},
            format="json",
        )
        self.assertEqual(response.status_code, 401)

    def test_refresh_with_valid_refresh_token(self):
        """Refresh endpoint issues a new pair and retires the old refresh token."""
        login = self._login()

        response = self.api_client.post("/auth/refresh/", {"refresh": login["refresh"]}, format="json")
        body = response.json()

        self.assertEqual(response.status_code, 200)
        self.assertNotEqual(body["token"], login["token"])

        reuse = self.api_client.post("/auth/refresh/", {"refresh": login["refresh"]}, format="json")
        self.assertEqual(reuse.status_code, 401)

    def test_refresh_with_access_token_rejected(self):
        """Providing an access token to refresh endpoint returns 401."""
        login = self._login()

        response = self.api_client.post("/auth/refresh/", {"refresh": login["token"]}, format="json")
        self.assertEqual(response.status_code, 401)
        self.assertFalse(response.json()["success"])

    def test_expired_refresh_token_returns_401(self):
        """Expired refresh tokens should be rejected with 401 Unauthorized."""
        now = int(time.time())
        payload = {
            "sub": str(self.user.id),
            "jti": "expired-jti",
            "exp": now - 60,
            "iat": now - 120,
            "type": "refresh",
        }
        expired_refresh = jwt.encode(payload, settings.SECRET_KEY, algorithm=TokenService.ALGORITHM)

        response = self.api_client.post("/auth/refresh/", {"refresh": expired_refresh}, format="json")
        self.assertEqual(response.status_code, 401)

    def test_logout_blocklists_token(self):
        """Logout blocklists current access token causing subsequent 401."""
        login = self._login()
        self.api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {login['token']}")

        logout_response = self.api_client.post("/auth/logout/")
        self.assertEqual(logout_response.status_code, 204)

        me_response = self.api_client.get("/auth/me/")
        self.assertEqual(me_response.status_code, 401)
        self.assertFalse(me_response.json()["success"])

    def test_logout_without_token_401(self):
        response = self.api_client.post("/auth/logout/")
        self.assertEqual(response.status_code, 401)

    def test_logout_redis_down_returns_503(self):
        """If Redis is unavailable during logout, the API should fail-closed."""
        login = self._login()
        self.api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {login['token']}")

        with mock.patch.object(
                TokenService,
                "block_token",
                side_effect=BlocklistUnavailable("Redis unavailable while blocklisting"),
        ):
            response = self.api_client.post("/auth/logout/")

        self.assertEqual(response.status_code, 503)
        self.assertFalse(response.json()["success"])

    def test_database_error_returns_500_envelope(self):
        """Database failures surface as a generic 500 without internals."""
        with mock.patch(
                "authentication.serializers.User.objects.find_by_email",
                side_effect=DatabaseError("connection lost"),
        ):
            response = self.api_client.post(
                "/auth/login/",
                {"email": self.user.email, "password": self.password},
                format="json",
            )

        body = response.json()
        self.assertEqual(response.status_code, 500)
        self.assertEqual(body, {"success": False, "message": "Server error", "errors": []})


class ProfileTests(APITestCase):
    """Profile, avatar, and follow endpoints."""

    @classmethod
    def setUpTestData(cls):
        cls.user = create_user("me@example.com", name="Myself")
        cls.other = create_user("other@example.com", name="Other")

    def setUp(self):
        super().setUp()
        self.client_me = self.client_for(self.user)

    def test_me_requires_authentication(self):
        response = self.api_client.get("/auth/me/")
        self.assertEqual(response.status_code, 401)

    def test_me_returns_profile(self):
        response = self.client_me.get("/auth/me/")
        body = response.json()

        self.assertEqual(response.status_code, 200)
        self.assertEqual(body["user"]["email"], "me@example.com")
        self.assertIsNone(body["user"]["avatar"])

    def test_profile_update_changes_name_and_bio(self):
        response = self.client_me.put("/auth/profile/", {"name": "Renamed", "bio": "Hello"}, format="json")
        body = response.json()

        self.assertEqual(response.status_code, 200)
        self.assertEqual(body["user"]["name"], "Renamed")
        self.assertEqual(body["user"]["bio"], "Hello")

    def test_profile_update_rejects_email_and_long_bio(self):
        email_change = self.client_me.put("/auth/profile/", {"email": "x@example.com"}, format="json")
        self.assertEqual(email_change.status_code, 400)

        long_bio = self.client_me.put("/auth/profile/", {"bio": "b" * 201}, format="json")
        self.assertEqual(long_bio.status_code, 400)
        self.assertEqual(long_bio.json()["errors"][0]["field"], "bio")

    def test_avatar_upload_stores_locally_and_replaces_previous(self):
        first = self.client_me.post("/auth/avatar/", {"avatar": image_upload()}, format="multipart")
        self.assertEqual(first.status_code, 200)
        first_id = first.json()["avatar"]["id"]

        second = self.client_me.post("/auth/avatar/", {"avatar": image_upload("new.png", "image/png")}, format="multipart")
        self.assertEqual(second.status_code, 200)
        second_avatar = second.json()["avatar"]

        self.assertNotEqual(second_avatar["id"], first_id)
        self.assertTrue(second_avatar["url"].startswith("http://testserver/uploads/"))
        self.user.refresh_from_db()
        self.assertEqual(self.user.avatar_id, second_avatar["id"])

    def test_avatar_upload_without_file_400(self):
        response = self.client_me.post("/auth/avatar/", {}, format="multipart")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Please upload an image file")

    def test_follow_toggle(self):
        url = f"/auth/follow/{self.other.pk}/"

        followed = self.client_me.post(url).json()
        self.assertTrue(followed["isFollowing"])
        self.assertTrue(self.other.followers.filter(pk=self.user.pk).exists())

        unfollowed = self.client_me.post(url).json()
        self.assertFalse(unfollowed["isFollowing"])
        self.assertFalse(self.other.followers.filter(pk=self.user.pk).exists())

    def test_follow_self_unknown_and_malformed(self):
        self.assertEqual(self.client_me.post(f"/auth/follow/{self.user.pk}/").status_code, 400)
        self.assertEqual(self.client_me.post(f"/auth/follow/{uuid.uuid4()}/").status_code, 404)
        self.assertEqual(self.client_me.post("/auth/follow/not-a-uuid/").status_code, 400)


class TokenServiceTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = create_user("tokens@example.com")

    def test_rotate_spends_the_refresh_token(self):
        pair = TokenService.issue(self.user)

        rotated = TokenService.rotate(pair.refresh, User.objects.get_active)
        self.assertNotEqual(rotated.refresh, pair.refresh)
        with self.assertRaises(AuthenticationFailed):
            TokenService.rotate(pair.refresh, User.objects.get_active)

    def test_rotate_rejects_inactive_owner(self):
        pair = TokenService.issue(self.user)
        User.objects.filter(pk=self.user.pk).update(is_active=False)

        with self.assertRaises(AuthenticationFailed):
            TokenService.rotate(pair.refresh, User.objects.get_active)

    def test_tampered_or_deactivated_access_token_401(self):
        token = TokenService.issue(self.user).token
        self.api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token[:-2]}xx")
        self.assertEqual(self.api_client.get("/auth/me/").status_code, 401)

        User.objects.filter(pk=self.user.pk).update(is_active=False)
        self.api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        self.assertEqual(self.api_client.get("/auth/me/").status_code, 401)
