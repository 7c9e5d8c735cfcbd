"""Authentication endpoints: register, login, refresh, logout, and profile."""

from typing import Any

from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed, NotFound, ValidationError
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.middleware import bearer_token
from core.response import BaseAPIView, api_response
from core.validators import parse_uuid
from uploads.services import UploadOptions, replace_image
from .serializers import (
    LoginSerializer,
    ProfileUpdateSerializer,
    RegisterSerializer,
    UserDetailSerializer,
)
from .services import TokenService

User = get_user_model()

AVATAR_OPTIONS = {"width": 300, "height": 300, "crop": "fill"}


def _token_payload(user) -> dict[str, Any]:
    return {**TokenService.issue(user).as_dict(), "user": UserDetailSerializer(user).data}


class RegisterView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Register a new user and sign them in."""
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        return api_response(
            _token_payload(user),
            status=status.HTTP_201_CREATED,
            message="User registered successfully",
        )


class LoginView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Authenticate and issue access + refresh tokens."""
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.validated_data["user"]
        return api_response(_token_payload(user), message="Login successful")


class RefreshView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Exchange a valid refresh token for new access/refresh tokens."""
        refresh_token = request.data.get("refresh")
        if not refresh_token:
            raise AuthenticationFailed("Refresh token required")

        pair = TokenService.rotate(refresh_token, User.objects.get_active)
        return api_response(pair.as_dict())


class LogoutView(BaseAPIView):
    """Invalidate the current access token by blocklisting its jti."""

    permission_classes = [IsAuthenticated]

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Blocklist the bearer access token and return 204 No Content."""
        token = bearer_token(request)
        if not token:
            raise AuthenticationFailed("Missing token.")

        TokenService.revoke(TokenService.decode_token(token, expected_type="access"))
        # 204 responses must not include a body.
        return Response(status=status.HTTP_204_NO_CONTENT)


class MeView(BaseAPIView):
    permission_classes = [IsAuthenticated]

    # noinspection PyMethodMayBeStatic
    def get(self, request):
        """Return the current user's profile with followers and following."""
        user = User.objects.prefetch_related("followers", "following").get(pk=request.user.pk)
        return api_response({"user": UserDetailSerializer(user).data})


class ProfileView(BaseAPIView):
    permission_classes = [IsAuthenticated]

    # noinspection PyMethodMayBeStatic
    def put(self, request):
        """Update the display name and/or bio of the current user."""
        serializer = ProfileUpdateSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return api_response(
            {"user": UserDetailSerializer(request.user).data},
            message="Profile updated successfully",
        )


class AvatarView(BaseAPIView):
    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Replace the current user's avatar; the previous image is released first."""
        user = request.user
        options = UploadOptions(folder=f"{settings.CLOUDINARY_FOLDER}/avatars", **AVATAR_OPTIONS)
        stored = replace_image(user.avatar_id or None, request.FILES.get("avatar"), options)
        user.avatar_id = stored.id
        user.avatar_url = stored.url
        user.save(update_fields=["avatar_id", "avatar_url", "updated_at"])
        return api_response({"avatar": user.avatar}, message="Avatar updated successfully")


class FollowView(BaseAPIView):
    permission_classes = [IsAuthenticated]

    # noinspection PyMethodMayBeStatic
    def post(self, request, user_id):
        """Follow the target user, or unfollow when already following."""
        target_pk = parse_uuid(user_id, "Invalid user ID format")
        if target_pk == request.user.pk:
            raise ValidationError("You cannot follow yourself")
        target = User.objects.get_active(target_pk)
        if target is None:
            raise NotFound("User not found")

        following = request.user.following
        if following.filter(pk=target.pk).exists():
            following.remove(target)
            return api_response({"isFollowing": False}, message="User unfollowed")
        following.add(target)
        return api_response({"isFollowing": True}, message="User followed")

