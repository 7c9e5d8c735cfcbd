"""Serializers for authentication flows (register, login, profile)."""

from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed

User = get_user_model()


class RegisterSerializer(serializers.Serializer):
    """Validate and create a reader/author account."""

    name = serializers.CharField(min_length=2, max_length=50)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=6)

    @staticmethod
    def validate_email(value):
        """Ensure email is unique before creation."""
        value = value.lower()
        if User.objects.filter(email=value).exists():
            raise serializers.ValidationError("User already exists with this email")
        return value

    def create(self, validated_data):
        return User.objects.create_user(**validated_data)


class LoginSerializer(serializers.Serializer):
    """Authenticate a user via email/password using bcrypt verification."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        """Authenticate credentials and attach the user to validated_data."""
        user = User.objects.find_by_email(attrs["email"])
        if user is None:
            raise AuthenticationFailed("Invalid credentials")

        if not user.is_active:
            raise AuthenticationFailed("User is inactive")

        if not user.check_password(attrs["password"]):
            raise AuthenticationFailed("Invalid credentials")

        attrs["user"] = user
        return attrs


class UserSummarySerializer(serializers.ModelSerializer):
    """Public author card embedded in articles, comments, and likes."""

    avatar = serializers.JSONField(read_only=True)

    class Meta:
        model = User
        fields = ["id", "name", "email", "avatar", "bio"]
        read_only_fields = fields


class UserDetailSerializer(serializers.ModelSerializer):
    """Read-only profile payload including the follow graph."""

    avatar = serializers.JSONField(read_only=True)
    followers = UserSummarySerializer(many=True, read_only=True)
    following = UserSummarySerializer(many=True, read_only=True)
    followersCount = serializers.SerializerMethodField()
    followingCount = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source="date_joined", read_only=True)

    class Meta:
        """Expose identity, profile, and follow counts."""
        model = User
        fields = [
            "id",
            "name",
            "email",
            "avatar",
            "bio",
            "followers",
            "following",
            "followersCount",
            "followingCount",
            "createdAt",
        ]
        read_only_fields = fields

    @staticmethod
    def get_followersCount(obj) -> int:
        return obj.followers.count()

    @staticmethod
    def get_followingCount(obj) -> int:
        return obj.following.count()


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """Writable fields for ``PUT /auth/profile/``."""

    class Meta:
        """Allow partial updates of the display name and bio."""
        model = User
        fields = ["name", "bio"]
        extra_kwargs = {
            "name": {"required": False, "min_length": 2, "max_length": 50},
            "bio": {"required": False, "allow_blank": True, "max_length": 200},
        }

    def validate(self, attrs):
        """Disallow attempts to change email via this endpoint.

        Any payload that includes an 'email' field is rejected with a
        validation error rather than silently ignored.
        """
        if "email" in getattr(self, "initial_data", {}):
            raise serializers.ValidationError("Email cannot be updated via this endpoint")
        return super().validate(attrs)


__all__ = [
    "LoginSerializer",
    "ProfileUpdateSerializer",
    "RegisterSerializer",
    "UserDetailSerializer",
    "UserSummarySerializer",
]
