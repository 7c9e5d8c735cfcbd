"""bcrypt password helpers and the account manager."""

import bcrypt
from django.conf import settings
from django.contrib.auth.base_user import BaseUserManager
from django.core.exceptions import ValidationError as DjangoValidationError


def hash_password(raw_password: str) -> str:
    """Return the bcrypt hash of ``raw_password`` as text."""
    salt = bcrypt.gensalt(rounds=getattr(settings, "BCRYPT_ROUNDS", 12))
    return bcrypt.hashpw(raw_password.encode(), salt).decode()


def password_matches(password_hash: str, raw_password: str) -> bool:
    if not password_hash or raw_password is None:
        return False
    return bcrypt.checkpw(raw_password.encode(), password_hash.encode())


class UserManager(BaseUserManager):
    """Creates accounts keyed by a lowercased email."""

    use_in_migrations = True

    @classmethod
    def normalize_email(cls, email):
        return super().normalize_email(email or "").strip().lower()

    def create_user(self, email: str, password: str, name: str = "", **extra_fields):
        if not email:
            raise ValueError("An email address is required")
        if not password:
            raise ValueError("A password is required")
        user = self.model(email=self.normalize_email(email), name=name, **extra_fields)
        user.password_hash = hash_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email: str, password: str, name: str = "Admin", **extra_fields):
        extra_fields.update(is_staff=True, is_superuser=True, is_active=True)
        return self.create_user(email, password, name, **extra_fields)

    def get_active(self, user_id):
        """Return the active account with ``user_id``, or None when missing or malformed."""
        if not user_id:
            return None
        try:
            return self.get(pk=user_id, is_active=True)
        except (self.model.DoesNotExist, DjangoValidationError):
            return None

    def find_by_email(self, email: str):
        return self.filter(email=self.normalize_email(email)).first()


__all__ = ["UserManager", "hash_password", "password_matches"]
