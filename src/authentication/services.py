"""JWT session tokens: issuing pairs, verifying them, and revoking them in Redis."""

import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from django.conf import settings
from rest_framework.exceptions import AuthenticationFailed

from core.redis_client import get_redis_client


class BlocklistUnavailable(Exception):
    """Raised when Redis blocklist cannot be checked (fail-closed)."""


@dataclass(frozen=True)
class TokenPair:
    token: str
    refresh: str

    def as_dict(self) -> dict[str, str]:
        return {"token": self.token, "refresh": self.refresh}


class TokenService:
    """Session tokens for signed-in users.

    Access tokens authenticate API calls for 15 minutes. Refresh tokens live
    for 24 hours and can be exchanged exactly once for a new pair. Revoked
    token ids are kept in Redis until the token would have expired anyway.
    """

    ACCESS_TTL = timedelta(minutes=15)
    REFRESH_TTL = timedelta(hours=24)
    ALGORITHM = "HS256"
    BLOCKLIST_PREFIX = "inkwell:revoked:"

    @classmethod
    def issue(cls, user) -> TokenPair:
        now = datetime.now(timezone.utc)
        return TokenPair(
            token=cls._sign(user, "access", now, cls.ACCESS_TTL),
            refresh=cls._sign(user, "refresh", now, cls.REFRESH_TTL),
        )

    @classmethod
    def _sign(cls, user, token_type: str, issued_at: datetime, ttl: timedelta) -> str:
        claims = {
            "sub": str(user.pk),
            "jti": uuid.uuid4().hex,
            "type": token_type,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + ttl).timestamp()),
        }
        return jwt.encode(claims, settings.SECRET_KEY, algorithm=cls.ALGORITHM)

    @classmethod
    def decode_token(cls, token: str, expected_type: str) -> dict[str, Any]:
        """Verify signature, expiry and token type; return the claims."""
        try:
            claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[cls.ALGORITHM])
        except jwt.ExpiredSignatureError as exc:
            raise AuthenticationFailed("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthenticationFailed("Invalid token") from exc

        if claims.get("type") != expected_type:
            raise AuthenticationFailed("Invalid token type")
        if not claims.get("jti") or not claims.get("sub"):
            raise AuthenticationFailed("Invalid token")
        return claims

    @classmethod
    def verify(cls, token: str, expected_type: str = "access") -> dict[str, Any]:
        """Decode ``token`` and reject it when its id has been revoked."""
        claims = cls.decode_token(token, expected_type)
        if cls.is_token_blocked(claims["jti"]):
            raise AuthenticationFailed("Token has been revoked")
        return claims

    @classmethod
    def rotate(cls, refresh_token: str, load_user) -> TokenPair:
        """Spend ``refresh_token`` and return a fresh pair for its owner.

        ``load_user`` maps the subject claim to an active account or None.
        """
        claims = cls.verify(refresh_token, expected_type="refresh")
        user = load_user(claims["sub"])
        if user is None:
            raise AuthenticationFailed("User not found or inactive")
        cls.revoke(claims)
        return cls.issue(user)

    @classmethod
    def revoke(cls, claims: dict[str, Any]) -> None:
        cls.block_token(claims["jti"], claims["exp"])

    @classmethod
    def block_token(cls, jti: str, exp: int) -> None:
        ttl_seconds = max(1, exp - int(time.time()))
        try:
            get_redis_client().setex(f"{cls.BLOCKLIST_PREFIX}{jti}", ttl_seconds, "1")
        except Exception as exc:  # pragma: no cover - network failure
            raise BlocklistUnavailable("Redis unavailable while blocklisting") from exc

    @classmethod
    def is_token_blocked(cls, jti: str) -> bool:
        try:
            return get_redis_client().get(f"{cls.BLOCKLIST_PREFIX}{jti}") is not None
        except Exception as exc:  # pragma: no cover - network failure
            raise BlocklistUnavailable("Redis unavailable while checking blocklist") from exc


__all__ = ["TokenService", "TokenPair", "BlocklistUnavailable"]
