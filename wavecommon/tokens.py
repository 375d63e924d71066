"""Access tokens, refresh tokens and one-time codes."""

from __future__ import annotations

import base64
import enum
import random
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

_RAND_MIN = 100000
_RAND_MAX = 999999


class AuthLevel(str, enum.Enum):
    UNKNOWN = "unknown"
    GUEST = "guest"
    USER = "user"
    STUDENT = "student"
    INSTRUCTOR = "instructor"
    MODERATOR = "moderator"
    ADMIN = "admin"


def _from_timestamp(value: Any) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(value, timezone.utc)


@dataclass(frozen=True)
class AccessClaims:
    """Claims carried by an access token."""

    user_id: int
    role: str
    id: str = ""
    subject: str = ""
    issued_at: datetime | None = None
    expires_at: datetime | None = None

    def to_payload(self) -> dict[str, Any]:
        """The JWT payload, leaving out empty registered claims."""
        payload: dict[str, Any] = {}
        if self.subject:
            payload["sub"] = self.subject
        if self.expires_at is not None:
            payload["exp"] = int(self.expires_at.timestamp())
        if self.issued_at is not None:
            payload["iat"] = int(self.issued_at.timestamp())
        if self.id:
            payload["jti"] = self.id
        payload["user_id"] = self.user_id
        payload["role"] = self.role
        return payload

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> AccessClaims:
        return cls(
            user_id=payload["user_id"],
            role=payload["role"],
            id=payload.get("jti", ""),
            subject=payload.get("sub", ""),
            issued_at=_from_timestamp(payload.get("iat")),
            expires_at=_from_timestamp(payload.get("exp")),
        )


class TokenService:
    """Issues HS256-signed access tokens and random refresh tokens."""

    def __init__(
        self, secret: str, access_expiration: timedelta, refresh_expiration: timedelta
    ) -> None:
        self._secret = secret
        self.access_expiration = access_expiration
        self.refresh_expiration = refresh_expiration

    def generate_token(self, user_id: int, role: str) -> str:
        """Sign an access token for ``user_id`` with ``role``."""
        now = datetime.now(timezone.utc).replace(microsecond=0)
        claims = AccessClaims(
            user_id=user_id,
            role=role,
            id=str(uuid.uuid4()),
            subject=str(user_id),
            issued_at=now,
            expires_at=now + self.access_expiration,
        )
        return jwt.encode(claims.to_payload(), self._secret, algorithm="HS256")

    def generate_refresh_token(self) -> str:
        """32 random bytes, URL-safe base64 encoded with padding."""
        return base64.urlsafe_b64encode(secrets.token_bytes(32)).decode("ascii")

    def generate_code(self) -> int:
        """A random six-digit code."""
        return random.randrange(_RAND_MAX - _RAND_MIN) + _RAND_MIN