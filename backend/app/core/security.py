"""Verification of caller bearer tokens.

Tokens are issued by the authentication service; this backend only checks the
signature and expiry and extracts the caller identity plus the optional
display claims used as a fallback when no profile exists.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt

from app.config import get_settings
from app.core.errors import AUTH_REQUIRED, Unauthenticated

settings = get_settings()


@dataclass(slots=True, frozen=True)
class CallerIdentity:
    """Verified caller extracted from an access token."""

    uid: str
    name: str | None = None
    picture: str | None = None

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "CallerIdentity":
        sub = claims.get("sub")
        if not isinstance(sub, str) or not sub.strip():
            raise Unauthenticated(AUTH_REQUIRED)
        name = claims.get("name")
        picture = claims.get("picture")
        return cls(
            uid=sub.strip(),
            name=name if isinstance(name, str) else None,
            picture=picture if isinstance(picture, str) else None,
        )


def create_access_token(data: Dict[str, Any], expires_delta: timedelta | None = None) -> str:
    """Create a signed caller token with an expiration time.

    Production tokens come from the authentication service; this helper issues
    compatible tokens for tests and local tooling such as ``scripts/issue_token.py``.
    """

    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta if expires_delta is not None else timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT access token."""

    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as exc:
        raise Unauthenticated("token-expired") from exc
    except jwt.InvalidTokenError as exc:
        raise Unauthenticated(AUTH_REQUIRED) from exc
    return payload


def resolve_caller(token: str | None) -> CallerIdentity:
    """Turn a raw bearer token into a :class:`CallerIdentity`."""

    if not token:
        raise Unauthenticated(AUTH_REQUIRED)
    return CallerIdentity.from_claims(decode_access_token(token))
