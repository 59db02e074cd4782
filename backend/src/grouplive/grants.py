"""Media access grants for the live-session conferencing service.

Tokens are LiveKit access tokens built with the ``livekit-api`` SDK: the API
key issues them, the participant identity is the subject and the room
permissions travel as a video grant. The media server validates them out of
band; this module only signs.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from livekit import api

DEFAULT_TOKEN_TTL = timedelta(hours=6)


class MediaConfigError(RuntimeError):
    """Raised when the media service key, secret or address is not configured."""


@dataclass(slots=True, frozen=True)
class MediaServiceConfig:
    """Deployment settings needed to mint tokens for the media service."""

    api_key: str
    api_secret: str
    url: str

    @classmethod
    def from_values(
        cls, api_key: str | None, api_secret: str | None, url: str | None
    ) -> "MediaServiceConfig":
        key = (api_key or "").strip()
        secret = (api_secret or "").strip()
        address = (url or "").strip()
        if not key or not secret or not address:
            raise MediaConfigError("livekit-config-missing")
        return cls(api_key=key, api_secret=secret, url=address)


@dataclass(slots=True, frozen=True)
class AccessGrant:
    """Permissions of one identity inside one media room."""

    room: str
    identity: str
    name: str
    can_publish: bool
    can_subscribe: bool = True

    @classmethod
    def for_role(cls, room: str, identity: str, name: str, role: str) -> "AccessGrant":
        return cls(room=room, identity=identity, name=name, can_publish=role == "host")

    def video_grants(self) -> api.VideoGrants:
        return api.VideoGrants(
            room_join=True,
            room=self.room,
            can_publish=self.can_publish,
            can_subscribe=self.can_subscribe,
        )


def mint_access_token(
    grant: AccessGrant,
    config: MediaServiceConfig,
    *,
    ttl: timedelta = DEFAULT_TOKEN_TTL,
) -> str:
    """Sign ``grant`` into a media access token."""

    token = (
        api.AccessToken(config.api_key, config.api_secret)
        .with_identity(grant.identity)
        .with_name(grant.name)
        .with_grants(grant.video_grants())
        .with_ttl(ttl)
    )
    return token.to_jwt()


def mask_value(value: str | None, visible: int = 4) -> str:
    """Shorten a credential for logging, keeping only its edges."""

    if not value:
        return ""
    if len(value) <= visible * 2:
        return f"{value[:1]}..."
    return f"{value[:visible]}...{value[-visible:]}"
