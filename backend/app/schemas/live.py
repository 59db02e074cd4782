"""Request and response bodies of the callable endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CallablePayload(BaseModel):
    """Base for callable bodies: camelCase keys, unknown keys ignored.

    Argument values are left untyped so that malformed input reaches the
    coordinators, which report it with a stable ``invalid-argument`` message.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    group_id: Any = Field(default=None, alias="groupId")


class GroupLiveRequest(CallablePayload):
    """Body of ``startGroupLive`` and ``stopGroupLive``."""


class GroupLiveTokenRequest(CallablePayload):
    role: Any = Field(default=None, description="host or viewer; anything else means viewer")
    host_id: Any = Field(default=None, alias="hostId")


class GroupPresenceRequest(CallablePayload):
    pass


class LivePresenceRequest(CallablePayload):
    role: Any = None


class CallableOk(BaseModel):
    ok: bool = True


class LiveTokenRead(BaseModel):
    token: str
    url: str
