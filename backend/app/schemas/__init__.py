"""Pydantic schemas for API payloads."""

from .groups import GroupCreate, GroupDetail, GroupRead, LiveSessionRead
from .live import (
    CallableOk,
    GroupLiveRequest,
    GroupLiveTokenRequest,
    GroupPresenceRequest,
    LivePresenceRequest,
    LiveTokenRead,
)

__all__ = [
    "GroupCreate",
    "GroupRead",
    "GroupDetail",
    "LiveSessionRead",
    "CallableOk",
    "GroupLiveRequest",
    "GroupLiveTokenRequest",
    "GroupPresenceRequest",
    "LivePresenceRequest",
    "LiveTokenRead",
]
